"""Release flow: version engine, hosting client, changelog and orchestration.

Submodules are imported directly (`from autoship.release.semver import ...`);
this package re-exports nothing so the hook layer can depend on
`autoship.release.errors` without import cycles.
"""
