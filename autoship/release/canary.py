from __future__ import annotations

from autoship.release.ci import CiContext
from autoship.release.model import CanaryIdentifier

CANARY_TAG = "canary"


def build_canary_suffix(request: int | None, build: str | None, short_sha: str) -> str:
    """Unique suffix for a canary build.

    Request number and build id together identify the build. Either one alone
    is extended with the commit hash; neither falls back to the hash.
    """
    suffix = ""
    if request is not None:
        suffix = f"{suffix}.{request}"
    if build:
        suffix = f"{suffix}.{build}"
    if request is None or not build:
        suffix = f"{suffix}.{short_sha}"
    return suffix


def canary_identifier(
    *,
    ci: CiContext,
    short_sha: str,
    request: int | None = None,
    build: str | None = None,
) -> CanaryIdentifier:
    """Explicit values win over the CI context; CI commit stands in for a build id."""
    ci_build = ci.build
    if ci.pr is not None and not ci_build and ci.commit:
        ci_build = ci.commit
    return CanaryIdentifier(
        request=request if request is not None else ci.pr,
        build=build or ci_build,
        short_sha=short_sha,
    )


def suffix_for(identifier: CanaryIdentifier) -> str:
    return build_canary_suffix(identifier.request, identifier.build, identifier.short_sha)


def is_canary(version: str) -> bool:
    return CANARY_TAG in version
