from __future__ import annotations

import ast
from pathlib import Path


def _package_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _source_files() -> list[Path]:
    root = _package_root()
    files: list[Path] = []
    for path in sorted(root.rglob("*.py")):
        rel = path.relative_to(root)
        if rel.parts[0] == "test" or "__pycache__" in rel.parts:
            continue
        files.append(path)
    return files


def _imports(path: Path) -> list[tuple[str, int]]:
    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    found: list[tuple[str, int]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            found.extend((alias.name, node.lineno) for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module and not node.level:
            found.append((node.module, node.lineno))
    return found


def _matches(module: str, prefix: str) -> bool:
    return module == prefix or module.startswith(prefix + ".")


def test_only_the_cli_imports_cli_modules() -> None:
    root = _package_root()
    offenders = [
        f"{path.relative_to(root)}:{line}: {module}"
        for path in _source_files()
        if path.relative_to(root).parts[0] != "cli"
        for module, line in _imports(path)
        if _matches(module, "autoship.cli")
    ]
    assert not offenders, "cli dependency violations:\n" + "\n".join(offenders)


def test_rich_is_confined_to_the_console() -> None:
    root = _package_root()
    offenders = [
        f"{path.relative_to(root)}:{line}: {module}"
        for path in _source_files()
        if path.relative_to(root).as_posix() != "output/console.py"
        for module, line in _imports(path)
        if _matches(module, "rich")
    ]
    assert not offenders, "direct rich usage:\n" + "\n".join(offenders)


def test_subprocess_is_confined_to_the_process_runner() -> None:
    root = _package_root()
    offenders = [
        f"{path.relative_to(root)}:{line}"
        for path in _source_files()
        if path.relative_to(root).as_posix() != "platform/process.py"
        for module, line in _imports(path)
        if module == "subprocess"
    ]
    assert not offenders, "subprocess outside platform/process.py:\n" + "\n".join(offenders)


# The hooks layer sits between the release payload types and everything that
# taps or drives hook points.
_HOOK_DEPENDENCIES = (
    "autoship.core",
    "autoship.hooks",
    "autoship.release.errors",
    "autoship.release.model",
    "autoship.release.config",
)


def test_hooks_depend_only_on_core_and_release_payloads() -> None:
    root = _package_root()
    offenders = [
        f"{path.relative_to(root)}:{line}: {module}"
        for path in _source_files()
        if path.relative_to(root).parts[0] == "hooks"
        for module, line in _imports(path)
        if _matches(module, "autoship")
        and not any(_matches(module, allowed) for allowed in _HOOK_DEPENDENCIES)
    ]
    assert not offenders, "hooks dependency violations:\n" + "\n".join(offenders)


def test_release_payloads_do_not_import_hooks() -> None:
    root = _package_root()
    payloads = {"release/errors.py", "release/model.py", "release/config.py"}
    offenders = [
        f"{path.relative_to(root)}:{line}: {module}"
        for path in _source_files()
        if path.relative_to(root).as_posix() in payloads
        for module, line in _imports(path)
        if _matches(module, "autoship") and not _matches(module, "autoship.core")
        and not _matches(module, "autoship.release.model")
    ]
    assert not offenders, "release payload dependency violations:\n" + "\n".join(offenders)
