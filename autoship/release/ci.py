"""CI environment detection.

The CLI builds a `CiContext` once and injects it; release logic never reads
environment variables itself.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass

_GITHUB_PR_REF_RE = re.compile(r"^refs/pull/(\d+)/")


@dataclass(frozen=True, slots=True)
class CiContext:
    is_ci: bool = False
    is_pr: bool = False
    branch: str | None = None
    pr: int | None = None
    build: str | None = None
    commit: str | None = None
    service: str | None = None


def _int(value: str | None) -> int | None:
    if value is None:
        return None
    value = value.strip().lstrip("#")
    return int(value) if value.isdigit() else None


def _github(env: Mapping[str, str]) -> CiContext:
    ref = env.get("GITHUB_REF", "")
    m = _GITHUB_PR_REF_RE.match(ref)
    pr = int(m.group(1)) if m else None
    head_ref = env.get("GITHUB_HEAD_REF") or None
    return CiContext(
        is_ci=True,
        is_pr=pr is not None or head_ref is not None,
        branch=head_ref or env.get("GITHUB_REF_NAME") or None,
        pr=pr,
        build=env.get("GITHUB_RUN_ID") or None,
        commit=env.get("GITHUB_SHA") or None,
        service="github",
    )


def _circle(env: Mapping[str, str]) -> CiContext:
    pr = _int(env.get("CIRCLE_PR_NUMBER"))
    if pr is None:
        url = env.get("CIRCLE_PULL_REQUEST", "")
        pr = _int(url.rsplit("/", 1)[-1]) if url else None
    return CiContext(
        is_ci=True,
        is_pr=pr is not None,
        branch=env.get("CIRCLE_BRANCH") or None,
        pr=pr,
        build=env.get("CIRCLE_BUILD_NUM") or None,
        commit=env.get("CIRCLE_SHA1") or None,
        service="circleci",
    )


def _buildkite(env: Mapping[str, str]) -> CiContext:
    # Buildkite reports "false" when the build is not for a pull request.
    pr = _int(env.get("BUILDKITE_PULL_REQUEST"))
    return CiContext(
        is_ci=True,
        is_pr=pr is not None,
        branch=env.get("BUILDKITE_BRANCH") or None,
        pr=pr,
        build=env.get("BUILDKITE_BUILD_NUMBER") or None,
        commit=env.get("BUILDKITE_COMMIT") or None,
        service="buildkite",
    )


def detect_ci(env: Mapping[str, str]) -> CiContext:
    if env.get("GITHUB_ACTIONS") == "true":
        return _github(env)
    if env.get("CIRCLECI") == "true":
        return _circle(env)
    if env.get("BUILDKITE") == "true":
        return _buildkite(env)

    pr = _int(env.get("PR_NUMBER"))
    return CiContext(
        is_ci=env.get("CI", "").lower() in {"1", "true"},
        is_pr=pr is not None,
        branch=env.get("BRANCH") or None,
        pr=pr,
        build=env.get("BUILD_ID") or None,
        commit=None,
    )
