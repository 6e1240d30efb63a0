from __future__ import annotations

from autoship.release.ci import CiContext, detect_ci


def test_local_environment() -> None:
    assert detect_ci({}) == CiContext()


def test_github_pull_request() -> None:
    ci = detect_ci(
        {
            "GITHUB_ACTIONS": "true",
            "GITHUB_REF": "refs/pull/42/merge",
            "GITHUB_HEAD_REF": "feature",
            "GITHUB_RUN_ID": "777",
            "GITHUB_SHA": "deadbeef",
        }
    )
    assert ci.is_ci and ci.is_pr
    assert ci.pr == 42
    assert ci.branch == "feature"
    assert ci.build == "777"
    assert ci.service == "github"


def test_github_push_to_main() -> None:
    ci = detect_ci({"GITHUB_ACTIONS": "true", "GITHUB_REF": "refs/heads/main", "GITHUB_REF_NAME": "main"})
    assert ci.is_ci
    assert not ci.is_pr
    assert ci.branch == "main"
    assert ci.pr is None


def test_circleci_pull_request_url() -> None:
    ci = detect_ci(
        {
            "CIRCLECI": "true",
            "CIRCLE_PULL_REQUEST": "https://github.com/acme/widget/pull/17",
            "CIRCLE_BRANCH": "fix",
            "CIRCLE_BUILD_NUM": "5",
        }
    )
    assert ci.pr == 17
    assert ci.build == "5"
    assert ci.service == "circleci"


def test_buildkite_false_pull_request() -> None:
    ci = detect_ci({"BUILDKITE": "true", "BUILDKITE_PULL_REQUEST": "false", "BUILDKITE_BRANCH": "main"})
    assert ci.is_ci
    assert not ci.is_pr
    assert ci.pr is None


def test_generic_variables() -> None:
    ci = detect_ci({"CI": "true", "PR_NUMBER": "#9", "BUILD_ID": "3", "BRANCH": "x"})
    assert ci.is_ci and ci.is_pr
    assert ci.pr == 9
    assert ci.build == "3"
    assert ci.branch == "x"
