from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ReleaseErrorKind = Literal[
    "gh_missing",
    "gh_auth_required",
    "config_invalid",
    "missing_request",
    "invalid_input",
    "platform_failed",
    "git_failed",
    "hook_failed",
    "canary_unsupported",
    "changelog_failed",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Error payload shared by the release flow, the hosting client and plugins.

    `status` carries the HTTP status reported by the hosting platform when the
    failure came from an API call.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None
    status: int | None = None

    def pretty(self) -> str:
        text = self.message
        if self.status is not None:
            text = f"{text} (HTTP {self.status})"
        if self.hint:
            text = f"{text} (hint: {self.hint})"
        return text
