"""Process exit codes.

The values are used as shell exit status and must remain stable:
- 0: Success
- 1: User error (bad input, invalid config, missing request number)
- 2: Environment error (gh missing or not authenticated)
- 3: Release error (a hook or the release flow failed)
- 4: Network error (hosting platform call failed)
- 5: I/O error (git or the changelog file failed)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    RELEASE_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
