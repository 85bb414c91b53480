"""Error codes for CLI exit status.

These map the failure classes of a publish run onto shell exit codes and are
used consistently by the CLI layer.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for `ghr` commands.

    These values are used as process exit codes and should remain stable:
    - 0: Success
    - 1: User error (bad arguments, invalid glob or slug)
    - 2: Configuration error (missing token, invalid config file)
    - 3: Publish error (release could not be created, retry limit reached)
    - 4: Network error (API unreachable)
    - 5: I/O error (local file unreadable)
    """

    OK = 0
    USER_ERROR = 1
    CONFIG_ERROR = 2
    PUBLISH_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
