"""Error taxonomy for the upgrade pipeline.

Every failure is terminal to an upgrade attempt. Lower layers raise the
specific error; the orchestrator wraps it in an UpgradeFailedError tagged
with the stage it happened in, keeping the original as ``__cause__``.
"""

from enum import Enum
from pathlib import Path


class UpgradeError(Exception):
    """Base class for all upgrade failures."""

    # Set on errors that can leave the installation half-replaced
    needs_manual_recovery: bool = False


class ParseError(UpgradeError):
    """Raised when a version string cannot be tolerantly parsed."""

    def __init__(self, value: str, reason: str = ""):
        self.value = value
        self.reason = reason
        message = f"Cannot parse version {value!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class FetchError(UpgradeError):
    """Raised when the release feed cannot be read."""

    pass


class EmptyReleaseListError(FetchError):
    """Raised when the release feed returns no releases."""

    def __init__(self, message: str = "update server returned an empty list"):
        super().__init__(message)


class DownloadError(UpgradeError):
    """Raised when the release artifact cannot be retrieved or verified."""

    pass


class SwapError(UpgradeError):
    """Base class for failures while replacing the executable."""

    pass


class ExecutablePathError(SwapError):
    """Raised when the running executable cannot be located on disk."""

    pass


class PermissionReadError(SwapError):
    """Raised when the current executable's mode cannot be read."""

    pass


class PermissionApplyError(SwapError):
    """Raised when the mode cannot be copied onto the staged binary."""

    pass


class RenameError(SwapError):
    """Raised when a rename fails and nothing has been changed yet."""

    pass


class ElevatedMoveError(SwapError):
    """Raised when the privileged move helper fails.

    The staged binary was downloaded but the target still holds the old
    version.
    """

    needs_manual_recovery = True

    def __init__(self, message: str, returncode: int | None = None):
        self.returncode = returncode
        super().__init__(message)


class PartialUpgradeError(SwapError):
    """Raised when the old binary was moved aside but the new one was not placed."""

    needs_manual_recovery = True

    def __init__(self, message: str, backup: Path):
        self.backup = backup
        super().__init__(message)


class UnsupportedPlatformError(SwapError):
    """Raised when no swap strategy exists for the host platform."""

    def __init__(self, platform: str):
        self.platform = platform
        super().__init__(f"unsupported platform: {platform}")


class UpgradeStage(str, Enum):
    """Pipeline stage an upgrade failure happened in."""

    CHECK = "check"
    DOWNLOAD = "download"
    INSTALL = "install"

    @property
    def exit_code(self) -> int:
        """Process exit code for a failure in this stage (sysexits.h)."""
        return _STAGE_EXIT_CODES[self]


_STAGE_EXIT_CODES = {
    UpgradeStage.CHECK: 69,  # EX_UNAVAILABLE
    UpgradeStage.DOWNLOAD: 75,  # EX_TEMPFAIL
    UpgradeStage.INSTALL: 74,  # EX_IOERR
}


class UpgradeFailedError(UpgradeError):
    """An upgrade failure classified by the stage it happened in."""

    def __init__(self, stage: UpgradeStage, message: str, cause: UpgradeError | None = None):
        self.stage = stage
        self.message = message
        self.cause = cause
        detail = f"{message}: {cause}" if cause is not None else message
        super().__init__(detail)

    @property
    def needs_manual_recovery(self) -> bool:  # type: ignore[override]
        return self.cause is not None and self.cause.needs_manual_recovery
