"""Self-upgrade for command-line tools.

Checks a release feed for a newer version, downloads the matching
platform binary and swaps it in place of the running executable.
"""

__version__ = "1.30.0"

from selfupgrade.errors import (
    DownloadError,
    ElevatedMoveError,
    EmptyReleaseListError,
    ExecutablePathError,
    FetchError,
    ParseError,
    PartialUpgradeError,
    PermissionApplyError,
    PermissionReadError,
    RenameError,
    SwapError,
    UnsupportedPlatformError,
    UpgradeError,
    UpgradeFailedError,
    UpgradeStage,
)
from selfupgrade.upgrade import UpgradeResult, Upgrader, UpgradeStatus, get_current_version
from selfupgrade.version import needs_upgrade, parse_tolerant

__all__ = [
    "__version__",
    "UpgradeError",
    "ParseError",
    "FetchError",
    "EmptyReleaseListError",
    "DownloadError",
    "SwapError",
    "ExecutablePathError",
    "PermissionReadError",
    "PermissionApplyError",
    "RenameError",
    "ElevatedMoveError",
    "PartialUpgradeError",
    "UnsupportedPlatformError",
    "UpgradeFailedError",
    "UpgradeStage",
    "Upgrader",
    "UpgradeResult",
    "UpgradeStatus",
    "get_current_version",
    "needs_upgrade",
    "parse_tolerant",
]
