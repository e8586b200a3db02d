"""Upgrade orchestration.

The flow is:
1. Report the running version
2. Fetch the newest release and compare against it
3. Download the release binary to the fixed scratch path
4. Swap it in place of the running executable

Any failure ends the attempt. It is re-raised as an UpgradeFailedError
naming the stage, so "could not check for updates" stays distinguishable
from "found an update but could not install it".

No locking is done: two upgrades running against the same installation
race on the scratch path and the target, and can leave it corrupted.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol

from selfupgrade.download import ArtifactDownloader
from selfupgrade.errors import (
    DownloadError,
    FetchError,
    ParseError,
    SwapError,
    UpgradeFailedError,
    UpgradeStage,
)
from selfupgrade.releases import ReleaseFetcher, latest_release
from selfupgrade.swap import BinarySwapper, SwapResult, resolve_executable_path
from selfupgrade.version import is_outdated, parse_tolerant

logger = logging.getLogger(__name__)

DISTRIBUTION_NAME = "selfupgrade"


class UpgradeStatus(str, Enum):
    """Outcome of a completed upgrade run."""

    UP_TO_DATE = "up_to_date"
    UPGRADED = "upgraded"


@dataclass
class UpgradeResult:
    """Result of an upgrade run that did not fail."""

    status: UpgradeStatus
    current_version: str
    latest_version: str
    swap: SwapResult | None = None

    @property
    def upgraded(self) -> bool:
        return self.status == UpgradeStatus.UPGRADED


class Reporter(Protocol):
    """Receives user-facing progress messages."""

    def step(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...


class LogReporter:
    """Reporter that only logs; used when no interactive reporter is given."""

    def step(self, message: str) -> None:
        logger.info(message)

    def success(self, message: str) -> None:
        logger.info(message)

    def warning(self, message: str) -> None:
        logger.warning(message)


def get_current_version() -> str:
    """Get the version of the running tool.

    Reads installed package metadata, falling back to the package's
    ``__version__``.
    """
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        logger.debug("No installed metadata for %s, using __version__", DISTRIBUTION_NAME)

    from selfupgrade import __version__

    return __version__


class Upgrader:
    """Runs one upgrade attempt against the running installation."""

    def __init__(
        self,
        current_version: str,
        fetcher: ReleaseFetcher,
        downloader: ArtifactDownloader,
        swapper: BinarySwapper,
        scratch_path: Path,
        executable_path: Path | None = None,
        reporter: Reporter | None = None,
    ):
        self.current_version = current_version
        self.fetcher = fetcher
        self.downloader = downloader
        self.swapper = swapper
        self.scratch_path = scratch_path
        self.executable_path = executable_path
        self.reporter = reporter or LogReporter()

    def run(self) -> UpgradeResult:
        """Upgrade the running executable if a newer release exists.

        Returns:
            UpgradeResult with status UP_TO_DATE or UPGRADED.

        Raises:
            UpgradeFailedError: If any stage fails.
        """
        self.reporter.step(f"You're currently using version: {self.current_version}")
        try:
            current = parse_tolerant(self.current_version)
        except ParseError as err:
            raise UpgradeFailedError(UpgradeStage.CHECK, "Unable to parse current version", err) from err

        self.reporter.step("Checking for the latest version ...")
        try:
            latest_version = latest_release(self.fetcher)
        except FetchError as err:
            raise UpgradeFailedError(UpgradeStage.CHECK, "Unable to fetch latest version info", err) from err

        try:
            latest = parse_tolerant(latest_version)
        except ParseError as err:
            raise UpgradeFailedError(UpgradeStage.CHECK, "Unable to parse latest version", err) from err

        if not is_outdated(current, latest):
            logger.debug("Current %s >= latest %s", current, latest)
            self.reporter.success("You're already using the latest version.")
            return UpgradeResult(
                status=UpgradeStatus.UP_TO_DATE,
                current_version=self.current_version,
                latest_version=latest_version,
            )

        self.reporter.step(f"A new version is available: {latest_version}")

        try:
            self.downloader.fetch_binary(latest_version, self.scratch_path)
        except DownloadError as err:
            raise UpgradeFailedError(UpgradeStage.DOWNLOAD, "Unable to download the new version", err) from err

        try:
            target = resolve_executable_path(self.executable_path)
            if target == self.scratch_path.resolve():
                raise SwapError(f"Staged binary {self.scratch_path} is the running executable")
            swap = self.swapper.swap(self.scratch_path, target)
        except SwapError as err:
            if err.needs_manual_recovery:
                self.reporter.warning("The installation may need manual recovery.")
            raise UpgradeFailedError(UpgradeStage.INSTALL, "Unable to replace the old binary", err) from err

        self.reporter.success(f"Upgraded successfully to {latest_version}!")
        return UpgradeResult(
            status=UpgradeStatus.UPGRADED,
            current_version=self.current_version,
            latest_version=latest_version,
            swap=swap,
        )
