"""Replacement of the running executable.

The swap is a small state machine whose steps depend on the platform
family, so each family gets its own strategy behind ``BinarySwapper``:

- Windows refuses to overwrite or delete a running executable but allows
  renaming it. The old binary is moved aside to ``<name>.old`` and the
  staged binary renamed into its place.
- POSIX keeps the running inode alive across a rename, so the staged
  binary takes over the original's mode and is renamed over the target.
  If the rename is denied, a privileged helper (``sudo mv``) retries it.

The strategy is picked once with ``select_swapper()``.
"""

import logging
import os
import platform
import shutil
import stat
import subprocess
import sys
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from selfupgrade.config import DEFAULT_ELEVATION_COMMAND, ENV_PREFIX
from selfupgrade.errors import (
    ElevatedMoveError,
    ExecutablePathError,
    PartialUpgradeError,
    PermissionApplyError,
    PermissionReadError,
    RenameError,
    UnsupportedPlatformError,
)

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".old"

# argv[0] with these suffixes is a script run by the interpreter
PYTHON_SUFFIXES = (".py", ".pyc", ".pyw")

Runner = Callable[..., subprocess.CompletedProcess]


class SwapState(str, Enum):
    """Progress of a swap."""

    START = "start"
    PERMISSIONS_READ = "permissions_read"
    STAGED = "staged"
    RENAMED = "renamed"
    ELEVATED = "elevated"
    DONE = "done"


@dataclass
class SwapResult:
    """Outcome of a successful swap."""

    state: SwapState
    target: Path
    # Windows keeps the previous binary here; it is never cleaned up
    backup: Path | None = None
    elevated: bool = False


class BinarySwapper(ABC):
    """Replaces the binary at a target path with a staged one."""

    def __init__(self) -> None:
        self.state = SwapState.START

    @property
    @abstractmethod
    def name(self) -> str:
        """Platform family handled (e.g. 'posix', 'windows')."""
        ...

    @abstractmethod
    def swap(self, staged: Path, target: Path) -> SwapResult:
        """Move ``staged`` into place at ``target``.

        ``staged`` is consumed: it no longer exists at its path afterwards.

        Raises:
            SwapError: If the replacement fails.
        """
        ...

    def _advance(self, state: SwapState) -> None:
        logger.debug("%s swap: %s -> %s", self.name, self.state.value, state.value)
        self.state = state


class WindowsSwapper(BinarySwapper):
    """Swap by moving the running binary aside, then renaming the new one in."""

    def __init__(self, suffix: str = BACKUP_SUFFIX):
        super().__init__()
        self.suffix = suffix

    @property
    def name(self) -> str:
        return "windows"

    def backup_path(self, target: Path) -> Path:
        """Sibling path the running binary is moved to."""
        return target.with_name(target.name + self.suffix)

    def swap(self, staged: Path, target: Path) -> SwapResult:
        self._advance(SwapState.START)
        backup = self.backup_path(target)

        try:
            # A leftover backup from an earlier upgrade is replaced
            os.replace(target, backup)
        except OSError as err:
            raise RenameError(f"Cannot move {target} aside to {backup}: {err}") from err
        self._advance(SwapState.RENAMED)

        try:
            os.replace(staged, target)
        except OSError as err:
            raise PartialUpgradeError(
                f"Moved {target} to {backup} but could not install {staged} in its place: {err}. "
                f"Rename {backup} back to {target.name} to restore the previous version.",
                backup=backup,
            ) from err

        self._advance(SwapState.DONE)
        logger.info("Replaced %s, previous binary kept at %s", target, backup)
        return SwapResult(state=self.state, target=target, backup=backup)


class PosixSwapper(BinarySwapper):
    """Swap by renaming the staged binary over the target.

    Falls back to a privileged move when the rename is denied.
    """

    def __init__(
        self,
        elevation_command: Sequence[str] = DEFAULT_ELEVATION_COMMAND,
        runner: Runner = subprocess.run,
    ):
        super().__init__()
        self.elevation_command = tuple(elevation_command)
        self._runner = runner

    @property
    def name(self) -> str:
        return "posix"

    def swap(self, staged: Path, target: Path) -> SwapResult:
        self._advance(SwapState.START)

        try:
            mode = stat.S_IMODE(os.stat(target).st_mode)
        except OSError as err:
            raise PermissionReadError(f"Cannot read permissions of {target}: {err}") from err
        self._advance(SwapState.PERMISSIONS_READ)

        try:
            os.chmod(staged, mode)
        except OSError as err:
            raise PermissionApplyError(
                f"Cannot set mode {mode:o} on {staged}: {err}"
            ) from err
        self._advance(SwapState.STAGED)

        try:
            os.rename(staged, target)
        except PermissionError as err:
            logger.warning("Rename of %s denied (%s); retrying with elevated privileges", target, err)
            self._elevated_move(staged, target)
            self._advance(SwapState.ELEVATED)
            self._advance(SwapState.DONE)
            return SwapResult(state=self.state, target=target, elevated=True)
        except OSError as err:
            raise RenameError(f"Cannot rename {staged} to {target}: {err}") from err

        self._advance(SwapState.RENAMED)
        self._advance(SwapState.DONE)
        logger.info("Replaced %s", target)
        return SwapResult(state=self.state, target=target)

    def _elevated_move(self, staged: Path, target: Path) -> None:
        """Run the privileged move helper, attached to the terminal for credentials."""
        cmd = [*self.elevation_command, str(staged), str(target)]
        logger.debug("Running %s", " ".join(cmd))
        try:
            # stdin/stdout/stderr are inherited so a password prompt works
            result = self._runner(cmd, check=False)
        except OSError as err:
            raise ElevatedMoveError(
                f"Cannot run {self.elevation_command[0]} to move {staged} to {target}: {err}"
            ) from err

        if result.returncode != 0:
            raise ElevatedMoveError(
                f"'{' '.join(cmd)}' exited with status {result.returncode}; "
                f"{target} was not replaced",
                returncode=result.returncode,
            )


def select_swapper(
    system: str | None = None,
    elevation_command: Sequence[str] = DEFAULT_ELEVATION_COMMAND,
    runner: Runner = subprocess.run,
) -> BinarySwapper:
    """Pick the swap strategy for the host platform.

    Raises:
        UnsupportedPlatformError: If the platform has no strategy.
    """
    system = system or platform.system()
    family = system.lower()
    if family == "windows":
        return WindowsSwapper()
    if family in ("linux", "darwin"):
        return PosixSwapper(elevation_command=elevation_command, runner=runner)
    raise UnsupportedPlatformError(system)


def resolve_executable_path(override: Path | None = None) -> Path:
    """Get the absolute path of the running executable, with symlinks resolved.

    Args:
        override: Explicit path to use instead of auto-detection.

    Raises:
        ExecutablePathError: If the path does not name a regular file, or if
            auto-detection finds a Python script or interpreter rather than a
            standalone binary.
    """
    detected = override is None and not getattr(sys, "frozen", False)
    if override is not None:
        candidate = Path(override)
    elif getattr(sys, "frozen", False):
        candidate = Path(sys.executable)
    else:
        argv0 = sys.argv[0] if sys.argv and sys.argv[0] else ""
        if not argv0:
            raise ExecutablePathError("Cannot determine the running executable")
        has_dir = os.sep in argv0 or (os.altsep is not None and os.altsep in argv0)
        found = argv0 if has_dir else shutil.which(argv0)
        candidate = Path(found or argv0)

    try:
        path = candidate.resolve(strict=True)
    except OSError as err:
        raise ExecutablePathError(f"Cannot locate executable {candidate}: {err}") from err

    if not path.is_file():
        raise ExecutablePathError(f"Executable {path} is not a regular file")
    if detected:
        _reject_interpreter_launch(path)
    return path


def _reject_interpreter_launch(path: Path) -> None:
    """Refuse paths that belong to a Python launch, not to the installed tool binary."""
    package_dir = Path(__file__).resolve().parent
    interpreter = Path(sys.executable).resolve() if sys.executable else None
    if path.suffix.lower() in PYTHON_SUFFIXES or path.is_relative_to(package_dir) or path == interpreter:
        raise ExecutablePathError(
            f"Running from {path} under the Python interpreter; "
            f"set {ENV_PREFIX}EXECUTABLE to the binary to replace"
        )
