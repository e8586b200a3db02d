"""Upgrade configuration.

Defaults live in module constants; each can be overridden from the
environment through ``UpgradeConfig.from_env()``.
"""

import logging
import os
import shlex
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

logger = logging.getLogger(__name__)

TOOL_NAME: Final = "selfupgrade"

# GitHub repository publishing the release binaries
GITHUB_REPO: Final = "selfupgrade/selfupgrade"
GITHUB_API_URL: Final = "https://api.github.com/repos"
GITHUB_DOWNLOAD_URL: Final = "https://github.com"

# Release binaries are named <tool>-<os>-<arch>[.exe]
DOWNLOAD_URL_TEMPLATE: Final = "{base}/{repo}/releases/download/{version}/{asset}"

DEFAULT_TIMEOUT: Final = 30.0
DEFAULT_ELEVATION_COMMAND: Final = ("sudo", "mv")

# User agent for GitHub API (required by GitHub)
USER_AGENT: Final = f"{TOOL_NAME}-updater/1.0"

ENV_PREFIX: Final = "SELFUPGRADE_"


@dataclass
class UpgradeConfig:
    """Configuration for an upgrade run."""

    tool_name: str = TOOL_NAME
    repository: str = GITHUB_REPO

    # Explicit URLs win over the ones derived from the repository
    releases_url: str | None = None
    download_url_template: str | None = None

    # Scratch directory for the downloaded binary
    scratch_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))

    # Explicit path of the executable to replace (auto-detected if None)
    executable: Path | None = None

    # Helper invoked as <command...> <staged> <target> when rename is denied
    elevation_command: tuple[str, ...] = DEFAULT_ELEVATION_COMMAND

    timeout: float = DEFAULT_TIMEOUT

    @property
    def resolved_releases_url(self) -> str:
        """URL of the release feed, newest release first."""
        return self.releases_url or f"{GITHUB_API_URL}/{self.repository}/releases"

    @property
    def resolved_download_url_template(self) -> str:
        """Artifact URL template with ``{version}`` and ``{asset}`` placeholders."""
        if self.download_url_template:
            return self.download_url_template
        return DOWNLOAD_URL_TEMPLATE.replace("{base}", GITHUB_DOWNLOAD_URL).replace(
            "{repo}", self.repository
        )

    def scratch_path(self, windows: bool = False) -> Path:
        """Fixed scratch location for the downloaded binary, reused on every run."""
        name = f"{self.tool_name}.exe" if windows else self.tool_name
        return self.scratch_dir / name

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "UpgradeConfig":
        """Build a config from ``SELFUPGRADE_*`` environment variables.

        Raises:
            ValueError: If ``SELFUPGRADE_TIMEOUT`` is not a positive number or
                ``SELFUPGRADE_ELEVATION_COMMAND`` is empty.
        """
        env = os.environ if environ is None else environ
        config = cls()

        def get(name: str) -> str | None:
            value = env.get(ENV_PREFIX + name, "").strip()
            return value or None

        if repository := get("REPOSITORY"):
            config.repository = repository
        config.releases_url = get("RELEASES_URL")
        config.download_url_template = get("DOWNLOAD_URL")

        if scratch_dir := get("SCRATCH_DIR"):
            config.scratch_dir = Path(scratch_dir).expanduser()
        if executable := get("EXECUTABLE"):
            config.executable = Path(executable).expanduser()

        if command := get("ELEVATION_COMMAND"):
            parts = tuple(shlex.split(command))
            if not parts:
                raise ValueError(f"{ENV_PREFIX}ELEVATION_COMMAND is empty")
            config.elevation_command = parts

        if timeout := get("TIMEOUT"):
            try:
                config.timeout = float(timeout)
            except ValueError as err:
                raise ValueError(f"{ENV_PREFIX}TIMEOUT must be a number, got {timeout!r}") from err
            if config.timeout <= 0:
                raise ValueError(f"{ENV_PREFIX}TIMEOUT must be positive, got {timeout!r}")

        logger.debug("Loaded upgrade config: %s", config)
        return config
