"""Tests for upgrade configuration."""

import tempfile
from pathlib import Path

import pytest

from selfupgrade.config import DEFAULT_ELEVATION_COMMAND, DEFAULT_TIMEOUT, UpgradeConfig


class TestUpgradeConfigDefaults:
    """Tests for default configuration values."""

    def test_releases_url_from_repository(self) -> None:
        config = UpgradeConfig(repository="acme/widget")
        assert config.resolved_releases_url == "https://api.github.com/repos/acme/widget/releases"

    def test_download_template_from_repository(self) -> None:
        config = UpgradeConfig(repository="acme/widget")
        url = config.resolved_download_url_template.format(version="v1.0.0", asset="widget-linux-amd64")
        assert url == "https://github.com/acme/widget/releases/download/v1.0.0/widget-linux-amd64"

    def test_scratch_path_in_temp_dir(self) -> None:
        """Should use a stable, unversioned name in the temp directory."""
        config = UpgradeConfig()
        assert config.scratch_path() == Path(tempfile.gettempdir()) / "selfupgrade"
        assert config.scratch_path(windows=True).name == "selfupgrade.exe"

    def test_defaults(self) -> None:
        config = UpgradeConfig()
        assert config.elevation_command == DEFAULT_ELEVATION_COMMAND == ("sudo", "mv")
        assert config.timeout == DEFAULT_TIMEOUT
        assert config.executable is None


class TestUpgradeConfigFromEnv:
    """Tests for UpgradeConfig.from_env()."""

    def test_empty_environment_gives_defaults(self) -> None:
        assert UpgradeConfig.from_env({}) == UpgradeConfig()

    def test_reads_overrides(self, tmp_path: Path) -> None:
        """Should apply every SELFUPGRADE_* variable."""
        config = UpgradeConfig.from_env(
            {
                "SELFUPGRADE_REPOSITORY": "acme/widget",
                "SELFUPGRADE_RELEASES_URL": "https://mirror.example.com/releases.json",
                "SELFUPGRADE_DOWNLOAD_URL": "https://mirror.example.com/{version}/{asset}",
                "SELFUPGRADE_SCRATCH_DIR": str(tmp_path),
                "SELFUPGRADE_EXECUTABLE": str(tmp_path / "widget"),
                "SELFUPGRADE_ELEVATION_COMMAND": "doas mv -f",
                "SELFUPGRADE_TIMEOUT": "5",
            }
        )

        assert config.repository == "acme/widget"
        assert config.resolved_releases_url == "https://mirror.example.com/releases.json"
        assert config.resolved_download_url_template == "https://mirror.example.com/{version}/{asset}"
        assert config.scratch_path() == tmp_path / "selfupgrade"
        assert config.executable == tmp_path / "widget"
        assert config.elevation_command == ("doas", "mv", "-f")
        assert config.timeout == 5.0

    def test_blank_values_are_ignored(self) -> None:
        config = UpgradeConfig.from_env({"SELFUPGRADE_REPOSITORY": "  ", "SELFUPGRADE_TIMEOUT": ""})
        assert config == UpgradeConfig()

    @pytest.mark.parametrize("value", ["soon", "0", "-3"])
    def test_invalid_timeout(self, value: str) -> None:
        with pytest.raises(ValueError, match="SELFUPGRADE_TIMEOUT"):
            UpgradeConfig.from_env({"SELFUPGRADE_TIMEOUT": value})
