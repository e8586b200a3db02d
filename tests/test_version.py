"""Tests for tolerant version parsing and the upgrade decision."""

import pytest
import semver

from selfupgrade.errors import ParseError
from selfupgrade.version import is_outdated, needs_upgrade, parse_tolerant


class TestParseTolerant:
    """Tests for parse_tolerant()."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("1.2.3", semver.Version(1, 2, 3)),
            ("v1.2.3", semver.Version(1, 2, 3)),
            ("  v1.31.0\n", semver.Version(1, 31, 0)),
            ("1.2", semver.Version(1, 2, 0)),
            ("2", semver.Version(2, 0, 0)),
            ("01.02.03", semver.Version(1, 2, 3)),
            ("v1.32.0-beta.0", semver.Version(1, 32, 0, prerelease="beta.0")),
            ("1.2.3+build.7", semver.Version(1, 2, 3, build="build.7")),
        ],
    )
    def test_accepts_tolerant_forms(self, value: str, expected: semver.Version) -> None:
        """Should normalise prefixes, short forms and leading zeros."""
        assert parse_tolerant(value) == expected

    @pytest.mark.parametrize(
        "value",
        ["not-a-version", "", "v", "1.2.3.4", "1..2", "1.x.3", "1.2.3-", "version 1.2.3"],
    )
    def test_rejects_garbage(self, value: str) -> None:
        """Should raise ParseError for strings without a usable version."""
        with pytest.raises(ParseError) as exc_info:
            parse_tolerant(value)

        assert exc_info.value.value == value

    def test_preserves_underlying_cause(self) -> None:
        """Should chain the semver error when the normalised form is invalid."""
        with pytest.raises(ParseError) as exc_info:
            parse_tolerant("1.2.3-")

        assert isinstance(exc_info.value.__cause__, ValueError)


class TestNeedsUpgrade:
    """Tests for needs_upgrade()."""

    @pytest.mark.parametrize(
        ("current", "latest"),
        [
            ("1.30.0", "1.31.0"),
            ("v1.30.0", "1.31.0"),
            ("1.9.0", "1.10.0"),
            ("1.31.0", "2.0.0"),
            ("1.31.0", "1.31.1"),
            ("1.32.0-beta.0", "1.32.0"),
            ("1.32.0-alpha", "1.32.0-beta"),
            ("1.32.0-beta.2", "1.32.0-beta.10"),
        ],
    )
    def test_older_current_needs_upgrade(self, current: str, latest: str) -> None:
        """Should return True when current precedes latest."""
        assert needs_upgrade(current, latest) is True
        assert needs_upgrade(latest, current) is False

    @pytest.mark.parametrize("version", ["1.31.0", "v1.31.0", "0.0.1", "2.0.0-rc.1"])
    def test_same_version_is_up_to_date(self, version: str) -> None:
        """Should return False for equal versions."""
        assert needs_upgrade(version, version) is False

    def test_build_metadata_does_not_trigger_upgrade(self) -> None:
        """Should ignore build metadata when comparing."""
        assert needs_upgrade("1.31.0+abc", "1.31.0+def") is False

    def test_prefixed_and_plain_compare_equal(self) -> None:
        """Should treat 'v1.31.0' and '1.31.0' as the same release."""
        assert needs_upgrade("1.31.0", "v1.31.0") is False

    def test_newer_current_is_up_to_date(self) -> None:
        """Should not downgrade when running a newer build than the feed."""
        assert needs_upgrade("1.32.0", "1.31.0") is False

    @pytest.mark.parametrize(("current", "latest"), [("not-a-version", "1.0.0"), ("1.0.0", "garbage")])
    def test_raises_parse_error(self, current: str, latest: str) -> None:
        """Should raise ParseError if either side is unparseable."""
        with pytest.raises(ParseError):
            needs_upgrade(current, latest)


class TestIsOutdated:
    """Tests for is_outdated()."""

    def test_older_is_outdated(self) -> None:
        """Should compare already parsed versions by precedence."""
        assert is_outdated(semver.Version(1, 30, 0), semver.Version(1, 31, 0)) is True
        assert is_outdated(semver.Version(1, 31, 0), semver.Version(1, 30, 0)) is False

    def test_equal_is_not_outdated(self) -> None:
        """Should never ask to reinstall the running release."""
        version = semver.Version(1, 31, 0, build="abc")
        assert is_outdated(version, semver.Version(1, 31, 0, build="def")) is False
