"""Tolerant semantic version parsing and the upgrade decision."""

import re

import semver

from selfupgrade.errors import ParseError

# Pre-release / build suffix starts at the first '-' or '+'
_SUFFIX_RE = re.compile(r"[-+]")


def parse_tolerant(value: str) -> semver.Version:
    """Parse a version string, accepting common deviations from SemVer.

    Surrounding whitespace and a leading ``v`` are dropped, a missing minor
    or patch component defaults to ``0`` and leading zeros in numeric
    components are removed. What remains must be valid SemVer 2.0.

    Raises:
        ParseError: If the string has no usable numeric version.
    """
    text = value.strip()
    if text[:1] in ("v", "V"):
        text = text[1:]

    match = _SUFFIX_RE.search(text)
    core, suffix = (text[: match.start()], text[match.start() :]) if match else (text, "")

    parts = core.split(".")
    if len(parts) > 3:
        raise ParseError(value, "too many version components")
    if not all(part.isascii() and part.isdigit() for part in parts):
        raise ParseError(value, "version components must be numeric")

    parts = [part.lstrip("0") or "0" for part in parts]
    parts.extend("0" for _ in range(3 - len(parts)))

    try:
        return semver.Version.parse(".".join(parts) + suffix)
    except ValueError as err:
        raise ParseError(value, str(err)) from err


def is_outdated(current: semver.Version, latest: semver.Version) -> bool:
    """Return True if ``current`` strictly precedes ``latest``."""
    return current < latest


def needs_upgrade(current: str, latest: str) -> bool:
    """Return True if ``current`` is strictly older than ``latest``.

    Raises:
        ParseError: If either version cannot be parsed.
    """
    return is_outdated(parse_tolerant(current), parse_tolerant(latest))
