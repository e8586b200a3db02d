"""Release artifact download with checksum verification.

Each release publishes one binary per platform next to a ``.sha256``
file holding its digest. The binary is streamed to the destination and
hashed on the way; a mismatch discards the file.
"""

import contextlib
import hashlib
import logging
import platform
import re
from abc import ABC, abstractmethod
from pathlib import Path

import httpx

from selfupgrade.config import DEFAULT_TIMEOUT, USER_AGENT
from selfupgrade.errors import DownloadError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

_SHA256_RE = re.compile(r"^[0-9a-fA-F]{64}$")

_ARCHITECTURES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "ppc64le": "ppc64le",
    "s390x": "s390x",
}


def platform_asset_name(
    tool_name: str,
    system: str | None = None,
    machine: str | None = None,
) -> str | None:
    """Get the release asset name for a platform.

    Args:
        tool_name: Base name of the published binaries.
        system: Platform system name; defaults to the host's.
        machine: Machine architecture; defaults to the host's.

    Returns:
        ``<tool>-<os>-<arch>`` (with ``.exe`` on Windows), or None if no
        binary is published for the platform.
    """
    system = (system or platform.system()).lower()
    machine = (machine or platform.machine()).lower()

    arch = _ARCHITECTURES.get(machine)
    if arch is None and machine.startswith("arm"):
        arch = "arm"

    if arch is None or system not in ("linux", "darwin", "windows"):
        return None
    if system == "darwin" and arch not in ("amd64", "arm64"):
        return None
    if system == "windows":
        return f"{tool_name}-windows-{arch}.exe" if arch == "amd64" else None
    return f"{tool_name}-{system}-{arch}"


class ArtifactDownloader(ABC):
    """Retrieves the release binary for the host platform."""

    @abstractmethod
    def fetch_binary(self, version: str, destination: Path) -> None:
        """Download ``version`` to ``destination``, verifying its integrity.

        Raises:
            DownloadError: If the artifact cannot be retrieved or verified.
        """
        ...


class HttpArtifactDownloader(ArtifactDownloader):
    """Downloads release binaries over HTTP."""

    def __init__(
        self,
        url_template: str,
        tool_name: str,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        system: str | None = None,
        machine: str | None = None,
    ):
        self.url_template = url_template
        self.tool_name = tool_name
        self._client = client
        self._timeout = timeout
        self._system = system
        self._machine = machine

    def artifact_url(self, version: str) -> str:
        """URL of the binary for ``version`` on this platform."""
        asset = platform_asset_name(self.tool_name, self._system, self._machine)
        if asset is None:
            system = self._system or platform.system()
            machine = self._machine or platform.machine()
            raise DownloadError(f"No {self.tool_name} binary is published for {system}/{machine}")
        try:
            return self.url_template.format(version=version, asset=asset)
        except (KeyError, IndexError, ValueError) as err:
            raise DownloadError(f"Invalid download URL template {self.url_template!r}: {err!r}") from err

    def fetch_binary(self, version: str, destination: Path) -> None:
        url = self.artifact_url(version)
        logger.info("Downloading %s %s", self.tool_name, version)
        logger.debug("Artifact URL: %s", url)

        if self._client is not None:
            self._download(self._client, url, destination)
            return
        with httpx.Client(timeout=self._timeout, follow_redirects=True) as client:
            self._download(client, url, destination)

    def _download(self, client: httpx.Client, url: str, destination: Path) -> None:
        headers = {"User-Agent": USER_AGENT}
        try:
            expected = self._fetch_checksum(client, f"{url}.sha256", headers)

            digest = hashlib.sha256()
            destination.parent.mkdir(parents=True, exist_ok=True)
            with client.stream("GET", url, headers=headers) as response:
                response.raise_for_status()
                with destination.open("wb") as fh:
                    for chunk in response.iter_bytes(CHUNK_SIZE):
                        digest.update(chunk)
                        fh.write(chunk)
        except (httpx.HTTPError, httpx.InvalidURL) as err:
            logger.info("failed to download %s: %s", self.tool_name, err)
            destination.unlink(missing_ok=True)
            raise DownloadError(f"download {url}: {err}") from err
        except OSError as err:
            logger.info("failed to write %s: %s", destination, err)
            with contextlib.suppress(OSError):
                destination.unlink(missing_ok=True)
            raise DownloadError(f"write {destination}: {err}") from err

        actual = digest.hexdigest()
        if actual != expected:
            destination.unlink(missing_ok=True)
            raise DownloadError(
                f"checksum mismatch for {url}: expected {expected}, got {actual}"
            )
        logger.debug("Verified sha256 %s for %s", actual, destination)

    def _fetch_checksum(self, client: httpx.Client, url: str, headers: dict[str, str]) -> str:
        response = client.get(url, headers=headers)
        response.raise_for_status()

        # "<hex digest>" or "<hex digest>  <filename>"
        fields = response.text.split()
        if not fields or not _SHA256_RE.match(fields[0]):
            raise DownloadError(f"invalid checksum file at {url}")
        return fields[0].lower()
