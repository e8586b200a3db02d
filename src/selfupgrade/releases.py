"""Release feed access.

The feed is a JSON array of releases, newest first, in the shape of the
GitHub releases API. Only the first usable entry matters for upgrades.
"""

import logging
from abc import ABC, abstractmethod

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from selfupgrade.config import DEFAULT_TIMEOUT, USER_AGENT
from selfupgrade.errors import EmptyReleaseListError, FetchError

logger = logging.getLogger(__name__)


class Release(BaseModel):
    """A single entry of the release feed."""

    name: str | None = None
    tag_name: str | None = None
    prerelease: bool = False
    draft: bool = False

    @property
    def identifier(self) -> str:
        """Version identifier of the release (tag preferred over name)."""
        return self.tag_name or self.name or ""


_RELEASE_LIST = TypeAdapter(list[Release])


class ReleaseFetcher(ABC):
    """Source of available releases."""

    @abstractmethod
    def latest_releases(self) -> list[Release]:
        """Return the available releases, newest first.

        Raises:
            FetchError: If the releases cannot be retrieved.
        """
        ...


class HttpReleaseFetcher(ReleaseFetcher):
    """Reads the release feed over HTTP."""

    def __init__(
        self,
        url: str,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.url = url
        self._client = client
        self._timeout = timeout

    def _get(self) -> httpx.Response:
        headers = {
            "User-Agent": USER_AGENT,
            "Accept": "application/vnd.github.v3+json",
        }
        if self._client is not None:
            return self._client.get(self.url, headers=headers)
        with httpx.Client(timeout=self._timeout, follow_redirects=True) as client:
            return client.get(self.url, headers=headers)

    def latest_releases(self) -> list[Release]:
        logger.debug("Fetching releases from %s", self.url)
        try:
            response = self._get()
            response.raise_for_status()
            releases = _RELEASE_LIST.validate_json(response.content)
        except (httpx.HTTPError, httpx.InvalidURL) as err:
            raise FetchError(f"Failed to fetch releases from {self.url}: {err}") from err
        except ValidationError as err:
            raise FetchError(f"Invalid release feed from {self.url}: {err}") from err

        published = [r for r in releases if r.identifier and not (r.draft or r.prerelease)]
        logger.debug("Release feed has %d entries, %d published", len(releases), len(published))
        return published


def latest_release(fetcher: ReleaseFetcher) -> str:
    """Return the identifier of the newest release.

    Raises:
        FetchError: If the feed cannot be read.
        EmptyReleaseListError: If the feed has no releases.
    """
    releases = fetcher.latest_releases()
    if not releases:
        raise EmptyReleaseListError()
    return releases[0].identifier
