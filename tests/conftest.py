"""Pytest configuration and fixtures."""

import sys
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

OLD_CONTENT = b"#!/bin/sh\necho old\n"
NEW_CONTENT = b"#!/bin/sh\necho new\n"


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "posix: mark test as requiring POSIX rename/chmod semantics",
    )


def pytest_collection_modifyitems(config, items):
    """Skip POSIX-only tests on Windows."""
    if sys.platform != "win32":
        return

    skip_posix = pytest.mark.skip(reason="requires POSIX file semantics")
    for item in items:
        if "posix" in item.keywords:
            item.add_marker(skip_posix)


@pytest.fixture
def target_binary(tmp_path: Path) -> Path:
    """An installed executable with mode 0755."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    target = bin_dir / "selfupgrade"
    target.write_bytes(OLD_CONTENT)
    target.chmod(0o755)
    return target


@pytest.fixture
def staged_binary(tmp_path: Path) -> Path:
    """A freshly downloaded binary in a scratch directory, not yet executable."""
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    staged = scratch / "selfupgrade"
    staged.write_bytes(NEW_CONTENT)
    staged.chmod(0o644)
    return staged


@pytest.fixture
def release_server() -> Callable[[dict[str, httpx.Response]], httpx.Client]:
    """Build an httpx client that answers from a URL -> response map."""

    def make_client(routes: dict[str, httpx.Response]) -> httpx.Client:
        def handler(request: httpx.Request) -> httpx.Response:
            response = routes.get(str(request.url))
            if response is None:
                return httpx.Response(404, text="not found")
            # Fresh copy so a route can be requested more than once
            return httpx.Response(response.status_code, content=response.content)

        return httpx.Client(transport=httpx.MockTransport(handler))

    return make_client
