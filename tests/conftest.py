"""
Shared fixtures.

QR_OUTPUT_DIR is read when url2qr_backend.config is first imported, so it is
pointed at a throwaway directory here before any test module imports the app.
"""

import os
import tempfile

os.environ["QR_OUTPUT_DIR"] = tempfile.mkdtemp(prefix="url2qr-tests-")
os.environ.pop("PUBLIC_BASE_URL", None)

import pytest

from url2qr_backend import config
from url2qr_backend.protocol import McpDispatcher
from url2qr_backend.router import RequestRouter
from url2qr_backend.sessions import SessionRegistry


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _no_public_base_url(monkeypatch):
    monkeypatch.setattr(config, "PUBLIC_BASE_URL", None)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(clock):
    return SessionRegistry(handler_factory=McpDispatcher, clock=clock)


@pytest.fixture
def output_dir(tmp_path):
    path = tmp_path / "qrcodes"
    path.mkdir()
    return path


@pytest.fixture
def router(registry, output_dir):
    return RequestRouter(registry, output_dir=output_dir)
