"""Tests for environment-driven settings"""

import importlib

import pytest

from url2qr_backend import config


@pytest.fixture
def reload_config(monkeypatch):
    """Re-import config under patched env vars, then restore the defaults."""

    def _reload(**env):
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        return importlib.reload(config)

    yield _reload
    monkeypatch.undo()
    importlib.reload(config)


@pytest.mark.parametrize(
    "interval, ttl, expected",
    [
        (900, 1800, 900),
        (1799, 1800, 1799),
        (1800, 1800, 900),
        (3600, 1800, 900),
        (0, 1800, 1.0),
        (-5, 1800, 1.0),
        (10, 1, 1.0),
    ],
)
def test_clamp_cleanup_interval(interval, ttl, expected):
    assert config.clamp_cleanup_interval(interval, ttl) == expected


def test_defaults():
    assert config.SESSION_TTL_SECONDS == 1800
    assert config.CLEANUP_INTERVAL_SECONDS == 900
    assert config.MAX_BODY_BYTES == 10 * 1024 * 1024


def test_interval_at_or_above_ttl_is_halved(reload_config):
    cfg = reload_config(URL2QR_SESSION_TTL_SECONDS="60", URL2QR_CLEANUP_INTERVAL_SECONDS="120")

    assert cfg.SESSION_TTL_SECONDS == 60
    assert cfg.CLEANUP_INTERVAL_SECONDS == 30


def test_zero_interval_is_floored(reload_config):
    cfg = reload_config(URL2QR_CLEANUP_INTERVAL_SECONDS="0")

    assert cfg.CLEANUP_INTERVAL_SECONDS == config.MIN_CLEANUP_INTERVAL_SECONDS


def test_body_limit_override(reload_config):
    cfg = reload_config(URL2QR_MAX_BODY_BYTES="2048")

    assert cfg.MAX_BODY_BYTES == 2048
