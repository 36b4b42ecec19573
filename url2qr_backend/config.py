from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv


# Project root (url2qr_backend/ -> project root).
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Local development: pick up a .env next to server.py if there is one.
_env_path = PROJECT_ROOT / ".env"
if _env_path.exists():
    load_dotenv(_env_path)


SERVER_NAME = "URL2QR-MCP"
SERVER_VERSION = "1.0.0"
PROTOCOL_VERSION = "2024-11-05"

MCP_PATH = "/mcp"
ARTIFACT_ROUTE = "/qrcodes"
SESSION_HEADER = "Mcp-Session-Id"

PORT = int(os.environ.get("PORT", "3000"))
HOST = os.environ.get("HOST", "0.0.0.0")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# Directory generated PNGs are written to and served from.
# Override with env var QR_OUTPUT_DIR (relative paths resolve against the cwd).
_output_raw = os.environ.get("QR_OUTPUT_DIR")
if _output_raw and _output_raw.strip():
    QR_OUTPUT_DIR = Path(_output_raw)
else:
    QR_OUTPUT_DIR = Path("qrcodes")
QR_OUTPUT_DIR = QR_OUTPUT_DIR.resolve()
QR_OUTPUT_DIR.mkdir(parents=True, exist_ok=True)

# Optional public base URL used in download links when the request carries no
# forwarded host. Falls back to http://localhost:<PORT>.
PUBLIC_BASE_URL = (os.environ.get("PUBLIC_BASE_URL") or "").strip().rstrip("/") or None

# How long a session may live without activity.
SESSION_TTL_SECONDS = float(os.environ.get("URL2QR_SESSION_TTL_SECONDS", str(30 * 60)))

# Floor for the sweep interval; zero or negative would spin the sweeper.
MIN_CLEANUP_INTERVAL_SECONDS = 1.0


def clamp_cleanup_interval(interval: float, ttl: float) -> float:
    """Keep the sweep interval below the TTL (TTL/2 otherwise) and above the floor."""
    if ttl > 0 and interval >= ttl:
        interval = ttl / 2
    return max(MIN_CLEANUP_INTERVAL_SECONDS, interval)


# How often the server scans for expired sessions. Must stay below the TTL so a
# session never outlives its timeout by more than one interval.
CLEANUP_INTERVAL_SECONDS = clamp_cleanup_interval(
    float(os.environ.get("URL2QR_CLEANUP_INTERVAL_SECONDS", str(15 * 60))),
    SESSION_TTL_SECONDS,
)

# Largest protocol request body accepted; bigger ones get 413.
MAX_BODY_BYTES = int(os.environ.get("URL2QR_MAX_BODY_BYTES", str(10 * 1024 * 1024)))  # 10MB

# Rendering options.
ERROR_CORRECTION_LEVELS = ("L", "M", "Q", "H")
DEFAULT_ERROR_CORRECTION = "M"
DEFAULT_WIDTH = 300
MAX_WIDTH = int(os.environ.get("QR_MAX_WIDTH", "4096"))

ARTIFACT_PREFIX = "qr-"
ARTIFACT_EXT = ".png"
