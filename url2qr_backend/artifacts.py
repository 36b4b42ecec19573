from __future__ import annotations

import uuid
from pathlib import Path
from typing import Mapping

from . import config


def new_artifact_filename() -> str:
    return f"{config.ARTIFACT_PREFIX}{uuid.uuid4()}{config.ARTIFACT_EXT}"


def artifact_path(filename: str, output_dir: Path | None = None) -> Path:
    """Resolve an artifact filename inside the output directory.

    Raises ValueError for anything that is not a plain .png basename or
    that would resolve outside the directory.
    """
    if not isinstance(filename, str) or not filename:
        raise ValueError("Invalid artifact name")
    if "/" in filename or "\\" in filename or Path(filename).name != filename:
        raise ValueError("Invalid artifact name")
    if Path(filename).suffix.lower() != config.ARTIFACT_EXT:
        raise ValueError("Invalid artifact name")

    base = (output_dir or config.QR_OUTPUT_DIR).resolve()
    path = (base / filename).resolve()
    if path.parent != base:
        raise ValueError("Invalid artifact name")
    return path


def _first_header_value(value: str | None) -> str:
    # Proxies may append: "a.example, b.internal"
    return (value or "").split(",")[0].strip()


def detect_forwarded_base_url(headers: Mapping[str, str], default_scheme: str = "http") -> str | None:
    """Public base URL from X-Forwarded-Host / X-Forwarded-Proto, if present."""
    host = _first_header_value(headers.get("x-forwarded-host"))
    if not host:
        return None
    proto = _first_header_value(headers.get("x-forwarded-proto")) or default_scheme
    return f"{proto}://{host}"


def resolve_download_base(
    host_base_url: str | None = None,
    public_base_url: str | None = None,
    port: int | None = None,
) -> str:
    """Pick the base URL for download links.

    Priority: per-request detected host, configured PUBLIC_BASE_URL, then
    http://localhost:<PORT>.
    """
    if host_base_url:
        return host_base_url.rstrip("/")
    if public_base_url is None:
        public_base_url = config.PUBLIC_BASE_URL
    if public_base_url:
        return public_base_url.rstrip("/")
    return f"http://localhost:{port if port is not None else config.PORT}"


def download_url(base_url: str, filename: str) -> str:
    return f"{base_url.rstrip('/')}{config.ARTIFACT_ROUTE}/{filename}"
