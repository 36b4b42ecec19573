"""The url_to_qrcode tool: URL in, downloadable PNG QR code out."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from fastapi.concurrency import run_in_threadpool
from pydantic import AnyUrl, TypeAdapter, ValidationError

from . import config
from .artifacts import artifact_path, download_url, new_artifact_filename, resolve_download_base
from .qr_image import WidthTooSmall, render_png


logger = logging.getLogger(__name__)

NAME = "url_to_qrcode"
DESCRIPTION = (
    "Convert a URL into a QR code image and return the download link. "
    "The QR code will be saved as a PNG file and accessible via HTTP."
)
INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "url": {
            "type": "string",
            "description": "The URL to convert into a QR code (e.g., https://example.com)",
        },
        "errorCorrectionLevel": {
            "type": "string",
            "enum": list(config.ERROR_CORRECTION_LEVELS),
            "description": (
                "QR code error correction level. L=Low(7%), M=Medium(15%), "
                "Q=Quartile(25%), H=High(30%). Default: M"
            ),
        },
        "width": {
            "type": "number",
            "description": "Width of the QR code image in pixels. Default: 300",
        },
    },
    "required": ["url"],
}

_url_adapter = TypeAdapter(AnyUrl)


class ConversionError(ValueError):
    """The request cannot be turned into a QR code (bad url or option)."""


@dataclass(frozen=True)
class ToolContext:
    # Base URL detected from the inbound request's forwarded headers, if any.
    host_base_url: Optional[str] = None
    output_dir: Optional[Path] = None


@dataclass(frozen=True)
class QrArtifact:
    filename: str
    source_url: str
    width: int
    error_correction: str
    download_url: str

    def to_dict(self) -> dict:
        return {
            "filename": self.filename,
            "sourceUrl": self.source_url,
            "width": self.width,
            "errorCorrection": self.error_correction,
            "downloadUrl": self.download_url,
        }


def validate_url(url: Any) -> str:
    if url is None or url == "":
        raise ConversionError("URL parameter is required")
    if not isinstance(url, str):
        raise ConversionError(f"Invalid URL format: {url}")
    try:
        _url_adapter.validate_python(url)
    except ValidationError:
        raise ConversionError(f"Invalid URL format: {url}") from None
    return url


def validate_error_correction(level: Any) -> str:
    if level is None or level == "":
        return config.DEFAULT_ERROR_CORRECTION
    if level not in config.ERROR_CORRECTION_LEVELS:
        raise ConversionError(
            f"Invalid error correction level: {level} (expected one of {', '.join(config.ERROR_CORRECTION_LEVELS)})"
        )
    return level


def validate_width(width: Any) -> int:
    if width is None:
        return config.DEFAULT_WIDTH
    if isinstance(width, bool) or not isinstance(width, (int, float)):
        raise ConversionError(f"Invalid width: {width}")
    if isinstance(width, float):
        if not width.is_integer():
            raise ConversionError(f"Invalid width: {width} (must be a whole number of pixels)")
        width = int(width)
    if width <= 0:
        raise ConversionError(f"Invalid width: {width} (must be positive)")
    if width > config.MAX_WIDTH:
        raise ConversionError(f"Invalid width: {width} (maximum is {config.MAX_WIDTH})")
    return width


async def convert(
    url: Any,
    error_correction: Any = None,
    width: Any = None,
    context: ToolContext | None = None,
) -> QrArtifact:
    """Validate the request, render the PNG and describe the new artifact.

    Raises ConversionError when the input is invalid, including a width too
    small for the symbol; nothing is written then. Other rendering failures
    propagate as-is.
    """
    context = context or ToolContext()
    source_url = validate_url(url)
    level = validate_error_correction(error_correction)
    size = validate_width(width)

    filename = new_artifact_filename()
    dest = artifact_path(filename, context.output_dir)
    try:
        await run_in_threadpool(render_png, source_url, dest, size, level)
    except WidthTooSmall as e:
        raise ConversionError(str(e)) from None

    base = resolve_download_base(context.host_base_url)
    return QrArtifact(
        filename=filename,
        source_url=source_url,
        width=size,
        error_correction=level,
        download_url=download_url(base, filename),
    )


def _format_success(artifact: QrArtifact) -> str:
    return (
        "# QR Code Generated Successfully\n"
        "\n"
        f"**Original URL:** {artifact.source_url}\n"
        "\n"
        f"**Download Link:** {artifact.download_url}\n"
        "\n"
        "**QR Code Details:**\n"
        f"- Filename: {artifact.filename}\n"
        f"- Size: {artifact.width}x{artifact.width}px\n"
        f"- Error Correction: {artifact.error_correction}\n"
        "\n"
        "You can download the QR code image from the link above."
    )


async def run(arguments: dict | None, context: ToolContext | None = None) -> dict:
    """Tool entry point. Always returns a tool result, never raises."""
    args = arguments or {}
    try:
        artifact = await convert(
            args.get("url"),
            error_correction=args.get("errorCorrectionLevel"),
            width=args.get("width"),
            context=context,
        )
    except ConversionError as e:
        logger.warning("Rejected url_to_qrcode call: %s", e)
        return _error_result(str(e))
    except Exception as e:
        logger.exception("QR code generation failed")
        return _error_result(str(e) or e.__class__.__name__)

    return {
        "content": [{"type": "text", "text": _format_success(artifact)}],
        "structuredContent": artifact.to_dict(),
    }


def _error_result(message: str) -> dict:
    return {
        "content": [{"type": "text", "text": f"Failed to generate QR code: {message}"}],
        "isError": True,
    }


def describe() -> dict:
    return {"name": NAME, "description": DESCRIPTION, "inputSchema": INPUT_SCHEMA}
