from __future__ import annotations

import logging
from pathlib import Path

import qrcode
from PIL import Image
from qrcode.constants import ERROR_CORRECT_H, ERROR_CORRECT_L, ERROR_CORRECT_M, ERROR_CORRECT_Q


logger = logging.getLogger(__name__)

_ERROR_CORRECTION = {
    "L": ERROR_CORRECT_L,
    "M": ERROR_CORRECT_M,
    "Q": ERROR_CORRECT_Q,
    "H": ERROR_CORRECT_H,
}


class WidthTooSmall(ValueError):
    """Requested width cannot hold one pixel per module (quiet zone included)."""

    def __init__(self, width: int, min_width: int, error_correction: str) -> None:
        super().__init__(
            f"Invalid width: {width} (this URL needs at least {min_width}px at error correction {error_correction})"
        )
        self.width = width
        self.min_width = min_width


def render_png(data: str, dest: Path, width: int, error_correction: str) -> Path:
    """Encode `data` as a width x width PNG at `dest`.

    Raises WidthTooSmall before writing anything when `width` is below the
    symbol's size. Blocking (CPU + file write); call it from a worker thread.
    """
    qr = qrcode.QRCode(
        version=None,
        error_correction=_ERROR_CORRECTION[error_correction],
        box_size=10,
        border=4,
    )
    qr.add_data(data)
    qr.make(fit=True)

    min_width = qr.modules_count + 2 * qr.border
    if width < min_width:
        raise WidthTooSmall(width, min_width, error_correction)

    img = qr.make_image(fill_color="black", back_color="white").get_image()

    # Nearest keeps module edges sharp at any target size.
    img = img.convert("RGB").resize((width, width), Image.Resampling.NEAREST)

    dest.parent.mkdir(parents=True, exist_ok=True)
    img.save(dest, format="PNG")
    logger.info("Wrote QR code %s (%dx%d, level %s)", dest.name, width, width, error_correction)
    return dest
