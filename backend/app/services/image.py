"""Image preparation — shrink and re-encode an uploaded photo for transmission."""

from __future__ import annotations

import base64
import binascii
import io
import logging
import math
import re

from PIL import Image, ImageOps

from app.config import settings
from app.errors import ImageProcessingError
from app.schemas.assessment import ImagePayload

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/jpeg"
OUTPUT_MIME_TYPE = "image/jpeg"

_DATA_URI_MIME = re.compile(r"data:([^;,]+)")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def scaled_dimensions(width: int, height: int, max_edge: int = 512) -> tuple[int, int]:
    """Fit ``width`` x ``height`` inside a ``max_edge`` square, keeping aspect ratio.

    Images already within bounds keep their size (never upscaled).
    """
    if width > height:
        if width > max_edge:
            height = max(1, _round_half_up(height * max_edge / width))
            width = max_edge
    elif height > max_edge:
        width = max(1, _round_half_up(width * max_edge / height))
        height = max_edge
    return width, height


def _split_source(source: str | bytes) -> tuple[str, str]:
    """Return ``(mime_type, base64_text)`` for a data URI, bare base64 or raw bytes."""
    if isinstance(source, (bytes, bytearray)):
        return DEFAULT_MIME_TYPE, base64.b64encode(bytes(source)).decode("ascii")

    text = source.strip()
    if text.startswith("data:"):
        header, sep, data = text.partition(",")
        if not sep:
            raise ImageProcessingError()
        match = _DATA_URI_MIME.match(header)
        mime = match.group(1) if match else DEFAULT_MIME_TYPE
        return mime, data.strip()
    return DEFAULT_MIME_TYPE, text


def prepare(
    source: str | bytes,
    *,
    max_edge: int | None = None,
    quality: int | None = None,
) -> ImagePayload:
    """Normalize ``source`` into a size-bounded JPEG payload.

    If the image cannot be decoded, the original bytes are passed through
    untouched with the MIME type from the data-URI header (or a generic
    default). Only an empty or header-only source raises
    :class:`ImageProcessingError`.
    """
    max_edge = max_edge or settings.MAX_IMAGE_EDGE
    quality = quality or settings.JPEG_QUALITY

    mime, b64data = _split_source(source)
    if not b64data:
        raise ImageProcessingError()

    try:
        raw = base64.b64decode(b64data, validate=False)
        with Image.open(io.BytesIO(raw)) as img:
            img.load()
            # Phone photos carry rotation in EXIF; bake it in before resizing.
            upright = ImageOps.exif_transpose(img)
            width, height = scaled_dimensions(upright.width, upright.height, max_edge)
            frame = upright.convert("RGB")
            if (width, height) != frame.size:
                frame = frame.resize((width, height), Image.Resampling.LANCZOS)
            buf = io.BytesIO()
            frame.save(buf, format="JPEG", quality=quality)
    except (OSError, ValueError, binascii.Error, Image.DecompressionBombError) as exc:
        logger.warning("Image decode failed, sending original bytes (%s): %s", mime, exc)
        return ImagePayload(mime_type=mime, encoded_data=b64data)

    encoded = base64.b64encode(buf.getvalue()).decode("ascii")
    logger.info(
        "Image compressed to %dx%d. MIME: %s, base64 length: %d",
        width, height, OUTPUT_MIME_TYPE, len(encoded),
    )
    return ImagePayload(mime_type=OUTPUT_MIME_TYPE, encoded_data=encoded)
