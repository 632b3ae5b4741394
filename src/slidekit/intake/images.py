"""Image intake: turn a user-supplied file into an embeddable image.

Decoding reads the bytes and probes the natural pixel size with Pillow in a
worker thread, so awaiting it never blocks the event loop.
"""

import asyncio
import base64
import io
import logging
import math
import mimetypes
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from ..core.errors import ImageDecodeError

logger = logging.getLogger("SlideKit.intake.images")

MAX_IMAGE_WIDTH = 520
MIN_IMAGE_SIZE = 20

_PIL_MIME = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "GIF": "image/gif",
    "WEBP": "image/webp",
    "BMP": "image/bmp",
    "TIFF": "image/tiff",
}


@dataclass
class DecodedImage:
    """An encoded image ready to embed, with its natural size in pixels."""
    source_data: str  # data: URL
    natural_width: int
    natural_height: int
    mime_type: str


def scale_to_max_width(width: int, height: int,
                       max_width: int = MAX_IMAGE_WIDTH,
                       min_size: int = MIN_IMAGE_SIZE) -> tuple[int, int]:
    """Fit an image into ``max_width`` keeping its aspect ratio. Never upscales."""
    scale = min(1.0, max_width / width)
    w = max(min_size, math.floor(width * scale + 0.5))
    h = max(min_size, math.floor(height * scale + 0.5))
    return w, h


def to_data_url(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def data_url_to_bytes(url: str) -> bytes:
    """Decode a base64 data: URL back to raw bytes."""
    if not url.startswith("data:"):
        raise ImageDecodeError("Image source is not a data URL")
    header, _, payload = url.partition(",")
    if ";base64" not in header:
        raise ImageDecodeError("Only base64 data URLs are supported")
    try:
        return base64.b64decode(payload, validate=True)
    except ValueError as e:
        raise ImageDecodeError(f"Invalid base64 image data: {e}") from e


def _read_bytes(file: str | Path | bytes) -> tuple[bytes, str]:
    if isinstance(file, (bytes, bytearray)):
        return bytes(file), ""
    path = Path(file)
    if not path.is_file():
        raise ImageDecodeError(f"File not found: {path}")
    guessed, _ = mimetypes.guess_type(path.name)
    try:
        return path.read_bytes(), guessed or ""
    except OSError as e:
        raise ImageDecodeError(f"Cannot read {path}: {e}") from e


def decode_image_sync(file: str | Path | bytes) -> DecodedImage:
    """Blocking decode; see ``decode_image``."""
    data, guessed_mime = _read_bytes(file)
    try:
        with Image.open(io.BytesIO(data)) as img:
            width, height = img.size
            fmt = img.format
            # open() only parses the header; truncated pixel data fails here
            img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError,
            OSError, SyntaxError, ValueError) as e:
        raise ImageDecodeError(f"Unreadable image: {e}") from e

    if width <= 0 or height <= 0:
        raise ImageDecodeError(f"Image has no pixels ({width}x{height})")

    mime = _PIL_MIME.get(fmt or "", guessed_mime or "application/octet-stream")
    logger.debug(f"Decoded {fmt} image {width}x{height} ({len(data)} bytes)")
    return DecodedImage(
        source_data=to_data_url(data, mime),
        natural_width=width,
        natural_height=height,
        mime_type=mime,
    )


async def decode_image(file: str | Path | bytes) -> DecodedImage:
    """Read an image file (path or raw bytes) and probe its natural size.

    Raises:
        ImageDecodeError: the file is missing or is not a readable image.
    """
    return await asyncio.to_thread(decode_image_sync, file)
