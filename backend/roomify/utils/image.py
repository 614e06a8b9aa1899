"""Data URI helpers for floor plan and render images.

Images travel between the intake, the handoff store and the generation
client as ``data:<mime>;base64,<payload>`` strings so the render view can show
them without a server round trip.
"""

from __future__ import annotations

import base64
import binascii
import io

from PIL import Image

from roomify.errors import ImageDecodeError

DATA_URI_PREFIX = "data:"
_BASE64_MARKER = ";base64,"


def detect_media_type(image_data: bytes) -> str:
    """Detect the image media type from raw bytes (JPEG, PNG, ...).

    Raises ImageDecodeError if Pillow cannot read the bytes as an image.
    """
    try:
        img = Image.open(io.BytesIO(image_data))
        img.load()  # Force full decode so truncated uploads fail here
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
        raise ImageDecodeError(f"Could not read image data: {exc}") from exc
    fmt = (img.format or "JPEG").upper()
    if fmt == "JPG":
        fmt = "JPEG"
    return f"image/{fmt.lower()}"


def encode_data_uri(image_data: bytes, media_type: str | None = None) -> str:
    """Encode image bytes as an embeddable data URI."""
    if media_type is None:
        media_type = detect_media_type(image_data)
    payload = base64.b64encode(image_data).decode("ascii")
    return f"{DATA_URI_PREFIX}{media_type}{_BASE64_MARKER}{payload}"


def decode_data_uri(uri: str) -> tuple[str, bytes]:
    """Split a base64 data URI into (media_type, bytes)."""
    if not uri.startswith(DATA_URI_PREFIX) or _BASE64_MARKER not in uri:
        raise ImageDecodeError("Not a base64 data URI")
    header, payload = uri[len(DATA_URI_PREFIX) :].split(_BASE64_MARKER, 1)
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageDecodeError("Data URI payload is not valid base64") from exc
    return header or "application/octet-stream", data


def image_to_data_uri(image: Image.Image, fmt: str = "PNG") -> str:
    """Serialize a PIL image to a data URI."""
    buf = io.BytesIO()
    image.save(buf, format=fmt)
    return encode_data_uri(buf.getvalue(), f"image/{fmt.lower()}")
