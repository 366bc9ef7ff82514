"""
Profile picture validation and normalisation.

Uploads are checked for extension and size before decoding, then resized
to a square PNG with Pillow so every stored avatar has the same format.
"""

from __future__ import annotations

import io
from pathlib import Path

from PIL import Image, UnidentifiedImageError
from werkzeug.datastructures import FileStorage

from .errors import ValidationError

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png"}
AVATAR_MIMETYPE = "image/png"
# 5000 x 5000; larger sources are refused before decoding
MAX_SOURCE_PIXELS = 25_000_000


def process_avatar(upload: FileStorage | None, max_bytes: int, size: int) -> bytes:
    """
    Validate an uploaded image and return it as a ``size`` x ``size`` PNG.

    Raises:
        ValidationError: If no file was sent, the extension is not an
            accepted image type, the file exceeds *max_bytes*, the image
            declares more than ``MAX_SOURCE_PIXELS`` pixels or it cannot be
            decoded as an image.
    """
    if upload is None or not upload.filename:
        raise ValidationError("Please upload an image")

    if Path(upload.filename).suffix.lower() not in ALLOWED_EXTENSIONS:
        raise ValidationError("Please upload an image")

    # One byte past the limit marks the upload as oversized
    raw = upload.stream.read(max_bytes + 1)
    if len(raw) > max_bytes:
        raise ValidationError(f"File too large. Maximum size is {max_bytes} bytes")

    try:
        with Image.open(io.BytesIO(raw)) as image:
            # Header dimensions only; pixel data is not decoded yet
            width, height = image.size
            if width * height > MAX_SOURCE_PIXELS:
                raise ValidationError(
                    f"Image too large. Maximum is {MAX_SOURCE_PIXELS} pixels"
                )
            normalised = image.convert("RGBA").resize((size, size))
    except Image.DecompressionBombError as exc:
        raise ValidationError(
            f"Image too large. Maximum is {MAX_SOURCE_PIXELS} pixels"
        ) from exc
    except (UnidentifiedImageError, OSError) as exc:
        raise ValidationError("Please upload an image") from exc

    buffer = io.BytesIO()
    normalised.save(buffer, format="PNG")
    return buffer.getvalue()
