"""Image resizing service.

Provides a small OOP wrapper around Pillow to shrink uploaded photos
to a maximum width and re-encode them as WebP. Images already narrower
than the bound keep their size; nothing is ever enlarged.

Public class: `ImageResizer`

Example:
    full = ImageResizer(max_width=1200, quality=82)
    webp_bytes = full.render(raw_upload_bytes)
"""
from __future__ import annotations

import io

from PIL import Image, ImageOps, UnidentifiedImageError

from utils.errors import UnsupportedMediaType

OUTPUT_FORMAT = "WEBP"
OUTPUT_EXTENSION = ".webp"

# Source encodings accepted, as reported by Pillow after decoding the header.
SOURCE_FORMATS = {"JPEG", "PNG", "WEBP", "GIF"}


def detect_source_format(data: bytes) -> str:
    """Return the Pillow format name of `data`, whatever the client declared.

    Raises:
        ValueError: If the bytes cannot be identified as an image.
        UnsupportedMediaType: If the image is not one of SOURCE_FORMATS.
    """
    try:
        with Image.open(io.BytesIO(data)) as src:
            fmt = src.format
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError("Uploaded bytes are not a supported image format") from exc
    if fmt not in SOURCE_FORMATS:
        raise UnsupportedMediaType(f"Unsupported image encoding: {fmt}")
    return fmt


# Upper bound on height passed to Image.thumbnail; only the width is constrained.
_UNBOUNDED = 1_000_000


class ImageResizer:
    """Shrink-to-fit resizer producing WebP bytes.

    Args:
        max_width: Maximum output width in pixels. Height follows the aspect ratio.
        quality: WebP quality setting (0-100).
    """

    def __init__(self, max_width: int, quality: int):
        self.max_width = max_width
        self.quality = quality

    def render(self, data: bytes) -> bytes:
        """Resize raw image bytes and return them encoded as WebP.

        Args:
            data: Raw bytes of a JPEG, PNG, WebP or GIF image.

        Returns:
            The re-encoded WebP bytes.

        Raises:
            ValueError: If the bytes cannot be opened as an image.
            UnsupportedMediaType: If the decoded encoding is not in SOURCE_FORMATS.
        """
        try:
            src = Image.open(io.BytesIO(data))
            src.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise ValueError("Uploaded bytes are not a supported image format") from exc
        if src.format not in SOURCE_FORMATS:
            raise UnsupportedMediaType(f"Unsupported image encoding: {src.format}")

        # Animated GIFs/WebPs: Image.open leaves us on the first frame.
        img = ImageOps.exif_transpose(src)

        if img.mode not in ("RGB", "RGBA"):
            has_alpha = img.mode in ("LA", "PA") or (img.mode == "P" and "transparency" in img.info)
            img = img.convert("RGBA" if has_alpha else "RGB")

        img.thumbnail((self.max_width, _UNBOUNDED), Image.LANCZOS)

        out_io = io.BytesIO()
        img.save(out_io, format=OUTPUT_FORMAT, quality=self.quality, method=4)
        return out_io.getvalue()
