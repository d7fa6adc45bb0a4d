"""Validation helpers for uploaded images."""

from typing import List

from fastapi import UploadFile

from utils.errors import InvalidInput, PayloadTooLarge, UnsupportedMediaType

ALLOWED_IMAGE_TYPES = {
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/gif",
}

ALLOWED_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp", ".gif")

MAX_IMAGE_BYTES = 10 * 1024 * 1024
MAX_FILES_PER_REQUEST = 10


def validate_image_file(image_file: UploadFile) -> None:
    """Validate that the upload declares one of the supported raster formats.

    The content type is checked first; only when the browser did not send one
    is the file extension consulted.
    """
    filename = image_file.filename or ""
    if image_file.content_type:
        content_type = image_file.content_type.lower().split(";", 1)[0].strip()
        if content_type not in ALLOWED_IMAGE_TYPES:
            raise UnsupportedMediaType(f"Unsupported image type: {image_file.content_type}")
    elif not filename.lower().endswith(ALLOWED_IMAGE_EXTENSIONS):
        raise UnsupportedMediaType("Unsupported or missing image content type.")


def validate_image_batch(images: List[UploadFile]) -> None:
    """Reject empty batches and batches larger than MAX_FILES_PER_REQUEST."""
    if not images:
        raise InvalidInput("No images uploaded.")
    if len(images) > MAX_FILES_PER_REQUEST:
        raise InvalidInput(f"Too many files: at most {MAX_FILES_PER_REQUEST} images per upload.")
    for image_file in images:
        validate_image_file(image_file)


async def read_image_bytes(image_file: UploadFile) -> bytes:
    """Read validated image bytes, enforcing the size limit and non-empty payloads."""
    validate_image_file(image_file)
    if image_file.size is not None and image_file.size > MAX_IMAGE_BYTES:
        raise PayloadTooLarge(f"{image_file.filename} exceeds the {MAX_IMAGE_BYTES // (1024 * 1024)} MB limit.")
    # Read one byte past the limit so oversized streams without a declared size are caught.
    image_bytes = await image_file.read(MAX_IMAGE_BYTES + 1)
    if len(image_bytes) > MAX_IMAGE_BYTES:
        raise PayloadTooLarge(f"{image_file.filename} exceeds the {MAX_IMAGE_BYTES // (1024 * 1024)} MB limit.")
    if not image_bytes:
        raise InvalidInput("Uploaded image is empty.", {"filename": image_file.filename})
    return image_bytes
