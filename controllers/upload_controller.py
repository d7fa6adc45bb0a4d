from typing import Any, Dict, List

from fastapi import HTTPException, Request, UploadFile

from dal.record_dal import ensure_category
from services.image_pipeline import ImagePipeline
from utils.media_validation import read_image_bytes, validate_image_batch


def _get_pipeline(request: Request) -> ImagePipeline:
    pipeline = getattr(request.app.state, "image_pipeline", None)
    if pipeline is None:
        raise HTTPException(status_code=500, detail="Image pipeline not initialized.")
    return pipeline


async def upload_images(request: Request, category: str, images: List[UploadFile]) -> Dict[str, Any]:
    """Validate and ingest a batch of uploaded photos.

    Every file is validated and read before any processing starts, so an
    invalid or oversized file rejects the whole request without writing
    anything. Processing itself is all-or-nothing as well.

    Args:
        request: FastAPI Request (used to access app.state.image_pipeline).
        category: Target collection; validated against the fixed set.
        images: Uploaded files from the multipart `images` field.

    Returns:
        `{"images": [{"full", "thumb"}, ...], "urls": [full, ...]}`, where
        `urls` lists the full-size paths for clients that predate thumbnails.
    """
    ensure_category(category)
    validate_image_batch(images)
    pipeline = _get_pipeline(request)

    uploads = []
    for image_file in images:
        data = await read_image_bytes(image_file)
        uploads.append((data, image_file.filename or "image"))

    pairs = await pipeline.ingest_batch(uploads, category)
    return {
        "images": [pair.as_dict() for pair in pairs],
        "urls": [pair.full for pair in pairs],
    }


async def delete_image(request: Request, public_path: str) -> Dict[str, Any]:
    """Delete an image and its full/thumbnail sibling."""
    pipeline = _get_pipeline(request)
    removed = await pipeline.remove_asset(public_path)
    return {"success": True, "removed": removed}
