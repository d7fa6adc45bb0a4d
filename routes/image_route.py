"""FastAPI routes for image upload and removal."""

from typing import List, Optional

from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from pydantic import BaseModel

from controllers.upload_controller import delete_image, upload_images
from utils.errors import AdminError

router = APIRouter(prefix="/api", tags=["images"])


class ImageDeletePayload(BaseModel):
    path: Optional[str] = None


@router.post("/upload/{category}", summary="Upload up to 10 images for a category")
async def upload_images_route(request: Request, category: str, images: List[UploadFile] = File(...)):
    """Store a full-size and a thumbnail WebP for every uploaded image.

    Args:
        request: The FastAPI request containing application state.
        category: Collection the images belong to.
        images: Files from the multipart `images` field.

    Returns:
        The stored pairs and their full-size URLs.

    Raises:
        HTTPException: If processing fails unexpectedly.
    """
    try:
        return await upload_images(request, category, images)
    except (HTTPException, AdminError):
        raise
    except Exception as exc:  # pylint: disable=broad-exception-caught
        raise HTTPException(status_code=500, detail="Failed to process images.") from exc


@router.delete("/images", summary="Delete an image and its sibling")
async def delete_image_route(request: Request, payload: ImageDeletePayload):
    try:
        return await delete_image(request, payload.path)
    except (HTTPException, AdminError):
        raise
    except Exception as exc:  # pylint: disable=broad-exception-caught
        raise HTTPException(status_code=500, detail=str(exc)) from exc
