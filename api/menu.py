import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import JSONResponse

from api.auth import get_current_user_id
from api.dependencies import get_menu_scan_service
from config import DEFAULT_MIME_TYPE, MAX_IMAGE_SIZE
from menu_scan.service import MenuScanService
from models.menu_analysis import MenuScanResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/menu",
    tags=["menu"],
)


@router.post("/scan", response_model=MenuScanResponse)
async def scan_menu(
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[MenuScanService, Depends(get_menu_scan_service)],
    image: Annotated[Optional[UploadFile], File()] = None,
):
    """
    Analyzes a photo of a restaurant menu against the caller's health profile.
    Each dish comes back as SAFE, CAUTION or AVOID with the reasoning behind it.
    """
    if image is None:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "success": False,
                "error": "Missing image",
                "message": "Please provide an image file",
            },
        )

    # One byte past the limit is enough for the size check to reject it.
    image_bytes = await image.read(MAX_IMAGE_SIZE + 1)
    mime_type = image.content_type or DEFAULT_MIME_TYPE

    analysis = await service.scan(user_id, image_bytes, mime_type)
    return MenuScanResponse(data=analysis)
