from typing import Optional

from config import MAX_IMAGE_SIZE, SUPPORTED_IMAGE_FORMATS
from errors import InvalidInput


def validate_image(image_bytes: Optional[bytes], mime_type: Optional[str]) -> None:
    """
    Checks an uploaded menu image before any model call is made.
    Raises InvalidInput when the image is empty, larger than MAX_IMAGE_SIZE,
    or not one of the supported formats.
    """
    if not image_bytes:
        raise InvalidInput("No image data provided")

    if len(image_bytes) > MAX_IMAGE_SIZE:
        raise InvalidInput(
            f"Image too large. Maximum size is {MAX_IMAGE_SIZE // 1024 // 1024}MB"
        )

    if mime_type not in SUPPORTED_IMAGE_FORMATS:
        raise InvalidInput(
            f"Unsupported image format. Supported: {', '.join(SUPPORTED_IMAGE_FORMATS)}"
        )
