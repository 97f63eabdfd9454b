"""
Общие функции для handlers
"""
from typing import List, Optional

from fastapi import HTTPException, status

from idcard_ocr.models.domain import SourceImage
from idcard_ocr.models.requests import PhotoPayload
from idcard_ocr.core.exceptions import IDCardServiceError, ImageValidationError
from idcard_ocr.utils.image_utils import (
    decode_base64_image,
    validate_image_format,
    validate_image_size
)


def decode_image(
    data: str,
    max_image_size_mb: int,
    allowed_formats: Optional[List[str]] = None
) -> bytes:
    """
    Декодировать и проверить одно изображение из запроса

    Raises:
        ImageValidationError: base64 не декодируется, формат не поддерживается
            или изображение слишком большое
    """
    image = decode_base64_image(data)
    validate_image_size(image, max_image_size_mb)
    validate_image_format(image, allowed_formats)
    return image


def to_source_images(
    photos: Optional[List[PhotoPayload]],
    max_image_size_mb: int,
    allowed_formats: Optional[List[str]] = None
) -> List[SourceImage]:
    """
    Декодировать фото из запроса

    Фото без данных передаются дальше с пустыми байтами, чтобы проверка
    батча вернула единое сообщение об ошибке

    Raises:
        ImageValidationError: base64 не декодируется, формат не поддерживается
            или изображение слишком большое
    """
    images = []
    for photo in photos or []:
        data = b""
        if photo.data:
            try:
                data = decode_image(photo.data, max_image_size_mb, allowed_formats)
            except ImageValidationError as e:
                raise ImageValidationError(
                    f"Photo '{photo.name}': {e.message}",
                    details={"photo": photo.name, **e.details}
                )
        images.append(SourceImage(name=photo.name or "", data=data))
    return images


def bad_request(error: str, exc: IDCardServiceError) -> HTTPException:
    """HTTPException 400 в едином формате"""
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={
            "error": error,
            "message": exc.message,
            "details": exc.details
        }
    )


def bad_gateway(error: str, exc: IDCardServiceError) -> HTTPException:
    """HTTPException 502: провайдер моделей недоступен или вернул ошибку"""
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail={
            "error": error,
            "message": exc.message,
            "details": exc.details
        }
    )


def internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "Internal server error",
            "message": "An unexpected error occurred"
        }
    )
