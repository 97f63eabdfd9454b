"""
Утилиты для работы с изображениями
"""
import base64
import binascii
import io
import re
from typing import List, Optional

from PIL import Image

from idcard_ocr.core.exceptions import ImageValidationError
from idcard_ocr.core.enums import ImageFormat

_DATA_URI_RE = re.compile(r"^data:image/[\w.+-]+;base64,", re.IGNORECASE)

_MIME_TYPES = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "GIF": "image/gif",
    "WEBP": "image/webp",
}


def decode_base64_image(base64_string: str) -> bytes:
    """
    Декодирование base64 строки (или data URI) в bytes

    Args:
        base64_string: Изображение в base64

    Returns:
        Декодированные байты изображения

    Raises:
        ImageValidationError: Если не удалось декодировать
    """
    if not base64_string or not base64_string.strip():
        raise ImageValidationError("Image data is empty")

    payload = _DATA_URI_RE.sub("", base64_string.strip())

    try:
        image_bytes = base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError) as e:
        raise ImageValidationError(
            f"Failed to decode base64 image: {str(e)}",
            details={"error": str(e)}
        )

    if not image_bytes:
        raise ImageValidationError("Decoded image is empty")

    return image_bytes


def validate_image_format(image_bytes: bytes, allowed: Optional[List[str]] = None) -> str:
    """
    Проверка формата изображения

    Args:
        image_bytes: Байты изображения
        allowed: Разрешённые форматы (по умолчанию все из ImageFormat)

    Returns:
        Формат изображения в нижнем регистре (png, jpeg, ...)

    Raises:
        ImageValidationError: Если формат не поддерживается
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            format_lower = img.format.lower() if img.format else "unknown"
    except Exception as e:
        raise ImageValidationError(
            f"Failed to validate image format: {str(e)}",
            details={"error": str(e)}
        )

    allowed = allowed or [f.value for f in ImageFormat]
    if format_lower not in allowed:
        raise ImageValidationError(
            f"Unsupported image format: {format_lower}",
            details={
                "format": format_lower,
                "supported_formats": allowed
            }
        )

    return format_lower


def validate_image_size(image_bytes: bytes, max_size_mb: int = 10) -> None:
    """
    Проверка размера изображения

    Args:
        image_bytes: Байты изображения
        max_size_mb: Максимальный размер в мегабайтах

    Raises:
        ImageValidationError: Если размер превышен
    """
    size_mb = len(image_bytes) / (1024 * 1024)

    if size_mb > max_size_mb:
        raise ImageValidationError(
            f"Image size {size_mb:.2f}MB exceeds maximum {max_size_mb}MB",
            details={
                "size_mb": round(size_mb, 2),
                "max_size_mb": max_size_mb
            }
        )


def guess_mime_type(image_bytes: bytes) -> str:
    """MIME тип по содержимому, image/jpeg если формат не распознан"""
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            return _MIME_TYPES.get(img.format or "", "image/jpeg")
    except Exception:
        return "image/jpeg"


def to_data_uri(image_bytes: bytes) -> str:
    """
    Кодирование изображения в data URI для передачи модели

    Args:
        image_bytes: Байты изображения

    Returns:
        Строка вида data:image/png;base64,...
    """
    encoded = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{guess_mime_type(image_bytes)};base64,{encoded}"
