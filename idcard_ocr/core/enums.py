"""
Enums для типобезопасности
"""
from enum import Enum


class DocumentType(str, Enum):
    """Типы документов, которые различает этап детекции"""
    THAI_ID = "thai_id"
    PASSPORT = "passport"
    DRIVER_LICENSE = "driver_license"
    OTHER = "other"
    NONE = "none"


class Stage(str, Enum):
    """Этапы пайплайна, которые обращаются к модели"""
    DETECTION = "detection"
    LOCALIZATION = "localization"
    OCR = "ocr"


class ItemStatus(str, Enum):
    """Итог обработки одного изображения"""
    SUCCESS = "success"
    REJECTED = "rejected"  # Не прошёл порог детекции
    FAILED = "failed"


class ImageFormat(str, Enum):
    """Форматы изображений"""
    JPG = "jpg"
    JPEG = "jpeg"
    PNG = "png"
    GIF = "gif"
    WEBP = "webp"
