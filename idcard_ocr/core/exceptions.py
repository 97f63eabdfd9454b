"""
Кастомные исключения для сервиса распознавания ID карт
"""
from typing import Optional

from idcard_ocr.core.enums import Stage


class IDCardServiceError(Exception):
    """Базовое исключение сервиса"""
    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class BatchValidationError(IDCardServiceError):
    """Некорректный запрос на уровне батча, обработка не начинается"""
    pass


class ImageValidationError(IDCardServiceError):
    """Ошибка валидации изображения"""
    pass


class ChatValidationError(IDCardServiceError):
    """Некорректный запрос к чату, модель не вызывается"""
    pass


class GeometryError(IDCardServiceError):
    """Невалидный bounding box"""
    pass


class CropError(IDCardServiceError):
    """Регион нельзя вырезать из изображения"""
    pass


class CodecError(IDCardServiceError):
    """Ошибка декодирования или кодирования изображения"""
    pass


class InvocationError(IDCardServiceError):
    """Ошибка вызова модели: транспорт, таймаут или ошибка провайдера"""
    pass


class MalformedResponseError(IDCardServiceError):
    """Модель ответила, но ответ не соответствует ожидаемой схеме"""
    pass


class StageError(IDCardServiceError):
    """
    Ошибка этапа пайплайна

    Оборачивает InvocationError и MalformedResponseError, сохраняя
    исходное сообщение
    """
    stage: Optional[Stage] = None
    prefix: str = "Stage failed"

    def __init__(self, message: str, details: dict = None):
        super().__init__(f"{self.prefix}: {message}", details)


class DetectionError(StageError):
    """Ошибка этапа детекции"""
    stage = Stage.DETECTION
    prefix = "Detection failed"


class LocalizationError(StageError):
    """Ошибка этапа локализации полей"""
    stage = Stage.LOCALIZATION
    prefix = "Localization failed"


class TextExtractionError(StageError):
    """Ошибка распознавания текста поля"""
    stage = Stage.OCR
    prefix = "Text extraction failed"
