"""
Доменные модели - сущности пайплайна распознавания ID карт

Все сущности создаются заново на каждый вызов батча и живут только
в пределах этого вызова
"""
from dataclasses import dataclass
from typing import Annotated, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from idcard_ocr.core.enums import DocumentType, ItemStatus

# (y_min, x_min, y_max, x_max), нормализованные координаты 0.0-1.0
BoundingBox = Tuple[float, float, float, float]


@dataclass(frozen=True)
class PixelRect:
    """Прямоугольник в пикселях исходного изображения"""
    left: int
    top: int
    width: int
    height: int


@dataclass(frozen=True)
class ImageMetadata:
    """Размеры и формат декодированного изображения"""
    width: int
    height: int
    format: Optional[str] = None


class SourceImage(BaseModel):
    """Изображение из батча: байты и имя, заданное клиентом"""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Имя изображения для отчёта")
    data: bytes = Field(..., repr=False, description="Закодированное изображение")


class ModelSelection(BaseModel):
    """Идентификаторы моделей для трёх этапов"""
    model_config = ConfigDict(frozen=True)

    detection: str = Field(..., description="Модель для детекции документа")
    localization: str = Field(..., description="Модель для локализации полей")
    ocr: str = Field(..., description="Модель для распознавания текста")


class DetectionOutcome(BaseModel):
    """Результат этапа детекции"""
    model_config = ConfigDict(frozen=True)

    is_document: bool = Field(..., description="Есть ли на фото документ")
    confidence: float = Field(..., ge=0, le=100, description="Уверенность 0-100")
    document_type: DocumentType = Field(DocumentType.NONE, description="Тип документа")
    reasoning: str = Field("", description="Пояснение модели")


class Region(BaseModel):
    """Положение одного поля на изображении"""
    model_config = ConfigDict(frozen=True)

    field_name: str
    box: Optional[BoundingBox] = Field(
        None,
        description="[y_min, x_min, y_max, x_max] в диапазоне 0-1 или null"
    )
    confidence: float = Field(0, ge=0, le=100)

    @classmethod
    def absent(cls, field_name: str) -> "Region":
        return cls(field_name=field_name, box=None, confidence=0)


@dataclass(frozen=True)
class CroppedRegion:
    """Вырезанный фрагмент поля; image=None, если вырезать не удалось"""
    field_name: str
    image: Optional[bytes] = None


class FieldReading(BaseModel):
    """Распознанный текст одного поля"""
    model_config = ConfigDict(frozen=True)

    field_name: str
    text: str = ""
    confidence: float = Field(0, ge=0, le=100)

    @classmethod
    def empty(cls, field_name: str) -> "FieldReading":
        """Значение по умолчанию для поля без фрагмента или с ошибкой OCR"""
        return cls(field_name=field_name, text="", confidence=0)


class ItemSuccess(BaseModel):
    """Изображение прошло все этапы"""
    status: Literal[ItemStatus.SUCCESS] = ItemStatus.SUCCESS
    success: Literal[True] = True
    image_name: str
    detection_confidence: float = Field(..., ge=0, le=100)
    document_type: DocumentType = DocumentType.NONE
    field_readings: Dict[str, FieldReading] = Field(default_factory=dict)
    date_of_birth: FieldReading = Field(
        ...,
        description="Дата рождения: основное поле с откатом на запасное"
    )
    regions: Dict[str, Region] = Field(
        default_factory=dict,
        description="Провалидированные bbox полей для разметки на клиенте"
    )
    low_confidence_fields: List[str] = Field(
        default_factory=list,
        description="Поля, распознанные с уверенностью ниже порога OCR"
    )
    processing_time_ms: int


class ItemFailure(BaseModel):
    """Изображение отклонено порогом или обработка упала"""
    status: Literal[ItemStatus.REJECTED, ItemStatus.FAILED] = ItemStatus.FAILED
    success: Literal[False] = False
    image_name: str
    error: str = Field(..., description="Человекочитаемое сообщение об ошибке")
    processing_time_ms: int


ItemResult = Annotated[Union[ItemSuccess, ItemFailure], Field(discriminator="status")]


class BatchSummary(BaseModel):
    """Сводка по батчу, всегда вычисляется из списка результатов"""
    total: int
    success_count: int
    failure_count: int
    processing_time_ms: int

    @classmethod
    def from_results(cls, results: List[BaseModel], processing_time_ms: int) -> "BatchSummary":
        success_count = sum(1 for result in results if result.success)
        return cls(
            total=len(results),
            success_count=success_count,
            failure_count=len(results) - success_count,
            processing_time_ms=processing_time_ms,
        )


class BatchResult(BaseModel):
    """Результаты всех изображений батча и сводка"""
    results: List[ItemResult] = Field(default_factory=list)
    summary: BatchSummary


class PhotoAnalysis(BaseModel):
    """Результат простого режима: один промпт на одно изображение"""
    photo_name: str
    success: bool
    response: Optional[str] = None
    model: Optional[str] = None
    usage: Optional[Dict] = None
    error: Optional[str] = None
    processing_time_ms: int = 0


class PhotoBatchResult(BaseModel):
    """Результаты простого режима и сводка"""
    results: List[PhotoAnalysis] = Field(default_factory=list)
    summary: BatchSummary


class ChatReply(BaseModel):
    """Ответ одной модели на сообщение чата"""
    response: str
    model: str
    usage: Optional[Dict] = None


class ModelResponse(BaseModel):
    """Ответ одной модели в запросе к нескольким моделям"""
    model: str
    response: Optional[str] = None
    usage: Optional[Dict] = None
    error: Optional[str] = None
    success: bool


class MultiModelResult(BaseModel):
    """Ответы всех моделей в порядке запроса"""
    responses: List[ModelResponse]
    request_id: str
    timestamp: str


class SummaryResult(BaseModel):
    """Сводка успешных ответов нескольких моделей"""
    summary: str
    model: str
    usage: Optional[Dict] = None
    source_models: List[str]
