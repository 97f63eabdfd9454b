"""
Схемы ответов модели для каждого этапа
"""
from typing import Annotated, Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictBool, StrictStr, field_validator

from idcard_ocr.core.enums import DocumentType

# Число в строгом режиме: int и float, но не bool и не строка
ConfidenceValue = Annotated[float, Field(strict=True, allow_inf_nan=False)]


def clamp_confidence(value: float) -> float:
    """Привести уверенность к диапазону 0-100"""
    return max(0.0, min(100.0, float(value)))


class DetectionPayload(BaseModel):
    """Ответ этапа детекции"""
    model_config = ConfigDict(extra="ignore")

    is_document: StrictBool = Field(
        ...,
        validation_alias=AliasChoices("isDocument", "isIDCard", "is_document")
    )
    confidence: ConfidenceValue
    document_type: DocumentType = Field(
        DocumentType.NONE,
        validation_alias=AliasChoices("documentType", "cardType", "document_type")
    )
    reasoning: Optional[str] = ""

    @field_validator("reasoning", mode="before")
    @classmethod
    def coerce_reasoning(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("document_type", mode="before")
    @classmethod
    def coerce_document_type(cls, value: Any) -> DocumentType:
        """Неизвестный тип документа считается 'other'"""
        if value is None or value == "":
            return DocumentType.NONE
        try:
            return DocumentType(str(value).strip().lower())
        except ValueError:
            return DocumentType.OTHER


class LocalizationPayload(BaseModel):
    """
    Ответ этапа локализации

    Записи полей проверяются по одной при построении Region,
    поэтому здесь они остаются сырыми
    """
    model_config = ConfigDict(extra="ignore")

    field_entries: Dict[str, Any] = Field(..., validation_alias="fields")


class TextPayload(BaseModel):
    """Ответ этапа распознавания текста"""
    model_config = ConfigDict(extra="ignore")

    text: StrictStr
    confidence: ConfidenceValue
