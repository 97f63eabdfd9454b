"""
Pydantic модели для ответов API
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class RecommendedModelsResponse(BaseModel):
    """Рекомендуемые модели для каждого этапа"""
    detection: List[str]
    localization: List[str]
    ocr: List[str]


class SupportedField(BaseModel):
    """Поддерживаемое поле ID карты"""
    name: str = Field(..., description="Ключ поля в результатах")
    label: str = Field(..., description="Человекочитаемое название")


class FieldsResponse(BaseModel):
    """Список поддерживаемых полей"""
    supported_fields: List[SupportedField]
    date_of_birth_sources: List[str] = Field(
        ...,
        description="Основное и запасное поле для даты рождения"
    )


class VisionModel(BaseModel):
    """Модель провайдера, принимающая изображения"""
    id: str
    name: str
    description: str = ""
    pricing: Optional[Dict[str, Any]] = None


class ModelsResponse(BaseModel):
    """Список доступных моделей"""
    models: List[VisionModel]


class HealthResponse(BaseModel):
    """Ответ health check"""
    status: str = Field(..., description="Статус сервиса")
    version: str = Field(..., description="Версия приложения")
    inference_available: bool = Field(..., description="Настроен ли доступ к модели")
