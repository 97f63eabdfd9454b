"""
Pydantic модели для входящих запросов

Поля намеренно необязательные: отсутствие фото, имени или моделей
проверяется на уровне батча и возвращается как 400 с понятным сообщением
"""
from typing import List, Optional

from pydantic import BaseModel, Field

from idcard_ocr.models.domain import ModelResponse


class PhotoPayload(BaseModel):
    """Одно изображение батча"""
    name: Optional[str] = Field(None, description="Имя файла")
    data: Optional[str] = Field(None, description="Изображение в base64 или data URI")


class ModelsPayload(BaseModel):
    """Модели для трёх этапов"""
    detection: Optional[str] = Field(None, description="Модель детекции документа")
    localization: Optional[str] = Field(None, description="Модель локализации полей")
    ocr: Optional[str] = Field(None, description="Модель распознавания текста")


class IDCardProcessRequest(BaseModel):
    """Запрос на распознавание батча ID карт"""
    photos: Optional[List[PhotoPayload]] = Field(None, description="Изображения")
    models: Optional[ModelsPayload] = Field(None, description="Модели этапов")

    class Config:
        json_schema_extra = {
            "example": {
                "photos": [
                    {
                        "name": "card_001.jpg",
                        "data": "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
                    }
                ],
                "models": {
                    "detection": "google/gemini-flash-1.5",
                    "localization": "anthropic/claude-3.5-sonnet",
                    "ocr": "openai/gpt-4o"
                }
            }
        }


class PhotoBatchRequest(BaseModel):
    """Запрос простого режима: один промпт на все фото"""
    photos: Optional[List[PhotoPayload]] = Field(None, description="Изображения")
    model: Optional[str] = Field(None, description="Идентификатор модели")
    prompt: Optional[str] = Field(None, description="Промпт для каждого фото")
    system_prompt: Optional[str] = Field(None, description="Системная инструкция")


class ChatRequest(BaseModel):
    """Сообщение одной модели: текст, изображение или оба"""
    message: Optional[str] = Field(None, description="Текст сообщения")
    image: Optional[str] = Field(None, description="Изображение в base64 или data URI")
    model: Optional[str] = Field(None, description="Идентификатор модели (по умолчанию DEFAULT_MODEL)")
    system_prompt: Optional[str] = Field(None, description="Системная инструкция")


class MultiModelChatRequest(BaseModel):
    """Одно сообщение сразу нескольким моделям"""
    message: Optional[str] = Field(None, description="Текст сообщения")
    image: Optional[str] = Field(None, description="Изображение в base64 или data URI")
    models: Optional[List[str]] = Field(None, description="Идентификаторы моделей")
    system_prompt: Optional[str] = Field(None, description="Системная инструкция")


class SummarizeRequest(BaseModel):
    """Сводка ответов нескольких моделей"""
    responses: Optional[List[ModelResponse]] = Field(None, description="Ответы моделей")
    summary_model: Optional[str] = Field(None, description="Модель для сводки")
    system_prompt: Optional[str] = Field(None, description="Инструкция для сводки")
