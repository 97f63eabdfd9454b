"""
Конфигурация приложения через Pydantic Settings
"""
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Tuple

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SUPPORTED_FIELDS = (
    "identityNumber,titleTh,firstNameTh,lastNameTh,"
    "titleEn,firstNameEn,lastNameEn,dateOfBirthEn,dateOfBirthTh"
)


@dataclass(frozen=True)
class PipelineConfig:
    """
    Неизменяемые параметры пайплайна

    Передаётся явно в конструкторы пайплайна и координатора батча,
    глубже слоя API настройки из окружения не читаются
    """
    supported_fields: Tuple[str, ...] = tuple(DEFAULT_SUPPORTED_FIELDS.split(","))
    primary_date_field: str = "dateOfBirthEn"
    secondary_date_field: str = "dateOfBirthTh"

    # Пороги уверенности, 0-100
    min_detection_confidence: float = 70
    min_localization_confidence: float = 0
    min_ocr_confidence: float = 50

    # Бюджеты времени на вызов модели, секунды
    detection_timeout: float = 30.0
    localization_timeout: float = 60.0
    ocr_timeout: float = 90.0

    # Размер волны: сколько вызовов выполняется одновременно
    image_wave_size: int = 1
    field_wave_size: int = 10

    max_photos: int = 50

    # Асимметричный отступ при переводе bbox в пиксели
    crop_padding_x: int = 10
    crop_padding_y: int = 10
    crop_output_format: str = "PNG"


class Settings(BaseSettings):
    """Настройки приложения из переменных окружения"""

    # Application Settings
    APP_NAME: str = "idcard-ocr-service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENABLE_METRICS: bool = True

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    WORKERS: int = Field(8, ge=1)

    # CORS Settings
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # OpenRouter Settings
    OPENROUTER_API_KEY: str = ""
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
    OPENROUTER_REFERER: str = "http://localhost:5173"
    OPENROUTER_APP_TITLE: str = "ID Card OCR Service"
    OPENROUTER_TIMEOUT: float = Field(30.0, gt=0)
    DEFAULT_MODEL: str = "google/gemini-pro-vision"

    # ID Card Pipeline Settings
    IDCARD_MAX_PHOTOS: int = Field(50, ge=1)
    IDCARD_IMAGE_WAVE_SIZE: int = Field(1, ge=1)
    IDCARD_FIELD_WAVE_SIZE: int = Field(10, ge=1)
    DETECTION_TIMEOUT: float = Field(30.0, gt=0)
    LOCALIZATION_TIMEOUT: float = Field(60.0, gt=0)
    OCR_TIMEOUT: float = Field(90.0, gt=0)
    MIN_DETECTION_CONFIDENCE: float = Field(70, ge=0, le=100)
    MIN_LOCALIZATION_CONFIDENCE: float = Field(0, ge=0, le=100)
    MIN_OCR_CONFIDENCE: float = Field(50, ge=0, le=100)
    SUPPORTED_FIELDS: str = DEFAULT_SUPPORTED_FIELDS
    PRIMARY_DATE_FIELD: str = "dateOfBirthEn"
    SECONDARY_DATE_FIELD: str = "dateOfBirthTh"
    CROP_PADDING_X: int = Field(10, ge=0)
    CROP_PADDING_Y: int = Field(10, ge=0)
    CROP_OUTPUT_FORMAT: str = "PNG"

    # Simple Batch Settings
    BATCH_MAX_PHOTOS: int = Field(100, ge=1)
    BATCH_WAVE_SIZE: int = Field(5, ge=1)

    # Chat Settings
    CHAT_MIN_MODELS: int = Field(2, ge=1)
    CHAT_MAX_MODELS: int = Field(4, ge=1)
    CHAT_TIMEOUT: float = Field(45.0, gt=0)
    SUMMARY_PROMPT: str = (
        "Compare and synthesize these responses into a comprehensive answer. "
        "Provide a unified, coherent response that captures the key insights from all models."
    )

    # Image Settings
    MAX_IMAGE_SIZE_MB: int = Field(10, ge=1)
    ALLOWED_IMAGE_FORMATS: str = "jpg,jpeg,png,gif,webp"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @property
    def allowed_origins_list(self) -> List[str]:
        """Парсинг CORS origins из строки в список"""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    @property
    def allowed_image_formats_list(self) -> List[str]:
        """Парсинг форматов изображений из строки в список"""
        return [fmt.strip() for fmt in self.ALLOWED_IMAGE_FORMATS.split(",")]

    @property
    def supported_fields_list(self) -> List[str]:
        """Парсинг списка поддерживаемых полей"""
        return [field.strip() for field in self.SUPPORTED_FIELDS.split(",") if field.strip()]

    def pipeline_config(self) -> PipelineConfig:
        """Собрать неизменяемую конфигурацию пайплайна из настроек"""
        return PipelineConfig(
            supported_fields=tuple(self.supported_fields_list),
            primary_date_field=self.PRIMARY_DATE_FIELD,
            secondary_date_field=self.SECONDARY_DATE_FIELD,
            min_detection_confidence=self.MIN_DETECTION_CONFIDENCE,
            min_localization_confidence=self.MIN_LOCALIZATION_CONFIDENCE,
            min_ocr_confidence=self.MIN_OCR_CONFIDENCE,
            detection_timeout=self.DETECTION_TIMEOUT,
            localization_timeout=self.LOCALIZATION_TIMEOUT,
            ocr_timeout=self.OCR_TIMEOUT,
            image_wave_size=self.IDCARD_IMAGE_WAVE_SIZE,
            field_wave_size=self.IDCARD_FIELD_WAVE_SIZE,
            max_photos=self.IDCARD_MAX_PHOTOS,
            crop_padding_x=self.CROP_PADDING_X,
            crop_padding_y=self.CROP_PADDING_Y,
            crop_output_format=self.CROP_OUTPUT_FORMAT,
        )


@lru_cache()
def get_settings() -> Settings:
    """Получить настройки (singleton)"""
    return Settings()
