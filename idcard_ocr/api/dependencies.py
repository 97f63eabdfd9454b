"""
FastAPI Dependencies для Dependency Injection
"""
from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from idcard_ocr.config import get_settings, PipelineConfig
from idcard_ocr.infrastructure.imaging.base_codec import BaseImageCodec
from idcard_ocr.infrastructure.imaging.pillow_codec import PillowImageCodec
from idcard_ocr.infrastructure.inference.base_invoker import BaseInferenceInvoker
from idcard_ocr.infrastructure.inference.openrouter_invoker import OpenRouterInvoker
from idcard_ocr.services.batch_coordinator import BatchCoordinator
from idcard_ocr.services.chat import ChatService
from idcard_ocr.services.field_extraction import FieldExtractionPipeline
from idcard_ocr.services.photo_batch import PhotoBatchProcessor
from idcard_ocr.services.region_cropper import RegionCropper
from idcard_ocr.services.stage_invoker import StageInvoker
from idcard_ocr.core.logging import get_logger

logger = get_logger(__name__)


@lru_cache()
def get_inference_invoker() -> BaseInferenceInvoker:
    """
    Получить клиент OpenRouter (singleton)
    Пул потоков и HTTP сессия переиспользуются между запросами
    """
    settings = get_settings()

    return OpenRouterInvoker(
        api_key=settings.OPENROUTER_API_KEY,
        base_url=settings.OPENROUTER_BASE_URL,
        referer=settings.OPENROUTER_REFERER,
        app_title=settings.OPENROUTER_APP_TITLE,
        default_timeout=settings.OPENROUTER_TIMEOUT,
        default_model=settings.DEFAULT_MODEL,
        max_workers=settings.WORKERS
    )


@lru_cache()
def get_image_codec() -> BaseImageCodec:
    """Получить кодек изображений (singleton)"""
    return PillowImageCodec()


@lru_cache()
def get_pipeline_config() -> PipelineConfig:
    """Конфигурация пайплайна, собранная из настроек один раз"""
    config = get_settings().pipeline_config()
    logger.info(
        "Pipeline configured",
        supported_fields=list(config.supported_fields),
        min_detection_confidence=config.min_detection_confidence,
        image_wave_size=config.image_wave_size,
        field_wave_size=config.field_wave_size
    )
    return config


InvokerDep = Annotated[BaseInferenceInvoker, Depends(get_inference_invoker)]
CodecDep = Annotated[BaseImageCodec, Depends(get_image_codec)]
PipelineConfigDep = Annotated[PipelineConfig, Depends(get_pipeline_config)]


def get_batch_coordinator(
    invoker: InvokerDep,
    codec: CodecDep,
    config: PipelineConfigDep
) -> BatchCoordinator:
    """
    Собрать координатор батча ID карт

    Args:
        invoker: Клиент модели (DI)
        codec: Кодек изображений (DI)
        config: Конфигурация пайплайна (DI)
    """
    cropper = RegionCropper(
        codec,
        padding_x=config.crop_padding_x,
        padding_y=config.crop_padding_y,
        output_format=config.crop_output_format
    )
    pipeline = FieldExtractionPipeline(
        stages=StageInvoker(invoker, config),
        cropper=cropper,
        config=config
    )
    return BatchCoordinator(pipeline, config)


def get_photo_batch_processor(invoker: InvokerDep) -> PhotoBatchProcessor:
    """Собрать обработчик простого режима батча"""
    settings = get_settings()

    return PhotoBatchProcessor(
        invoker,
        wave_size=settings.BATCH_WAVE_SIZE,
        max_photos=settings.BATCH_MAX_PHOTOS,
        timeout=settings.OPENROUTER_TIMEOUT
    )


def get_chat_service(invoker: InvokerDep) -> ChatService:
    """Собрать сервис чата с моделями"""
    settings = get_settings()

    return ChatService(
        invoker,
        summary_prompt=settings.SUMMARY_PROMPT,
        min_models=settings.CHAT_MIN_MODELS,
        max_models=settings.CHAT_MAX_MODELS,
        timeout=settings.CHAT_TIMEOUT
    )


BatchCoordinatorDep = Annotated[BatchCoordinator, Depends(get_batch_coordinator)]
PhotoBatchProcessorDep = Annotated[PhotoBatchProcessor, Depends(get_photo_batch_processor)]
ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]


def shutdown_dependencies() -> None:
    """Закрыть клиент модели, если он создавался"""
    if get_inference_invoker.cache_info().currsize:
        get_inference_invoker().close()
        get_inference_invoker.cache_clear()
