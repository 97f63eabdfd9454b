"""
Простой режим батча - один промпт для всех фото
"""
from fastapi import APIRouter, status

from idcard_ocr.api.dependencies import PhotoBatchProcessorDep
from idcard_ocr.api.v1.handlers.common import bad_request, internal_error, to_source_images
from idcard_ocr.config import get_settings
from idcard_ocr.models.domain import PhotoBatchResult
from idcard_ocr.models.requests import PhotoBatchRequest
from idcard_ocr.core.exceptions import BatchValidationError, ImageValidationError
from idcard_ocr.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/batch", tags=["Batch"])


@router.post("/process", response_model=PhotoBatchResult, status_code=status.HTTP_200_OK)
async def process_photo_batch(
    request: PhotoBatchRequest,
    processor: PhotoBatchProcessorDep
) -> PhotoBatchResult:
    """
    Проанализировать батч фото одним промптом

    Фото обрабатываются волнами по BATCH_WAVE_SIZE, ошибка одного фото
    не влияет на остальные
    """
    try:
        settings = get_settings()
        images = to_source_images(
            request.photos,
            settings.MAX_IMAGE_SIZE_MB,
            settings.allowed_image_formats_list
        )

        return await processor.process(
            images,
            model=request.model or "",
            prompt=request.prompt or "",
            system_prompt=request.system_prompt
        )

    except (BatchValidationError, ImageValidationError) as e:
        logger.warning("Batch validation failed", error=e.message)
        raise bad_request("Batch validation failed", e)

    except Exception as e:
        logger.error("Unexpected error", error=str(e), exc_info=True)
        raise internal_error()
