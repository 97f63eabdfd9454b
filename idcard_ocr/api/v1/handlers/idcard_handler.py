"""
ID card handlers - распознавание полей ID карт в три этапа
"""
from fastapi import APIRouter, status

from idcard_ocr.api.dependencies import BatchCoordinatorDep, PipelineConfigDep
from idcard_ocr.api.v1.handlers.common import bad_request, internal_error, to_source_images
from idcard_ocr.config import get_settings
from idcard_ocr.models.domain import BatchResult, ModelSelection
from idcard_ocr.models.requests import IDCardProcessRequest
from idcard_ocr.models.responses import FieldsResponse, RecommendedModelsResponse, SupportedField
from idcard_ocr.services.prompts import field_label
from idcard_ocr.core.exceptions import BatchValidationError, ImageValidationError
from idcard_ocr.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/idcard", tags=["ID Card"])

RECOMMENDED_MODELS = RecommendedModelsResponse(
    detection=[
        "google/gemini-pro-vision",
        "google/gemini-flash-1.5",
        "anthropic/claude-3-haiku"
    ],
    localization=[
        "anthropic/claude-3-opus",
        "anthropic/claude-3.5-sonnet",
        "openai/gpt-4-vision-preview",
        "google/gemini-pro-vision"
    ],
    ocr=[
        "google/gemini-pro-vision",
        "google/gemini-flash-1.5",
        "anthropic/claude-3-sonnet",
        "openai/gpt-4o"
    ]
)


@router.post("/process", response_model=BatchResult, status_code=status.HTTP_200_OK)
async def process_id_cards(
    request: IDCardProcessRequest,
    coordinator: BatchCoordinatorDep
) -> BatchResult:
    """
    Распознать батч ID карт

    Каждое фото проходит детекцию, локализацию полей, вырезание фрагментов
    и OCR каждого поля. Ошибка одного фото попадает в его результат и не
    прерывает батч.

    Raises:
        HTTPException 400: Батч не прошёл проверку
        HTTPException 500: Внутренняя ошибка сервера
    """
    try:
        settings = get_settings()
        images = to_source_images(
            request.photos,
            settings.MAX_IMAGE_SIZE_MB,
            settings.allowed_image_formats_list
        )

        models = None
        if request.models is not None:
            models = ModelSelection(
                detection=request.models.detection or "",
                localization=request.models.localization or "",
                ocr=request.models.ocr or ""
            )

        logger.info("Received ID card batch request", photos=len(images))
        return await coordinator.process(images, models)

    except (BatchValidationError, ImageValidationError) as e:
        logger.warning("Batch validation failed", error=e.message)
        raise bad_request("Batch validation failed", e)

    except Exception as e:
        logger.error("Unexpected error", error=str(e), exc_info=True)
        raise internal_error()


@router.get("/recommended-models", response_model=RecommendedModelsResponse)
async def get_recommended_models() -> RecommendedModelsResponse:
    """Рекомендуемые модели для детекции, локализации и OCR"""
    return RECOMMENDED_MODELS


@router.get("/fields", response_model=FieldsResponse)
async def get_supported_fields(config: PipelineConfigDep) -> FieldsResponse:
    """Поля, которые пайплайн извлекает из ID карты"""
    return FieldsResponse(
        supported_fields=[
            SupportedField(name=name, label=field_label(name))
            for name in config.supported_fields
        ],
        date_of_birth_sources=[config.primary_date_field, config.secondary_date_field]
    )
