"""
Список моделей провайдера
"""
from fastapi import APIRouter

from idcard_ocr.api.dependencies import InvokerDep
from idcard_ocr.api.v1.handlers.common import bad_gateway
from idcard_ocr.models.responses import ModelsResponse, VisionModel
from idcard_ocr.core.exceptions import InvocationError
from idcard_ocr.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/models", tags=["Models"])


@router.get("", response_model=ModelsResponse)
async def list_models(invoker: InvokerDep) -> ModelsResponse:
    """
    Модели провайдера, принимающие изображения, по алфавиту

    Raises:
        HTTPException 502: Провайдер недоступен или вернул ошибку
    """
    try:
        models = await invoker.list_models()
    except InvocationError as e:
        logger.error("Failed to fetch models", error=e.message)
        raise bad_gateway("Failed to fetch models", e)

    return ModelsResponse(models=[VisionModel(**model) for model in models])
