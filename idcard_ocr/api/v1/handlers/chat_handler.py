"""
Chat handlers - свободные запросы к одной или нескольким моделям
"""
from typing import Optional

from fastapi import APIRouter, status

from idcard_ocr.api.dependencies import ChatServiceDep
from idcard_ocr.api.v1.handlers.common import bad_gateway, bad_request, decode_image, internal_error
from idcard_ocr.config import get_settings
from idcard_ocr.models.domain import ChatReply, MultiModelResult, SummaryResult
from idcard_ocr.models.requests import ChatRequest, MultiModelChatRequest, SummarizeRequest
from idcard_ocr.core.exceptions import ChatValidationError, ImageValidationError, InvocationError
from idcard_ocr.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/chat", tags=["Chat"])


def _image_from_request(data: Optional[str]) -> Optional[bytes]:
    if not data:
        return None
    settings = get_settings()
    return decode_image(data, settings.MAX_IMAGE_SIZE_MB, settings.allowed_image_formats_list)


@router.post("", response_model=ChatReply, status_code=status.HTTP_200_OK)
async def send_message(request: ChatRequest, chat: ChatServiceDep) -> ChatReply:
    """
    Отправить сообщение (текст и/или изображение) одной модели

    Raises:
        HTTPException 400: Нет ни текста, ни изображения, или изображение невалидно
        HTTPException 502: Ошибка провайдера
    """
    try:
        image = _image_from_request(request.image)
        return await chat.send(request.message, image, request.model, request.system_prompt)

    except (ChatValidationError, ImageValidationError) as e:
        logger.warning("Chat validation failed", error=e.message)
        raise bad_request("Invalid chat request", e)

    except InvocationError as e:
        logger.error("Chat request failed", error=e.message)
        raise bad_gateway("Model request failed", e)

    except Exception as e:
        logger.error("Unexpected error", error=str(e), exc_info=True)
        raise internal_error()


@router.post("/multi-model", response_model=MultiModelResult, status_code=status.HTTP_200_OK)
async def send_multi_model_message(
    request: MultiModelChatRequest,
    chat: ChatServiceDep
) -> MultiModelResult:
    """
    Отправить одно сообщение нескольким моделям одновременно

    Ошибка одной модели попадает в её ответ; 502 только если не ответила ни одна
    """
    try:
        image = _image_from_request(request.image)
        return await chat.send_to_models(request.message, image, request.models, request.system_prompt)

    except (ChatValidationError, ImageValidationError) as e:
        logger.warning("Chat validation failed", error=e.message)
        raise bad_request("Invalid chat request", e)

    except InvocationError as e:
        logger.error("Multi-model request failed", error=e.message)
        raise bad_gateway("Model request failed", e)

    except Exception as e:
        logger.error("Unexpected error", error=str(e), exc_info=True)
        raise internal_error()


@router.post("/summarize", response_model=SummaryResult, status_code=status.HTTP_200_OK)
async def summarize_responses(request: SummarizeRequest, chat: ChatServiceDep) -> SummaryResult:
    """Свести успешные ответы нескольких моделей в один"""
    try:
        return await chat.summarize(request.responses, request.summary_model, request.system_prompt)

    except ChatValidationError as e:
        logger.warning("Chat validation failed", error=e.message)
        raise bad_request("Invalid chat request", e)

    except InvocationError as e:
        logger.error("Summary request failed", error=e.message)
        raise bad_gateway("Model request failed", e)

    except Exception as e:
        logger.error("Unexpected error", error=str(e), exc_info=True)
        raise internal_error()
