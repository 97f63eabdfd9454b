"""
Чат с моделями: одно сообщение, одно сообщение нескольким моделям и сводка их ответов
"""
import asyncio
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from idcard_ocr.infrastructure.inference.base_invoker import BaseInferenceInvoker
from idcard_ocr.models.domain import ChatReply, ModelResponse, MultiModelResult, SummaryResult
from idcard_ocr.services.wave_runner import run_in_waves
from idcard_ocr.core.exceptions import ChatValidationError, InvocationError
from idcard_ocr.core.logging import get_logger

logger = get_logger(__name__)

SUMMARY_HEADER = "\n\nHere are the responses from different AI models:\n\n"
SUMMARY_FOOTER = "\nPlease provide a comprehensive synthesis of these responses."


def build_summary_prompt(responses: Sequence[ModelResponse], instruction: str) -> str:
    """Инструкция, затем пронумерованные ответы моделей, затем просьба о синтезе"""
    parts = [instruction, SUMMARY_HEADER]
    for index, response in enumerate(responses, start=1):
        parts.append(f"**Model {index} ({response.model}):**\n{response.response}\n\n")
    parts.append(SUMMARY_FOOTER)
    return "".join(parts)


class ChatService:
    """
    Свободные запросы к моделям поверх того же клиента, что и пайплайн

    Запрос к нескольким моделям выполняется одной волной: ошибка одной
    модели попадает в её ответ, остальные модели отвечают как обычно
    """

    def __init__(
        self,
        invoker: BaseInferenceInvoker,
        summary_prompt: str,
        min_models: int = 2,
        max_models: int = 4,
        timeout: Optional[float] = None
    ):
        self.invoker = invoker
        self.summary_prompt = summary_prompt
        self.min_models = min_models
        self.max_models = max_models
        self.timeout = timeout

    @staticmethod
    def _require_content(message: Optional[str], image: Optional[bytes]) -> None:
        if not message and not image:
            raise ChatValidationError("Either message or image is required")

    async def send(
        self,
        message: Optional[str],
        image: Optional[bytes],
        model: Optional[str],
        system_prompt: Optional[str] = None
    ) -> ChatReply:
        """
        Одно сообщение одной модели

        Raises:
            ChatValidationError: Нет ни текста, ни изображения
            InvocationError: Ошибка вызова модели
        """
        self._require_content(message, image)

        result = await self.invoker.invoke(
            message or "",
            image or None,
            model or "",
            system_instruction=system_prompt,
            timeout=self.timeout
        )
        return ChatReply(response=result.text, model=result.model_used, usage=result.usage)

    async def _ask(
        self,
        model: str,
        message: Optional[str],
        image: Optional[bytes],
        system_prompt: Optional[str]
    ) -> ModelResponse:
        try:
            reply = await self.send(message, image, model, system_prompt)
        except InvocationError as e:
            logger.warning("Model failed to respond", model=model, error=e.message)
            return ModelResponse(model=model, error=e.message, success=False)

        return ModelResponse(model=model, response=reply.response, usage=reply.usage, success=True)

    async def send_to_models(
        self,
        message: Optional[str],
        image: Optional[bytes],
        models: Optional[List[str]],
        system_prompt: Optional[str] = None
    ) -> MultiModelResult:
        """
        Одно сообщение сразу нескольким моделям

        Returns:
            MultiModelResult с ответом каждой модели в порядке запроса

        Raises:
            ChatValidationError: Нет содержимого или число моделей вне диапазона
            InvocationError: Не ответила ни одна модель
        """
        self._require_content(message, image)
        if not models or not (self.min_models <= len(models) <= self.max_models):
            raise ChatValidationError(
                f"Please select between {self.min_models} and {self.max_models} models",
                details={"count": len(models or [])}
            )

        logger.info("Sending message to multiple models", models=models)
        outcomes = await run_in_waves(
            list(models),
            lambda model: self._ask(model, message, image, system_prompt),
            len(models)
        )

        responses = []
        for model, outcome in zip(models, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, BaseException):
                logger.error("Model request crashed", model=model, error=str(outcome))
                outcome = ModelResponse(model=model, error=str(outcome) or "Request failed", success=False)
            responses.append(outcome)

        if not any(response.success for response in responses):
            raise InvocationError(
                "All models failed to respond. Please try again.",
                details={"errors": {response.model: response.error for response in responses}}
            )

        return MultiModelResult(
            responses=responses,
            request_id=uuid.uuid4().hex,
            timestamp=datetime.now(timezone.utc).isoformat()
        )

    async def summarize(
        self,
        responses: Optional[List[ModelResponse]],
        summary_model: Optional[str],
        system_prompt: Optional[str] = None
    ) -> SummaryResult:
        """
        Сводка успешных ответов одной моделью

        Raises:
            ChatValidationError: Нет ответов, нет модели или нет успешных ответов
            InvocationError: Ошибка вызова модели сводки
        """
        if not responses:
            raise ChatValidationError("Responses array is required")
        if not summary_model:
            raise ChatValidationError("Summary model is required")

        successful = [response for response in responses if response.success and response.response]
        if not successful:
            raise ChatValidationError("No successful responses to summarize")

        prompt = build_summary_prompt(successful, system_prompt or self.summary_prompt)
        result = await self.invoker.invoke(prompt, None, summary_model, timeout=self.timeout)

        logger.info("Responses summarized", summary_model=summary_model, sources=len(successful))
        return SummaryResult(
            summary=result.text,
            model=summary_model,
            usage=result.usage,
            source_models=[response.model for response in successful]
        )
