"""
Простой режим батча: один промпт на каждое изображение
"""
import asyncio
import time
from typing import Callable, Optional, Sequence

from idcard_ocr.infrastructure.inference.base_invoker import BaseInferenceInvoker
from idcard_ocr.models.domain import BatchSummary, PhotoAnalysis, PhotoBatchResult, SourceImage
from idcard_ocr.services.wave_runner import run_in_waves
from idcard_ocr.core.exceptions import BatchValidationError, InvocationError
from idcard_ocr.core.logging import get_logger

logger = get_logger(__name__)


class PhotoBatchProcessor:
    """Отправляет каждое фото модели с одним и тем же промптом, волнами по wave_size"""

    def __init__(
        self,
        invoker: BaseInferenceInvoker,
        wave_size: int = 5,
        max_photos: int = 100,
        timeout: Optional[float] = None,
        clock: Callable[[], float] = time.perf_counter
    ):
        self.invoker = invoker
        self.wave_size = wave_size
        self.max_photos = max_photos
        self.timeout = timeout
        self.clock = clock

    def validate(self, images: Sequence[SourceImage], model: str, prompt: str) -> None:
        """
        Raises:
            BatchValidationError: Пустой или слишком большой батч, нет модели или промпта
        """
        if not images:
            raise BatchValidationError("Photos array is required")
        if len(images) > self.max_photos:
            raise BatchValidationError(f"Maximum {self.max_photos} photos allowed per batch")
        if not model:
            raise BatchValidationError("Model is required")
        if not prompt:
            raise BatchValidationError("Prompt is required")
        for index, image in enumerate(images):
            if not image.name or not image.data:
                raise BatchValidationError(
                    "Each photo must have name and data fields",
                    details={"index": index}
                )

    async def _analyze(
        self,
        image: SourceImage,
        model: str,
        prompt: str,
        system_prompt: Optional[str]
    ) -> PhotoAnalysis:
        start_time = self.clock()
        try:
            result = await self.invoker.invoke(
                prompt,
                image.data,
                model,
                system_instruction=system_prompt,
                timeout=self.timeout
            )
        except InvocationError as e:
            logger.warning("Photo analysis failed", photo_name=image.name, error=e.message)
            return PhotoAnalysis(
                photo_name=image.name,
                success=False,
                error=e.message,
                processing_time_ms=int((self.clock() - start_time) * 1000)
            )

        return PhotoAnalysis(
            photo_name=image.name,
            success=True,
            response=result.text,
            model=result.model_used,
            usage=result.usage,
            processing_time_ms=int((self.clock() - start_time) * 1000)
        )

    async def process(
        self,
        images: Sequence[SourceImage],
        model: str,
        prompt: str,
        system_prompt: Optional[str] = None
    ) -> PhotoBatchResult:
        """
        Анализ батча фото одним промптом

        Returns:
            PhotoBatchResult с результатом на каждое фото и сводкой

        Raises:
            BatchValidationError: Батч не прошёл проверку
        """
        self.validate(images, model, prompt)

        start_time = self.clock()
        logger.info("Processing photo batch", photos=len(images), model=model, wave_size=self.wave_size)

        outcomes = await run_in_waves(
            list(images),
            lambda image: self._analyze(image, model, prompt, system_prompt),
            self.wave_size
        )

        results = []
        for image, outcome in zip(images, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, BaseException):
                logger.error("Photo processing crashed", photo_name=image.name, error=str(outcome))
                outcome = PhotoAnalysis(
                    photo_name=image.name,
                    success=False,
                    error=str(outcome) or "Processing failed"
                )
            results.append(outcome)

        summary = BatchSummary.from_results(results, int((self.clock() - start_time) * 1000))
        logger.info(
            "Photo batch completed",
            total=summary.total,
            success_count=summary.success_count,
            failure_count=summary.failure_count
        )
        return PhotoBatchResult(results=results, summary=summary)
