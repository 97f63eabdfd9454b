"""
Координатор батча ID карт
"""
import asyncio
import time
from typing import Callable, Optional, Sequence, Union

from idcard_ocr.config import PipelineConfig
from idcard_ocr.models.domain import (
    BatchResult,
    BatchSummary,
    ItemFailure,
    ItemSuccess,
    ModelSelection,
    SourceImage
)
from idcard_ocr.services.field_extraction import FieldExtractionPipeline
from idcard_ocr.services.wave_runner import run_in_waves
from idcard_ocr.core.enums import ItemStatus
from idcard_ocr.core.exceptions import BatchValidationError
from idcard_ocr.core.logging import get_logger
from idcard_ocr.core import metrics

logger = get_logger(__name__)


def validate_batch(
    images: Sequence[SourceImage],
    models: Optional[ModelSelection],
    max_photos: int
) -> None:
    """
    Проверка батча до начала обработки

    Raises:
        BatchValidationError: Пустой или слишком большой батч, не заданы
            модели, у изображения нет имени или данных
    """
    if not images:
        raise BatchValidationError("Photos array is required and must not be empty")

    if len(images) > max_photos:
        raise BatchValidationError(
            f"Maximum {max_photos} photos allowed per batch",
            details={"count": len(images), "max_photos": max_photos}
        )

    if models is None:
        raise BatchValidationError("Models object is required")

    if not (models.detection and models.localization and models.ocr):
        raise BatchValidationError(
            "All three models (detection, localization, ocr) are required",
            details={
                "detection": models.detection,
                "localization": models.localization,
                "ocr": models.ocr
            }
        )

    for index, image in enumerate(images):
        if not image.name or not image.data:
            raise BatchValidationError(
                "Each photo must have name and data fields",
                details={"index": index}
            )


class BatchCoordinator:
    """
    Прогоняет каждое изображение через пайплайн и собирает результаты

    Изображения обрабатываются волнами по image_wave_size (по умолчанию 1,
    то есть строго по одному). На каждое изображение - ровно один
    результат, падение одного изображения не прерывает батч.
    """

    def __init__(
        self,
        pipeline: FieldExtractionPipeline,
        config: PipelineConfig,
        clock: Callable[[], float] = time.perf_counter
    ):
        self.pipeline = pipeline
        self.config = config
        self.clock = clock

    async def _process_one(
        self,
        image: SourceImage,
        models: ModelSelection
    ) -> Union[ItemSuccess, ItemFailure]:
        start_time = self.clock()
        try:
            return await self.pipeline.process(image, models)
        except Exception as e:
            logger.error(
                "Unexpected error while processing image",
                image_name=image.name,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True
            )
            return ItemFailure(
                status=ItemStatus.FAILED,
                image_name=image.name,
                error=str(e) or type(e).__name__,
                processing_time_ms=int((self.clock() - start_time) * 1000)
            )

    async def process(
        self,
        images: Sequence[SourceImage],
        models: Optional[ModelSelection]
    ) -> BatchResult:
        """
        Обработка батча изображений

        Args:
            images: Изображения с именами
            models: Модели для детекции, локализации и OCR

        Returns:
            BatchResult: результаты в порядке входа и сводка

        Raises:
            BatchValidationError: Батч не прошёл проверку, обработка не начата
        """
        validate_batch(images, models, self.config.max_photos)

        start_time = self.clock()
        logger.info(
            "Processing ID card batch",
            photos=len(images),
            detection_model=models.detection,
            localization_model=models.localization,
            ocr_model=models.ocr,
            wave_size=self.config.image_wave_size
        )

        metrics.active_batches.inc()
        try:
            outcomes = await run_in_waves(
                list(images),
                lambda image: self._process_one(image, models),
                self.config.image_wave_size
            )
        finally:
            metrics.active_batches.dec()

        results = []
        for image, outcome in zip(images, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, BaseException):
                outcome = ItemFailure(
                    status=ItemStatus.FAILED,
                    image_name=image.name,
                    error=str(outcome) or type(outcome).__name__,
                    processing_time_ms=0
                )
            results.append(outcome)

        summary = BatchSummary.from_results(results, int((self.clock() - start_time) * 1000))
        logger.info(
            "ID card batch completed",
            total=summary.total,
            success_count=summary.success_count,
            failure_count=summary.failure_count,
            processing_time_ms=summary.processing_time_ms
        )

        return BatchResult(results=results, summary=summary)
