"""
Пайплайн распознавания одной ID карты

Detecting -> (порог) -> Localizing -> Cropping -> ReadingFields -> Assembled
Каждый этап возвращает либо своё значение, либо ItemFailure; исключения
этапов не выходят за пределы пайплайна
"""
import asyncio
import time
from typing import Callable, Dict, List, Union

from idcard_ocr.config import PipelineConfig
from idcard_ocr.models.domain import (
    CroppedRegion,
    DetectionOutcome,
    FieldReading,
    ItemFailure,
    ItemSuccess,
    ModelSelection,
    Region,
    SourceImage
)
from idcard_ocr.services.region_cropper import RegionCropper
from idcard_ocr.services.stage_invoker import StageInvoker
from idcard_ocr.services.wave_runner import run_in_waves
from idcard_ocr.core.enums import ItemStatus
from idcard_ocr.core.exceptions import DetectionError, LocalizationError
from idcard_ocr.core.logging import bound_context, get_logger
from idcard_ocr.core import metrics

logger = get_logger(__name__)

DATE_OF_BIRTH_FIELD = "dateOfBirth"


def format_confidence(value: float) -> str:
    """69.0 -> '69', 69.5 -> '69.5'"""
    return str(int(value)) if float(value).is_integer() else str(value)


def combine_date_readings(
    primary: FieldReading,
    secondary: FieldReading,
    field_name: str = DATE_OF_BIRTH_FIELD
) -> FieldReading:
    """
    Синтетическое поле даты рождения

    Текст берётся из основного поля, при пустом основном - из запасного.
    Уверенность - максимум из двух, даже если текст взят из поля с меньшей
    уверенностью.
    """
    return FieldReading(
        field_name=field_name,
        text=primary.text or secondary.text or "",
        confidence=max(primary.confidence, secondary.confidence)
    )


class FieldExtractionPipeline:
    """
    Оркестратор этапов для одного изображения
    Детекция -> локализация -> вырезание полей -> OCR каждого поля
    """

    def __init__(
        self,
        stages: StageInvoker,
        cropper: RegionCropper,
        config: PipelineConfig,
        clock: Callable[[], float] = time.perf_counter
    ):
        """
        Args:
            stages: Вызовы модели для этапов
            cropper: Вырезание фрагментов полей
            config: Параметры пайплайна
            clock: Источник времени в секундах (подменяется в тестах)
        """
        self.stages = stages
        self.cropper = cropper
        self.config = config
        self.clock = clock

    def _elapsed_ms(self, start_time: float) -> int:
        return int((self.clock() - start_time) * 1000)

    def _failure(
        self,
        image: SourceImage,
        status: ItemStatus,
        message: str,
        start_time: float
    ) -> ItemFailure:
        return ItemFailure(
            status=status,
            image_name=image.name,
            error=message,
            processing_time_ms=self._elapsed_ms(start_time)
        )

    def passes_gate(self, detection: DetectionOutcome) -> bool:
        """Порог детекции: документ найден и уверенность не ниже минимальной"""
        return (
            detection.is_document
            and detection.confidence >= self.config.min_detection_confidence
        )

    async def _detect(
        self,
        image: SourceImage,
        model: str,
        start_time: float
    ) -> Union[DetectionOutcome, ItemFailure]:
        logger.info("Step 1: detecting document", model=model)
        try:
            detection = await self.stages.detect(image.data, model)
        except DetectionError as e:
            logger.warning("Detection failed", error=e.message)
            return self._failure(image, ItemStatus.FAILED, e.message, start_time)

        if not self.passes_gate(detection):
            logger.info(
                "Image rejected by detection gate",
                is_document=detection.is_document,
                confidence=detection.confidence,
                threshold=self.config.min_detection_confidence
            )
            return self._failure(
                image,
                ItemStatus.REJECTED,
                f"Not a valid document (confidence: {format_confidence(detection.confidence)}%)",
                start_time
            )

        return detection

    async def _localize(
        self,
        image: SourceImage,
        model: str,
        detection: DetectionOutcome,
        start_time: float
    ) -> Union[Dict[str, Region], ItemFailure]:
        logger.info("Step 2: localizing fields", model=model, document_type=detection.document_type.value)
        try:
            return await self.stages.localize(
                image.data,
                model,
                document_type=detection.document_type,
                field_names=self.config.supported_fields
            )
        except LocalizationError as e:
            logger.warning("Localization failed", error=e.message)
            return self._failure(image, ItemStatus.FAILED, e.message, start_time)

    async def _read_fields(
        self,
        cropped: Dict[str, CroppedRegion],
        model: str
    ) -> Dict[str, FieldReading]:
        """
        OCR всех полей волнами по field_wave_size

        Поля без фрагмента получают пустое чтение без вызова модели,
        ошибка чтения одного поля даёт пустое чтение только для него
        """
        readings: Dict[str, FieldReading] = {}
        pending: List[CroppedRegion] = []

        for field_name in self.config.supported_fields:
            region = cropped.get(field_name)
            if region is None or region.image is None:
                readings[field_name] = FieldReading.empty(field_name)
                metrics.record_field_reading("empty")
            else:
                pending.append(region)

        async def read(region: CroppedRegion) -> FieldReading:
            return await self.stages.read_text(region.image, region.field_name, model)

        outcomes = await run_in_waves(pending, read, self.config.field_wave_size)

        for region, outcome in zip(pending, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, BaseException):
                logger.warning("OCR failed for field", field=region.field_name, error=str(outcome))
                readings[region.field_name] = FieldReading.empty(region.field_name)
                metrics.record_field_reading("failed")
            else:
                readings[region.field_name] = outcome
                metrics.record_field_reading("read")

        return {name: readings[name] for name in self.config.supported_fields}

    def _assemble(
        self,
        image: SourceImage,
        detection: DetectionOutcome,
        regions: Dict[str, Region],
        readings: Dict[str, FieldReading],
        start_time: float
    ) -> ItemSuccess:
        missing = FieldReading.empty
        date_of_birth = combine_date_readings(
            readings.get(self.config.primary_date_field) or missing(self.config.primary_date_field),
            readings.get(self.config.secondary_date_field) or missing(self.config.secondary_date_field)
        )

        low_confidence = [
            name for name, reading in readings.items()
            if reading.text and reading.confidence < self.config.min_ocr_confidence
        ]

        return ItemSuccess(
            image_name=image.name,
            detection_confidence=detection.confidence,
            document_type=detection.document_type,
            field_readings=readings,
            date_of_birth=date_of_birth,
            regions=regions,
            low_confidence_fields=low_confidence,
            processing_time_ms=self._elapsed_ms(start_time)
        )

    async def process(
        self,
        image: SourceImage,
        models: ModelSelection
    ) -> Union[ItemSuccess, ItemFailure]:
        """
        Полная обработка одного изображения

        Args:
            image: Изображение из батча
            models: Модели для трёх этапов

        Returns:
            ItemSuccess или ItemFailure (rejected/failed), исключения этапов
            не пробрасываются
        """
        start_time = self.clock()

        with bound_context(image_name=image.name):
            detection = await self._detect(image, models.detection, start_time)
            if isinstance(detection, ItemFailure):
                return self._finish(detection)

            regions = await self._localize(image, models.localization, detection, start_time)
            if isinstance(regions, ItemFailure):
                return self._finish(regions)

            logger.info("Step 2.5: cropping field regions")
            cropped = await self.cropper.crop_fields(
                image.data,
                regions,
                self.config.supported_fields
            )

            logger.info("Step 3: extracting text", model=models.ocr)
            readings = await self._read_fields(cropped, models.ocr)

            result = self._assemble(image, detection, regions, readings, start_time)
            logger.info(
                "Image processed successfully",
                detection_confidence=detection.confidence,
                fields_read=sum(1 for reading in readings.values() if reading.text),
                processing_time_ms=result.processing_time_ms
            )
            return self._finish(result)

    @staticmethod
    def _finish(result: Union[ItemSuccess, ItemFailure]) -> Union[ItemSuccess, ItemFailure]:
        metrics.record_item(result.status.value, result.processing_time_ms / 1000)
        return result
