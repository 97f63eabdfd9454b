"""
Вызовы модели для трёх этапов: детекция, локализация полей, распознавание текста
"""
import math
import time
from numbers import Real
from typing import Any, Dict, Iterable, Optional, Type, TypeVar

from pydantic import BaseModel

from idcard_ocr.config import PipelineConfig
from idcard_ocr.infrastructure.inference.base_invoker import BaseInferenceInvoker
from idcard_ocr.models.domain import DetectionOutcome, FieldReading, Region
from idcard_ocr.models.payloads import (
    DetectionPayload,
    LocalizationPayload,
    TextPayload,
    clamp_confidence
)
from idcard_ocr.services import prompts
from idcard_ocr.services.geometry import validate_box
from idcard_ocr.services.response_parser import parse_response
from idcard_ocr.core.enums import DocumentType
from idcard_ocr.core.exceptions import (
    DetectionError,
    InvocationError,
    LocalizationError,
    MalformedResponseError,
    StageError,
    TextExtractionError
)
from idcard_ocr.core.logging import get_logger
from idcard_ocr.core import metrics

logger = get_logger(__name__)

PayloadT = TypeVar("PayloadT", bound=BaseModel)


class StageInvoker:
    """
    Обёртка над вызовом модели с фиксированными промптами

    Ошибки транспорта и разбора ответа превращаются в ошибку конкретного
    этапа (DetectionError, LocalizationError, TextExtractionError) с
    исходным сообщением. Повторов нет.
    """

    def __init__(self, invoker: BaseInferenceInvoker, config: PipelineConfig):
        """
        Args:
            invoker: Клиент модели
            config: Параметры пайплайна (таймауты, пороги, список полей)
        """
        self.invoker = invoker
        self.config = config

    async def _call(
        self,
        error_cls: Type[StageError],
        prompt: str,
        image: Optional[bytes],
        model: str,
        system_instruction: str,
        timeout: float,
        schema: Type[PayloadT]
    ) -> PayloadT:
        """Один вызов этапа: промпт -> модель -> проверенный payload"""
        stage = error_cls.stage.value
        start_time = time.perf_counter()
        status = "error"

        try:
            result = await self.invoker.invoke(
                prompt,
                image,
                model,
                system_instruction=system_instruction,
                timeout=timeout
            )
            logger.debug(
                "Stage response received",
                stage=stage,
                model=model,
                model_used=result.model_used,
                response=result.text[:500]
            )
            payload = parse_response(result.text, schema)
            status = "ok"
            return payload

        except (InvocationError, MalformedResponseError) as e:
            status = "malformed" if isinstance(e, MalformedResponseError) else "error"
            raise error_cls(e.message, details={"model": model, **e.details})

        finally:
            metrics.record_stage(stage, status, time.perf_counter() - start_time)

    async def detect(self, image: bytes, model: str) -> DetectionOutcome:
        """
        Этап 1: есть ли на изображении документ

        Raises:
            DetectionError: Ошибка вызова или невалидный ответ
        """
        payload = await self._call(
            DetectionError,
            prompts.detection_prompt(),
            image,
            model,
            prompts.DETECTION_SYSTEM,
            self.config.detection_timeout,
            DetectionPayload
        )

        return DetectionOutcome(
            is_document=payload.is_document,
            confidence=clamp_confidence(payload.confidence),
            document_type=payload.document_type,
            reasoning=payload.reasoning or ""
        )

    def _build_region(self, field_name: str, entry: Any) -> Region:
        """
        Region из сырой записи ответа

        Невалидный bbox, нечисловая уверенность или уверенность ниже порога
        локализации дают Region без bbox с нулевой уверенностью
        """
        if not isinstance(entry, dict):
            return Region.absent(field_name)

        box = entry.get("bbox", entry.get("box"))
        confidence = entry.get("confidence", 0)

        if box is None:
            return Region.absent(field_name)

        if not validate_box(box):
            logger.warning("Invalid bbox, setting to null", field=field_name, bbox=box)
            return Region.absent(field_name)

        if (
            isinstance(confidence, bool)
            or not isinstance(confidence, Real)
            or not math.isfinite(confidence)
        ):
            logger.warning("Non-numeric region confidence", field=field_name, confidence=confidence)
            return Region.absent(field_name)

        confidence = clamp_confidence(confidence)
        if confidence < self.config.min_localization_confidence:
            logger.info(
                "Region below localization threshold",
                field=field_name,
                confidence=confidence,
                threshold=self.config.min_localization_confidence
            )
            return Region.absent(field_name)

        return Region(
            field_name=field_name,
            box=tuple(float(value) for value in box),
            confidence=confidence
        )

    async def localize(
        self,
        image: bytes,
        model: str,
        document_type: DocumentType = DocumentType.NONE,
        field_names: Optional[Iterable[str]] = None
    ) -> Dict[str, Region]:
        """
        Этап 2: bbox для каждого поддерживаемого поля

        Частичная локализация допустима: каждая плохая запись превращается
        в Region без bbox, ответ целиком не отклоняется

        Returns:
            Словарь field_name -> Region по всем полям списка

        Raises:
            LocalizationError: Ошибка вызова или в ответе нет объекта fields
        """
        field_names = list(field_names or self.config.supported_fields)
        document = document_type.value if isinstance(document_type, DocumentType) else document_type

        payload = await self._call(
            LocalizationError,
            prompts.localization_prompt(field_names, document),
            image,
            model,
            prompts.LOCALIZATION_SYSTEM,
            self.config.localization_timeout,
            LocalizationPayload
        )

        unexpected = sorted(set(payload.field_entries) - set(field_names))
        if unexpected:
            logger.debug("Ignoring unexpected fields", fields=unexpected)

        regions = {
            name: self._build_region(name, payload.field_entries.get(name))
            for name in field_names
        }

        logger.debug(
            "Fields localized",
            located=sum(1 for region in regions.values() if region.box is not None),
            total=len(field_names)
        )
        return regions

    async def read_text(self, image: bytes, field_name: str, model: str) -> FieldReading:
        """
        Этап 3: текст одного вырезанного поля

        Порога нет: чтения с низкой уверенностью возвращаются как есть

        Raises:
            TextExtractionError: Ошибка вызова или невалидный ответ
        """
        payload = await self._call(
            TextExtractionError,
            prompts.ocr_prompt(field_name),
            image,
            model,
            prompts.OCR_SYSTEM,
            self.config.ocr_timeout,
            TextPayload
        )

        return FieldReading(
            field_name=field_name,
            text=payload.text,
            confidence=clamp_confidence(payload.confidence)
        )
