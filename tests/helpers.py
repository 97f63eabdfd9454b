"""Stubs shared by the test modules."""

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from idcard_ocr.infrastructure.inference.base_invoker import BaseInferenceInvoker, InvocationResult
from idcard_ocr.services import prompts

STAGE_BY_SYSTEM = {
    prompts.DETECTION_SYSTEM: "detection",
    prompts.LOCALIZATION_SYSTEM: "localization",
    prompts.OCR_SYSTEM: "ocr",
}

# 170x30 pixel crop on a 200x100 image
BOX = [0.1, 0.1, 0.5, 0.9]
# Height collapses below zero after padding
THIN_BOX = [0.5, 0.1, 0.55, 0.9]

FIELDS = (
    "identityNumber", "titleTh", "firstNameTh", "lastNameTh",
    "titleEn", "firstNameEn", "lastNameEn", "dateOfBirthEn", "dateOfBirthTh",
)


@dataclass
class Call:
    stage: str
    prompt: str
    image: Optional[bytes]
    model: str
    system_instruction: Optional[str]
    timeout: Optional[float]


class StubInvoker(BaseInferenceInvoker):
    """Deterministic invoker: one handler per stage, picked by system instruction.

    A handler is a string, a dict (sent as JSON), an exception to raise, or a
    callable ``(prompt, image) -> any of those``. Calls without a stage system
    instruction can be answered per model through ``by_model``.
    """

    def __init__(self, detect=None, localize=None, ocr=None, default=None, models=None, by_model=None):
        self.handlers = {"detection": detect, "localization": localize, "ocr": ocr, "custom": default}
        self.by_model = by_model or {}
        self.models = models or []
        self.calls: List[Call] = []

    async def invoke(self, prompt, image, model, system_instruction=None, timeout=None):
        stage = STAGE_BY_SYSTEM.get(system_instruction, "custom")
        self.calls.append(Call(stage, prompt, image, model, system_instruction, timeout))

        value = self.handlers[stage]
        if stage == "custom" and model in self.by_model:
            value = self.by_model[model]
        if callable(value) and not isinstance(value, Exception):
            value = value(prompt, image)
        if isinstance(value, Exception):
            raise value
        if isinstance(value, dict):
            value = json.dumps(value)
        return InvocationResult(text=value or "", model_used=model, usage={"total_tokens": 42})

    async def list_models(self):
        if isinstance(self.models, Exception):
            raise self.models
        return self.models

    def is_available(self) -> bool:
        return True

    def count(self, stage: str) -> int:
        return sum(1 for call in self.calls if call.stage == stage)


def detection(is_document: bool = True, confidence: float = 95, document_type: str = "thai_id") -> Dict[str, Any]:
    return {
        "isDocument": is_document,
        "confidence": confidence,
        "documentType": document_type,
        "reasoning": "stub",
    }


def localization(boxes: Dict[str, Any], confidence: float = 90) -> Dict[str, Any]:
    return {
        "fields": {
            name: {"bbox": box, "confidence": confidence if box is not None else 0}
            for name, box in boxes.items()
        }
    }


def ocr_by_field(readings: Dict[str, Any]) -> Callable[[str, bytes], Any]:
    """OCR handler answering per field, matched on the label embedded in the prompt."""

    def handler(prompt: str, image: bytes):
        for field_name, value in readings.items():
            if f"shows a {prompts.field_label(field_name)} from" in prompt:
                if isinstance(value, Exception):
                    return value
                text, confidence = value
                return {"text": text, "confidence": confidence}
        return {"text": "", "confidence": 0}

    return handler
