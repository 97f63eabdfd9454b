import asyncio
from dataclasses import replace

import pytest

from helpers import BOX, FIELDS, StubInvoker, detection, localization
from idcard_ocr.core.enums import DocumentType
from idcard_ocr.core.exceptions import (
    DetectionError,
    InvocationError,
    LocalizationError,
    TextExtractionError,
)
from idcard_ocr.models.domain import Region
from idcard_ocr.services import prompts
from idcard_ocr.services.stage_invoker import StageInvoker


def test_detect_parses_outcome(config, card_png):
    invoker = StubInvoker(detect=detection(True, 87.5, "passport"))
    stages = StageInvoker(invoker, config)

    outcome = asyncio.run(stages.detect(card_png, "vision-model"))

    assert outcome.is_document is True
    assert outcome.confidence == 87.5
    assert outcome.document_type is DocumentType.PASSPORT
    call = invoker.calls[0]
    assert call.image == card_png
    assert call.model == "vision-model"
    assert call.system_instruction == prompts.DETECTION_SYSTEM
    assert call.timeout == config.detection_timeout


def test_detect_accepts_legacy_keys(config, card_png):
    invoker = StubInvoker(detect={"isIDCard": True, "confidence": 90, "cardType": "thai_id"})

    outcome = asyncio.run(StageInvoker(invoker, config).detect(card_png, "m"))

    assert outcome.is_document is True
    assert outcome.document_type is DocumentType.THAI_ID


def test_detect_maps_unknown_document_type_to_other(config, card_png):
    invoker = StubInvoker(detect=detection(True, 90, "library_card"))

    outcome = asyncio.run(StageInvoker(invoker, config).detect(card_png, "m"))

    assert outcome.document_type is DocumentType.OTHER


def test_detect_clamps_confidence(config, card_png):
    invoker = StubInvoker(detect=detection(True, 140))

    outcome = asyncio.run(StageInvoker(invoker, config).detect(card_png, "m"))

    assert outcome.confidence == 100


@pytest.mark.parametrize(
    "response",
    [
        {"isDocument": True, "confidence": "high"},
        {"isDocument": "yes", "confidence": 90},
        {"confidence": 90},
        "no json here",
    ],
)
def test_detect_rejects_malformed_response(config, card_png, response):
    invoker = StubInvoker(detect=response)

    with pytest.raises(DetectionError, match="^Detection failed: "):
        asyncio.run(StageInvoker(invoker, config).detect(card_png, "m"))


def test_detect_wraps_invocation_error(config, card_png):
    invoker = StubInvoker(detect=InvocationError("OpenRouter API Error: rate limited"))

    with pytest.raises(DetectionError) as exc_info:
        asyncio.run(StageInvoker(invoker, config).detect(card_png, "m"))

    assert exc_info.value.message == "Detection failed: OpenRouter API Error: rate limited"


def test_localize_covers_every_supported_field(config, card_png):
    invoker = StubInvoker(localize=localization({"identityNumber": BOX, "unexpectedField": BOX}))

    regions = asyncio.run(
        StageInvoker(invoker, config).localize(card_png, "m", DocumentType.THAI_ID)
    )

    assert list(regions) == list(FIELDS)
    assert regions["identityNumber"].box == tuple(BOX)
    assert regions["identityNumber"].confidence == 90
    assert all(regions[name].box is None for name in FIELDS if name != "identityNumber")
    assert "unexpectedField" not in regions
    assert "thai_id image" in invoker.calls[0].prompt


def test_localize_nulls_invalid_entries(config, card_png):
    response = {
        "fields": {
            "identityNumber": {"bbox": [0.5, 0.1, 0.2, 0.9], "confidence": 90},
            "titleEn": {"bbox": [0.1, 0.1, 0.5, 1.5], "confidence": 90},
            "firstNameEn": {"bbox": BOX, "confidence": "sure"},
            "lastNameEn": "somewhere at the top",
            "dateOfBirthEn": {"box": BOX, "confidence": 80},
        }
    }
    invoker = StubInvoker(localize=response)

    regions = asyncio.run(StageInvoker(invoker, config).localize(card_png, "m"))

    for name in ("identityNumber", "titleEn", "firstNameEn", "lastNameEn"):
        assert regions[name].box is None
        assert regions[name].confidence == 0
    assert regions["dateOfBirthEn"].box == tuple(BOX)


def test_localize_applies_threshold(config, card_png):
    config = replace(config, min_localization_confidence=60)
    response = {
        "fields": {
            "identityNumber": {"bbox": BOX, "confidence": 59},
            "firstNameEn": {"bbox": BOX, "confidence": 60},
        }
    }
    invoker = StubInvoker(localize=response)

    regions = asyncio.run(StageInvoker(invoker, config).localize(card_png, "m"))

    assert regions["identityNumber"].box is None
    assert regions["firstNameEn"].box == tuple(BOX)


def test_localize_requires_fields_object(config, card_png):
    invoker = StubInvoker(localize={"regions": {}})

    with pytest.raises(LocalizationError, match="^Localization failed: "):
        asyncio.run(StageInvoker(invoker, config).localize(card_png, "m"))


def test_read_text(config, card_png):
    invoker = StubInvoker(ocr={"text": "1234567890123", "confidence": 97})

    reading = asyncio.run(StageInvoker(invoker, config).read_text(card_png, "identityNumber", "ocr-model"))

    assert reading.field_name == "identityNumber"
    assert reading.text == "1234567890123"
    assert reading.confidence == 97
    call = invoker.calls[0]
    assert "identity number" in call.prompt
    assert call.timeout == config.ocr_timeout


def test_read_text_keeps_low_confidence(config, card_png):
    invoker = StubInvoker(ocr={"text": "blurry", "confidence": 12})

    reading = asyncio.run(StageInvoker(invoker, config).read_text(card_png, "titleEn", "m"))

    assert (reading.text, reading.confidence) == ("blurry", 12)


def test_read_text_rejects_missing_text(config, card_png):
    invoker = StubInvoker(ocr={"confidence": 80})

    with pytest.raises(TextExtractionError, match="^Text extraction failed: "):
        asyncio.run(StageInvoker(invoker, config).read_text(card_png, "titleEn", "m"))


def test_field_label():
    assert prompts.field_label("firstNameEn") == "first name en"
    assert prompts.field_label("dateOfBirthTh") == "date of birth th"


def test_localization_prompt_lists_fields():
    prompt = prompts.localization_prompt(["identityNumber", "nickname"], "none")

    assert "1. Identification Number" in prompt
    assert "2. Nickname" in prompt
    assert '"nickname": {"bbox": [ymin, xmin, ymax, xmax], "confidence": number}' in prompt
    assert "ID card image" in prompt


@pytest.mark.parametrize("confidence", [float("nan"), float("inf"), float("-inf")])
def test_localize_drops_non_finite_region_confidence(config, card_png, confidence):
    config = replace(config, min_localization_confidence=60)
    response = {"fields": {"identityNumber": {"bbox": BOX, "confidence": confidence}}}
    invoker = StubInvoker(localize=response)

    regions = asyncio.run(StageInvoker(invoker, config).localize(card_png, "m"))

    assert regions["identityNumber"].box is None
    assert regions["identityNumber"].confidence == 0


def test_localize_drops_nan_literal_in_raw_response(config, card_png):
    text = '{"fields": {"identityNumber": {"bbox": [0.1, 0.1, 0.5, 0.9], "confidence": NaN}}}'
    invoker = StubInvoker(localize=text)

    regions = asyncio.run(StageInvoker(invoker, config).localize(card_png, "m"))

    assert regions["identityNumber"] == Region.absent("identityNumber")
