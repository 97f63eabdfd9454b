import pytest
from pydantic import ValidationError

from idcard_ocr.config import PipelineConfig, Settings


def test_defaults_match_pipeline_config():
    config = Settings(_env_file=None).pipeline_config()

    assert config == PipelineConfig()
    assert config.supported_fields[0] == "identityNumber"
    assert len(config.supported_fields) == 9


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("SUPPORTED_FIELDS", "identityNumber, firstNameEn,,")
    monkeypatch.setenv("MIN_DETECTION_CONFIDENCE", "80")
    monkeypatch.setenv("IDCARD_IMAGE_WAVE_SIZE", "4")

    config = Settings(_env_file=None).pipeline_config()

    assert config.supported_fields == ("identityNumber", "firstNameEn")
    assert config.min_detection_confidence == 80
    assert config.image_wave_size == 4


def test_list_properties():
    settings = Settings(_env_file=None, ALLOWED_ORIGINS="http://a, http://b", ALLOWED_IMAGE_FORMATS="png, jpeg")

    assert settings.allowed_origins_list == ["http://a", "http://b"]
    assert settings.allowed_image_formats_list == ["png", "jpeg"]


@pytest.mark.parametrize(
    "name",
    ["IDCARD_IMAGE_WAVE_SIZE", "IDCARD_FIELD_WAVE_SIZE", "BATCH_WAVE_SIZE", "IDCARD_MAX_PHOTOS", "CHAT_MAX_MODELS"],
)
def test_non_positive_sizes_fail_at_load(monkeypatch, name):
    monkeypatch.setenv(name, "0")

    with pytest.raises(ValidationError, match=name):
        Settings(_env_file=None)


@pytest.mark.parametrize("name, value", [("MIN_DETECTION_CONFIDENCE", "120"), ("OCR_TIMEOUT", "0")])
def test_out_of_range_thresholds_fail_at_load(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)
