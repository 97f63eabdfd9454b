"""Pytest configuration shared across the suite."""

import io
import sys
from pathlib import Path

import pytest
from PIL import Image

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from idcard_ocr.config import PipelineConfig  # noqa: E402
from idcard_ocr.infrastructure.imaging.pillow_codec import PillowImageCodec  # noqa: E402
from idcard_ocr.services.region_cropper import RegionCropper  # noqa: E402


def make_png(width: int = 200, height: int = 100, color=(200, 200, 200)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def card_png() -> bytes:
    return make_png(color=(30, 120, 200))


@pytest.fixture
def other_png() -> bytes:
    return make_png(color=(250, 10, 10))


@pytest.fixture
def config() -> PipelineConfig:
    return PipelineConfig()


@pytest.fixture
def codec() -> PillowImageCodec:
    return PillowImageCodec()


@pytest.fixture
def cropper(codec) -> RegionCropper:
    return RegionCropper(codec)
