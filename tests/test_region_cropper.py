import asyncio
import io

import pytest
from PIL import Image

from helpers import BOX, THIN_BOX
from idcard_ocr.core.exceptions import CodecError, CropError, GeometryError
from idcard_ocr.models.domain import Region


def size_of(data: bytes):
    with Image.open(io.BytesIO(data)) as img:
        return img.size, img.format


def test_read_metadata(cropper, card_png):
    metadata = asyncio.run(cropper.read_metadata(card_png))

    assert (metadata.width, metadata.height) == (200, 100)
    assert metadata.format == "PNG"


def test_crop_returns_padded_region(cropper, card_png):
    data = asyncio.run(cropper.crop(card_png, BOX))

    assert size_of(data) == ((170, 30), "PNG")


def test_crop_clamps_to_image_bounds(cropper, card_png):
    data = asyncio.run(cropper.crop(card_png, [0.0, 0.0, 0.5, 0.5]))

    assert size_of(data) == ((100, 40), "PNG")


def test_crop_rejects_invalid_box(cropper, card_png):
    with pytest.raises(GeometryError):
        asyncio.run(cropper.crop(card_png, [0.5, 0.1, 0.2, 0.9]))


def test_crop_rejects_degenerate_region(cropper, card_png):
    with pytest.raises(CropError, match="Invalid crop dimensions"):
        asyncio.run(cropper.crop(card_png, THIN_BOX))


def test_crop_propagates_codec_errors(cropper):
    with pytest.raises(CodecError):
        asyncio.run(cropper.crop(b"not an image", BOX))


def test_crop_fields_isolates_failures(cropper, card_png):
    regions = {
        "identityNumber": Region(field_name="identityNumber", box=tuple(BOX), confidence=90),
        "firstNameEn": Region(field_name="firstNameEn", box=tuple(THIN_BOX), confidence=90),
        "lastNameEn": Region.absent("lastNameEn"),
    }

    cropped = asyncio.run(
        cropper.crop_fields(card_png, regions, ["identityNumber", "firstNameEn", "lastNameEn", "titleEn"])
    )

    assert list(cropped) == ["identityNumber", "firstNameEn", "lastNameEn", "titleEn"]
    assert cropped["identityNumber"].image is not None
    assert cropped["firstNameEn"].image is None
    assert cropped["lastNameEn"].image is None
    assert cropped["titleEn"].image is None


def test_crop_fields_on_undecodable_image(cropper):
    regions = {"identityNumber": Region(field_name="identityNumber", box=tuple(BOX), confidence=90)}

    cropped = asyncio.run(cropper.crop_fields(b"garbage", regions, ["identityNumber"]))

    assert cropped["identityNumber"].image is None


def test_pillow_codec_jpeg_output(codec, card_png):
    from idcard_ocr.models.domain import PixelRect

    data = codec.extract_region(card_png, PixelRect(left=0, top=0, width=10, height=10), "JPEG")

    assert size_of(data) == ((10, 10), "JPEG")
