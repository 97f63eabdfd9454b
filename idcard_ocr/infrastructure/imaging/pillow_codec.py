"""
Кодек изображений на Pillow
"""
import io

from PIL import Image, UnidentifiedImageError

from idcard_ocr.infrastructure.imaging.base_codec import BaseImageCodec
from idcard_ocr.models.domain import ImageMetadata, PixelRect
from idcard_ocr.core.exceptions import CodecError
from idcard_ocr.core.logging import get_logger

logger = get_logger(__name__)

# Форматы без альфа-канала и палитры
_RGB_ONLY_FORMATS = {"JPEG", "JPG"}


class PillowImageCodec(BaseImageCodec):
    """Чтение размеров и вырезание регионов через PIL"""

    def __init__(self, jpeg_quality: int = 95):
        self.jpeg_quality = jpeg_quality

    def decode_metadata(self, image: bytes) -> ImageMetadata:
        try:
            with Image.open(io.BytesIO(image)) as img:
                width, height = img.size
                return ImageMetadata(width=width, height=height, format=img.format)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise CodecError(
                f"Failed to decode image: {str(e)}",
                details={"error": str(e)}
            )

    def extract_region(self, image: bytes, rect: PixelRect, output_format: str = "PNG") -> bytes:
        output_format = output_format.upper()
        try:
            with Image.open(io.BytesIO(image)) as img:
                region = img.crop((
                    rect.left,
                    rect.top,
                    rect.left + rect.width,
                    rect.top + rect.height
                ))

                if output_format in _RGB_ONLY_FORMATS and region.mode != "RGB":
                    region = region.convert("RGB")

                buffer = io.BytesIO()
                save_kwargs = {}
                if output_format in _RGB_ONLY_FORMATS:
                    output_format = "JPEG"
                    save_kwargs["quality"] = self.jpeg_quality
                region.save(buffer, format=output_format, **save_kwargs)

            logger.debug(
                "Region extracted",
                left=rect.left,
                top=rect.top,
                width=rect.width,
                height=rect.height,
                output_format=output_format
            )
            return buffer.getvalue()

        except (UnidentifiedImageError, OSError, ValueError, KeyError) as e:
            raise CodecError(
                f"Failed to extract image region: {str(e)}",
                details={"error": str(e), "rect": rect.__dict__}
            )
