"""
Вырезание фрагментов полей из исходного изображения
"""
import asyncio
from concurrent.futures import Executor
from typing import Dict, Iterable, Optional

from idcard_ocr.infrastructure.imaging.base_codec import BaseImageCodec
from idcard_ocr.models.domain import BoundingBox, CroppedRegion, ImageMetadata, Region
from idcard_ocr.services import geometry
from idcard_ocr.core.exceptions import CodecError, CropError, GeometryError
from idcard_ocr.core.logging import get_logger
from idcard_ocr.core import metrics

logger = get_logger(__name__)


class RegionCropper:
    """
    Вырезает по одному фрагменту на каждое найденное поле

    Ошибка одного поля не влияет на остальные поля того же изображения
    """

    def __init__(
        self,
        codec: BaseImageCodec,
        padding_x: int = geometry.PADDING_X,
        padding_y: int = geometry.PADDING_Y,
        output_format: str = "PNG",
        executor: Optional[Executor] = None
    ):
        """
        Args:
            codec: Кодек изображений
            padding_x: Горизонтальный отступ при переводе bbox в пиксели
            padding_y: Вертикальный отступ при переводе bbox в пиксели
            output_format: Формат вырезанных фрагментов
            executor: Пул потоков для вызовов кодека (None - пул по умолчанию)
        """
        self.codec = codec
        self.padding_x = padding_x
        self.padding_y = padding_y
        self.output_format = output_format
        self.executor = executor

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, func, *args)

    async def read_metadata(self, image: bytes) -> ImageMetadata:
        """Размеры изображения через кодек"""
        return await self._run(self.codec.decode_metadata, image)

    async def crop(
        self,
        image: bytes,
        box: BoundingBox,
        metadata: Optional[ImageMetadata] = None
    ) -> bytes:
        """
        Вырезать регион bbox из изображения

        Args:
            image: Закодированное исходное изображение
            box: [y_min, x_min, y_max, x_max] в диапазоне 0-1
            metadata: Уже прочитанные размеры (иначе читаются заново)

        Returns:
            Закодированный фрагмент

        Raises:
            GeometryError: bbox не проходит валидацию
            CropError: После обрезки по границам прямоугольник пустой
            CodecError: Кодек не смог прочитать или закодировать изображение
        """
        if not geometry.validate_box(box):
            raise GeometryError("Invalid bounding box coordinates", details={"box": box})

        if metadata is None:
            metadata = await self.read_metadata(image)

        rect = geometry.to_pixel_rect(
            box,
            metadata.width,
            metadata.height,
            padding_x=self.padding_x,
            padding_y=self.padding_y
        )
        clamped = geometry.clamp_rect(rect, metadata.width, metadata.height)

        if clamped.width <= 0 or clamped.height <= 0:
            raise CropError(
                "Invalid crop dimensions",
                details={
                    "width": clamped.width,
                    "height": clamped.height,
                    "image_width": metadata.width,
                    "image_height": metadata.height
                }
            )

        return await self._run(self.codec.extract_region, image, clamped, self.output_format)

    async def crop_fields(
        self,
        image: bytes,
        regions: Dict[str, Region],
        field_names: Iterable[str]
    ) -> Dict[str, CroppedRegion]:
        """
        Вырезать фрагменты для всех поддерживаемых полей

        Этот шаг никогда не падает: поле без bbox, с невалидным bbox или с
        ошибкой обрезки получает CroppedRegion с image=None.

        Args:
            image: Закодированное исходное изображение
            regions: Регионы полей после локализации
            field_names: Поддерживаемые поля

        Returns:
            Словарь field_name -> CroppedRegion по всем field_names
        """
        field_names = list(field_names)
        cropped: Dict[str, CroppedRegion] = {}

        try:
            metadata = await self.read_metadata(image)
        except CodecError as e:
            logger.warning("Cannot decode source image, skipping all crops", error=e.message)
            metrics.record_crop_failure("decode")
            return {name: CroppedRegion(field_name=name) for name in field_names}

        for field_name in field_names:
            region = regions.get(field_name)
            if region is None or region.box is None:
                cropped[field_name] = CroppedRegion(field_name=field_name)
                continue

            try:
                data = await self.crop(image, region.box, metadata=metadata)
                cropped[field_name] = CroppedRegion(field_name=field_name, image=data)
            except (GeometryError, CropError, CodecError) as e:
                logger.warning("Failed to crop field", field=field_name, error=e.message)
                metrics.record_crop_failure(type(e).__name__)
                cropped[field_name] = CroppedRegion(field_name=field_name)

        logger.debug(
            "Field regions cropped",
            cropped=sum(1 for item in cropped.values() if item.image is not None),
            total=len(field_names)
        )
        return cropped
