"""
Абстрактный базовый класс для кодеков изображений
"""
from abc import ABC, abstractmethod

from idcard_ocr.models.domain import ImageMetadata, PixelRect


class BaseImageCodec(ABC):
    """
    Единый интерфейс для чтения размеров и вырезания регионов
    Методы синхронные, из async кода их вызывают через executor
    """

    @abstractmethod
    def decode_metadata(self, image: bytes) -> ImageMetadata:
        """
        Прочитать размеры изображения

        Args:
            image: Закодированное изображение

        Returns:
            ImageMetadata с шириной, высотой и форматом

        Raises:
            CodecError: Если изображение не декодируется
        """
        pass

    @abstractmethod
    def extract_region(self, image: bytes, rect: PixelRect, output_format: str = "PNG") -> bytes:
        """
        Вырезать прямоугольник и закодировать его заново

        Args:
            image: Закодированное исходное изображение
            rect: Прямоугольник в пикселях, уже ограниченный размерами изображения
            output_format: Формат результата (PNG, JPEG, WEBP)

        Returns:
            Байты нового изображения

        Raises:
            CodecError: Если изображение не декодируется или не кодируется
        """
        pass
