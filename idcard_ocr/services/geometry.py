"""
Геометрия bounding box: проверка нормализованных координат и перевод в пиксели
"""
import math
from numbers import Real
from typing import Any, Sequence

from idcard_ocr.models.domain import PixelRect

# Отступы по умолчанию: левый край расширяется на PADDING_X,
# верхний край сдвигается вниз на PADDING_Y
PADDING_X = 10
PADDING_Y = 10


def _is_coordinate(value: Any) -> bool:
    """Конечное число в диапазоне 0-1 (bool не считается числом)"""
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    value = float(value)
    return math.isfinite(value) and 0.0 <= value <= 1.0


def validate_box(box: Any) -> bool:
    """
    Проверка bounding box [y_min, x_min, y_max, x_max]

    Args:
        box: Кандидат в bounding box в любом виде

    Returns:
        True, если ровно четыре конечных числа в 0-1, y_min < y_max и x_min < x_max
    """
    if not isinstance(box, (list, tuple)) or len(box) != 4:
        return False

    if not all(_is_coordinate(value) for value in box):
        return False

    y_min, x_min, y_max, x_max = box
    return y_min < y_max and x_min < x_max


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def to_pixel_rect(
    box: Sequence[float],
    image_width: int,
    image_height: int,
    padding_x: int = PADDING_X,
    padding_y: int = PADDING_Y
) -> PixelRect:
    """
    Перевод нормализованного bbox в пиксельный прямоугольник

    Отступ применяется асимметрично: прямоугольник сдвигается влево и вниз,
    правый и нижний края остаются на месте. Результат может выходить за
    пределы изображения, обрезку делает clamp_rect.

    Args:
        box: Провалидированный bbox [y_min, x_min, y_max, x_max]
        image_width: Ширина изображения в пикселях
        image_height: Высота изображения в пикселях
        padding_x: Горизонтальный отступ в пикселях
        padding_y: Вертикальный отступ в пикселях

    Returns:
        PixelRect со смещением и размерами
    """
    y_min, x_min, y_max, x_max = box

    return PixelRect(
        left=_round_half_up(x_min * image_width) - padding_x,
        top=_round_half_up(y_min * image_height) + padding_y,
        width=_round_half_up((x_max - x_min) * image_width) + padding_x,
        height=_round_half_up((y_max - y_min) * image_height) - padding_y,
    )


def clamp_rect(rect: PixelRect, image_width: int, image_height: int) -> PixelRect:
    """
    Ограничить прямоугольник границами изображения

    Смещения не бывают отрицательными, правый и нижний края не выходят за
    ширину и высоту. Ширина или высота результата может оказаться <= 0,
    это проверяет вызывающий код.
    """
    left = max(0, rect.left)
    top = max(0, rect.top)
    right = min(rect.left + rect.width, image_width)
    bottom = min(rect.top + rect.height, image_height)

    return PixelRect(left=left, top=top, width=right - left, height=bottom - top)
