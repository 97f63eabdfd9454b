"""
Ограниченная по параллельности обработка списка элементов волнами
"""
import asyncio
from typing import Awaitable, Callable, List, Sequence, TypeVar, Union

ItemT = TypeVar("ItemT")
ResultT = TypeVar("ResultT")


async def run_in_waves(
    items: Sequence[ItemT],
    worker: Callable[[ItemT], Awaitable[ResultT]],
    wave_size: int
) -> List[Union[ResultT, BaseException]]:
    """
    Выполнить worker для каждого элемента волнами фиксированного размера

    Элементы группируются по порядку в пачки по wave_size, каждая пачка
    дожидается полностью перед стартом следующей. Исключение одного
    элемента не отменяет соседей: на его месте в результате оказывается
    само исключение. wave_size=1 - строго последовательная обработка.

    Args:
        items: Элементы для обработки
        worker: Корутина, обрабатывающая один элемент
        wave_size: Сколько элементов обрабатывается одновременно

    Returns:
        Результаты (или исключения) в порядке входных элементов
    """
    if wave_size < 1:
        raise ValueError(f"wave_size must be positive, got {wave_size}")

    outcomes: List[Union[ResultT, BaseException]] = []
    for offset in range(0, len(items), wave_size):
        wave = items[offset:offset + wave_size]
        outcomes.extend(
            await asyncio.gather(*(worker(item) for item in wave), return_exceptions=True)
        )

    return outcomes
