import asyncio

import pytest

from idcard_ocr.services.wave_runner import run_in_waves


def test_results_keep_input_order():
    async def worker(item):
        await asyncio.sleep(0.001 * (5 - item))
        return item * 10

    outcomes = asyncio.run(run_in_waves([1, 2, 3, 4], worker, 3))

    assert outcomes == [10, 20, 30, 40]


def test_exceptions_are_isolated():
    async def worker(item):
        if item == 2:
            raise RuntimeError("boom")
        return item

    outcomes = asyncio.run(run_in_waves([1, 2, 3], worker, 3))

    assert outcomes[0] == 1
    assert isinstance(outcomes[1], RuntimeError)
    assert outcomes[2] == 3


def test_waves_run_one_after_another():
    events = []

    async def worker(item):
        events.append(("start", item))
        await asyncio.sleep(0)
        events.append(("end", item))
        return item

    asyncio.run(run_in_waves([1, 2, 3, 4, 5], worker, 2))

    def position(event):
        return events.index(event)

    assert position(("start", 3)) > max(position(("end", 1)), position(("end", 2)))
    assert position(("start", 5)) > max(position(("end", 3)), position(("end", 4)))
    assert position(("start", 2)) < position(("end", 1))


def test_wave_size_one_is_sequential():
    events = []

    async def worker(item):
        events.append(("start", item))
        await asyncio.sleep(0)
        events.append(("end", item))

    asyncio.run(run_in_waves([1, 2, 3], worker, 1))

    assert events == [("start", 1), ("end", 1), ("start", 2), ("end", 2), ("start", 3), ("end", 3)]


def test_empty_input():
    async def worker(item):
        return item

    assert asyncio.run(run_in_waves([], worker, 5)) == []


@pytest.mark.parametrize("wave_size", [0, -1])
def test_rejects_non_positive_wave_size(wave_size):
    async def worker(item):
        return item

    with pytest.raises(ValueError):
        asyncio.run(run_in_waves([1], worker, wave_size))
