import asyncio
from unittest.mock import MagicMock

import pytest

from locale_lint.concurrency import CancellationToken, map_limit


@pytest.mark.asyncio
async def test_processes_every_item_within_the_limit():
    in_flight = 0
    peak = 0
    seen = []

    async def work(item):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0)
        seen.append(item)
        in_flight -= 1

    outcome = await map_limit(list(range(20)), 3, work)

    assert outcome.processed == 20
    assert outcome.cancelled is False
    assert sorted(seen) == list(range(20))
    assert peak <= 3


@pytest.mark.asyncio
async def test_one_failure_does_not_stop_the_pool():
    seen = []

    async def work(item):
        if item == 2:
            raise ValueError("boom")
        seen.append(item)

    outcome = await map_limit([1, 2, 3, 4], 2, work)

    assert outcome.processed == 4
    assert sorted(seen) == [1, 3, 4]


@pytest.mark.asyncio
async def test_cancellation_stops_before_next_item():
    token = CancellationToken()
    seen = []

    async def work(item):
        seen.append(item)
        if item == 1:
            token.cancel()
        await asyncio.sleep(0)

    outcome = await map_limit(list(range(10)), 1, work, cancel_token=token)

    assert seen == [0, 1]
    assert outcome.processed == 2
    assert outcome.cancelled is True


@pytest.mark.asyncio
async def test_progress_bar_is_advanced_per_item():
    progress = MagicMock()

    async def work(item):
        return None

    await map_limit(["a", "b", "c"], 8, work, progress=progress)

    assert progress.update.call_count == 3


@pytest.mark.asyncio
async def test_empty_input():
    async def work(item):
        raise AssertionError("not called")

    outcome = await map_limit([], 4, work)

    assert outcome.processed == 0
    assert outcome.cancelled is False


def test_cancellation_token_flag():
    token = CancellationToken()
    assert token.cancelled is False
    token.cancel()
    assert token.cancelled is True
