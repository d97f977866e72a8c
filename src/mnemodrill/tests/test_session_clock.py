"""Tests for the session clock."""
import asyncio
from typing import List

import pytest

from mnemodrill.services.session_clock import SessionClock


def test_ticks_count_down_and_expire_once() -> None:
    """Expiry listeners fire exactly once, when the clock reaches zero."""
    clock = SessionClock(3)
    remaining: List[int] = []
    expiries: List[bool] = []
    clock.add_listener(on_tick=remaining.append, on_expire=lambda: expiries.append(True))

    for _ in range(5):
        clock.tick()

    assert remaining == [2, 1, 0]
    assert expiries == [True]
    assert clock.expired is True
    assert clock.remaining == 0


def test_cancel_before_expiry() -> None:
    """A cancelled clock neither ticks nor expires."""
    clock = SessionClock(3)
    expiries: List[bool] = []
    clock.add_listener(on_expire=lambda: expiries.append(True))

    clock.tick()
    clock.cancel()
    clock.tick()
    clock.tick()

    assert clock.cancelled is True
    assert clock.remaining == 2
    assert expiries == []


def test_cancel_after_expiry_is_noop() -> None:
    clock = SessionClock(1)
    clock.tick()
    clock.cancel()

    assert clock.expired is True
    assert clock.cancelled is False


@pytest.mark.asyncio
async def test_running_clock_expires() -> None:
    """The background task ticks until expiry."""
    clock = SessionClock(3, tick_interval=0.01)
    expired = asyncio.Event()
    clock.add_listener(on_expire=expired.set)

    clock.start()
    assert clock.running

    await asyncio.wait_for(expired.wait(), timeout=1)
    assert clock.remaining == 0
    await asyncio.sleep(0)
    assert not clock.running


@pytest.mark.asyncio
async def test_running_clock_can_be_cancelled() -> None:
    clock = SessionClock(100, tick_interval=0.01)
    clock.start()
    await asyncio.sleep(0.05)

    clock.cancel()
    remaining = clock.remaining
    await asyncio.sleep(0.05)

    assert not clock.running
    assert clock.remaining == remaining
    assert clock.expired is False


if __name__ == "__main__":
    pytest.main([__file__])
