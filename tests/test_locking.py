"""
Tests for the per-owner lock registry.
"""

import asyncio
import gc

import pytest

from timelog.services.locking import OwnerLocks


@pytest.mark.asyncio
async def test_same_owner_shares_lock_while_in_use():
    locks = OwnerLocks()

    async with locks.for_owner(1):
        assert locks.for_owner(1) is locks.for_owner(1)
        assert locks.for_owner(1).locked()
        assert not locks.for_owner(2).locked()


@pytest.mark.asyncio
async def test_released_locks_are_dropped():
    locks = OwnerLocks()

    for owner_id in range(100):
        async with locks.for_owner(owner_id):
            pass
    gc.collect()

    assert len(locks) == 0


@pytest.mark.asyncio
async def test_waiter_gets_the_held_lock():
    locks = OwnerLocks()
    order = []

    async def hold(name):
        async with locks.for_owner(1):
            order.append(f"{name} in")
            await asyncio.sleep(0)
            order.append(f"{name} out")

    await asyncio.gather(hold("a"), hold("b"))

    assert order == ["a in", "a out", "b in", "b out"]


@pytest.mark.asyncio
async def test_timeline_locks_do_not_accumulate(timeline):
    for owner_id in range(1, 20):
        await timeline.start(owner_id, "Work")
        await timeline.stop(owner_id)
    gc.collect()

    assert len(timeline.locks) == 0
