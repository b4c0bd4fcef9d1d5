"""Tests for v4 PoolManager handlers."""

from decimal import Decimal

import pytest

from conftest import CHAIN, ETH, ONE_PING, PING, TRADER, USDC, V4_POOL_ID
from src.indexer.entities import (
    Account,
    DailyPoolActivity,
    LiquidityChange,
    ModifyLiquidityV4,
    PoolV4,
    PoolV4Registry,
    PoolVersion,
    SwapV4,
    account_id,
    daily_pool_id,
    event_id,
    pool_v4_id,
)
from src.indexer.exceptions import TickOutOfRangeError
from src.indexer.tick_math import MAX_TICK, Q96

POOL_KEY = pool_v4_id(CHAIN, V4_POOL_ID)
ONE_WEI = Decimal("1e-18")


async def _pool(store) -> PoolV4:
    return await store.get(PoolV4, POOL_KEY)


def _record_id(event) -> str:
    return event_id(CHAIN, event.meta.block_number, event.meta.log_index)


class TestInitializeV4:
    @pytest.mark.asyncio
    async def test_creates_registry_and_pool(self, engine, memory_store, events):
        await engine.handle(events.initialize_v4(ETH, PING, sqrt_price_x96=Q96, tick=0))

        registry = await memory_store.get(PoolV4Registry, V4_POOL_ID)
        assert registry.is_tracked
        assert registry.currency1 == PING

        pool = await _pool(memory_store)
        assert pool.currency0_symbol == "ETH"
        assert pool.currency0_decimals == 18
        assert pool.currency1_symbol == "PING"
        assert pool.sqrt_price_x96 == Q96
        assert pool.liquidity == 0
        assert pool.is_active is False
        assert pool.hooks == ETH

    @pytest.mark.asyncio
    async def test_untracked_pool_is_skipped(self, engine, memory_store, events):
        writes = await engine.handle(events.initialize_v4(ETH, USDC))
        assert writes.is_empty
        assert await memory_store.get(PoolV4Registry, V4_POOL_ID) is None

    @pytest.mark.asyncio
    async def test_pool_id_is_lower_cased(self, engine, memory_store, events):
        await engine.handle(events.initialize_v4(ETH, PING, pool_id="0x" + "AB" * 32))
        assert await memory_store.get(PoolV4Registry, V4_POOL_ID) is not None


class TestSwapV4:
    @pytest.mark.asyncio
    async def test_swap_updates_pool_and_marks_sell(self, engine, memory_store, events):
        await engine.handle(events.initialize_v4(ETH, PING))
        swap_event = events.swap_v4(5 * 10**17, -2 * ONE_PING, liquidity=10**19, tick=-5)
        await engine.handle(swap_event)

        swap = await memory_store.get(SwapV4, _record_id(swap_event))
        assert swap.amount0 == Decimal("0.5")
        assert swap.amount1 == Decimal(-2)
        assert swap.pool_id == V4_POOL_ID
        assert swap.swap_fee == 3000

        pool = await _pool(memory_store)
        assert pool.volume_currency0 == Decimal("0.5")
        assert pool.volume_currency1 == Decimal(2)
        assert pool.tx_count == 1
        assert pool.tick == -5
        assert pool.is_active is True

        trader = await memory_store.get(Account, account_id(CHAIN, TRADER))
        assert trader.total_sells == 1
        assert trader.total_sell_volume == Decimal(2)

        day = await memory_store.get(DailyPoolActivity, daily_pool_id(POOL_KEY, events.timestamp))
        assert day.pool_version is PoolVersion.V4
        assert day.daily_swaps == 1

    @pytest.mark.asyncio
    async def test_unregistered_pool_is_ignored(self, engine, memory_store, events):
        writes = await engine.handle(events.swap_v4(1, -1))
        assert writes.is_empty
        assert len(memory_store) == 0

    @pytest.mark.asyncio
    async def test_missing_originator(self, engine, memory_store, events):
        await engine.handle(events.initialize_v4(ETH, PING))
        await engine.handle(events.swap_v4(-(10**17), ONE_PING, tx_from=None))

        assert (await _pool(memory_store)).tx_count == 1
        assert await memory_store.get(Account, account_id(CHAIN, TRADER)) is None

    @pytest.mark.asyncio
    async def test_uses_stored_decimals(self, engine, memory_store, events):
        """USDC side of a v4 pool is scaled by the pool's own 6 decimals."""
        await engine.handle(events.initialize_v4(USDC, PING))
        swap_event = events.swap_v4(-7_000_000, ONE_PING)
        await engine.handle(swap_event)

        swap = await memory_store.get(SwapV4, _record_id(swap_event))
        assert swap.amount0 == Decimal(-7)
        trader = await memory_store.get(Account, account_id(CHAIN, TRADER))
        assert trader.total_buys == 1


class TestModifyLiquidity:
    @pytest.mark.asyncio
    async def test_add_in_range(self, engine, memory_store, events):
        await engine.handle(events.initialize_v4(ETH, PING))
        event = events.modify_liquidity(-60, 60, 10**18)
        await engine.handle(event)

        pool = await _pool(memory_store)
        assert pool.liquidity == 10**18
        assert pool.is_active is True
        assert pool.total_value_locked_currency0 > 0
        assert pool.total_value_locked_currency1 > 0

        record = await memory_store.get(ModifyLiquidityV4, _record_id(event))
        assert record.modification_type is LiquidityChange.ADD
        assert record.liquidity_delta == 10**18
        assert record.amount0 == pool.total_value_locked_currency0
        assert record.amount1 == pool.total_value_locked_currency1
        assert record.tick_lower == -60

        day = await memory_store.get(DailyPoolActivity, daily_pool_id(POOL_KEY, events.timestamp))
        assert day.daily_liquidity_adds == 1
        assert day.daily_liquidity_removes == 0
        assert day.liquidity_end == 10**18

    @pytest.mark.asyncio
    async def test_add_then_remove(self, engine, memory_store, events):
        await engine.handle(events.initialize_v4(ETH, PING))
        await engine.handle(events.modify_liquidity(-60, 60, 10**18))
        removal = events.modify_liquidity(-60, 60, -(10**18))
        await engine.handle(removal)

        pool = await _pool(memory_store)
        assert pool.liquidity == 0
        assert pool.is_active is False
        # adds round up, removals round down: at most one wei left behind
        assert 0 <= pool.total_value_locked_currency0 <= ONE_WEI
        assert 0 <= pool.total_value_locked_currency1 <= ONE_WEI

        record = await memory_store.get(ModifyLiquidityV4, _record_id(removal))
        assert record.modification_type is LiquidityChange.REMOVE
        assert record.amount0 > 0

        day = await memory_store.get(DailyPoolActivity, daily_pool_id(POOL_KEY, events.timestamp))
        assert day.daily_liquidity_adds == 1
        assert day.daily_liquidity_removes == 1

    @pytest.mark.asyncio
    async def test_range_above_price_is_token0_only(self, engine, memory_store, events):
        await engine.handle(events.initialize_v4(ETH, PING))
        event = events.modify_liquidity(60, 120, 10**18)
        await engine.handle(event)

        record = await memory_store.get(ModifyLiquidityV4, _record_id(event))
        assert record.amount0 > 0
        assert record.amount1 == Decimal(0)

    @pytest.mark.asyncio
    async def test_range_below_price_is_token1_only(self, engine, memory_store, events):
        await engine.handle(events.initialize_v4(ETH, PING))
        event = events.modify_liquidity(-120, -60, 10**18)
        await engine.handle(event)

        record = await memory_store.get(ModifyLiquidityV4, _record_id(event))
        assert record.amount0 == Decimal(0)
        assert record.amount1 > 0

    @pytest.mark.asyncio
    async def test_tick_out_of_range_is_fatal(self, engine, events):
        await engine.handle(events.initialize_v4(ETH, PING))
        with pytest.raises(TickOutOfRangeError):
            await engine.handle(events.modify_liquidity(-60, MAX_TICK + 1, 10**18))

    @pytest.mark.asyncio
    async def test_unregistered_pool_is_ignored(self, engine, memory_store, events):
        writes = await engine.handle(events.modify_liquidity(-60, 60, 10**18))
        assert writes.is_empty

    @pytest.mark.asyncio
    async def test_replay_is_skipped(self, engine, memory_store, events):
        await engine.handle(events.initialize_v4(ETH, PING))
        event = events.modify_liquidity(-60, 60, 10**18)
        await engine.handle(event)
        await engine.handle(event)

        assert (await _pool(memory_store)).liquidity == 10**18


class TestDonate:
    @pytest.mark.asyncio
    async def test_donate_writes_nothing(self, engine, memory_store, events):
        await engine.handle(events.initialize_v4(ETH, PING))
        before = len(memory_store)
        writes = await engine.handle(events.donate(10**15, 0))

        assert writes.is_empty
        assert len(memory_store) == before

    @pytest.mark.asyncio
    async def test_donate_to_unknown_pool(self, engine, events):
        writes = await engine.handle(events.donate(1, 1, pool_id="0x" + "cd" * 32))
        assert writes.is_empty
