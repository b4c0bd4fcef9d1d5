"""Tests for v3 pool handlers: PoolCreated, Initialize, Swap."""

from decimal import Decimal

import pytest

from conftest import CHAIN, ONE_PING, PING, POOL, TRADER, USDC, WETH
from src.indexer.entities import (
    Account,
    DailyPoolActivity,
    Pool,
    PoolVersion,
    Swap,
    account_id,
    daily_pool_id,
    event_id,
    pool_id,
)
from src.indexer.tick_math import Q96

POOL_KEY = pool_id(CHAIN, POOL)
DAI = "0x50c5725949a6f0c72e6c4a641f24049a917db0cb"


async def _pool(store) -> Pool:
    return await store.get(Pool, POOL_KEY)


async def _trader(store) -> Account | None:
    return await store.get(Account, account_id(CHAIN, TRADER))


class TestPoolCreated:
    @pytest.mark.asyncio
    async def test_tracked_pool_is_created(self, engine, memory_store, events, source):
        event = events.pool_created(USDC, PING, fee=500)
        writes = await engine.handle(event)

        pool = await _pool(memory_store)
        assert pool.token0 == USDC
        assert pool.token0_symbol == "USDC"
        assert pool.token0_decimals == 6
        assert pool.token1_symbol == "PING"
        assert pool.token1_decimals == 18
        assert pool.fee_tier == 500
        assert pool.liquidity == 0
        assert pool.is_active is False
        assert pool.volume_token0 == Decimal(0)
        assert pool.created_at_block == event.meta.block_number

        assert writes.pools_to_track == [POOL]
        source.register_pool.assert_awaited_once_with(POOL)

    @pytest.mark.asyncio
    async def test_tracked_token_match_ignores_case(self, engine, memory_store, events):
        await engine.handle(events.pool_created(WETH, PING.upper().replace("0X", "0x")))
        assert await _pool(memory_store) is not None

    @pytest.mark.asyncio
    async def test_untracked_pool_is_skipped(self, engine, memory_store, events, source):
        writes = await engine.handle(events.pool_created(USDC, DAI))

        assert writes.is_empty
        assert await _pool(memory_store) is None
        source.register_pool.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_token_metadata_defaults(self, engine, memory_store, events):
        unknown = "0x7777777777777777777777777777777777777777"
        await engine.handle(events.pool_created(unknown, PING))

        pool = await _pool(memory_store)
        assert pool.token0_symbol == "UNKNOWN"
        assert pool.token0_decimals == 18

    @pytest.mark.asyncio
    async def test_duplicate_creation_keeps_first(self, engine, memory_store, events):
        await engine.handle(events.pool_created(USDC, PING, fee=500))
        writes = await engine.handle(events.pool_created(USDC, PING, fee=3000))

        assert writes.is_empty
        assert (await _pool(memory_store)).fee_tier == 500


class TestInitialize:
    @pytest.mark.asyncio
    async def test_initialize_activates_pool(self, engine, memory_store, events):
        await engine.handle(events.pool_created(USDC, PING))
        await engine.handle(events.initialize(sqrt_price_x96=2 * Q96, tick=13_863))

        pool = await _pool(memory_store)
        assert pool.sqrt_price_x96 == 2 * Q96
        assert pool.tick == 13_863
        assert pool.is_active is True

    @pytest.mark.asyncio
    async def test_unknown_pool_is_skipped(self, engine, memory_store, events):
        writes = await engine.handle(events.initialize())
        assert writes.is_empty
        assert len(memory_store) == 0


class TestSwap:
    @pytest.mark.asyncio
    async def test_usdc_in_ping_out(self, engine, memory_store, events):
        """1 USDC (6 dp) enters, 1 PING (18 dp) leaves: a BUY by the originator."""
        await engine.handle(events.pool_created(USDC, PING))
        swap_event = events.swap(-1_000_000, ONE_PING, liquidity=5 * 10**18)
        await engine.handle(swap_event)

        swap = await memory_store.get(
            Swap, event_id(CHAIN, swap_event.meta.block_number, swap_event.meta.log_index)
        )
        assert swap.amount0 == Decimal(-1)
        assert swap.amount1 == Decimal(1)
        assert swap.pool == POOL_KEY
        assert swap.sender == TRADER

        pool = await _pool(memory_store)
        assert pool.volume_token0 == Decimal(1)
        assert pool.volume_token1 == Decimal(1)
        assert pool.tx_count == 1
        assert pool.liquidity == 5 * 10**18
        assert pool.is_active is True
        assert pool.last_swap_at == swap_event.meta.block_timestamp

        trader = await _trader(memory_store)
        assert trader.total_buys == 1
        assert trader.total_buy_volume == Decimal(1)
        assert trader.last_buy.tx_hash == swap_event.meta.tx_hash
        assert trader.total_sells == 0

    @pytest.mark.asyncio
    async def test_ping_in_is_sell(self, engine, memory_store, events):
        await engine.handle(events.pool_created(USDC, PING))
        await engine.handle(events.swap(2_500_000, -3 * ONE_PING))

        trader = await _trader(memory_store)
        assert trader.total_sells == 1
        assert trader.total_sell_volume == Decimal(3)
        assert trader.last_buy is None

    @pytest.mark.asyncio
    async def test_ping_as_token0(self, engine, memory_store, events):
        await engine.handle(events.pool_created(PING, WETH))
        await engine.handle(events.swap(4 * ONE_PING, -(10**17)))

        trader = await _trader(memory_store)
        assert trader.total_buys == 1
        assert trader.total_buy_volume == Decimal(4)

    @pytest.mark.asyncio
    async def test_zero_liquidity_deactivates(self, engine, memory_store, events):
        await engine.handle(events.pool_created(USDC, PING))
        await engine.handle(events.initialize())
        await engine.handle(events.swap(-1_000_000, ONE_PING, liquidity=0))

        assert (await _pool(memory_store)).is_active is False

    @pytest.mark.asyncio
    async def test_unknown_pool_is_skipped(self, engine, memory_store, events):
        writes = await engine.handle(events.swap(-1_000_000, ONE_PING))
        assert writes.is_empty
        assert len(memory_store) == 0

    @pytest.mark.asyncio
    async def test_missing_originator_skips_buy_sell_only(self, engine, memory_store, events):
        await engine.handle(events.pool_created(USDC, PING))
        await engine.handle(events.swap(-1_000_000, ONE_PING, tx_from=None))

        assert (await _pool(memory_store)).tx_count == 1
        assert await _trader(memory_store) is None

    @pytest.mark.asyncio
    async def test_replayed_swap_is_skipped(self, engine, memory_store, events):
        await engine.handle(events.pool_created(USDC, PING))
        swap_event = events.swap(-1_000_000, ONE_PING)
        await engine.handle(swap_event)
        await engine.handle(swap_event)

        assert (await _pool(memory_store)).tx_count == 1
        assert (await _trader(memory_store)).total_buys == 1

    @pytest.mark.asyncio
    async def test_daily_pool_activity(self, engine, memory_store, events):
        await engine.handle(events.pool_created(USDC, PING))
        await engine.handle(events.swap(-1_000_000, ONE_PING, liquidity=100, sqrt_price_x96=Q96))
        await engine.handle(events.swap(3_000_000, -2 * ONE_PING, liquidity=250, sqrt_price_x96=2 * Q96))

        day = await memory_store.get(DailyPoolActivity, daily_pool_id(POOL_KEY, events.timestamp))
        assert day.pool == POOL_KEY
        assert day.pool_version is PoolVersion.V3
        assert day.daily_swaps == 2
        assert day.daily_volume_token0 == Decimal(4)
        assert day.daily_volume_token1 == Decimal(3)
        assert day.liquidity_start == 100
        assert day.liquidity_end == 250
        assert day.sqrt_price_x96_start == Q96
        assert day.sqrt_price_x96_end == 2 * Q96
        assert day.date == "2023-11-14"
