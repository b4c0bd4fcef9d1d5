"""v4 PoolManager events: Initialize, Swap, ModifyLiquidity, Donate.

All v4 pools live in one singleton contract and are addressed by pool id.
The PoolV4Registry row decides whether an event concerns a tracked pool.
"""

from dataclasses import replace

from loguru import logger

from src.indexer.entities import (
    Account,
    DailyPoolActivity,
    LiquidityChange,
    ModifyLiquidityV4,
    PoolRelation,
    PoolV4,
    PoolV4Registry,
    PoolVersion,
    SwapV4,
    account_id,
    daily_pool_id,
    event_id,
    pool_v4_id,
    registry_id,
)
from src.indexer.events import (
    DonateEvent,
    InitializeV4Event,
    ModifyLiquidityEvent,
    SwapV4Event,
)
from src.indexer.fixed_point import to_decimal
from src.indexer.handlers.base import (
    HandlerContext,
    classify_swap,
    record_trade,
    signed_decimal,
    touch_pool_day,
)
from src.indexer.store import EntityReader, ReadSet, WriteSet, read_all
from src.indexer.tick_math import liquidity_amounts, sqrt_ratio_at_tick


def _is_tracked(reads: ReadSet, v4_pool_id: str) -> bool:
    registry = reads.get(PoolV4Registry, registry_id(v4_pool_id))
    return registry is not None and registry.is_tracked


class InitializeV4Handler:
    async def warm(self, event: InitializeV4Event, reader: EntityReader) -> ReadSet:
        return await read_all(reader, [
            (PoolV4Registry, registry_id(event.pool_id)),
            (PoolV4, pool_v4_id(event.meta.chain_id, event.pool_id)),
        ])

    async def apply(self, event: InitializeV4Event, reads: ReadSet, ctx: HandlerContext) -> WriteSet:
        meta = event.meta
        tracked = ctx.tracked_token
        if not (tracked.matches(event.currency0) or tracked.matches(event.currency1)):
            logger.debug(f"[POOL] Skipping v4 pool {event.pool_id} without {tracked.symbol}")
            return WriteSet()

        key = pool_v4_id(meta.chain_id, event.pool_id)
        if reads.get(PoolV4, key) is not None:
            logger.debug(f"[POOL] v4 pool {event.pool_id} already exists")
            return WriteSet()

        meta0, meta1 = await ctx.resolve_pair(event.currency0, event.currency1)
        registry = PoolV4Registry(
            id=registry_id(event.pool_id),
            pool_id=event.pool_id,
            is_tracked=True,
            currency0=event.currency0,
            currency1=event.currency1,
        )
        pool = PoolV4(
            id=key,
            chain_id=meta.chain_id,
            pool_id=event.pool_id,
            currency0=event.currency0,
            currency1=event.currency1,
            fee=event.fee,
            tick_spacing=event.tick_spacing,
            hooks=event.hooks,
            currency0_symbol=meta0.symbol,
            currency0_name=meta0.name,
            currency0_decimals=meta0.decimals,
            currency1_symbol=meta1.symbol,
            currency1_name=meta1.name,
            currency1_decimals=meta1.decimals,
            sqrt_price_x96=event.sqrt_price_x96,
            tick=event.tick,
            created_at=meta.block_timestamp,
            created_at_block=meta.block_number,
        )
        logger.info(
            f"[POOL] New v4 {meta0.symbol}/{meta1.symbol} pool {event.pool_id} "
            f"(fee {event.fee}) at block {meta.block_number}"
        )
        return WriteSet(entities=[registry, pool])


class SwapV4Handler:
    async def warm(self, event: SwapV4Event, reader: EntityReader) -> ReadSet:
        meta = event.meta
        key = pool_v4_id(meta.chain_id, event.pool_id)
        keys = [
            (PoolV4Registry, registry_id(event.pool_id)),
            (PoolV4, key),
            (DailyPoolActivity, daily_pool_id(key, meta.block_timestamp)),
            (SwapV4, event_id(meta.chain_id, meta.block_number, meta.log_index)),
        ]
        if meta.tx_from:
            keys.append((Account, account_id(meta.chain_id, meta.tx_from)))
        return await read_all(reader, keys)

    async def apply(self, event: SwapV4Event, reads: ReadSet, ctx: HandlerContext) -> WriteSet:
        if not _is_tracked(reads, event.pool_id):
            return WriteSet()

        meta = event.meta
        chain = meta.chain_id
        key = pool_v4_id(chain, event.pool_id)
        pool = reads.get(PoolV4, key)
        if pool is None:
            logger.warning(f"[SWAP] v4 pool {event.pool_id} not found, skipping swap")
            return WriteSet()

        record_id = event_id(chain, meta.block_number, meta.log_index)
        if reads.get(SwapV4, record_id) is not None:
            logger.debug(f"[SWAP] {record_id} already applied, skipping")
            return WriteSet()

        amount0, volume0 = signed_decimal(event.amount0, pool.currency0_decimals)
        amount1, volume1 = signed_decimal(event.amount1, pool.currency1_decimals)

        pool = replace(
            pool,
            sqrt_price_x96=event.sqrt_price_x96,
            liquidity=event.liquidity,
            tick=event.tick,
            volume_currency0=pool.volume_currency0 + volume0,
            volume_currency1=pool.volume_currency1 + volume1,
            tx_count=pool.tx_count + 1,
            last_swap_at=meta.block_timestamp,
            is_active=event.liquidity > 0,
        )

        swap = SwapV4(
            id=record_id,
            chain_id=chain,
            tx_hash=meta.tx_hash,
            timestamp=meta.block_timestamp,
            block_number=meta.block_number,
            log_index=meta.log_index,
            pool=key,
            pool_id=event.pool_id,
            sender=event.sender,
            amount0=amount0,
            amount1=amount1,
            sqrt_price_x96=event.sqrt_price_x96,
            liquidity=event.liquidity,
            tick=event.tick,
            swap_fee=event.swap_fee,
        )

        day_key = daily_pool_id(key, meta.block_timestamp)
        day = touch_pool_day(
            reads.get(DailyPoolActivity, day_key),
            day_key=day_key,
            chain_id=chain,
            pool=key,
            version=PoolVersion.V4,
            timestamp=meta.block_timestamp,
            liquidity=event.liquidity,
            sqrt_price_x96=event.sqrt_price_x96,
        )
        day = replace(
            day,
            daily_swaps=day.daily_swaps + 1,
            daily_volume_token0=day.daily_volume_token0 + volume0,
            daily_volume_token1=day.daily_volume_token1 + volume1,
        )

        writes = WriteSet(entities=[pool, swap, day])
        logger.debug(
            f"[SWAP] v4 {event.pool_id}: {event.amount0} / {event.amount1} at block {meta.block_number}"
        )

        relation, amount = classify_swap(
            ctx.tracked_token, pool.currency0, pool.currency1,
            event.amount0, event.amount1, volume0, volume1,
        )
        if relation is not PoolRelation.NONE:
            if not meta.tx_from:
                logger.warning(
                    f"[SWAP] v4 swap {record_id} has no transaction originator, skipping buy/sell tracking"
                )
            else:
                account = reads.get(Account, account_id(chain, meta.tx_from)) or Account.new(chain, meta.tx_from)
                writes.entities.append(record_trade(account, relation, amount, meta))

        return writes


class ModifyLiquidityHandler:
    async def warm(self, event: ModifyLiquidityEvent, reader: EntityReader) -> ReadSet:
        meta = event.meta
        key = pool_v4_id(meta.chain_id, event.pool_id)
        return await read_all(reader, [
            (PoolV4Registry, registry_id(event.pool_id)),
            (PoolV4, key),
            (DailyPoolActivity, daily_pool_id(key, meta.block_timestamp)),
            (ModifyLiquidityV4, event_id(meta.chain_id, meta.block_number, meta.log_index)),
        ])

    async def apply(self, event: ModifyLiquidityEvent, reads: ReadSet, ctx: HandlerContext) -> WriteSet:
        if not _is_tracked(reads, event.pool_id):
            return WriteSet()

        meta = event.meta
        chain = meta.chain_id
        key = pool_v4_id(chain, event.pool_id)
        pool = reads.get(PoolV4, key)
        if pool is None:
            logger.warning(f"[POOL] v4 pool {event.pool_id} not found, skipping ModifyLiquidity")
            return WriteSet()

        record_id = event_id(chain, meta.block_number, meta.log_index)
        if reads.get(ModifyLiquidityV4, record_id) is not None:
            logger.debug(f"[POOL] {record_id} already applied, skipping")
            return WriteSet()

        delta = event.liquidity_delta
        is_add = delta >= 0

        # TickOutOfRangeError propagates: a malformed range is fatal
        amounts = liquidity_amounts(
            pool.sqrt_price_x96,
            sqrt_ratio_at_tick(event.tick_lower),
            sqrt_ratio_at_tick(event.tick_upper),
            delta,
        )
        amount0 = to_decimal(abs(amounts.amount0), pool.currency0_decimals)
        amount1 = to_decimal(abs(amounts.amount1), pool.currency1_decimals)

        liquidity = pool.liquidity + delta
        if is_add:
            tvl0 = pool.total_value_locked_currency0 + amount0
            tvl1 = pool.total_value_locked_currency1 + amount1
        else:
            tvl0 = pool.total_value_locked_currency0 - amount0
            tvl1 = pool.total_value_locked_currency1 - amount1
        pool = replace(
            pool,
            liquidity=liquidity,
            is_active=liquidity > 0,
            total_value_locked_currency0=tvl0,
            total_value_locked_currency1=tvl1,
        )

        change = LiquidityChange.ADD if is_add else LiquidityChange.REMOVE
        record = ModifyLiquidityV4(
            id=record_id,
            chain_id=chain,
            tx_hash=meta.tx_hash,
            timestamp=meta.block_timestamp,
            block_number=meta.block_number,
            log_index=meta.log_index,
            pool=key,
            pool_id=event.pool_id,
            sender=event.sender,
            tick_lower=event.tick_lower,
            tick_upper=event.tick_upper,
            liquidity_delta=delta,
            salt=event.salt,
            amount0=amount0,
            amount1=amount1,
            modification_type=change,
        )

        day_key = daily_pool_id(key, meta.block_timestamp)
        day = touch_pool_day(
            reads.get(DailyPoolActivity, day_key),
            day_key=day_key,
            chain_id=chain,
            pool=key,
            version=PoolVersion.V4,
            timestamp=meta.block_timestamp,
            liquidity=liquidity,
            sqrt_price_x96=pool.sqrt_price_x96,
        )
        if is_add:
            day = replace(day, daily_liquidity_adds=day.daily_liquidity_adds + 1)
        else:
            day = replace(day, daily_liquidity_removes=day.daily_liquidity_removes + 1)

        logger.info(f"[POOL] v4 {event.pool_id}: {change} {delta} at block {meta.block_number}")
        return WriteSet(entities=[pool, record, day])


class DonateHandler:
    async def warm(self, event: DonateEvent, reader: EntityReader) -> ReadSet:
        return await read_all(reader, [(PoolV4Registry, registry_id(event.pool_id))])

    async def apply(self, event: DonateEvent, reads: ReadSet, ctx: HandlerContext) -> WriteSet:
        if _is_tracked(reads, event.pool_id):
            logger.info(
                f"[POOL] Donate to v4 {event.pool_id}: {event.amount0} / {event.amount1} "
                f"from {event.sender} at block {event.meta.block_number}"
            )
        return WriteSet()
