"""v3 pool Swap: pool state, volumes, swap record, originator buy/sell."""

from dataclasses import replace

from loguru import logger

from src.indexer.entities import (
    Account,
    DailyPoolActivity,
    Pool,
    PoolRelation,
    PoolVersion,
    Swap,
    account_id,
    daily_pool_id,
    event_id,
    pool_id,
)
from src.indexer.events import SwapEvent
from src.indexer.handlers.base import (
    HandlerContext,
    classify_swap,
    record_trade,
    signed_decimal,
    touch_pool_day,
)
from src.indexer.store import EntityReader, ReadSet, WriteSet, read_all


class SwapHandler:
    async def warm(self, event: SwapEvent, reader: EntityReader) -> ReadSet:
        meta = event.meta
        key = pool_id(meta.chain_id, meta.src_address)
        keys = [
            (Pool, key),
            (DailyPoolActivity, daily_pool_id(key, meta.block_timestamp)),
            (Swap, event_id(meta.chain_id, meta.block_number, meta.log_index)),
        ]
        if meta.tx_from:
            keys.append((Account, account_id(meta.chain_id, meta.tx_from)))
        return await read_all(reader, keys)

    async def apply(self, event: SwapEvent, reads: ReadSet, ctx: HandlerContext) -> WriteSet:
        meta = event.meta
        chain = meta.chain_id
        key = pool_id(chain, meta.src_address)

        pool = reads.get(Pool, key)
        if pool is None:
            logger.warning(f"[SWAP] Pool {meta.src_address} not found, skipping swap")
            return WriteSet()

        record_id = event_id(chain, meta.block_number, meta.log_index)
        if reads.get(Swap, record_id) is not None:
            logger.debug(f"[SWAP] {record_id} already applied, skipping")
            return WriteSet()

        amount0, volume0 = signed_decimal(event.amount0, pool.token0_decimals)
        amount1, volume1 = signed_decimal(event.amount1, pool.token1_decimals)

        pool = replace(
            pool,
            liquidity=event.liquidity,
            sqrt_price_x96=event.sqrt_price_x96,
            tick=event.tick,
            is_active=event.liquidity > 0,
            volume_token0=pool.volume_token0 + volume0,
            volume_token1=pool.volume_token1 + volume1,
            tx_count=pool.tx_count + 1,
            last_swap_at=meta.block_timestamp,
        )

        swap = Swap(
            id=record_id,
            chain_id=chain,
            tx_hash=meta.tx_hash,
            timestamp=meta.block_timestamp,
            block_number=meta.block_number,
            log_index=meta.log_index,
            pool=key,
            sender=event.sender,
            recipient=event.recipient,
            amount0=amount0,
            amount1=amount1,
            sqrt_price_x96=event.sqrt_price_x96,
            liquidity=event.liquidity,
            tick=event.tick,
        )

        day_key = daily_pool_id(key, meta.block_timestamp)
        day = touch_pool_day(
            reads.get(DailyPoolActivity, day_key),
            day_key=day_key,
            chain_id=chain,
            pool=key,
            version=PoolVersion.V3,
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

        relation, amount = classify_swap(
            ctx.tracked_token, pool.token0, pool.token1,
            event.amount0, event.amount1, volume0, volume1,
        )
        if relation is not PoolRelation.NONE:
            if not meta.tx_from:
                logger.warning(
                    f"[SWAP] No transaction originator for {record_id}, skipping buy/sell tracking"
                )
            else:
                account = reads.get(Account, account_id(chain, meta.tx_from)) or Account.new(chain, meta.tx_from)
                writes.entities.append(record_trade(account, relation, amount, meta))
                logger.debug(f"[SWAP] {relation} {amount} {ctx.tracked_token.symbol} by {meta.tx_from}")

        return writes
