"""v3 factory PoolCreated: start tracking pools that hold the tracked token."""

from loguru import logger

from src.indexer.entities import Pool, pool_id
from src.indexer.events import PoolCreatedEvent
from src.indexer.handlers.base import HandlerContext
from src.indexer.store import EntityReader, ReadSet, WriteSet, read_all


class PoolCreatedHandler:
    async def warm(self, event: PoolCreatedEvent, reader: EntityReader) -> ReadSet:
        return await read_all(reader, [(Pool, pool_id(event.meta.chain_id, event.pool))])

    async def apply(self, event: PoolCreatedEvent, reads: ReadSet, ctx: HandlerContext) -> WriteSet:
        meta = event.meta
        tracked = ctx.tracked_token
        if not (tracked.matches(event.token0) or tracked.matches(event.token1)):
            logger.debug(f"[POOL] Skipping pool {event.pool} without {tracked.symbol}")
            return WriteSet()

        key = pool_id(meta.chain_id, event.pool)
        if reads.get(Pool, key) is not None:
            logger.debug(f"[POOL] Pool {event.pool} already exists")
            return WriteSet()

        meta0, meta1 = await ctx.resolve_pair(event.token0, event.token1)
        pool = Pool(
            id=key,
            chain_id=meta.chain_id,
            address=event.pool,
            token0=event.token0,
            token1=event.token1,
            token0_symbol=meta0.symbol,
            token0_name=meta0.name,
            token0_decimals=meta0.decimals,
            token1_symbol=meta1.symbol,
            token1_name=meta1.name,
            token1_decimals=meta1.decimals,
            fee_tier=event.fee,
            tick_spacing=event.tick_spacing,
            created_at=meta.block_timestamp,
            created_at_block=meta.block_number,
        )
        logger.info(
            f"[POOL] New {meta0.symbol}/{meta1.symbol} pool {event.pool} "
            f"(fee {event.fee}) at block {meta.block_number}"
        )
        return WriteSet(entities=[pool], pools_to_track=[event.pool])
