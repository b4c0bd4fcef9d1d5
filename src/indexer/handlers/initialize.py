from dataclasses import replace

from loguru import logger

from src.indexer.entities import Pool, pool_id
from src.indexer.events import InitializeEvent
from src.indexer.handlers.base import HandlerContext
from src.indexer.store import EntityReader, ReadSet, WriteSet, read_all


class InitializeHandler:
    """v3 Initialize: first price of a pool created through the factory."""

    async def warm(self, event: InitializeEvent, reader: EntityReader) -> ReadSet:
        return await read_all(reader, [(Pool, pool_id(event.meta.chain_id, event.meta.src_address))])

    async def apply(self, event: InitializeEvent, reads: ReadSet, ctx: HandlerContext) -> WriteSet:
        address = event.meta.src_address
        pool = reads.get(Pool, pool_id(event.meta.chain_id, address))
        if pool is None:
            logger.warning(f"[POOL] Initialize for unknown pool {address}, skipping")
            return WriteSet()

        pool = replace(
            pool,
            sqrt_price_x96=event.sqrt_price_x96,
            tick=event.tick,
            is_active=True,
        )
        logger.info(f"[POOL] Pool {address} initialized at tick {event.tick}")
        return WriteSet(entities=[pool])
