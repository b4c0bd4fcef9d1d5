"""Two-phase aggregation engine.

Events arrive in (block, log index) order. A batch first goes through a
preload pass (every handler's ``warm``, concurrently, filling the cache),
then a commit pass that re-runs ``warm`` against the warm cache, calls
``apply`` and writes the result, strictly one event at a time.
"""

import asyncio
from collections.abc import Sequence
from decimal import localcontext
from typing import Protocol, assert_never

from loguru import logger

from src.indexer.events import (
    DonateEvent,
    Event,
    InitializeEvent,
    InitializeV4Event,
    ModifyLiquidityEvent,
    PoolCreatedEvent,
    SwapEvent,
    SwapV4Event,
    TransferEvent,
)
from src.indexer.fixed_point import EXACT_CONTEXT
from src.indexer.handlers.base import EventHandler, HandlerContext
from src.indexer.handlers.factory import PoolCreatedHandler
from src.indexer.handlers.initialize import InitializeHandler
from src.indexer.handlers.pool_manager import (
    DonateHandler,
    InitializeV4Handler,
    ModifyLiquidityHandler,
    SwapV4Handler,
)
from src.indexer.handlers.swap import SwapHandler
from src.indexer.handlers.transfer import TransferHandler
from src.indexer.store import CachedEntityStore, EntityStore, ReadOnlyView, WriteSet


class EventSource(Protocol):
    """Ingestion side: starts delivering events of newly discovered pools."""

    async def register_pool(self, address: str) -> None: ...


class AggregationEngine:
    def __init__(
        self,
        store: EntityStore,
        ctx: HandlerContext,
        *,
        source: EventSource | None = None,
        preload_concurrency: int = 32,
    ) -> None:
        self._store = store if isinstance(store, CachedEntityStore) else CachedEntityStore(store)
        self._reader = ReadOnlyView(self._store)
        self._ctx = ctx
        self._source = source
        self._preload_limit = asyncio.Semaphore(max(1, preload_concurrency))

        self._transfer = TransferHandler(ctx.tracked_token)
        self._pool_created = PoolCreatedHandler()
        self._initialize = InitializeHandler()
        self._swap = SwapHandler()
        self._initialize_v4 = InitializeV4Handler()
        self._swap_v4 = SwapV4Handler()
        self._modify_liquidity = ModifyLiquidityHandler()
        self._donate = DonateHandler()

        self.events_committed = 0
        self.events_skipped = 0

    @property
    def store(self) -> CachedEntityStore:
        return self._store

    def _handler_for(self, event: Event) -> EventHandler:
        match event:
            case TransferEvent():
                return self._transfer
            case PoolCreatedEvent():
                return self._pool_created
            case InitializeEvent():
                return self._initialize
            case SwapEvent():
                return self._swap
            case InitializeV4Event():
                return self._initialize_v4
            case SwapV4Event():
                return self._swap_v4
            case ModifyLiquidityEvent():
                return self._modify_liquidity
            case DonateEvent():
                return self._donate
            case _:
                assert_never(event)

    async def handle(self, event: Event, *, is_preload: bool = False) -> WriteSet | None:
        """Run one event through its handler.

        With ``is_preload`` only the read phase runs and nothing is written.
        Returns the committed WriteSet otherwise.
        """
        handler = self._handler_for(event)
        reads = await handler.warm(event, self._reader)
        if is_preload:
            return None

        with localcontext(EXACT_CONTEXT):
            writes = await handler.apply(event, reads, self._ctx)

        if writes.entities:
            await self._store.upsert(writes.entities)
            self.events_committed += 1
        else:
            self.events_skipped += 1

        if writes.pools_to_track:
            if self._source is None:
                logger.warning(
                    f"[ENGINE] No event source to register {len(writes.pools_to_track)} pool(s) with"
                )
            else:
                for address in writes.pools_to_track:
                    await self._source.register_pool(address)
                    logger.info(f"[ENGINE] Tracking pool {address}")
        return writes

    async def preload(self, events: Sequence[Event]) -> None:
        async def _warm(event: Event) -> None:
            async with self._preload_limit:
                await self.handle(event, is_preload=True)

        await asyncio.gather(*(_warm(e) for e in events))

    async def commit(self, events: Sequence[Event]) -> None:
        for event in events:
            await self.handle(event)

    async def process_batch(self, events: Sequence[Event]) -> None:
        if not events:
            return
        first, last = events[0].meta, events[-1].meta
        with logger.contextualize(chain=first.chain_id, blocks=f"{first.block_number}-{last.block_number}"):
            await self.preload(events)
            logger.debug(
                f"[ENGINE] Preloaded {len(events)} events "
                f"(cache {len(self._store)}, hits {self._store.hits}, misses {self._store.misses})"
            )
            await self.commit(events)
            logger.info(
                f"[ENGINE] Committed {len(events)} events, "
                f"{self.events_committed} applied, {self.events_skipped} skipped in total"
            )

    def release_cache(self) -> None:
        """Forget cached entities once the underlying store has committed them."""
        self._store.clear()

    async def close(self) -> None:
        await self._ctx.resolver.close()
