"""Indexer runtime: feeds ingestion batches through the engine into the database."""

from collections.abc import AsyncIterable

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from config.settings import settings
from src.db.database import async_session_factory, create_schema, engine
from src.indexer.bootstrap import build_engine
from src.indexer.engine import EventSource
from src.indexer.events import parse_event
from src.indexer.sql_store import SqlEntityStore
from src.utils.logger import setup_logger


async def run_indexer(
    batches: AsyncIterable[list[dict]],
    source: EventSource | None = None,
    *,
    session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
    db_engine: AsyncEngine = engine,
) -> None:
    """Consume ordered event batches until the ingestion side stops.

    Each batch is committed as one transaction after its commit pass; the
    entity cache is dropped after every commit, the database holds the state.
    """
    setup_logger(json_logs=settings.json_logs, level=settings.log_level)
    logger.info("Starting pool-radar indexer...")
    await create_schema(db_engine)

    async with session_factory() as session:
        store = SqlEntityStore(session)
        indexer = build_engine(settings, store, source=source)
        try:
            async for raw_batch in batches:
                events = [parse_event(payload) for payload in raw_batch]
                await indexer.process_batch(events)
                await store.commit()
                indexer.release_cache()
        finally:
            await indexer.close()

    await db_engine.dispose()
    logger.info("Shutdown complete")
