"""Shared test fixtures."""

import itertools
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from config.settings import settings
from src.indexer.engine import AggregationEngine
from src.indexer.events import (
    DonateEvent,
    EventMeta,
    InitializeEvent,
    InitializeV4Event,
    ModifyLiquidityEvent,
    PoolCreatedEvent,
    SwapEvent,
    SwapV4Event,
    TransferEvent,
)
from src.indexer.handlers.base import HandlerContext, TrackedToken
from src.indexer.metadata.static import StaticMetadataResolver, default_token_table
from src.indexer.store import InMemoryEntityStore
from src.indexer.tick_math import Q96
from src.models.base import Base

CHAIN = 8453
PING = "0xd85c31854c2b0fb40aaa9e2fc4da23c21f829d46"
USDC = "0x833589fcd6edb6e08f4c7c32d4f71b54bda02913"
WETH = "0x4200000000000000000000000000000000000006"
ETH = "0x0000000000000000000000000000000000000000"
POOL = "0xbc51db8aec659027ae0b0e468c0735418161a780"
V4_POOL_ID = "0x" + "ab" * 32
TRADER = "0x1111111111111111111111111111111111111111"
ALICE = "0xa11ce00000000000000000000000000000000001"
BOB = "0xb0b0000000000000000000000000000000000002"
CAROL = "0xca201000000000000000000000000000000000c3"
TS = 1_700_000_000  # 2023-11-14 22:13:20 UTC
ONE_PING = 10**18


class EventFactory:
    """Builds events with increasing (block, log index)."""

    def __init__(self) -> None:
        self._log_index = itertools.count()
        self.block = 1_000
        self.timestamp = TS

    def meta(self, **overrides) -> EventMeta:
        log_index = next(self._log_index)
        values = {
            "chain_id": CHAIN,
            "block_number": self.block,
            "block_timestamp": self.timestamp,
            "log_index": log_index,
            "tx_hash": f"0x{log_index:064x}",
            "tx_from": TRADER,
            "src_address": PING,
        }
        values.update(overrides)
        return EventMeta(**values)

    def transfer(self, sender: str, recipient: str, value: int, **meta) -> TransferEvent:
        return TransferEvent(
            meta=self.meta(**meta), from_address=sender, to_address=recipient, value=value
        )

    def pool_created(
        self, token0: str = USDC, token1: str = PING, pool: str = POOL, fee: int = 3000, **meta
    ) -> PoolCreatedEvent:
        return PoolCreatedEvent(
            meta=self.meta(**meta), token0=token0, token1=token1, fee=fee, tick_spacing=60, pool=pool
        )

    def initialize(self, sqrt_price_x96: int = Q96, tick: int = 0, pool: str = POOL) -> InitializeEvent:
        return InitializeEvent(
            meta=self.meta(src_address=pool), sqrt_price_x96=sqrt_price_x96, tick=tick
        )

    def swap(
        self,
        amount0: int,
        amount1: int,
        *,
        liquidity: int = 10**20,
        sqrt_price_x96: int = Q96,
        tick: int = 0,
        pool: str = POOL,
        **meta,
    ) -> SwapEvent:
        return SwapEvent(
            meta=self.meta(src_address=pool, **meta),
            sender=TRADER,
            recipient=TRADER,
            amount0=amount0,
            amount1=amount1,
            sqrt_price_x96=sqrt_price_x96,
            liquidity=liquidity,
            tick=tick,
        )

    def initialize_v4(
        self,
        currency0: str = ETH,
        currency1: str = PING,
        *,
        pool_id: str = V4_POOL_ID,
        sqrt_price_x96: int = Q96,
        tick: int = 0,
    ) -> InitializeV4Event:
        return InitializeV4Event(
            meta=self.meta(src_address=WETH),
            pool_id=pool_id,
            currency0=currency0,
            currency1=currency1,
            fee=3000,
            tick_spacing=60,
            hooks=ETH,
            sqrt_price_x96=sqrt_price_x96,
            tick=tick,
        )

    def swap_v4(
        self,
        amount0: int,
        amount1: int,
        *,
        pool_id: str = V4_POOL_ID,
        liquidity: int = 10**20,
        sqrt_price_x96: int = Q96,
        tick: int = 0,
        **meta,
    ) -> SwapV4Event:
        return SwapV4Event(
            meta=self.meta(src_address=WETH, **meta),
            pool_id=pool_id,
            sender=TRADER,
            amount0=amount0,
            amount1=amount1,
            sqrt_price_x96=sqrt_price_x96,
            liquidity=liquidity,
            tick=tick,
            swap_fee=3000,
        )

    def modify_liquidity(
        self, tick_lower: int, tick_upper: int, liquidity_delta: int, *, pool_id: str = V4_POOL_ID
    ) -> ModifyLiquidityEvent:
        return ModifyLiquidityEvent(
            meta=self.meta(src_address=WETH),
            pool_id=pool_id,
            sender=TRADER,
            tick_lower=tick_lower,
            tick_upper=tick_upper,
            liquidity_delta=liquidity_delta,
        )

    def donate(self, amount0: int, amount1: int, *, pool_id: str = V4_POOL_ID) -> DonateEvent:
        return DonateEvent(
            meta=self.meta(src_address=WETH),
            pool_id=pool_id,
            sender=TRADER,
            amount0=amount0,
            amount1=amount1,
        )


@pytest.fixture
def events() -> EventFactory:
    return EventFactory()


@pytest.fixture
def tracked() -> TrackedToken:
    return TrackedToken(address=PING, symbol="PING", name="Ping", decimals=18)


@pytest.fixture
def ctx(tracked) -> HandlerContext:
    return HandlerContext(
        tracked_token=tracked,
        resolver=StaticMetadataResolver(default_token_table()),
        metadata_timeout=1.0,
    )


@pytest.fixture
def memory_store() -> InMemoryEntityStore:
    return InMemoryEntityStore()


@pytest.fixture
def source() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def engine(memory_store, ctx, source) -> AggregationEngine:
    return AggregationEngine(memory_store, ctx, source=source, preload_concurrency=4)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh engine+session per test on the test database.

    SQLite in-memory needs a single shared connection (StaticPool); any other
    URL gets NullPool so connections are never reused across event loops.
    """
    url = settings.test_database_url
    pool_class = StaticPool if url.startswith("sqlite") else NullPool
    db_engine = create_async_engine(url, echo=False, poolclass=pool_class)
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()

    await db_engine.dispose()
