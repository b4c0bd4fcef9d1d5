"""Shared handler plumbing: the commit-time context and common update rules."""

import asyncio
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Protocol, TypeVar

from src.indexer.entities import (
    Account,
    DailyPoolActivity,
    Observed,
    PoolRelation,
    PoolVersion,
)
from src.indexer.events import EventMeta
from src.indexer.fixed_point import ZERO, day_id, day_start, to_decimal
from src.indexer.metadata.models import TokenMetadata
from src.indexer.metadata.resolver import MetadataResolver, resolve_with_timeout
from src.indexer.store import EntityReader, ReadSet, WriteSet

Ev = TypeVar("Ev", contravariant=True)


@dataclass(frozen=True)
class TrackedToken:
    address: str
    symbol: str
    name: str
    decimals: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", self.address.lower())

    def matches(self, address: str) -> bool:
        return address.lower() == self.address


@dataclass(frozen=True)
class HandlerContext:
    """What ``apply`` may use besides its ReadSet."""

    tracked_token: TrackedToken
    resolver: MetadataResolver
    metadata_timeout: float = 5.0

    async def resolve_metadata(self, address: str) -> TokenMetadata:
        return await resolve_with_timeout(self.resolver, address, self.metadata_timeout)

    async def resolve_pair(self, a: str, b: str) -> tuple[TokenMetadata, TokenMetadata]:
        meta_a, meta_b = await asyncio.gather(
            self.resolve_metadata(a), self.resolve_metadata(b)
        )
        return meta_a, meta_b


class EventHandler(Protocol[Ev]):
    async def warm(self, event: Ev, reader: EntityReader) -> ReadSet: ...

    async def apply(self, event: Ev, reads: ReadSet, ctx: HandlerContext) -> WriteSet: ...


def signed_decimal(raw: int, decimals: int) -> tuple[Decimal, Decimal]:
    """(signed, unsigned) decimal amounts of a signed raw amount."""
    unsigned = to_decimal(abs(raw), decimals)
    return (-unsigned if raw < 0 else unsigned), unsigned


def classify_swap(
    tracked: TrackedToken,
    token0: str,
    token1: str,
    raw0: int,
    raw1: int,
    amount0: Decimal,
    amount1: Decimal,
) -> tuple[PoolRelation, Decimal]:
    """BUY/SELL by the sign of the tracked token's leg.

    Positive means the token left the pool (BUY), negative that it went in.
    """
    if tracked.matches(token0):
        raw, amount = raw0, amount0
    elif tracked.matches(token1):
        raw, amount = raw1, amount1
    else:
        return PoolRelation.NONE, ZERO
    if raw > 0:
        return PoolRelation.BUY, amount
    if raw < 0:
        return PoolRelation.SELL, amount
    return PoolRelation.NONE, ZERO


def record_trade(
    account: Account, relation: PoolRelation, amount: Decimal, meta: EventMeta
) -> Account:
    seen = Observed(timestamp=meta.block_timestamp, tx_hash=meta.tx_hash)
    if relation is PoolRelation.BUY:
        return replace(
            account,
            last_buy=seen,
            total_buys=account.total_buys + 1,
            total_buy_volume=account.total_buy_volume + amount,
        )
    if relation is PoolRelation.SELL:
        return replace(
            account,
            last_sell=seen,
            total_sells=account.total_sells + 1,
            total_sell_volume=account.total_sell_volume + amount,
        )
    return account


def touch_pool_day(
    day: DailyPoolActivity | None,
    *,
    day_key: str,
    chain_id: int,
    pool: str,
    version: PoolVersion,
    timestamp: int,
    liquidity: int,
    sqrt_price_x96: int,
) -> DailyPoolActivity:
    """Current day's row with this observation as its latest liquidity/price."""
    if day is None:
        return DailyPoolActivity(
            id=day_key,
            chain_id=chain_id,
            pool=pool,
            pool_version=version,
            date=day_id(timestamp),
            timestamp=day_start(timestamp),
            liquidity_start=liquidity,
            liquidity_end=liquidity,
            sqrt_price_x96_start=sqrt_price_x96,
            sqrt_price_x96_end=sqrt_price_x96,
        )
    return replace(day, liquidity_end=liquidity, sqrt_price_x96_end=sqrt_price_x96)
