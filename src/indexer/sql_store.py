"""SQLAlchemy-backed entity store.

One table per entity kind (``src.models``), keyed by the entity's composed
id. Writes are dialect upserts; the caller owns the transaction and commits
after each batch.
"""

import asyncio
from collections.abc import Sequence
from dataclasses import fields
from enum import StrEnum
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from src import models
from src.indexer import entities
from src.indexer.entities import Entity, LiquidityChange, Observed, PoolRelation, PoolVersion

E = TypeVar("E")

MODELS: dict[type, type[models.Base]] = {
    entities.Token: models.Token,
    entities.Account: models.Account,
    entities.Transfer: models.Transfer,
    entities.DailyTokenActivity: models.DailyTokenActivity,
    entities.Pool: models.Pool,
    entities.PoolV4: models.PoolV4,
    entities.PoolV4Registry: models.PoolV4Registry,
    entities.Swap: models.Swap,
    entities.SwapV4: models.SwapV4,
    entities.ModifyLiquidityV4: models.ModifyLiquidityV4,
    entities.DailyPoolActivity: models.DailyPoolActivity,
}

_ENUM_COLUMNS: dict[str, type[StrEnum]] = {
    "pool_related_type": PoolRelation,
    "modification_type": LiquidityChange,
    "pool_version": PoolVersion,
}

_OBSERVED_FIELDS = ("last_buy", "last_sell")


def to_row(entity: Entity) -> dict[str, Any]:
    row: dict[str, Any] = {}
    for f in fields(entity):
        value = getattr(entity, f.name)
        if f.name in _OBSERVED_FIELDS:
            row[f"{f.name}_at"] = value.timestamp if value else None
            row[f"{f.name}_hash"] = value.tx_hash if value else None
        elif isinstance(value, StrEnum):
            row[f.name] = value.value
        else:
            row[f.name] = value
    return row


def from_row(kind: type[E], row: Any) -> E:
    values: dict[str, Any] = {}
    for f in fields(kind):
        if f.name in _OBSERVED_FIELDS:
            at = getattr(row, f"{f.name}_at")
            values[f.name] = (
                Observed(timestamp=at, tx_hash=getattr(row, f"{f.name}_hash"))
                if at is not None
                else None
            )
        elif f.name in _ENUM_COLUMNS:
            values[f.name] = _ENUM_COLUMNS[f.name](getattr(row, f.name))
        else:
            values[f.name] = getattr(row, f.name)
    return kind(**values)


class SqlEntityStore:
    """Entity store over one AsyncSession.

    An AsyncSession is not safe for concurrent use; calls are serialized.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._lock = asyncio.Lock()

    def _insert(self):
        dialect = self._session.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert
        if dialect == "sqlite":
            return sqlite_insert
        raise NotImplementedError(f"Upsert not supported on {dialect}")

    async def get(self, kind: type[E], entity_id: str) -> E | None:
        table = MODELS[kind].__table__
        async with self._lock:
            result = await self._session.execute(select(table).where(table.c.id == entity_id))
            row = result.first()
        if row is None:
            return None
        return from_row(kind, row)

    async def all(self, kind: type[E]) -> list[E]:
        table = MODELS[kind].__table__
        async with self._lock:
            result = await self._session.execute(select(table).order_by(table.c.id))
            rows = result.all()
        return [from_row(kind, row) for row in rows]

    async def upsert(self, entities_: Sequence[Entity]) -> None:
        insert = self._insert()
        async with self._lock:
            for entity in entities_:
                model = MODELS[type(entity)]
                row = to_row(entity)
                stmt = insert(model).values(**row)
                stmt = stmt.on_conflict_do_update(
                    index_elements=["id"],
                    set_={k: stmt.excluded[k] for k in row if k != "id"},
                )
                await self._session.execute(stmt)
            await self._session.flush()

    async def commit(self) -> None:
        async with self._lock:
            await self._session.commit()
        logger.debug("[ENGINE] Store committed")
