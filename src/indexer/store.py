"""Entity store facade: read/write protocols, ReadSet/WriteSet, caching.

Handlers see the store in two shapes. ``warm`` gets an ``EntityReader``
(``get`` only) and returns a ``ReadSet``; ``apply`` gets that ReadSet and
returns a ``WriteSet``. Only the engine ever writes.
"""

import asyncio
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Protocol, TypeVar

from loguru import logger

from src.indexer.entities import Entity

E = TypeVar("E")

Key = tuple[type, str]


class EntityReader(Protocol):
    async def get(self, kind: type[E], entity_id: str) -> E | None: ...


class EntityStore(EntityReader, Protocol):
    async def upsert(self, entities: Sequence[Entity]) -> None: ...


class ReadOnlyView:
    """Exposes only ``get`` of the wrapped store."""

    def __init__(self, store: EntityReader) -> None:
        self._store = store

    async def get(self, kind: type[E], entity_id: str) -> E | None:
        return await self._store.get(kind, entity_id)


@dataclass
class ReadSet:
    """Entities (or their absence) a handler looked up during warm."""

    values: dict[Key, object] = field(default_factory=dict)

    def get(self, kind: type[E], entity_id: str) -> E | None:
        try:
            return self.values[(kind, entity_id)]  # type: ignore[return-value]
        except KeyError:
            raise LookupError(
                f"{kind.__name__} {entity_id!r} was not read during warm"
            ) from None

    def __contains__(self, key: Key) -> bool:
        return key in self.values


async def read_all(reader: EntityReader, keys: Iterable[Key]) -> ReadSet:
    """Issue all lookups in parallel and collect them into a ReadSet."""
    unique = list(dict.fromkeys(keys))
    results = await asyncio.gather(*(reader.get(kind, eid) for kind, eid in unique))
    return ReadSet(values=dict(zip(unique, results)))


@dataclass
class WriteSet:
    entities: list[Entity] = field(default_factory=list)
    pools_to_track: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.entities and not self.pools_to_track


class InMemoryEntityStore:
    """Dict-backed store for tests and dry runs."""

    def __init__(self) -> None:
        self._rows: dict[Key, Entity] = {}

    async def get(self, kind: type[E], entity_id: str) -> E | None:
        return self._rows.get((kind, entity_id))  # type: ignore[return-value]

    async def upsert(self, entities: Sequence[Entity]) -> None:
        for entity in entities:
            self._rows[(type(entity), entity.id)] = entity

    def all(self, kind: type[E]) -> list[E]:
        return [e for (k, _), e in self._rows.items() if k is kind]  # type: ignore[misc]

    def __len__(self) -> int:
        return len(self._rows)


class CachedEntityStore:
    """Write-through cache in front of a slower store.

    Absence is cached too, so a preload pass that found nothing does not make
    the commit pass ask again. Writes update the cache before the next read.
    """

    def __init__(self, inner: EntityStore) -> None:
        self._inner = inner
        self._cache: dict[Key, Entity | None] = {}
        self.hits = 0
        self.misses = 0

    @property
    def inner(self) -> EntityStore:
        return self._inner

    async def get(self, kind: type[E], entity_id: str) -> E | None:
        key = (kind, entity_id)
        if key in self._cache:
            self.hits += 1
            return self._cache[key]  # type: ignore[return-value]
        self.misses += 1
        value = await self._inner.get(kind, entity_id)
        # a concurrent write may have landed while we were reading
        return self._cache.setdefault(key, value)  # type: ignore[return-value]

    async def upsert(self, entities: Sequence[Entity]) -> None:
        await self._inner.upsert(entities)
        for entity in entities:
            self._cache[(type(entity), entity.id)] = entity

    def clear(self) -> None:
        logger.debug(f"[ENGINE] Dropping {len(self._cache)} cached entities")
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)
