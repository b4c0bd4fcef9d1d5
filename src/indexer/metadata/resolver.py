"""Metadata resolution strategies and the timeout guard handlers use."""

import asyncio
from typing import Protocol

from loguru import logger

from src.indexer.metadata.models import DEFAULT_METADATA, TokenMetadata
from src.indexer.metadata.rpc import RpcMetadataResolver
from src.indexer.metadata.static import StaticMetadataResolver


class MetadataResolver(Protocol):
    async def resolve(self, address: str) -> TokenMetadata: ...

    async def close(self) -> None: ...


class FallbackMetadataResolver:
    """Static table first, RPC for addresses the table does not know."""

    def __init__(self, static: StaticMetadataResolver, rpc: RpcMetadataResolver) -> None:
        self._static = static
        self._rpc = rpc

    async def resolve(self, address: str) -> TokenMetadata:
        known = self._static.lookup(address)
        if known is not None:
            return known
        logger.debug(f"[METADATA] {address.lower()} not in table, asking RPC")
        return await self._rpc.resolve(address)

    async def close(self) -> None:
        await self._rpc.close()


async def resolve_with_timeout(
    resolver: MetadataResolver, address: str, timeout: float
) -> TokenMetadata:
    """Resolve, treating a timeout like any other failure (defaults)."""
    try:
        return await asyncio.wait_for(resolver.resolve(address), timeout=timeout)
    except TimeoutError:
        logger.warning(
            f"[METADATA] Resolution of {address.lower()} timed out after {timeout}s, using defaults"
        )
        return DEFAULT_METADATA
