"""Wire settings into a ready-to-run engine."""

from loguru import logger

from config.settings import Settings
from src.indexer.engine import AggregationEngine, EventSource
from src.indexer.exceptions import ConfigurationError
from src.indexer.handlers.base import HandlerContext, TrackedToken
from src.indexer.metadata.models import TokenMetadata
from src.indexer.metadata.resolver import FallbackMetadataResolver, MetadataResolver
from src.indexer.metadata.rpc import RpcMetadataResolver
from src.indexer.metadata.static import (
    BASE_KNOWN_TOKENS,
    StaticMetadataResolver,
    TokenTable,
    TokenTableBuilder,
)
from src.indexer.store import EntityStore


def _tracked_metadata(settings: Settings) -> TokenMetadata:
    return TokenMetadata(
        symbol=settings.tracked_token_symbol,
        name=settings.tracked_token_name,
        decimals=settings.tracked_token_decimals,
    )


def build_tracked_token(settings: Settings) -> TrackedToken:
    meta = _tracked_metadata(settings)
    return TrackedToken(
        address=settings.tracked_token_address,
        symbol=meta.symbol,
        name=meta.name,
        decimals=meta.decimals,
    )


def build_token_table(settings: Settings) -> TokenTable:
    """Known Base tokens plus the configured tracked token."""
    return (
        TokenTableBuilder(BASE_KNOWN_TOKENS)
        .register(settings.tracked_token_address, _tracked_metadata(settings))
        .build()
    )


def build_resolver(settings: Settings, table: TokenTable) -> MetadataResolver:
    strategy = settings.metadata_strategy
    if strategy == "static":
        return StaticMetadataResolver(table)

    if not settings.rpc_url:
        raise ConfigurationError(f"metadata_strategy={strategy!r} requires RPC_URL")
    rpc = RpcMetadataResolver(
        settings.rpc_url,
        max_rps=settings.rpc_max_rps,
        timeout=settings.rpc_timeout_sec,
    )
    if settings.metadata_timeout_sec < rpc.max_latency:
        logger.warning(
            f"[METADATA] metadata_timeout_sec={settings.metadata_timeout_sec} is below the RPC "
            f"worst case of {rpc.max_latency}s, retries will be cut short"
        )
    if strategy == "rpc":
        return rpc
    return FallbackMetadataResolver(StaticMetadataResolver(table), rpc)


def build_engine(
    settings: Settings,
    store: EntityStore,
    *,
    source: EventSource | None = None,
) -> AggregationEngine:
    table = build_token_table(settings)
    ctx = HandlerContext(
        tracked_token=build_tracked_token(settings),
        resolver=build_resolver(settings, table),
        metadata_timeout=settings.metadata_timeout_sec,
    )
    logger.info(
        f"[ENGINE] Tracking {ctx.tracked_token.symbol} at {ctx.tracked_token.address} "
        f"(metadata: {settings.metadata_strategy}, {len(table)} known tokens)"
    )
    return AggregationEngine(
        store,
        ctx,
        source=source,
        preload_concurrency=settings.preload_concurrency,
    )
