"""Pool data-quality checks.

Most bad pool data comes from wrong token decimals: a 6-decimal stablecoin
scaled as 18 decimals shows up as near-zero volume or as a volume ratio off
by many orders of magnitude.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from loguru import logger

from src.indexer.entities import Pool, PoolV4
from src.indexer.fixed_point import ZERO, safe_div
from src.indexer.metadata.static import TokenTable
from src.indexer.sql_store import SqlEntityStore

LOW_VOLUME_MIN_SWAPS = 100
LOW_VOLUME_THRESHOLD = Decimal("0.01")
MAX_VOLUME_RATIO = Decimal("1e9")


@dataclass
class PoolSide:
    address: str
    symbol: str
    decimals: int
    volume: Decimal


@dataclass
class PoolValidation:
    """Issues found for one pool; empty ``issues`` means it looks sane."""

    pool_id: str
    label: str
    issues: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues


def _sides(pool: Pool | PoolV4) -> tuple[PoolSide, PoolSide]:
    if isinstance(pool, PoolV4):
        return (
            PoolSide(pool.currency0, pool.currency0_symbol, pool.currency0_decimals, pool.volume_currency0),
            PoolSide(pool.currency1, pool.currency1_symbol, pool.currency1_decimals, pool.volume_currency1),
        )
    return (
        PoolSide(pool.token0, pool.token0_symbol, pool.token0_decimals, pool.volume_token0),
        PoolSide(pool.token1, pool.token1_symbol, pool.token1_decimals, pool.volume_token1),
    )


def validate_pool(pool: Pool | PoolV4, table: TokenTable) -> PoolValidation:
    """Check decimals against the known-token table and volumes against swaps."""
    side0, side1 = _sides(pool)
    result = PoolValidation(pool_id=pool.id, label=f"{side0.symbol}/{side1.symbol}")

    for index, side in enumerate((side0, side1)):
        known = table.get(side.address)
        if known is not None and known.decimals != side.decimals:
            result.issues.append(
                f"token{index} ({known.symbol}) has {side.decimals} decimals, expected {known.decimals}"
            )

    for index, side in enumerate((side0, side1)):
        if pool.tx_count > 0 and side.volume == ZERO:
            result.issues.append(f"{pool.tx_count} swaps but zero token{index} volume")
        elif pool.tx_count > LOW_VOLUME_MIN_SWAPS and side.volume < LOW_VOLUME_THRESHOLD:
            result.issues.append(
                f"{pool.tx_count} swaps but token{index} volume is only {side.volume}"
            )

    if side0.volume > ZERO and side1.volume > ZERO:
        ratio = safe_div(side0.volume, side1.volume)
        if ratio > MAX_VOLUME_RATIO or ratio < 1 / MAX_VOLUME_RATIO:
            result.issues.append(f"volume ratio {ratio:.2E} suggests a decimals mismatch")

    if result.issues:
        logger.warning(f"[POOL] {result.label} ({pool.id}): {'; '.join(result.issues)}")
    return result


def validate_pools(pools: list[Pool | PoolV4], table: TokenTable) -> list[PoolValidation]:
    """Validate every pool; returns only the ones with issues."""
    flagged = [r for r in (validate_pool(p, table) for p in pools) if not r.ok]
    logger.info(f"[POOL] Validated {len(pools)} pools, {len(flagged)} with issues")
    return flagged


async def validate_stored_pools(store: SqlEntityStore, table: TokenTable) -> list[PoolValidation]:
    """Validate every v3 and v4 pool persisted in ``store``."""
    pools: list[Pool | PoolV4] = [*await store.all(Pool), *await store.all(PoolV4)]
    return validate_pools(pools, table)
