from decimal import Decimal

from sqlalchemy import BigInteger, Boolean, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.indexer.metadata.models import MAX_NAME_LENGTH, MAX_SYMBOL_LENGTH
from src.models.base import Base
from src.models.types import ExactDecimal, WideInteger


class Pool(Base):
    """Uniswap v3 pool holding the tracked token."""

    __tablename__ = "pools"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)  # {chainId}_{address}
    chain_id: Mapped[int] = mapped_column(Integer)
    address: Mapped[str] = mapped_column(String(42))
    token0: Mapped[str] = mapped_column(String(42))
    token1: Mapped[str] = mapped_column(String(42))
    token0_symbol: Mapped[str] = mapped_column(String(MAX_SYMBOL_LENGTH))
    token0_name: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH))
    token0_decimals: Mapped[int] = mapped_column(Integer)
    token1_symbol: Mapped[str] = mapped_column(String(MAX_SYMBOL_LENGTH))
    token1_name: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH))
    token1_decimals: Mapped[int] = mapped_column(Integer)
    fee_tier: Mapped[int] = mapped_column(Integer)
    tick_spacing: Mapped[int] = mapped_column(Integer)
    liquidity: Mapped[int] = mapped_column(WideInteger)
    sqrt_price_x96: Mapped[int] = mapped_column(WideInteger)
    tick: Mapped[int] = mapped_column(Integer)
    is_active: Mapped[bool] = mapped_column(Boolean)
    volume_token0: Mapped[Decimal] = mapped_column(ExactDecimal)
    volume_token1: Mapped[Decimal] = mapped_column(ExactDecimal)
    tx_count: Mapped[int] = mapped_column(BigInteger)
    total_value_locked_token0: Mapped[Decimal] = mapped_column(ExactDecimal)
    total_value_locked_token1: Mapped[Decimal] = mapped_column(ExactDecimal)
    created_at: Mapped[int] = mapped_column(BigInteger)
    created_at_block: Mapped[int] = mapped_column(BigInteger)
    last_swap_at: Mapped[int] = mapped_column(BigInteger)


class PoolV4(Base):
    """Uniswap v4 pool (singleton PoolManager) holding the tracked token."""

    __tablename__ = "pools_v4"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)  # {chainId}_{poolId}
    chain_id: Mapped[int] = mapped_column(Integer)
    pool_id: Mapped[str] = mapped_column(String(66))
    currency0: Mapped[str] = mapped_column(String(42))
    currency1: Mapped[str] = mapped_column(String(42))
    fee: Mapped[int] = mapped_column(Integer)
    tick_spacing: Mapped[int] = mapped_column(Integer)
    hooks: Mapped[str] = mapped_column(String(42))
    currency0_symbol: Mapped[str] = mapped_column(String(MAX_SYMBOL_LENGTH))
    currency0_name: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH))
    currency0_decimals: Mapped[int] = mapped_column(Integer)
    currency1_symbol: Mapped[str] = mapped_column(String(MAX_SYMBOL_LENGTH))
    currency1_name: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH))
    currency1_decimals: Mapped[int] = mapped_column(Integer)
    sqrt_price_x96: Mapped[int] = mapped_column(WideInteger)
    liquidity: Mapped[int] = mapped_column(WideInteger)
    tick: Mapped[int] = mapped_column(Integer)
    is_active: Mapped[bool] = mapped_column(Boolean)
    volume_currency0: Mapped[Decimal] = mapped_column(ExactDecimal)
    volume_currency1: Mapped[Decimal] = mapped_column(ExactDecimal)
    tx_count: Mapped[int] = mapped_column(BigInteger)
    total_value_locked_currency0: Mapped[Decimal] = mapped_column(ExactDecimal)
    total_value_locked_currency1: Mapped[Decimal] = mapped_column(ExactDecimal)
    created_at: Mapped[int] = mapped_column(BigInteger)
    created_at_block: Mapped[int] = mapped_column(BigInteger)
    last_swap_at: Mapped[int] = mapped_column(BigInteger)

    __table_args__ = (
        Index("idx_pools_v4_pool_id", "pool_id"),
    )


class PoolV4Registry(Base):
    __tablename__ = "pool_v4_registry"

    id: Mapped[str] = mapped_column(String(66), primary_key=True)  # poolId
    pool_id: Mapped[str] = mapped_column(String(66))
    is_tracked: Mapped[bool] = mapped_column(Boolean)
    currency0: Mapped[str] = mapped_column(String(42))
    currency1: Mapped[str] = mapped_column(String(42))


class Swap(Base):
    __tablename__ = "swaps"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    chain_id: Mapped[int] = mapped_column(Integer)
    tx_hash: Mapped[str] = mapped_column(String(66))
    timestamp: Mapped[int] = mapped_column(BigInteger)
    block_number: Mapped[int] = mapped_column(BigInteger)
    log_index: Mapped[int] = mapped_column(Integer)
    pool: Mapped[str] = mapped_column(String(100))
    sender: Mapped[str] = mapped_column(String(42))
    recipient: Mapped[str] = mapped_column(String(42))
    amount0: Mapped[Decimal] = mapped_column(ExactDecimal)
    amount1: Mapped[Decimal] = mapped_column(ExactDecimal)
    sqrt_price_x96: Mapped[int] = mapped_column(WideInteger)
    liquidity: Mapped[int] = mapped_column(WideInteger)
    tick: Mapped[int] = mapped_column(Integer)

    __table_args__ = (
        Index("idx_swaps_pool_time", "pool", "timestamp"),
    )


class SwapV4(Base):
    __tablename__ = "swaps_v4"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    chain_id: Mapped[int] = mapped_column(Integer)
    tx_hash: Mapped[str] = mapped_column(String(66))
    timestamp: Mapped[int] = mapped_column(BigInteger)
    block_number: Mapped[int] = mapped_column(BigInteger)
    log_index: Mapped[int] = mapped_column(Integer)
    pool: Mapped[str] = mapped_column(String(100))
    pool_id: Mapped[str] = mapped_column(String(66))
    sender: Mapped[str] = mapped_column(String(42))
    amount0: Mapped[Decimal] = mapped_column(ExactDecimal)
    amount1: Mapped[Decimal] = mapped_column(ExactDecimal)
    sqrt_price_x96: Mapped[int] = mapped_column(WideInteger)
    liquidity: Mapped[int] = mapped_column(WideInteger)
    tick: Mapped[int] = mapped_column(Integer)
    swap_fee: Mapped[int] = mapped_column(Integer)

    __table_args__ = (
        Index("idx_swaps_v4_pool_time", "pool", "timestamp"),
    )


class ModifyLiquidityV4(Base):
    __tablename__ = "modify_liquidity_v4"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    chain_id: Mapped[int] = mapped_column(Integer)
    tx_hash: Mapped[str] = mapped_column(String(66))
    timestamp: Mapped[int] = mapped_column(BigInteger)
    block_number: Mapped[int] = mapped_column(BigInteger)
    log_index: Mapped[int] = mapped_column(Integer)
    pool: Mapped[str] = mapped_column(String(100))
    pool_id: Mapped[str] = mapped_column(String(66))
    sender: Mapped[str] = mapped_column(String(42))
    tick_lower: Mapped[int] = mapped_column(Integer)
    tick_upper: Mapped[int] = mapped_column(Integer)
    liquidity_delta: Mapped[int] = mapped_column(WideInteger)
    salt: Mapped[str] = mapped_column(String(66))
    amount0: Mapped[Decimal] = mapped_column(ExactDecimal)
    amount1: Mapped[Decimal] = mapped_column(ExactDecimal)
    modification_type: Mapped[str] = mapped_column(String(10))  # ADD, REMOVE


class DailyPoolActivity(Base):
    __tablename__ = "daily_pool_activity"

    id: Mapped[str] = mapped_column(String(140), primary_key=True)  # {poolKey}_{YYYY-MM-DD}
    chain_id: Mapped[int] = mapped_column(Integer)
    pool: Mapped[str] = mapped_column(String(100))
    pool_version: Mapped[str] = mapped_column(String(4))  # V3, V4
    date: Mapped[str] = mapped_column(String(10))
    timestamp: Mapped[int] = mapped_column(BigInteger)
    daily_swaps: Mapped[int] = mapped_column(BigInteger)
    daily_volume_token0: Mapped[Decimal] = mapped_column(ExactDecimal)
    daily_volume_token1: Mapped[Decimal] = mapped_column(ExactDecimal)
    daily_liquidity_adds: Mapped[int] = mapped_column(BigInteger)
    daily_liquidity_removes: Mapped[int] = mapped_column(BigInteger)
    liquidity_start: Mapped[int] = mapped_column(WideInteger)
    liquidity_end: Mapped[int] = mapped_column(WideInteger)
    sqrt_price_x96_start: Mapped[int] = mapped_column(WideInteger)
    sqrt_price_x96_end: Mapped[int] = mapped_column(WideInteger)

    __table_args__ = (
        Index("idx_daily_pool_pool_date", "pool", "date"),
    )
