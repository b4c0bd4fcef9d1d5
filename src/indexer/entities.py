"""Derived-state entities and their store keys.

Entities are frozen dataclasses; handlers never mutate one in place, they
build the next version with ``dataclasses.replace`` and hand it back in a
WriteSet. Every id is a composed string, every address lower-cased.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum

from src.indexer.fixed_point import ZERO, day_id

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class PoolRelation(StrEnum):
    BUY = "BUY"  # tokens leave a pool
    SELL = "SELL"  # tokens enter a pool
    NONE = "NONE"


class LiquidityChange(StrEnum):
    ADD = "ADD"
    REMOVE = "REMOVE"


class PoolVersion(StrEnum):
    V3 = "V3"
    V4 = "V4"


# --- ids ---


def token_id(chain_id: int, address: str) -> str:
    return f"{chain_id}_{address.lower()}"


def account_id(chain_id: int, address: str) -> str:
    return f"{chain_id}_{address.lower()}"


def pool_id(chain_id: int, address: str) -> str:
    return f"{chain_id}_{address.lower()}"


def pool_v4_id(chain_id: int, v4_pool_id: str) -> str:
    return f"{chain_id}_{v4_pool_id.lower()}"


def registry_id(v4_pool_id: str) -> str:
    return v4_pool_id.lower()


def event_id(chain_id: int, block_number: int, log_index: int) -> str:
    """Id shared by all per-event records (Transfer, Swap, ...)."""
    return f"{chain_id}_{block_number}_{log_index}"


def daily_token_id(chain_id: int, timestamp: int) -> str:
    return f"{chain_id}_{day_id(timestamp)}"


def daily_pool_id(pool_key: str, timestamp: int) -> str:
    """``pool_key`` is the Pool / PoolV4 entity id."""
    return f"{pool_key}_{day_id(timestamp)}"


# --- entities ---


@dataclass(frozen=True)
class Observed:
    """When and in which transaction something was last seen."""

    timestamp: int
    tx_hash: str


@dataclass(frozen=True)
class Token:
    id: str
    chain_id: int
    address: str
    symbol: str
    name: str
    decimals: int
    total_supply: Decimal = ZERO
    total_transfers: int = 0
    total_volume: Decimal = ZERO
    holder_count: int = 0


@dataclass(frozen=True)
class Account:
    id: str
    chain_id: int
    address: str
    balance: Decimal = ZERO
    total_sent: Decimal = ZERO
    total_received: Decimal = ZERO
    transfer_count: int = 0
    # None until the first transfer (accounts can be created by a swap)
    first_transfer_at: int | None = None
    last_transfer_at: int | None = None
    last_buy: Observed | None = None
    last_sell: Observed | None = None
    total_buys: int = 0
    total_sells: int = 0
    total_buy_volume: Decimal = ZERO
    total_sell_volume: Decimal = ZERO

    @classmethod
    def new(cls, chain_id: int, address: str) -> "Account":
        return cls(id=account_id(chain_id, address), chain_id=chain_id, address=address.lower())


@dataclass(frozen=True)
class Pool:
    id: str
    chain_id: int
    address: str
    token0: str
    token1: str
    token0_symbol: str
    token0_name: str
    token0_decimals: int
    token1_symbol: str
    token1_name: str
    token1_decimals: int
    fee_tier: int
    tick_spacing: int
    liquidity: int = 0
    sqrt_price_x96: int = 0
    tick: int = 0
    is_active: bool = False
    volume_token0: Decimal = ZERO
    volume_token1: Decimal = ZERO
    tx_count: int = 0
    total_value_locked_token0: Decimal = ZERO
    total_value_locked_token1: Decimal = ZERO
    created_at: int = 0
    created_at_block: int = 0
    last_swap_at: int = 0


@dataclass(frozen=True)
class PoolV4:
    id: str
    chain_id: int
    pool_id: str
    currency0: str
    currency1: str
    fee: int
    tick_spacing: int
    hooks: str
    currency0_symbol: str
    currency0_name: str
    currency0_decimals: int
    currency1_symbol: str
    currency1_name: str
    currency1_decimals: int
    sqrt_price_x96: int = 0
    liquidity: int = 0
    tick: int = 0
    is_active: bool = False
    volume_currency0: Decimal = ZERO
    volume_currency1: Decimal = ZERO
    tx_count: int = 0
    total_value_locked_currency0: Decimal = ZERO
    total_value_locked_currency1: Decimal = ZERO
    created_at: int = 0
    created_at_block: int = 0
    last_swap_at: int = 0


@dataclass(frozen=True)
class PoolV4Registry:
    """Marks a v4 pool id as one that holds the tracked token."""

    id: str
    pool_id: str
    is_tracked: bool
    currency0: str
    currency1: str


@dataclass(frozen=True)
class Transfer:
    id: str
    chain_id: int
    tx_hash: str
    timestamp: int
    block_number: int
    log_index: int
    from_id: str
    to_id: str
    value: Decimal
    is_pool_related: bool
    pool_related_type: PoolRelation


@dataclass(frozen=True)
class Swap:
    id: str
    chain_id: int
    tx_hash: str
    timestamp: int
    block_number: int
    log_index: int
    pool: str
    sender: str
    recipient: str
    amount0: Decimal  # signed, negative = into the pool
    amount1: Decimal
    sqrt_price_x96: int
    liquidity: int
    tick: int


@dataclass(frozen=True)
class SwapV4:
    id: str
    chain_id: int
    tx_hash: str
    timestamp: int
    block_number: int
    log_index: int
    pool: str
    pool_id: str
    sender: str
    amount0: Decimal
    amount1: Decimal
    sqrt_price_x96: int
    liquidity: int
    tick: int
    swap_fee: int


@dataclass(frozen=True)
class ModifyLiquidityV4:
    id: str
    chain_id: int
    tx_hash: str
    timestamp: int
    block_number: int
    log_index: int
    pool: str
    pool_id: str
    sender: str
    tick_lower: int
    tick_upper: int
    liquidity_delta: int
    salt: str
    amount0: Decimal  # unsigned
    amount1: Decimal
    modification_type: LiquidityChange


@dataclass(frozen=True)
class DailyTokenActivity:
    id: str
    chain_id: int
    date: str
    timestamp: int
    daily_transfers: int = 0
    daily_volume: Decimal = ZERO
    daily_active_accounts: int = 0
    new_accounts: int = 0


@dataclass(frozen=True)
class DailyPoolActivity:
    id: str
    chain_id: int
    pool: str
    pool_version: PoolVersion
    date: str
    timestamp: int
    daily_swaps: int = 0
    daily_volume_token0: Decimal = ZERO
    daily_volume_token1: Decimal = ZERO
    daily_liquidity_adds: int = 0
    daily_liquidity_removes: int = 0
    liquidity_start: int = 0
    liquidity_end: int = 0
    sqrt_price_x96_start: int = 0
    sqrt_price_x96_end: int = 0


Entity = (
    Token
    | Account
    | Pool
    | PoolV4
    | PoolV4Registry
    | Transfer
    | Swap
    | SwapV4
    | ModifyLiquidityV4
    | DailyTokenActivity
    | DailyPoolActivity
)

ENTITY_TYPES: tuple[type, ...] = (
    Token,
    Account,
    Pool,
    PoolV4,
    PoolV4Registry,
    Transfer,
    Swap,
    SwapV4,
    ModifyLiquidityV4,
    DailyTokenActivity,
    DailyPoolActivity,
)
