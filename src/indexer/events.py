"""Typed on-chain events delivered by the ingestion layer.

``Event`` is a closed union discriminated by ``kind``; ``parse_event`` is the
only way raw payloads enter the engine.
"""

from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, Field, TypeAdapter, ValidationError

from src.indexer.exceptions import UnknownEventError

Address = Annotated[str, AfterValidator(str.lower)]


class EventMeta(BaseModel):
    """Block / transaction context common to every event."""

    chain_id: int
    block_number: int
    block_timestamp: int
    log_index: int
    tx_hash: str
    tx_from: Address | None = None  # transaction originator, not always available
    src_address: Address  # contract that emitted the log

    model_config = {"frozen": True}


class _EventBase(BaseModel):
    meta: EventMeta

    model_config = {"frozen": True, "populate_by_name": True}


class TransferEvent(_EventBase):
    kind: Literal["Transfer"] = "Transfer"
    from_address: Address = Field(alias="from")
    to_address: Address = Field(alias="to")
    value: int


class PoolCreatedEvent(_EventBase):
    """v3 factory PoolCreated."""

    kind: Literal["PoolCreated"] = "PoolCreated"
    token0: Address
    token1: Address
    fee: int
    tick_spacing: int
    pool: Address


class InitializeEvent(_EventBase):
    """v3 pool Initialize; the pool is ``meta.src_address``."""

    kind: Literal["Initialize"] = "Initialize"
    sqrt_price_x96: int
    tick: int


class SwapEvent(_EventBase):
    """v3 pool Swap; amounts are signed from the pool's point of view."""

    kind: Literal["Swap"] = "Swap"
    sender: Address
    recipient: Address
    amount0: int
    amount1: int
    sqrt_price_x96: int
    liquidity: int
    tick: int


class InitializeV4Event(_EventBase):
    kind: Literal["InitializeV4"] = "InitializeV4"
    pool_id: Address
    currency0: Address
    currency1: Address
    fee: int
    tick_spacing: int
    hooks: Address
    sqrt_price_x96: int
    tick: int


class SwapV4Event(_EventBase):
    kind: Literal["SwapV4"] = "SwapV4"
    pool_id: Address
    sender: Address
    amount0: int
    amount1: int
    sqrt_price_x96: int
    liquidity: int
    tick: int
    swap_fee: int = 0


class ModifyLiquidityEvent(_EventBase):
    kind: Literal["ModifyLiquidity"] = "ModifyLiquidity"
    pool_id: Address
    sender: Address
    tick_lower: int
    tick_upper: int
    liquidity_delta: int
    salt: str = "0x" + "0" * 64


class DonateEvent(_EventBase):
    kind: Literal["Donate"] = "Donate"
    pool_id: Address
    sender: Address
    amount0: int
    amount1: int


Event = Annotated[
    TransferEvent
    | PoolCreatedEvent
    | InitializeEvent
    | SwapEvent
    | InitializeV4Event
    | SwapV4Event
    | ModifyLiquidityEvent
    | DonateEvent,
    Field(discriminator="kind"),
]

_event_adapter: TypeAdapter[Event] = TypeAdapter(Event)


def parse_event(payload: dict) -> Event:
    """Validate a raw payload into its event variant.

    Raises UnknownEventError for unknown kinds or malformed payloads.
    """
    try:
        return _event_adapter.validate_python(payload)
    except ValidationError as e:
        raise UnknownEventError(
            f"Cannot parse event of kind {payload.get('kind')!r}: {e.error_count()} error(s)"
        ) from e
