from decimal import Decimal

from sqlalchemy import BigInteger, Boolean, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.indexer.metadata.models import MAX_NAME_LENGTH, MAX_SYMBOL_LENGTH
from src.models.base import Base
from src.models.types import ExactDecimal


class Token(Base):
    __tablename__ = "tokens"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)  # {chainId}_{address}
    chain_id: Mapped[int] = mapped_column(Integer)
    address: Mapped[str] = mapped_column(String(42))
    symbol: Mapped[str] = mapped_column(String(MAX_SYMBOL_LENGTH))
    name: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH))
    decimals: Mapped[int] = mapped_column(Integer)
    total_supply: Mapped[Decimal] = mapped_column(ExactDecimal)
    total_transfers: Mapped[int] = mapped_column(BigInteger)
    total_volume: Mapped[Decimal] = mapped_column(ExactDecimal)
    holder_count: Mapped[int] = mapped_column(BigInteger)


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    chain_id: Mapped[int] = mapped_column(Integer)
    address: Mapped[str] = mapped_column(String(42))
    balance: Mapped[Decimal] = mapped_column(ExactDecimal)
    total_sent: Mapped[Decimal] = mapped_column(ExactDecimal)
    total_received: Mapped[Decimal] = mapped_column(ExactDecimal)
    transfer_count: Mapped[int] = mapped_column(BigInteger)
    first_transfer_at: Mapped[int | None] = mapped_column(BigInteger)
    last_transfer_at: Mapped[int | None] = mapped_column(BigInteger)

    # Buy / sell tracking
    last_buy_at: Mapped[int | None] = mapped_column(BigInteger)
    last_buy_hash: Mapped[str | None] = mapped_column(String(66))
    last_sell_at: Mapped[int | None] = mapped_column(BigInteger)
    last_sell_hash: Mapped[str | None] = mapped_column(String(66))
    total_buys: Mapped[int] = mapped_column(BigInteger)
    total_sells: Mapped[int] = mapped_column(BigInteger)
    total_buy_volume: Mapped[Decimal] = mapped_column(ExactDecimal)
    total_sell_volume: Mapped[Decimal] = mapped_column(ExactDecimal)

    __table_args__ = (
        Index("idx_accounts_address", "address"),
    )


class Transfer(Base):
    __tablename__ = "transfers"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)  # {chainId}_{block}_{logIndex}
    chain_id: Mapped[int] = mapped_column(Integer)
    tx_hash: Mapped[str] = mapped_column(String(66))
    timestamp: Mapped[int] = mapped_column(BigInteger)
    block_number: Mapped[int] = mapped_column(BigInteger)
    log_index: Mapped[int] = mapped_column(Integer)
    from_id: Mapped[str] = mapped_column(String(100))
    to_id: Mapped[str] = mapped_column(String(100))
    value: Mapped[Decimal] = mapped_column(ExactDecimal)
    is_pool_related: Mapped[bool] = mapped_column(Boolean)
    pool_related_type: Mapped[str] = mapped_column(String(10))  # BUY, SELL, NONE

    __table_args__ = (
        Index("idx_transfers_from", "from_id"),
        Index("idx_transfers_to", "to_id"),
        Index("idx_transfers_timestamp", "timestamp"),
    )


class DailyTokenActivity(Base):
    __tablename__ = "daily_token_activity"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)  # {chainId}_{YYYY-MM-DD}
    chain_id: Mapped[int] = mapped_column(Integer)
    date: Mapped[str] = mapped_column(String(10))
    timestamp: Mapped[int] = mapped_column(BigInteger)
    daily_transfers: Mapped[int] = mapped_column(BigInteger)
    daily_volume: Mapped[Decimal] = mapped_column(ExactDecimal)
    daily_active_accounts: Mapped[int] = mapped_column(BigInteger)
    new_accounts: Mapped[int] = mapped_column(BigInteger)
