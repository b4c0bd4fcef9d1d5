"""Static known-token table (Base mainnet) and the resolver that reads it.

The table is built once at startup through ``TokenTableBuilder`` and is
read-only afterwards; nothing registers tokens while events are flowing.
"""

from collections.abc import Iterator, Mapping
from types import MappingProxyType

from loguru import logger

from src.indexer.metadata.models import DEFAULT_METADATA, TokenMetadata

NATIVE_CURRENCY = "0x0000000000000000000000000000000000000000"

BASE_KNOWN_TOKENS: dict[str, TokenMetadata] = {
    # v4 pools use the zero address for native ETH
    NATIVE_CURRENCY: TokenMetadata(symbol="ETH", name="Ether", decimals=18),
    # USDC: 6 decimals, not 18
    "0x833589fcd6edb6e08f4c7c32d4f71b54bda02913": TokenMetadata(
        symbol="USDC", name="USD Coin", decimals=6
    ),
    "0x4200000000000000000000000000000000000006": TokenMetadata(
        symbol="WETH", name="Wrapped Ether", decimals=18
    ),
    "0x50c5725949a6f0c72e6c4a641f24049a917db0cb": TokenMetadata(
        symbol="DAI", name="Dai Stablecoin", decimals=18
    ),
    "0xd85c31854c2b0fb40aaa9e2fc4da23c21f829d46": TokenMetadata(
        symbol="PING", name="Ping", decimals=18
    ),
    "0x2ae3f1ec7f1f5012cfeab0185bfc7aa3cf0dec22": TokenMetadata(
        symbol="cbETH", name="Coinbase Wrapped Staked ETH", decimals=18
    ),
    # USDbC (bridged USDC): 6 decimals
    "0xd9aaec86b65d86f6a7b5b1b0c42ffa531710b6ca": TokenMetadata(
        symbol="USDbC", name="USD Base Coin", decimals=6
    ),
}


class TokenTable(Mapping[str, TokenMetadata]):
    """Immutable address → metadata mapping with lower-cased keys."""

    def __init__(self, entries: Mapping[str, TokenMetadata]) -> None:
        self._entries = MappingProxyType(
            {address.lower(): meta for address, meta in entries.items()}
        )

    def __getitem__(self, address: str) -> TokenMetadata:
        return self._entries[address.lower()]

    def __contains__(self, address: object) -> bool:
        return isinstance(address, str) and address.lower() in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


class TokenTableBuilder:
    """Collects token entries before the engine starts."""

    def __init__(self, base: Mapping[str, TokenMetadata] | None = None) -> None:
        self._entries: dict[str, TokenMetadata] = {}
        if base:
            for address, meta in base.items():
                self.register(address, meta)

    def register(self, address: str, metadata: TokenMetadata) -> "TokenTableBuilder":
        normalized = address.lower()
        self._entries[normalized] = metadata
        logger.debug(
            f"[METADATA] Registered {metadata.symbol} ({metadata.name}) at {normalized}"
        )
        return self

    def build(self) -> TokenTable:
        return TokenTable(self._entries)


def default_token_table() -> TokenTable:
    return TokenTableBuilder(BASE_KNOWN_TOKENS).build()


class StaticMetadataResolver:
    """Resolves metadata from a fixed table; unknown tokens get defaults."""

    def __init__(self, table: TokenTable) -> None:
        self._table = table

    @property
    def table(self) -> TokenTable:
        return self._table

    def lookup(self, address: str) -> TokenMetadata | None:
        return self._table.get(address.lower())

    async def resolve(self, address: str) -> TokenMetadata:
        metadata = self.lookup(address)
        if metadata is not None:
            return metadata

        logger.warning(
            f"[METADATA] Unknown token {address.lower()}, using defaults "
            f"({DEFAULT_METADATA.symbol}, {DEFAULT_METADATA.decimals} decimals)"
        )
        return DEFAULT_METADATA

    async def close(self) -> None:
        pass
