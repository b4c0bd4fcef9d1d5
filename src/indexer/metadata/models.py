"""Token metadata value types."""

from pydantic import BaseModel, field_validator

DEFAULT_SYMBOL = "UNKNOWN"
DEFAULT_NAME = "Unknown Token"
DEFAULT_DECIMALS = 18  # most ERC-20 tokens

# column widths of the *_symbol / *_name columns
MAX_SYMBOL_LENGTH = 50
MAX_NAME_LENGTH = 255


class TokenMetadata(BaseModel):
    """symbol / name / decimals of an ERC-20 token.

    On-chain strings are arbitrary; symbol and name are cut to what the
    entity tables store.
    """

    model_config = {"frozen": True}

    symbol: str = DEFAULT_SYMBOL
    name: str = DEFAULT_NAME
    decimals: int = DEFAULT_DECIMALS

    @field_validator("symbol")
    @classmethod
    def _clip_symbol(cls, v: str) -> str:
        return v[:MAX_SYMBOL_LENGTH]

    @field_validator("name")
    @classmethod
    def _clip_name(cls, v: str) -> str:
        return v[:MAX_NAME_LENGTH]

    @property
    def is_default(self) -> bool:
        return self == DEFAULT_METADATA


DEFAULT_METADATA = TokenMetadata()
