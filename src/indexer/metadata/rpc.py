"""ERC-20 metadata over JSON-RPC ``eth_call``.

symbol(), name() and decimals() are fetched in parallel; each field falls
back to its default on its own, so a token with a broken name() still gets
its real symbol and decimals.
"""

import asyncio

import httpx
from loguru import logger

from src.indexer.metadata.models import (
    DEFAULT_DECIMALS,
    DEFAULT_NAME,
    DEFAULT_SYMBOL,
    TokenMetadata,
)
from src.indexer.rate_limiter import RateLimiter

SYMBOL_SELECTOR = "0x95d89b41"  # symbol()
NAME_SELECTOR = "0x06fdde03"  # name()
DECIMALS_SELECTOR = "0x313ce567"  # decimals()

MAX_RETRIES = 2
RETRY_DELAYS = [1.0, 3.0]
WORD = 32


def decode_string(hex_data: str | None) -> str | None:
    """Decode an ABI ``string`` return value.

    Accepts dynamic strings (offset, length, bytes) and the legacy ``bytes32``
    form some early tokens return. None when the payload is malformed.
    """
    if not hex_data:
        return None
    data = hex_data[2:] if hex_data.startswith("0x") else hex_data
    try:
        raw = bytes.fromhex(data)
    except ValueError:
        return None

    try:
        if len(raw) == WORD:
            text = raw.rstrip(b"\x00").decode("utf-8")
        elif len(raw) >= 2 * WORD:
            offset = int.from_bytes(raw[:WORD], "big")
            if offset + WORD > len(raw):
                return None
            length = int.from_bytes(raw[offset:offset + WORD], "big")
            body = raw[offset + WORD:offset + WORD + length]
            if len(body) < length:
                return None
            text = body.decode("utf-8")
        else:
            return None
    except UnicodeDecodeError:
        return None

    text = text.replace("\x00", "").strip()
    return text or None


def decode_uint8(hex_data: str | None) -> int | None:
    """Decode a ``uint8`` return value (decimals)."""
    if not hex_data or hex_data in ("0x", "0x0"):
        return None
    try:
        value = int(hex_data, 16)
    except ValueError:
        return None
    if value > 255:
        return None
    return value


class RpcMetadataResolver:
    """Async JSON-RPC client resolving token metadata via eth_call."""

    def __init__(
        self,
        rpc_url: str,
        *,
        max_rps: float = 10.0,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._rpc_url = rpc_url
        self._rate_limiter = RateLimiter(max_rps)
        self._timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._request_id = 0

    @property
    def max_latency(self) -> float:
        """Seconds one eth_call takes when every attempt times out."""
        return (MAX_RETRIES + 1) * self._timeout + sum(RETRY_DELAYS[:MAX_RETRIES])

    async def close(self) -> None:
        await self._client.aclose()
        logger.debug("[RPC] Client closed")

    async def eth_call(self, to: str, data: str) -> str | None:
        """Run a read-only call at the latest block. None on any failure."""
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": "eth_call",
            "params": [{"to": to, "data": data}, "latest"],
        }

        for attempt in range(MAX_RETRIES + 1):
            try:
                await self._rate_limiter.acquire()
                resp = await self._client.post(self._rpc_url, json=payload)

                if resp.status_code == 429:
                    delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                    logger.debug(f"[RPC] Rate limited, waiting {delay}s")
                    await asyncio.sleep(delay)
                    continue
                if resp.status_code != 200:
                    logger.debug(f"[RPC] eth_call HTTP {resp.status_code} for {to}")
                    return None

                body = resp.json()
                if "error" in body:
                    logger.debug(f"[RPC] eth_call error for {to} ({data}): {body['error']}")
                    return None
                return body.get("result")

            except (httpx.TimeoutException, httpx.ConnectError) as e:
                if attempt < MAX_RETRIES:
                    delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                    logger.debug(f"[RPC] {type(e).__name__}, retry in {delay}s")
                    await asyncio.sleep(delay)
                else:
                    logger.warning(f"[RPC] eth_call failed after {MAX_RETRIES + 1} attempts: {e}")
                    return None

        return None

    async def resolve(self, address: str) -> TokenMetadata:
        token = address.lower()
        results = await asyncio.gather(
            self.eth_call(token, SYMBOL_SELECTOR),
            self.eth_call(token, NAME_SELECTOR),
            self.eth_call(token, DECIMALS_SELECTOR),
            return_exceptions=True,
        )
        symbol_hex, name_hex, decimals_hex = (
            None if isinstance(r, BaseException) else r for r in results
        )
        for field, r in zip(("symbol", "name", "decimals"), results):
            if isinstance(r, BaseException):
                logger.debug(f"[METADATA] {field}() for {token} raised {type(r).__name__}: {r}")

        symbol = decode_string(symbol_hex)
        name = decode_string(name_hex)
        decimals = decode_uint8(decimals_hex)

        missing = [
            field
            for field, value in (("symbol", symbol), ("name", name), ("decimals", decimals))
            if value is None
        ]
        if missing:
            logger.warning(
                f"[METADATA] {token}: could not read {', '.join(missing)}, using defaults"
            )

        return TokenMetadata(
            symbol=symbol if symbol is not None else DEFAULT_SYMBOL,
            name=name if name is not None else DEFAULT_NAME,
            decimals=decimals if decimals is not None else DEFAULT_DECIMALS,
        )
