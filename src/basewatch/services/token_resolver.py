from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Callable, Dict, Optional, TypeVar

from basewatch.config import settings
from basewatch.core.dto import (
    DEFAULT_DECIMALS,
    UNKNOWN_NAME,
    UNKNOWN_SYMBOL,
    TokenInfo,
    sentinel_token,
)
from basewatch.ports.chain_data_port import ChainDataPort


logger = logging.getLogger(__name__)

T = TypeVar("T")


class TokenCache:
    """
    Lowercase token address -> TokenInfo. No eviction: symbol, name and
    decimals never change on-chain.
    """

    def __init__(self, initial: Optional[Dict[str, TokenInfo]] = None) -> None:
        self._lock = threading.Lock()
        self._items: Dict[str, TokenInfo] = {
            k.lower(): v for k, v in (initial or {}).items()
        }

    def get(self, token_address: str) -> Optional[TokenInfo]:
        with self._lock:
            return self._items.get(token_address.lower())

    def put(self, info: TokenInfo) -> None:
        # last write wins
        with self._lock:
            self._items[info.address.lower()] = info

    def __contains__(self, token_address: object) -> bool:
        if not isinstance(token_address, str):
            return False
        with self._lock:
            return token_address.lower() in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class TokenMetadataResolver:
    """
    Resolves ERC-20 symbol / name / decimals for a token contract.

    `resolve` never raises. Every field read is optional: a field that cannot
    be read falls back to its sentinel ("UNKNOWN", "Unknown Token", 18).
    The caller waits at most `timeout_sec`; a slower fetch keeps running in
    the pool and lands in the cache when it completes, while the caller gets
    the sentinel.
    """

    def __init__(
        self,
        chain: ChainDataPort,
        cache: Optional[TokenCache] = None,
        timeout_sec: Optional[float] = settings.TOKEN_META_TIMEOUT_SEC,
        max_workers: int = settings.TOKEN_META_WORKERS,
    ) -> None:
        self.chain = chain
        self.cache = cache if cache is not None else TokenCache()
        self._timeout = timeout_sec
        self._pool = ThreadPoolExecutor(
            max_workers=max(1, int(max_workers)),
            thread_name_prefix="token-meta",
        )

    def resolve(self, token_address: str) -> TokenInfo:
        cached = self.cache.get(token_address)
        if cached is not None:
            return cached

        try:
            future: Future = self._pool.submit(self._fetch, token_address)
        except RuntimeError:
            # pool already shut down
            logger.warning("Token resolver closed; using placeholder for %s", token_address)
            return sentinel_token(token_address)

        try:
            return future.result(timeout=self._timeout)
        except FutureTimeout:
            logger.warning(
                "Token metadata for %s not ready after %ss; using placeholder",
                token_address,
                self._timeout,
            )
            return sentinel_token(token_address)
        except Exception as exc:
            logger.warning("Token metadata fetch failed for %s: %s", token_address, exc)
            return sentinel_token(token_address)

    def close(self) -> None:
        self._pool.shutdown(wait=True)

    # ---------- internal ----------

    def _fetch(self, token_address: str) -> TokenInfo:
        symbol = self._optional_read(self.chain.read_token_symbol, token_address, "symbol")
        name = self._optional_read(self.chain.read_token_name, token_address, "name")
        decimals = self._optional_read(self.chain.read_token_decimals, token_address, "decimals")

        info = TokenInfo(
            address=token_address,
            symbol=symbol if symbol else UNKNOWN_SYMBOL,
            name=name if name else UNKNOWN_NAME,
            decimals=int(decimals) if decimals is not None else DEFAULT_DECIMALS,
        )
        self.cache.put(info)
        return info

    @staticmethod
    def _optional_read(
        reader: Callable[[str], Optional[T]],
        token_address: str,
        field: str,
    ) -> Optional[T]:
        try:
            return reader(token_address)
        except Exception as exc:
            logger.debug("Could not read %s for %s: %s", field, token_address, exc)
            return None
