import threading
import unittest

from basewatch.adapters.chain.static_chain_adapter import StaticChainAdapter
from basewatch.core.dto import TokenInfo
from basewatch.core.errors import DataSourceError
from basewatch.services.token_resolver import TokenCache, TokenMetadataResolver


USDC = "0x833589fcd6edb6e08f4c7c32d4f71b54bda02913"
MISSING = "0x3333333333333333333333333333333333333333"


def _usdc() -> TokenInfo:
    return TokenInfo(address=USDC, symbol="USDC", name="USD Coin", decimals=6)


class _NoSymbolChain(StaticChainAdapter):
    def read_token_symbol(self, token_address):
        self.reads["read_token_symbol"] += 1
        raise DataSourceError("symbol() reverted")


class _GatedChain(StaticChainAdapter):
    def __init__(self, gate: threading.Event, **kwargs) -> None:
        super().__init__(**kwargs)
        self.gate = gate

    def read_token_symbol(self, token_address):
        self.gate.wait(5)
        return super().read_token_symbol(token_address)


class TokenMetadataResolverTests(unittest.TestCase):
    def _resolver(self, chain, **kwargs) -> TokenMetadataResolver:
        resolver = TokenMetadataResolver(chain, **kwargs)
        self.addCleanup(resolver.close)
        return resolver

    def test_second_resolve_is_a_cache_hit(self) -> None:
        chain = StaticChainAdapter(tokens={USDC: _usdc()})
        resolver = self._resolver(chain)

        first = resolver.resolve(USDC)
        reads_after_first = sum(chain.reads.values())
        second = resolver.resolve(USDC)

        self.assertEqual(first, second)
        self.assertEqual(first.symbol, "USDC")
        self.assertEqual(first.decimals, 6)
        self.assertEqual(reads_after_first, 3)
        self.assertEqual(sum(chain.reads.values()), 3)

    def test_cache_key_ignores_case(self) -> None:
        chain = StaticChainAdapter(tokens={USDC: _usdc()})
        resolver = self._resolver(chain)

        resolver.resolve(USDC)
        resolver.resolve("0x" + USDC[2:].upper())

        self.assertEqual(chain.reads["read_token_symbol"], 1)

    def test_unreadable_token_falls_back_to_sentinel(self) -> None:
        resolver = self._resolver(StaticChainAdapter())

        info = resolver.resolve(MISSING)

        self.assertEqual(info.address, MISSING)
        self.assertEqual(info.symbol, "UNKNOWN")
        self.assertEqual(info.name, "Unknown Token")
        self.assertEqual(info.decimals, 18)

    def test_each_field_falls_back_independently(self) -> None:
        chain = _NoSymbolChain(tokens={USDC: _usdc()})
        resolver = self._resolver(chain)

        info = resolver.resolve(USDC)

        self.assertEqual(info.symbol, "UNKNOWN")
        self.assertEqual(info.name, "USD Coin")
        self.assertEqual(info.decimals, 6)

    def test_zero_decimals_is_not_replaced(self) -> None:
        token = TokenInfo(address=USDC, symbol="PTS", name="Points", decimals=0)
        resolver = self._resolver(StaticChainAdapter(tokens={USDC: token}))

        self.assertEqual(resolver.resolve(USDC).decimals, 0)

    def test_injected_cache_skips_chain_reads(self) -> None:
        chain = StaticChainAdapter()
        cache = TokenCache({USDC: _usdc()})
        resolver = self._resolver(chain, cache=cache)

        self.assertEqual(resolver.resolve(USDC).symbol, "USDC")
        self.assertEqual(sum(chain.reads.values()), 0)

    def test_slow_read_returns_sentinel_then_fills_cache(self) -> None:
        gate = threading.Event()
        chain = _GatedChain(gate, tokens={USDC: _usdc()})
        resolver = TokenMetadataResolver(chain, timeout_sec=0.05)

        info = resolver.resolve(USDC)
        self.assertEqual(info.symbol, "UNKNOWN")
        self.assertNotIn(USDC, resolver.cache)

        gate.set()
        resolver.close()

        cached = resolver.cache.get(USDC)
        self.assertIsNotNone(cached)
        self.assertEqual(cached.symbol, "USDC")

    def test_closed_resolver_still_answers(self) -> None:
        resolver = TokenMetadataResolver(StaticChainAdapter(tokens={USDC: _usdc()}))
        resolver.close()

        self.assertEqual(resolver.resolve(USDC).symbol, "UNKNOWN")


class TokenCacheTests(unittest.TestCase):
    def test_last_write_wins(self) -> None:
        cache = TokenCache()
        cache.put(TokenInfo(address=USDC, symbol="OLD", name="Old", decimals=6))
        cache.put(TokenInfo(address=USDC, symbol="USDC", name="USD Coin", decimals=6))

        self.assertEqual(len(cache), 1)
        self.assertEqual(cache.get(USDC).symbol, "USDC")


if __name__ == "__main__":
    unittest.main()
