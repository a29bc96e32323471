from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple


@dataclass(frozen=True)
class RawLog:
    address: str
    topics: Tuple[str, ...]     # hex strings, topic0 first
    data: str                   # hex payload


@dataclass(frozen=True)
class RawTransaction:
    tx_hash: str
    from_address: str
    to_address: Optional[str]   # None for contract creation
    value_wei: int              # native value attached (raw)
    block_number: Optional[int] = None
    gas_price_wei: Optional[int] = None


@dataclass(frozen=True)
class RawReceipt:
    tx_hash: str
    status: int                 # 1 = success, 0 = reverted
    gas_used: int
    logs: Tuple[RawLog, ...] = ()


@dataclass(frozen=True)
class TokenInfo:
    address: str
    symbol: str
    name: str
    decimals: int


UNKNOWN_SYMBOL = "UNKNOWN"
UNKNOWN_NAME = "Unknown Token"
DEFAULT_DECIMALS = 18


def sentinel_token(address: str) -> TokenInfo:
    return TokenInfo(
        address=address,
        symbol=UNKNOWN_SYMBOL,
        name=UNKNOWN_NAME,
        decimals=DEFAULT_DECIMALS,
    )


@dataclass(frozen=True)
class TransferEvent:
    token_address: str
    token_symbol: str
    token_name: str
    decimals: int
    from_address: str           # checksummed
    to_address: str             # checksummed
    raw_value: int              # token amount in raw units (before decimals)
    scaled_value: str           # raw_value / 10**decimals, exact

    @property
    def amount(self) -> Decimal:
        return Decimal(self.scaled_value)


@dataclass(frozen=True)
class WalletState:
    balance_wei: int
    tx_count: int
