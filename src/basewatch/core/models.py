from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Tuple, Union

from basewatch.core.dto import TransferEvent
from basewatch.core.enums import AnalysisType, TxStatus


# Classification results (one variant per category)

@dataclass(frozen=True)
class SwapResult:
    """
    Wallet sent one token and received another in the same transaction.
    """

    kind: ClassVar[AnalysisType] = AnalysisType.SWAP

    dex: str
    token_in: TransferEvent         # first transfer out of the wallet
    token_out: TransferEvent        # first transfer into the wallet
    all_transfers: Tuple[TransferEvent, ...]

    def __post_init__(self) -> None:
        if len(self.all_transfers) < 2:
            raise ValueError("a swap needs at least two transfers")


@dataclass(frozen=True)
class BuyResult:
    """Wallet only received tokens; paid with the attached ETH value."""

    kind: ClassVar[AnalysisType] = AnalysisType.BUY

    dex: str
    token_bought: TransferEvent
    eth_spent: str                  # from the transaction's attached value
    all_transfers: Tuple[TransferEvent, ...] = ()


@dataclass(frozen=True)
class SellResult:
    """Wallet only sent tokens."""

    kind: ClassVar[AnalysisType] = AnalysisType.SELL

    dex: str
    token_sold: TransferEvent
    eth_received: str               # heuristic: tx value, not a balance delta
    all_transfers: Tuple[TransferEvent, ...] = ()


@dataclass(frozen=True)
class NoTrade:
    """Not a swap, buy or sell for the wallet."""

    kind: ClassVar[AnalysisType] = AnalysisType.NONE

    reason: str = ""


SwapAnalysis = Union[SwapResult, BuyResult, SellResult, NoTrade]
TradeResult = Union[SwapResult, BuyResult, SellResult]


# Per-transaction analysis

@dataclass(frozen=True)
class TransactionAnalysis:
    """
    A notifiable classification of one transaction hash, with receipt facts.
    """

    tx_hash: str
    result: TradeResult
    gas_used: int
    status: TxStatus

    def __post_init__(self) -> None:
        if isinstance(self.result, NoTrade):
            raise ValueError("NoTrade results are not wrapped into an analysis")

    @property
    def type(self) -> AnalysisType:
        return self.result.kind

    @property
    def dex(self) -> str:
        return self.result.dex
