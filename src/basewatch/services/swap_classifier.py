from __future__ import annotations

from typing import Dict, List, Optional

from basewatch.config import settings
from basewatch.core.dto import RawReceipt, RawTransaction, TransferEvent
from basewatch.core.models import BuyResult, NoTrade, SellResult, SwapAnalysis, SwapResult
from basewatch.core.units import format_ether
from basewatch.services.transfer_decoder import TransferLogDecoder


MIN_TRANSFERS_FOR_TRADE = 2


def resolve_dex_name(
    to_address: Optional[str],
    routers: Optional[Dict[str, str]] = None,
) -> str:
    table = settings.KNOWN_DEX_ROUTERS if routers is None else routers
    if not to_address:
        return settings.UNKNOWN_DEX
    return table.get(str(to_address).lower(), settings.UNKNOWN_DEX)


class SwapClassifier:
    """
    Decides whether a transaction is a swap, buy or sell for one wallet.

    Only the direction of token transfers relative to the wallet matters:
    - sent and received  -> SWAP (first of each, in log order)
    - sent only          -> SELL (native proceeds taken from tx value)
    - received only      -> BUY  (native cost taken from tx value)
    - wallet not touched -> NONE
    Amounts are display-only and never influence the category.
    """

    def __init__(
        self,
        decoder: TransferLogDecoder,
        routers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.decoder = decoder
        self.routers = routers

    def classify(
        self,
        tx: RawTransaction,
        receipt: RawReceipt,
        wallet_address: str,
    ) -> SwapAnalysis:
        transfers = self.decoder.decode(receipt.logs)

        if len(transfers) < MIN_TRANSFERS_FOR_TRADE:
            return NoTrade(reason=f"{len(transfers)} token transfer(s)")

        wallet = wallet_address.lower()
        sent = self._sent_by(transfers, wallet)
        received = self._received_by(transfers, wallet)

        if not sent and not received:
            return NoTrade(reason="wallet not involved in token transfers")

        dex = resolve_dex_name(tx.to_address, self.routers)
        all_transfers = tuple(transfers)

        if sent and received:
            return SwapResult(
                dex=dex,
                token_in=sent[0],
                token_out=received[0],
                all_transfers=all_transfers,
            )

        eth_value = format_ether(tx.value_wei)

        if sent:
            return SellResult(
                dex=dex,
                token_sold=sent[0],
                eth_received=eth_value,
                all_transfers=all_transfers,
            )

        return BuyResult(
            dex=dex,
            token_bought=received[0],
            eth_spent=eth_value,
            all_transfers=all_transfers,
        )

    # -------------------------
    # Helpers
    # -------------------------

    @staticmethod
    def _sent_by(transfers: List[TransferEvent], wallet: str) -> List[TransferEvent]:
        return [t for t in transfers if t.from_address.lower() == wallet]

    @staticmethod
    def _received_by(transfers: List[TransferEvent], wallet: str) -> List[TransferEvent]:
        return [t for t in transfers if t.to_address.lower() == wallet]
