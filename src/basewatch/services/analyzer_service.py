from __future__ import annotations

import logging
from typing import Optional

from basewatch.core.enums import TxStatus
from basewatch.core.errors import ClassificationError, TransactionNotFoundError
from basewatch.core.models import NoTrade, TransactionAnalysis
from basewatch.ports.chain_data_port import ChainDataPort
from basewatch.services.swap_classifier import SwapClassifier
from basewatch.services.token_resolver import TokenMetadataResolver
from basewatch.services.transfer_decoder import TransferLogDecoder


logger = logging.getLogger(__name__)


class TransactionAnalyzer:
    """
    Fetches a transaction and its receipt and classifies it for a wallet.

    - returns None when the transaction exists but is not a swap/buy/sell
    - raises TransactionNotFoundError when the tx or receipt is missing
    - raises ClassificationError when the fetched data has an unexpected shape
    - lets DataSourceError from the chain port propagate
    """

    def __init__(self, chain: ChainDataPort, classifier: SwapClassifier) -> None:
        self.chain = chain
        self.classifier = classifier

    @classmethod
    def from_chain(
        cls,
        chain: ChainDataPort,
        resolver: Optional[TokenMetadataResolver] = None,
    ) -> "TransactionAnalyzer":
        resolver = resolver or TokenMetadataResolver(chain)
        return cls(chain, SwapClassifier(TransferLogDecoder(resolver)))

    def analyze(self, tx_hash: str, wallet_address: str) -> Optional[TransactionAnalysis]:
        logger.debug("Analyzing transaction %s for %s", tx_hash, wallet_address)

        tx = self.chain.get_transaction(tx_hash)
        if tx is None:
            raise TransactionNotFoundError(tx_hash, "transaction")
        receipt = self.chain.get_transaction_receipt(tx_hash)
        if receipt is None:
            raise TransactionNotFoundError(tx_hash, "receipt")

        try:
            result = self.classifier.classify(tx, receipt, wallet_address)
            status = TxStatus.from_receipt_status(receipt.status)
            gas_used = int(receipt.gas_used)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.exception("Could not classify transaction %s", tx_hash)
            raise ClassificationError(f"Unrecognized transaction data for {tx_hash}: {exc}") from exc

        if isinstance(result, NoTrade):
            logger.info("Transaction %s not notifiable (%s)", tx_hash[:10], result.reason)
            return None

        logger.info(
            "Transaction %s classified as %s on %s (%s)",
            tx_hash[:10],
            result.kind.value,
            result.dex,
            status.value,
        )
        return TransactionAnalysis(
            tx_hash=tx_hash,
            result=result,
            gas_used=gas_used,
            status=status,
        )
