from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Union

from basewatch.core.dto import WalletState
from basewatch.core.enums import NOTIFIABLE_TYPES
from basewatch.core.errors import DataSourceError, TrackerError
from basewatch.core.models import TransactionAnalysis
from basewatch.core.units import short_address
from basewatch.io.wallet_store import TrackedWallets, WalletStore
from basewatch.ports.chain_data_port import ChainDataPort
from basewatch.ports.notifier_port import NotifierPort
from basewatch.ports.tx_history_port import TxHistoryPort
from basewatch.services.analyzer_service import TransactionAnalyzer
from basewatch.services.summary_formatter import format_summary


logger = logging.getLogger(__name__)

OnChange = Callable[[int, str, TransactionAnalysis], None]


class WalletTracker:
    """
    Polls tracked wallets and reports new swaps, buys and sells.

    A wallet counts as changed when its balance or nonce moved since the
    previous poll. The first poll of a wallet only records its state.
    """

    def __init__(
        self,
        chain: ChainDataPort,
        history: TxHistoryPort,
        analyzer: TransactionAnalyzer,
        store: Optional[WalletStore] = None,
    ) -> None:
        self.chain = chain
        self.history = history
        self.analyzer = analyzer
        self.store = store
        self.wallets = store.load() if store is not None else TrackedWallets()

    # -------------------------
    # Watch list
    # -------------------------

    def add_wallet(self, chat_id: int, address: str) -> str:
        if not self.chain.is_valid_address(address):
            raise ValueError(f"Invalid address: {address}")
        addr = self.wallets.add(chat_id, address)
        self.save()
        return addr

    def remove_wallet(self, chat_id: int, address: str) -> bool:
        removed = self.wallets.remove(chat_id, address)
        if removed:
            self.save()
        return removed

    def save(self) -> None:
        if self.store is not None:
            self.store.save(self.wallets)

    def latest_trade(self, address: str, limit: int = 5) -> Optional[TransactionAnalysis]:
        """Newest BUY/SELL/SWAP among the wallet's last `limit` transactions."""
        for tx_hash in self.history.get_latest_transaction_hashes(address, limit):
            try:
                analysis = self.analyzer.analyze(tx_hash, address)
            except TrackerError as exc:
                logger.warning("Skipping transaction %s: %s", tx_hash, exc)
                continue
            if analysis is not None and analysis.type in NOTIFIABLE_TYPES:
                return analysis
        return None

    # -------------------------
    # Polling
    # -------------------------

    def check_wallet_changes(self, on_change: OnChange) -> int:
        """One polling pass. Returns the number of notifications dispatched."""
        notified = 0
        has_changes = False

        for address in self.wallets.all_addresses():
            try:
                current = WalletState(
                    balance_wei=self.chain.get_balance(address),
                    tx_count=self.chain.get_transaction_count(address),
                )
            except DataSourceError as exc:
                logger.error("Error checking wallet %s: %s", address, exc)
                continue

            previous = self.wallets.last_checked.get(address)
            self.wallets.last_checked[address] = current

            if previous is None:
                logger.info("First check for %s, storing initial state", short_address(address))
                has_changes = True
                continue
            if previous == current:
                continue

            has_changes = True
            notified += self._report_new_transactions(address, previous, current, on_change)

        if has_changes:
            self.save()
        return notified

    def run(
        self,
        on_change: OnChange,
        poll_interval: float,
        stop_event: Optional[threading.Event] = None,
        iterations: Optional[int] = None,
    ) -> None:
        stop_event = stop_event or threading.Event()
        logger.info("Starting wallet monitoring (checking every %ss)", poll_interval)

        done = 0
        try:
            while not stop_event.is_set():
                try:
                    self.check_wallet_changes(on_change)
                except Exception:
                    logger.exception("Polling pass failed")
                done += 1
                if iterations is not None and done >= iterations:
                    break
                stop_event.wait(poll_interval)
        finally:
            self.save()
            logger.info("Stopped wallet monitoring")

    def _report_new_transactions(
        self,
        address: str,
        previous: WalletState,
        current: WalletState,
        on_change: OnChange,
    ) -> int:
        count = max(current.tx_count - previous.tx_count, 1)
        try:
            hashes = self.history.get_latest_transaction_hashes(address, count)
        except DataSourceError as exc:
            logger.error("Could not list transactions for %s: %s", address, exc)
            return 0

        logger.info("Analyzing %d new transaction(s) for %s", len(hashes), short_address(address))

        notified = 0
        for tx_hash in hashes:
            try:
                analysis = self.analyzer.analyze(tx_hash, address)
            except TrackerError as exc:
                logger.warning("Skipping transaction %s: %s", tx_hash, exc)
                continue

            if analysis is None or analysis.type not in NOTIFIABLE_TYPES:
                continue

            for chat_id in self.wallets.chats_for_wallet(address):
                try:
                    on_change(chat_id, address, analysis)
                except Exception:
                    logger.exception("Notifying chat %s about %s failed", chat_id, tx_hash)
                    continue
                notified += 1
        return notified


def notify_change(
    notifier: NotifierPort,
    channel_id: Optional[Union[int, str]] = None,
) -> OnChange:
    """
    on_change callback that sends the formatted summary to the chat and,
    when configured, to a broadcast channel.
    """

    def _send(chat_id: int, address: str, analysis: TransactionAnalysis) -> None:
        summary = format_summary(analysis, short_address(address))
        if not summary:
            logger.warning("No summary generated for %s", analysis.tx_hash)
            return

        try:
            notifier.send(chat_id, summary)
            logger.info("Notification sent to chat %s", chat_id)
        except TrackerError as exc:
            logger.error("Error sending notification to chat %s: %s", chat_id, exc)

        if channel_id:
            try:
                notifier.send(channel_id, summary)
            except TrackerError as exc:
                logger.error("Error broadcasting to channel %s: %s", channel_id, exc)

    return _send
