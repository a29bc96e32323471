from __future__ import annotations

import argparse
import datetime as dt
import json
import logging
import signal
import sys
import threading

from basewatch.config import settings
from basewatch.core.enums import TxStatus
from basewatch.core.errors import TrackerError, TransactionNotFoundError
from basewatch.core.models import TransactionAnalysis
from basewatch.core.units import format_ether, format_units, short_address
from basewatch.io.schemas import analysis_to_dict
from basewatch.io.wallet_store import WalletStore
from basewatch.services.analyzer_service import TransactionAnalyzer
from basewatch.services.summary_formatter import format_summary
from basewatch.services.token_resolver import TokenMetadataResolver
from basewatch.ports.chain_data_port import ChainDataPort
from basewatch.ports.tx_history_port import TxHistoryPort
from basewatch.services.wallet_tracker import WalletTracker, notify_change

from basewatch.adapters.chain.etherscan_history_adapter import EtherscanHistoryAdapter
from basewatch.adapters.chain.static_chain_adapter import StaticChainAdapter
from basewatch.adapters.chain.web3_chain_adapter import Web3ChainAdapter
from basewatch.adapters.notify.telegram_notifier import TelegramNotifier


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="basewatch", description="Base wallet swap/buy/sell tracker")
    p.add_argument("--tx", help="Transaction hash to analyze")
    p.add_argument("--wallet", help="Wallet address the transaction is analyzed for")
    p.add_argument("--json", action="store_true", help="Print the analysis as JSON instead of a summary")
    p.add_argument("--tx-info", metavar="HASH", help="Show raw transaction details")
    p.add_argument("--balance", metavar="ADDRESS", help="Show the ETH balance and nonce of a wallet")
    p.add_argument("--recent", metavar="ADDRESS", help="List the 5 most recent transactions of a wallet")
    p.add_argument(
        "--analyze-latest",
        metavar="ADDRESS",
        help="Report the newest swap/buy/sell among the last 5 transactions",
    )
    p.add_argument("--add", metavar="ADDRESS", help="Track a wallet for --chat-id")
    p.add_argument("--remove", metavar="ADDRESS", help="Stop tracking a wallet for --chat-id")
    p.add_argument("--list", action="store_true", help="List wallets tracked by --chat-id")
    p.add_argument("--chat-id", type=int, help="Telegram chat id owning the watch list entry")
    p.add_argument("--watch", action="store_true", help="Poll tracked wallets and send notifications")
    p.add_argument("--iterations", type=int, default=None, help="Stop --watch after N polling passes")
    p.add_argument("--print-only", action="store_true", help="With --watch, print summaries instead of sending them")
    p.add_argument("--data-file", default=settings.DATA_FILE, help="Watch list JSON file")
    p.add_argument("--use-static", action="store_true", help="Use static adapter (dev/testing)")
    p.add_argument("--log-level", default=settings.LOG_LEVEL, help="Logging level (DEBUG, INFO, ...)")
    return p


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )


def _ts() -> str:
    return dt.datetime.now().strftime("%H:%M:%S")


def _print_analysis(analysis: TransactionAnalysis, wallet: str, as_json: bool) -> None:
    if as_json:
        print(json.dumps(analysis_to_dict(analysis), indent=2, ensure_ascii=False))
        return
    summary = format_summary(analysis, short_address(wallet))
    print(summary if summary else f"{analysis.type.value} (no summary)")


def _cmd_analyze(args, analyzer: TransactionAnalyzer) -> int:
    if not args.wallet:
        print("Missing --wallet for --tx", file=sys.stderr)
        return 2
    try:
        analysis = analyzer.analyze(args.tx, args.wallet)
    except TransactionNotFoundError as exc:
        print(f"[{_ts()}] Not found: {exc}", file=sys.stderr)
        return 2
    except TrackerError as exc:
        print(f"[{_ts()}] Error: {exc.__class__.__name__}: {exc}", file=sys.stderr)
        return 1

    if analysis is None:
        print("Nothing to report: not a swap, buy or sell for this wallet.")
        return 0
    _print_analysis(analysis, args.wallet, args.json)
    return 0


def _invalid_address(chain: ChainDataPort, address: str) -> bool:
    if chain.is_valid_address(address):
        return False
    print(f"Invalid address: {address}", file=sys.stderr)
    return True


def _cmd_tx_info(args, chain: ChainDataPort) -> int:
    try:
        tx = chain.get_transaction(args.tx_info)
        receipt = chain.get_transaction_receipt(args.tx_info) if tx else None
    except TrackerError as exc:
        print(f"[{_ts()}] Error: {exc}", file=sys.stderr)
        return 1

    if tx is None:
        print("Transaction not found.", file=sys.stderr)
        return 2

    status = TxStatus.from_receipt_status(receipt.status).value if receipt else "Pending"
    gas_price = f"{format_units(tx.gas_price_wei, 9)} Gwei" if tx.gas_price_wei is not None else "N/A"
    print(f"Hash: {tx.tx_hash}")
    print(f"From: {tx.from_address}")
    print(f"To: {tx.to_address or 'Contract Creation'}")
    print(f"Value: {format_ether(tx.value_wei)} ETH")
    print(f"Gas Price: {gas_price}")
    print(f"Block: {tx.block_number if tx.block_number is not None else 'pending'}")
    print(f"Status: {status}")
    return 0


def _cmd_balance(args, chain: ChainDataPort) -> int:
    if _invalid_address(chain, args.balance):
        return 2
    try:
        balance = chain.get_balance(args.balance)
        tx_count = chain.get_transaction_count(args.balance)
    except TrackerError as exc:
        print(f"[{_ts()}] Error: {exc}", file=sys.stderr)
        return 1

    print(f"Address: {args.balance}")
    print(f"Balance: {format_ether(balance)} ETH")
    print(f"Total Transactions: {tx_count}")
    return 0


def _cmd_recent(args, chain: ChainDataPort, history: TxHistoryPort, limit: int = 5) -> int:
    address = args.recent
    if _invalid_address(chain, address):
        return 2
    try:
        hashes = history.get_latest_transaction_hashes(address, limit)
        if not hashes:
            print("No recent transactions found (is ETHERSCAN_API_KEY set?)")
            return 0

        print(f"Recent transactions for {address}")
        for i, tx_hash in enumerate(hashes, 1):
            tx = chain.get_transaction(tx_hash)
            if tx is None:
                print(f"{i}. {tx_hash[:10]}... (not found)")
                continue
            direction = "OUT" if tx.from_address.lower() == address.lower() else "IN"
            print(f"{i}. {direction} {format_ether(tx.value_wei)} ETH  {tx_hash[:10]}...  block {tx.block_number}")
    except TrackerError as exc:
        print(f"[{_ts()}] Error: {exc}", file=sys.stderr)
        return 1
    return 0


def _cmd_analyze_latest(args, tracker: WalletTracker) -> int:
    address = args.analyze_latest
    if _invalid_address(tracker.chain, address):
        return 2
    try:
        analysis = tracker.latest_trade(address)
    except TrackerError as exc:
        print(f"[{_ts()}] Error: {exc}", file=sys.stderr)
        return 1

    if analysis is None:
        print("No BUY/SELL/SWAP transactions found in recent history.")
        return 0
    _print_analysis(analysis, address, args.json)
    return 0


def _cmd_watchlist(args, tracker: WalletTracker) -> int:
    if args.chat_id is None:
        print("--add/--remove/--list require --chat-id", file=sys.stderr)
        return 2

    if args.add:
        try:
            addr = tracker.add_wallet(args.chat_id, args.add)
        except ValueError as exc:
            print(str(exc), file=sys.stderr)
            return 2
        print(f"Now tracking {addr} for chat {args.chat_id}")

    if args.remove:
        if tracker.remove_wallet(args.chat_id, args.remove):
            print(f"Stopped tracking {args.remove.lower()} for chat {args.chat_id}")
        else:
            print(f"{args.remove} was not tracked for chat {args.chat_id}")

    if args.list:
        wallets = tracker.wallets.wallets_for_chat(args.chat_id)
        if not wallets:
            print("No wallets tracked.")
        for i, addr in enumerate(wallets, 1):
            print(f"{i}. {addr}")
    return 0


def _cmd_watch(args, tracker: WalletTracker) -> int:
    if args.print_only:
        def on_change(chat_id, address, analysis):
            print(f"[{_ts()}] chat {chat_id}:")
            _print_analysis(analysis, address, False)
    else:
        if not settings.TELEGRAM_BOT_TOKEN:
            print("Missing TELEGRAM_BOT_TOKEN environment variable", file=sys.stderr)
            return 2
        on_change = notify_change(TelegramNotifier(), settings.CHANNEL_ID or None)

    summary = tracker.wallets.summary()
    print(f"[{_ts()}] Watching {summary['total_wallets']} wallet(s) for {summary['total_chats']} chat(s)")

    stop = threading.Event()

    def _stop(signum, frame):
        print(f"\n[{_ts()}] Shutting down...")
        stop.set()

    signal.signal(signal.SIGINT, _stop)
    signal.signal(signal.SIGTERM, _stop)

    tracker.run(on_change, settings.POLL_INTERVAL_SEC, stop_event=stop, iterations=args.iterations)
    return 0


def main(argv=None) -> int:
    args = build_arg_parser().parse_args(argv)
    _configure_logging(args.log_level)

    # Ports
    if args.use_static:
        static = StaticChainAdapter()
        chain, history = static, static
        adapter_label = "StaticChainAdapter (dev/testing)"
    else:
        chain = Web3ChainAdapter()
        history = EtherscanHistoryAdapter()
        adapter_label = f"Web3ChainAdapter ({settings.BASE_RPC_URL})"

    resolver = TokenMetadataResolver(chain)
    analyzer = TransactionAnalyzer.from_chain(chain, resolver)
    print(f"Adapter: {adapter_label}")

    try:
        if args.tx:
            return _cmd_analyze(args, analyzer)
        if args.tx_info:
            return _cmd_tx_info(args, chain)
        if args.balance:
            return _cmd_balance(args, chain)
        if args.recent:
            return _cmd_recent(args, chain, history)
        if args.analyze_latest:
            return _cmd_analyze_latest(args, WalletTracker(chain, history, analyzer))

        tracker = WalletTracker(chain, history, analyzer, WalletStore(args.data_file))

        if args.add or args.remove or args.list:
            return _cmd_watchlist(args, tracker)

        if args.watch:
            return _cmd_watch(args, tracker)

        build_arg_parser().print_usage(sys.stderr)
        return 2
    finally:
        resolver.close()


if __name__ == "__main__":
    raise SystemExit(main())
