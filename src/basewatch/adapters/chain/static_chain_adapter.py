from basewatch.ports.chain_data_port import ChainDataPort
from basewatch.ports.tx_history_port import TxHistoryPort
from basewatch.core.dto import RawReceipt, RawTransaction, TokenInfo, WalletState
from basewatch.core.errors import DataSourceError
from collections import Counter
from typing import Optional, Dict, List

class StaticChainAdapter(ChainDataPort, TxHistoryPort):
    """
    In-memory chain for dev/testing. `reads` counts calls per method name.
    Tokens missing from `tokens` fail every metadata read.
    """

    def __init__(self,
                 transactions: Optional[List[RawTransaction]] = None,
                 receipts: Optional[List[RawReceipt]] = None,
                 tokens: Optional[Dict[str, TokenInfo]] = None,
                 wallets: Optional[Dict[str, WalletState]] = None,
                 history: Optional[Dict[str, List[str]]] = None,
                 ):
        self._txs = {t.tx_hash.lower(): t for t in (transactions or [])}
        self._receipts = {r.tx_hash.lower(): r for r in (receipts or [])}
        self._tokens = {k.lower(): v for k, v in (tokens or {}).items()}
        self._wallets = {k.lower(): v for k, v in (wallets or {}).items()}
        self._history = {k.lower(): list(v) for k, v in (history or {}).items()}
        self.reads: Counter = Counter()

    # --- mutators for tests ---

    def set_wallet(self, address: str, state: WalletState) -> None:
        self._wallets[address.lower()] = state

    def add_history(self, address: str, tx_hash: str) -> None:
        # newest first
        self._history.setdefault(address.lower(), []).insert(0, tx_hash)

    # --- ChainDataPort ---

    def get_transaction(self, tx_hash):
        self.reads["get_transaction"] += 1
        return self._txs.get(tx_hash.lower())

    def get_transaction_receipt(self, tx_hash):
        self.reads["get_transaction_receipt"] += 1
        return self._receipts.get(tx_hash.lower())

    def _token(self, token_address: str) -> TokenInfo:
        token = self._tokens.get(token_address.lower())
        if token is None:
            raise DataSourceError(f"no contract at {token_address}")
        return token

    def read_token_symbol(self, token_address):
        self.reads["read_token_symbol"] += 1
        return self._token(token_address).symbol

    def read_token_name(self, token_address):
        self.reads["read_token_name"] += 1
        return self._token(token_address).name

    def read_token_decimals(self, token_address):
        self.reads["read_token_decimals"] += 1
        return self._token(token_address).decimals

    def get_balance(self, address):
        self.reads["get_balance"] += 1
        return self._wallet(address).balance_wei

    def get_transaction_count(self, address):
        self.reads["get_transaction_count"] += 1
        return self._wallet(address).tx_count

    def _wallet(self, address: str) -> WalletState:
        return self._wallets.get(address.lower(), WalletState(balance_wei=0, tx_count=0))

    def is_valid_address(self, address):
        body = address[2:] if address.lower().startswith("0x") else ""
        if len(body) != 40:
            return False
        try:
            int(body, 16)
        except ValueError:
            return False
        return True

    # --- TxHistoryPort ---

    def get_latest_transaction_hashes(self, address, limit = 5):
        self.reads["get_latest_transaction_hashes"] += 1
        return list(self._history.get(address.lower(), []))[:limit]
