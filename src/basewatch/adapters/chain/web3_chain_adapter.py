from typing import Any, Callable, Optional, TypeVar
import logging

from eth_utils import is_hex
from web3 import Web3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError, TransactionNotFound

from basewatch.config.settings import (
    BASE_RPC_URL,
    RPC_TIMEOUT_SEC,
    RPC_MAX_RETRIES,
)

from basewatch.adapters.chain.rate_limiter import backoff_sleep
from basewatch.core.errors import DataSourceError
from basewatch.ports.chain_data_port import ChainDataPort
from basewatch.core.dto import RawLog, RawReceipt, RawTransaction


logger = logging.getLogger(__name__)

T = TypeVar("T")

ERC20_ABI = [
    {"constant": True, "inputs": [], "name": "name", "outputs": [{"name": "", "type": "string"}],
     "stateMutability": "view", "type": "function"},
    {"constant": True, "inputs": [], "name": "symbol", "outputs": [{"name": "", "type": "string"}],
     "stateMutability": "view", "type": "function"},
    {"constant": True, "inputs": [], "name": "decimals", "outputs": [{"name": "", "type": "uint8"}],
     "stateMutability": "view", "type": "function"},
]

# a token that reverts or returns garbage for a field
_FIELD_UNAVAILABLE = (BadFunctionCallOutput, ContractLogicError)
_NO_RETRY = (TransactionNotFound,) + _FIELD_UNAVAILABLE


def _is_tx_hash(value: str) -> bool:
    if not isinstance(value, str) or len(value) != 66:
        return False
    return value[:2].lower() == "0x" and is_hex(value)


def _hex(value: Any) -> str:
    if isinstance(value, str):
        return value
    return Web3.to_hex(value)


class Web3ChainAdapter(ChainDataPort):

    def __init__(self, rpc_url: str = BASE_RPC_URL, w3: Optional[Web3] = None) -> None:
        self._max_retries = RPC_MAX_RETRIES
        self._w3 = w3 or Web3(
            Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": RPC_TIMEOUT_SEC})
        )

    # ---------- internal ----------

    def _call(self, what: str, fn: Callable[..., T], *args: Any) -> T:
        last_err: Optional[Exception] = None

        for attempt in range(self._max_retries):
            try:
                return fn(*args)
            except _NO_RETRY:
                raise
            except Exception as e:
                last_err = e
                logger.debug("RPC %s failed (attempt %d): %s", what, attempt + 1, e)
                backoff_sleep(attempt)

        raise DataSourceError(f"RPC {what} failed after retries: {last_err}")

    def _token(self, token_address: str):
        return self._w3.eth.contract(
            address=Web3.to_checksum_address(token_address),
            abi=ERC20_ABI,
        )

    def _read_field(self, token_address: str, field: str) -> Optional[Any]:
        fn = getattr(self._token(token_address).functions, field)
        try:
            return self._call(f"{field}({token_address})", lambda: fn().call())
        except _FIELD_UNAVAILABLE as e:
            logger.debug("Token %s has no readable %s: %s", token_address, field, e)
            return None

    # ---------- port methods ----------

    def get_transaction(self, tx_hash: str) -> Optional[RawTransaction]:
        # a malformed hash cannot exist on chain
        if not _is_tx_hash(tx_hash):
            return None
        try:
            tx = self._call("getTransaction", self._w3.eth.get_transaction, tx_hash)
        except TransactionNotFound:
            return None

        to = tx.get("to")
        return RawTransaction(
            tx_hash=_hex(tx.get("hash") or tx_hash),
            from_address=str(tx["from"]),
            to_address=str(to) if to else None,
            value_wei=int(tx.get("value") or 0),
            block_number=tx.get("blockNumber"),
            gas_price_wei=tx.get("gasPrice"),
        )

    def get_transaction_receipt(self, tx_hash: str) -> Optional[RawReceipt]:
        if not _is_tx_hash(tx_hash):
            return None
        try:
            r = self._call("getTransactionReceipt", self._w3.eth.get_transaction_receipt, tx_hash)
        except TransactionNotFound:
            return None

        logs = tuple(
            RawLog(
                address=str(log["address"]),
                topics=tuple(_hex(t) for t in log.get("topics") or ()),
                data=_hex(log.get("data") or "0x"),
            )
            for log in r.get("logs") or ()
        )
        return RawReceipt(
            tx_hash=tx_hash,
            status=int(r.get("status", 0)),
            gas_used=int(r.get("gasUsed", 0)),
            logs=logs,
        )

    def read_token_symbol(self, token_address: str) -> Optional[str]:
        value = self._read_field(token_address, "symbol")
        return str(value) if value is not None else None

    def read_token_name(self, token_address: str) -> Optional[str]:
        value = self._read_field(token_address, "name")
        return str(value) if value is not None else None

    def read_token_decimals(self, token_address: str) -> Optional[int]:
        value = self._read_field(token_address, "decimals")
        return int(value) if value is not None else None

    def get_balance(self, address: str) -> int:
        return int(self._call("getBalance", self._w3.eth.get_balance, Web3.to_checksum_address(address)))

    def get_transaction_count(self, address: str) -> int:
        return int(self._call(
            "getTransactionCount",
            self._w3.eth.get_transaction_count,
            Web3.to_checksum_address(address),
        ))

    def is_valid_address(self, address: str) -> bool:
        return bool(Web3.is_address(address))
