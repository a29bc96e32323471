from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from basewatch.core.dto import RawReceipt, RawTransaction

class ChainDataPort(ABC):
    """
    Abstract Class for reading Base chain facts needed to analyze a wallet.

    Transport failures raise DataSourceError; a missing transaction or
    receipt is reported as None.
    """

    # --- Transactions ---

    @abstractmethod
    def get_transaction(self, tx_hash: str) -> Optional[RawTransaction]:
        raise NotImplementedError

    @abstractmethod
    def get_transaction_receipt(self, tx_hash: str) -> Optional[RawReceipt]:
        raise NotImplementedError

    # --- ERC-20 metadata (each read independently failable) ---

    @abstractmethod
    def read_token_symbol(self, token_address: str) -> Optional[str]:
        raise NotImplementedError

    @abstractmethod
    def read_token_name(self, token_address: str) -> Optional[str]:
        raise NotImplementedError

    @abstractmethod
    def read_token_decimals(self, token_address: str) -> Optional[int]:
        raise NotImplementedError

    # --- Account state ---

    @abstractmethod
    def get_balance(self, address: str) -> int:
        raise NotImplementedError

    @abstractmethod
    def get_transaction_count(self, address: str) -> int:
        raise NotImplementedError

    @abstractmethod
    def is_valid_address(self, address: str) -> bool:
        raise NotImplementedError
