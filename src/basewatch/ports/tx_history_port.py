from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List


class TxHistoryPort(ABC):

    @abstractmethod
    def get_latest_transaction_hashes(self, address: str, limit: int = 5) -> List[str]:
        """Most recent first."""
        raise NotImplementedError
