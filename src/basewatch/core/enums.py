from enum import Enum


class AnalysisType(str, Enum):
    SWAP = "SWAP"
    BUY = "BUY"
    SELL = "SELL"
    NONE = "NONE"


class TxStatus(str, Enum):
    SUCCESS = "Success"
    FAILED = "Failed"

    @classmethod
    def from_receipt_status(cls, status: int) -> "TxStatus":
        return cls.SUCCESS if int(status) == 1 else cls.FAILED


NOTIFIABLE_TYPES = frozenset({AnalysisType.SWAP, AnalysisType.BUY, AnalysisType.SELL})
