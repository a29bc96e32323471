class TrackerError(Exception):
    pass


class DataSourceError(TrackerError):
    pass


class RateLimitError(DataSourceError):
    pass


class TransactionNotFoundError(TrackerError):
    def __init__(self, tx_hash: str, what: str = "transaction") -> None:
        super().__init__(f"{what} not found: {tx_hash}")
        self.tx_hash = tx_hash
        self.what = what


class ClassificationError(TrackerError):
    pass
