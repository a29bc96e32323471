from typing import Any, Dict, List, Optional
import logging
import requests

from basewatch.config.settings import (
    ETHERSCAN_API_KEY,
    ETHERSCAN_CHAIN_ID,
    ETHERSCAN_BASE_URL,
    ETHERSCAN_REQUESTS_PER_SEC,
    ETHERSCAN_TIMEOUT_SEC,
    ETHERSCAN_MAX_RETRIES,
)

from basewatch.adapters.chain.rate_limiter import IntervalRateLimiter, backoff_sleep
from basewatch.core.errors import DataSourceError, RateLimitError
from basewatch.ports.tx_history_port import TxHistoryPort


logger = logging.getLogger(__name__)


class EtherscanHistoryAdapter(TxHistoryPort):
    """
    Latest transaction hashes for an address via the Etherscan V2 API
    (BaseScan data, chainid 8453).
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else ETHERSCAN_API_KEY
        self._chainid = ETHERSCAN_CHAIN_ID
        self._base_url = ETHERSCAN_BASE_URL
        self._timeout = ETHERSCAN_TIMEOUT_SEC
        self._max_retries = ETHERSCAN_MAX_RETRIES

        self._rl = IntervalRateLimiter(ETHERSCAN_REQUESTS_PER_SEC)
        self._session = session or requests.Session()

    # ---------- internal ----------

    def _call(self, params: Dict[str, Any]) -> Dict[str, Any]:
        req = dict(params)
        req["apikey"] = self._api_key
        req["chainid"] = str(self._chainid)

        last_err: Optional[Exception] = None

        for attempt in range(self._max_retries):
            try:
                self._rl.wait()
                resp = self._session.get(
                    self._base_url,
                    params=req,
                    timeout=self._timeout,
                )
                resp.raise_for_status()
                data = resp.json()

                status = str(data.get("status", "1"))
                message = str(data.get("message", "OK"))

                if status == "0" and "rate" in str(data.get("result", message)).lower():
                    last_err = RateLimitError(message)
                    backoff_sleep(attempt)
                    continue

                return data

            except (requests.RequestException, ValueError) as e:
                last_err = e
                logger.debug("Etherscan call failed (attempt %d): %s", attempt + 1, e)
                backoff_sleep(attempt)

        raise DataSourceError(f"Etherscan failed after retries: {last_err}")

    @staticmethod
    def _list_result(data: Dict[str, Any]) -> list:
        res = data.get("result")
        return res if isinstance(res, list) else []

    # ---------- port methods ----------

    def get_latest_transaction_hashes(self, address: str, limit: int = 5) -> List[str]:
        if not self._api_key:
            logger.warning("Etherscan API key not configured; no transaction history")
            return []

        data = self._call({
            "module": "account",
            "action": "txlist",
            "address": address,
            "startblock": 0,
            "endblock": 99999999,
            "page": 1,
            "offset": max(1, int(limit)),
            "sort": "desc",
        })

        rows = self._list_result(data)
        hashes: List[str] = []
        for r in rows:
            h = r.get("hash") if isinstance(r, dict) else None
            if h and h not in hashes:
                hashes.append(h)
        return hashes[:limit]
