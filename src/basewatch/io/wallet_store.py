from __future__ import annotations

import datetime as dt
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Set

from basewatch.core.dto import WalletState


logger = logging.getLogger(__name__)


@dataclass
class TrackedWallets:
    """
    chat id -> lowercase wallet addresses, plus the last seen state per wallet.
    """

    watched: Dict[int, Set[str]] = field(default_factory=dict)
    last_checked: Dict[str, WalletState] = field(default_factory=dict)

    def add(self, chat_id: int, address: str) -> str:
        addr = address.lower()
        self.watched.setdefault(int(chat_id), set()).add(addr)
        return addr

    def remove(self, chat_id: int, address: str) -> bool:
        chat_id = int(chat_id)
        addresses = self.watched.get(chat_id)
        if addresses is None or address.lower() not in addresses:
            return False
        addresses.discard(address.lower())
        if not addresses:
            del self.watched[chat_id]
        return True

    def wallets_for_chat(self, chat_id: int) -> List[str]:
        return sorted(self.watched.get(int(chat_id), set()))

    def chats_for_wallet(self, address: str) -> List[int]:
        addr = address.lower()
        return [chat for chat, addresses in self.watched.items() if addr in addresses]

    def all_addresses(self) -> List[str]:
        out: Set[str] = set()
        for addresses in self.watched.values():
            out.update(addresses)
        return sorted(out)

    def summary(self) -> Dict[str, int]:
        return {
            "total_chats": len(self.watched),
            "total_wallets": len(self.all_addresses()),
        }


class WalletStore:
    def __init__(self, path: str) -> None:
        self.path = Path(path)

    def load(self) -> TrackedWallets:
        if not self.path.exists():
            logger.info("No saved wallets at %s, starting fresh", self.path)
            return TrackedWallets()

        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            state = _from_dict(data)
        except (OSError, KeyError, ValueError, TypeError, AttributeError) as exc:
            logger.warning("Could not load %s (%s), starting fresh", self.path, exc)
            return TrackedWallets()

        logger.info(
            "Loaded %d chat(s) tracking %d wallet(s), last saved %s",
            len(state.watched),
            len(state.all_addresses()),
            data.get("saved_at"),
        )
        return state

    def save(self, state: TrackedWallets) -> str:
        self.path.parent.mkdir(parents=True, exist_ok=True)

        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(_to_dict(state), f, indent=2)
        tmp_path.replace(self.path)

        logger.debug("Saved %d chat(s) with tracked wallets", len(state.watched))
        return str(self.path)


def _to_dict(state: TrackedWallets) -> Dict[str, Any]:
    return {
        # chat ids become strings as JSON keys
        "watched_wallets": {
            str(chat): sorted(addresses) for chat, addresses in state.watched.items()
        },
        "last_checked": {
            addr: {
                # wei balances overflow JSON doubles
                "balance_wei": str(s.balance_wei),
                "tx_count": s.tx_count,
            }
            for addr, s in state.last_checked.items()
        },
        "saved_at": dt.datetime.now(dt.timezone.utc).isoformat(),
    }


def _from_dict(data: Dict[str, Any]) -> TrackedWallets:
    state = TrackedWallets()
    for chat, addresses in (data.get("watched_wallets") or {}).items():
        for addr in addresses:
            state.add(int(chat), addr)
    for addr, info in (data.get("last_checked") or {}).items():
        state.last_checked[addr.lower()] = WalletState(
            balance_wei=int(info["balance_wei"]),
            tx_count=int(info["tx_count"]),
        )
    return state
