from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from web3 import Web3

from basewatch.core.dto import RawLog, TransferEvent
from basewatch.core.units import format_units
from basewatch.services.token_resolver import TokenMetadataResolver


logger = logging.getLogger(__name__)

# keccak256("Transfer(address,address,uint256)")
TRANSFER_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"

_TOPIC_HEX_LEN = 64     # 32-byte slot
_ADDRESS_HEX_LEN = 40   # rightmost 20 bytes


def _strip_0x(value: str) -> str:
    return value[2:] if value[:2].lower() == "0x" else value


def topic_to_address(topic: str) -> str:
    """Checksummed address held in the low 20 bytes of an indexed topic."""
    body = _strip_0x(topic)
    if len(body) != _TOPIC_HEX_LEN:
        raise ValueError(f"topic is not a 32-byte slot: {topic!r}")
    return Web3.to_checksum_address("0x" + body[-_ADDRESS_HEX_LEN:])


def data_to_uint(data: str) -> int:
    body = _strip_0x(data)
    if not body:
        raise ValueError("empty data payload")
    return int(body, 16)


class TransferLogDecoder:
    """
    Extracts ERC-20 Transfer events from receipt logs, in emission order.

    Anything that is not a well-formed Transfer(address,address,uint256)
    log (approvals, pool syncs, ERC-721 transfers with a fourth topic,
    garbage data) is skipped without error.
    """

    def __init__(self, resolver: TokenMetadataResolver) -> None:
        self.resolver = resolver

    def decode(self, logs: Iterable[RawLog]) -> List[TransferEvent]:
        transfers: List[TransferEvent] = []
        for log in logs:
            event = self._decode_one(log)
            if event is not None:
                transfers.append(event)
        return transfers

    def _decode_one(self, log: RawLog) -> Optional[TransferEvent]:
        topics = tuple(log.topics or ())
        if not topics or str(topics[0]).lower() != TRANSFER_TOPIC:
            return None
        if len(topics) != 3:
            logger.debug("Skipping Transfer log with %d topics from %s", len(topics), log.address)
            return None

        try:
            from_address = topic_to_address(topics[1])
            to_address = topic_to_address(topics[2])
            raw_value = data_to_uint(log.data)
        except (TypeError, ValueError) as exc:
            logger.debug("Skipping malformed Transfer log from %s: %s", log.address, exc)
            return None

        token = self.resolver.resolve(log.address)
        try:
            scaled_value = format_units(raw_value, token.decimals)
        except ValueError as exc:
            logger.debug("Skipping Transfer log from %s: %s", log.address, exc)
            return None

        return TransferEvent(
            token_address=log.address,
            token_symbol=token.symbol,
            token_name=token.name,
            decimals=token.decimals,
            from_address=from_address,
            to_address=to_address,
            raw_value=raw_value,
            scaled_value=scaled_value,
        )
