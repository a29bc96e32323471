from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict

from basewatch.core.dto import TransferEvent
from basewatch.core.models import BuyResult, SellResult, SwapResult, TransactionAnalysis


def _dec_to_str(x: Decimal) -> str:
    # keep as string for JSON precision safety
    return format(x, "f")


def transfer_to_dict(t: TransferEvent) -> Dict[str, Any]:
    return {
        "token_address": t.token_address,
        "token_symbol": t.token_symbol,
        "token_name": t.token_name,
        "decimals": t.decimals,
        "from": t.from_address,
        "to": t.to_address,
        "raw_value": str(t.raw_value),
        "scaled_value": t.scaled_value,
    }


def analysis_to_dict(a: TransactionAnalysis) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "hash": a.tx_hash,
        "type": a.type.value,
        "dex": a.dex,
        "gas_used": str(a.gas_used),
        "status": a.status.value,
    }

    r = a.result
    if isinstance(r, SwapResult):
        out["token_in"] = transfer_to_dict(r.token_in)
        out["token_out"] = transfer_to_dict(r.token_out)
    elif isinstance(r, BuyResult):
        out["token_bought"] = transfer_to_dict(r.token_bought)
        out["eth_spent"] = _dec_to_str(Decimal(r.eth_spent))
    elif isinstance(r, SellResult):
        out["token_sold"] = transfer_to_dict(r.token_sold)
        out["eth_received"] = _dec_to_str(Decimal(r.eth_received))

    out["all_transfers"] = [transfer_to_dict(t) for t in r.all_transfers]
    return out
