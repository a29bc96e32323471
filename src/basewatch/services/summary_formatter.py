from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Optional

from basewatch.config import settings
from basewatch.core.models import BuyResult, SellResult, SwapResult, TransactionAnalysis


CENT = Decimal("0.01")
SWAP_AMOUNT_STEP = Decimal("0.0001")


def _dec(val: str) -> Decimal:
    try:
        d = Decimal(str(val))
    except (InvalidOperation, ValueError):
        return Decimal("0")
    return d if d.is_finite() else Decimal("0")


def usd_estimate(eth_amount: str, eth_usd: Decimal = settings.ETH_USD_FALLBACK) -> str:
    """
    Approximate USD value at a fixed ETH rate; not a live price.
    """
    eth = _dec(eth_amount)
    if eth <= 0:
        return "N/A"
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, eth.adjusted() + eth_usd.adjusted() + 8)
        return str((eth * eth_usd).quantize(CENT, rounding=ROUND_HALF_UP))


def _amount_4dp(scaled_value: str) -> str:
    amount = _dec(scaled_value)
    # uint256 amounts can exceed the default 28 significant digits
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, amount.adjusted() + 6)
        return str(amount.quantize(SWAP_AMOUNT_STEP, rounding=ROUND_HALF_UP))


def format_summary(
    analysis: Optional[TransactionAnalysis],
    wallet_label: Optional[str] = None,
    eth_usd: Decimal = settings.ETH_USD_FALLBACK,
) -> Optional[str]:
    """
    Telegram Markdown notification for a BUY / SELL / SWAP analysis.

    Returns None when nothing should be sent.
    """
    if analysis is None:
        return None

    link = f"[BaseScan]({settings.EXPLORER_TX_URL}{analysis.tx_hash})"
    wallet = wallet_label or "Wallet"
    result = analysis.result

    if isinstance(result, BuyResult):
        lines = [
            "🟢 *BUY*",
            "",
            f"Wallet: `{wallet}`",
            f"Amount: ${usd_estimate(result.eth_spent, eth_usd)} USD",
            f"Token: {result.token_bought.token_symbol}",
            f"Contract: `{result.token_bought.token_address}`",
            "",
            link,
        ]
    elif isinstance(result, SellResult):
        lines = [
            "🔴 *SELL*",
            "",
            f"Wallet: `{wallet}`",
            f"Amount: ${usd_estimate(result.eth_received, eth_usd)} USD",
            f"Token: {result.token_sold.token_symbol}",
            f"Contract: `{result.token_sold.token_address}`",
            "",
            link,
        ]
    elif isinstance(result, SwapResult):
        token_in, token_out = result.token_in, result.token_out
        lines = [
            "🔄 *SWAP*",
            "",
            f"Wallet: `{wallet}`",
            (
                f"{_amount_4dp(token_in.scaled_value)} {token_in.token_symbol} → "
                f"{_amount_4dp(token_out.scaled_value)} {token_out.token_symbol}"
            ),
            "",
            f"Contract: `{token_out.token_address}`",
            "",
            link,
        ]
    else:
        return None

    return "\n".join(lines)
