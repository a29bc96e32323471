from __future__ import annotations


WEI_DECIMALS = 18


def format_units(raw: int, decimals: int) -> str:
    """
    Exact fixed-point rendering of ``raw / 10**decimals``.

    Always keeps one fractional digit, so whole amounts render as ``"1.0"``.
    """
    raw = int(raw)
    decimals = int(decimals)
    if raw < 0:
        raise ValueError("raw amount must be unsigned")
    if decimals < 0:
        raise ValueError("decimals must be >= 0")

    if decimals == 0:
        return f"{raw}.0"

    whole, frac = divmod(raw, 10 ** decimals)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0") or "0"
    return f"{whole}.{frac_str}"


def format_ether(wei: int) -> str:
    return format_units(wei, WEI_DECIMALS)


def short_address(addr: str) -> str:
    if not addr:
        return ""
    if len(addr) <= 12:
        return addr
    return f"{addr[:6]}...{addr[-4:]}"
