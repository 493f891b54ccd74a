"""
Display helpers shared by the scene builder and the hosts.

These follow the conventions of the splits explorer so links and labels
line up with what users see elsewhere.
"""

from __future__ import annotations

WEI_PER_ETHER = 10 ** 18


def explorer_url(identifier: str, chain_id: int = 11155111, base_url: str = "https://app.splits.org") -> str:
    """Return the explorer page for an account, e.g. `.../accounts/0xabc/?chainId=1`."""
    return f"{base_url.rstrip('/')}/accounts/{identifier}/?chainId={chain_id}"


def truncate_identifier(identifier: str) -> str:
    """Shorten an identifier to its first 6 and last 4 characters.

    `0xAAAAbbbbccccdddd1234` -> `0xAAAA...1234`. Short identifiers are not
    special-cased, so the two halves may overlap.
    """
    return f"{identifier[:6]}...{identifier[-4:]}"


def format_percentage(value: float) -> str:
    return f"{value:.1f}%"


def format_balance(balance: str, currency_symbol: str = "ETH") -> str:
    return f"{balance} {currency_symbol}".strip()


def format_ether(wei: int) -> str:
    """
    Format an integer wei amount as a decimal ether string.

    Matches the usual wallet formatting: no exponent, no trailing zeros and
    no trailing decimal point (`1500000000000000000` -> `"1.5"`).
    """
    wei = int(wei)
    sign = "-" if wei < 0 else ""
    whole, frac = divmod(abs(wei), WEI_PER_ETHER)
    if frac == 0:
        return f"{sign}{whole}"
    frac_text = f"{frac:018d}".rstrip("0")
    return f"{sign}{whole}.{frac_text}"

