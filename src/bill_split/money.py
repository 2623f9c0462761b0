"""Exact money arithmetic helpers.

All amounts are Decimal dollars at the edges and integer cents inside the
engines. Rounding happens once, with ROUND_HALF_UP, when a value is turned
into cents.
"""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_cents(amount: Decimal) -> int:
    """
    Convert Decimal dollars to integer cents.
    Uses ROUND_HALF_UP for consistency.

    Args:
        amount: Dollar amount as Decimal

    Returns:
        Amount in cents (integer)
    """
    cents = Decimal(amount) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    """Convert integer cents back to a two-decimal Decimal."""
    return (Decimal(cents) / 100).quantize(CENT)


def quantize(amount: Decimal) -> Decimal:
    """Round a Decimal amount to cents (ROUND_HALF_UP)."""
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def percentage_of(part: Decimal, whole: Decimal) -> Decimal:
    """Informational share of ``whole`` as a two-decimal percentage."""
    if whole == 0:
        return ZERO
    return quantize(Decimal(part) / Decimal(whole) * 100)


def format_money(amount: Decimal, use_color: bool = False) -> str:
    """
    Format money in accounting style.

    Negative amounts use parentheses: ($85.02). With ``use_color`` the
    result carries rich markup (red for negatives, green otherwise).
    """
    if amount < 0:
        if use_color:
            return f"($[red]{abs(amount):,.2f}[/red])"
        return f"(${abs(amount):,.2f})"
    if use_color:
        return f"[green]${amount:,.2f}[/green]"
    return f"${amount:,.2f}"
