from __future__ import annotations

from decimal import Decimal, InvalidOperation

from .constants import TOKEN_DECIMALS


def token_decimals(symbol: str) -> int:
    """Return the decimals used for ``symbol`` (6 for USDC, 18 otherwise)."""
    return TOKEN_DECIMALS.get(symbol.upper(), 18)


def parse_amount(amount: object) -> Decimal:
    """Parse a human amount into a finite ``Decimal``.

    Floats are routed through ``str`` so that ``0.1`` stays ``0.1``.

    Raises:
        ValueError: If the value is empty, not numeric, or not finite.
    """
    if isinstance(amount, bool) or amount is None:
        raise ValueError(f"Invalid amount: {amount!r}")
    text = str(amount).strip()
    if not text:
        raise ValueError("Invalid amount: empty string")
    try:
        value = Decimal(text)
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {amount!r}") from e
    if not value.is_finite():
        raise ValueError(f"Invalid amount: {amount!r}")
    return value


def to_base_units(amount: object, decimals: int) -> int:
    """Convert a human decimal amount into the token's smallest integer unit.

    Args:
        amount: Decimal string (or number) in human units, e.g. ``"10.5"``.
        decimals: Token decimals.

    Returns:
        Integer amount scaled by ``10**decimals``.

    Raises:
        ValueError: If the amount is unparsable or carries more fractional
            digits than ``decimals`` allows.
    """
    value = parse_amount(amount)
    scaled = value.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(
            f"Amount {amount!r} has more than {decimals} fractional digits"
        )
    return int(scaled)


def from_base_units(value: int, decimals: int) -> str:
    """Format a smallest-unit integer as a plain decimal string.

    Trailing zeros are stripped and exponent notation is never used,
    so ``from_base_units(10_000_000, 6) == "10"``.
    """
    quantity = Decimal(value).scaleb(-decimals)
    text = format(quantity, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"
