from __future__ import annotations

CANONICAL_DECIMALS = 18


class MalformedAmount(ValueError):
    """Raised when a raw amount string cannot be parsed as a non-negative number."""

    def __init__(self, amount: object, reason: str):
        super().__init__(f"Malformed amount {amount!r}: {reason}")
        self.amount = amount
        self.reason = reason


def scale_to_18(value: int, decimals: int) -> int:
    """Scale an integer amount to 18 decimals.

    Args:
        value: Integer amount expressed with ``decimals`` decimal places.
        decimals: Current decimal precision of ``value``.

    Returns:
        The amount scaled to 18-decimal precision.

    Notes:
        - If ``decimals`` < 18, multiplies by 10**(18 - decimals).
        - If ``decimals`` > 18, uses integer division (truncates toward zero).
          The remainder is dropped; this precision loss is accepted for
          high-decimal tokens.
    """
    if decimals == CANONICAL_DECIMALS:
        return value
    if decimals < CANONICAL_DECIMALS:
        return value * (10 ** (CANONICAL_DECIMALS - decimals))
    return value // (10 ** (decimals - CANONICAL_DECIMALS))


def _parse_digits(amount: str, part: str) -> int:
    if not part.isdigit() or not part.isascii():
        raise MalformedAmount(amount, "expected only ASCII digits")
    return int(part)


def parse_units(amount: str, decimals: int) -> int:
    """Convert a human-readable decimal string to the token's smallest unit.

    Fraction digits beyond ``decimals`` are truncated.

    Example:
        parse_units("100.5", 6) == 100_500_000
    """
    whole, _, fraction = amount.partition(".")
    if not whole and not fraction:
        raise MalformedAmount(amount, "no digits")
    whole_value = _parse_digits(amount, whole) if whole else 0
    if fraction:
        _parse_digits(amount, fraction)
    fraction = fraction[:decimals]
    fraction_value = int(fraction) if fraction else 0
    return whole_value * 10**decimals + fraction_value * 10 ** (
        decimals - len(fraction)
    )


def normalize_to_wei(amount: str, decimals: int) -> int:
    """Normalize a token amount string to the canonical 18-decimal integer.

    Accepts both the token's native integer form ("6450000") and the
    human-readable form ("6.45"); the presence of a decimal point selects
    which one is parsed. Arithmetic stays on Python ints throughout.

    Args:
        amount: Amount as a string, native units or decimal notation.
        decimals: Number of decimals of the source token.

    Returns:
        Amount in 18-decimal fixed-point units.

    Raises:
        MalformedAmount: If the string is empty, negative, or not a plain
            base-10 number, or if ``decimals`` is negative.

    Example:
        normalize_to_wei("100", 18) == 100 * 10**18
        normalize_to_wei("100.5", 6) == 100_500_000 * 10**12
        normalize_to_wei("1000000", 6) == 10**18
    """
    text = _checked(amount, decimals)
    if "." in text:
        native = parse_units(text, decimals)
    else:
        native = _parse_digits(amount, text)

    return scale_to_18(native, decimals)


def decimal_to_wei(amount: str, decimals: int = CANONICAL_DECIMALS) -> int:
    """Normalize a human-readable amount ("7.25", or "7" meaning 7 tokens).

    Subgraph ``BigDecimal`` fields are always in whole-token units, so a
    missing decimal point must not be read as a native integer amount.
    """
    text = _checked(amount, decimals)
    return scale_to_18(parse_units(text, decimals), decimals)


def parse_native(amount: str) -> int:
    """Parse an integer amount in the token's smallest unit, without scaling."""
    text = _checked(amount, 0)
    if "." in text:
        raise MalformedAmount(amount, "expected an integer amount")
    return _parse_digits(amount, text)


def _checked(amount: str, decimals: int) -> str:
    if not isinstance(amount, str):
        raise MalformedAmount(amount, "expected a string")
    if isinstance(decimals, bool) or not isinstance(decimals, int) or decimals < 0:
        raise MalformedAmount(amount, f"invalid decimals {decimals!r}")

    text = amount.strip()
    if not text:
        raise MalformedAmount(amount, "empty string")
    if text.startswith("-"):
        raise MalformedAmount(amount, "negative amounts are not allowed")
    if text.count(".") > 1:
        raise MalformedAmount(amount, "more than one decimal point")
    return text


def format_units(value: int, decimals: int = CANONICAL_DECIMALS) -> str:
    """Render a fixed-point integer as a plain decimal string.

    Trailing fractional zeros are dropped, so ``8 * 10**18`` renders as "8"
    and ``15 * 10**17`` as "1.5".
    """
    sign = "-" if value < 0 else ""
    whole, fraction = divmod(abs(value), 10**decimals)
    if decimals == 0 or fraction == 0:
        return f"{sign}{whole}"
    fraction_str = str(fraction).rjust(decimals, "0").rstrip("0")
    return f"{sign}{whole}.{fraction_str}"
