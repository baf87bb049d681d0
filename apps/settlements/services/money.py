"""
Exact money arithmetic in minor units (cents).

Amounts enter and leave the system as ``Decimal`` with two places;
everything in between is integer cents so splits and sums never drift.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import List, Sequence, Tuple, TypeVar

CENT = Decimal('0.01')

# Largest amount a two-place, 12-digit money column can hold.
MAX_AMOUNT_CENTS = 10 ** 12 - 1

T = TypeVar('T')


def to_cents(amount) -> int:
    """
    Convert a decimal-like amount to integer cents.

    Accepts ``Decimal``, ``int`` and numeric strings. Values with more
    than two places are rounded half-up, matching how the amount would
    be stored in a two-place decimal column.

    Raises:
        ValueError: If the amount is not a finite number, or has more
            digits than the decimal context can hold.
    """
    if isinstance(amount, bool) or amount is None:
        raise ValueError(f"Invalid amount: {amount!r}")
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f"Invalid amount: {amount!r}")
    if not value.is_finite():
        raise ValueError(f"Invalid amount: {amount!r}")
    try:
        return int(value.quantize(CENT, rounding=ROUND_HALF_UP) * 100)
    except InvalidOperation:
        raise ValueError(f"Amount out of range: {amount!r}")


def from_cents(cents: int) -> Decimal:
    """Convert integer cents back to a two-place ``Decimal``."""
    return (Decimal(cents) / 100).quantize(CENT)


def split_cents(total_cents: int, count: int) -> List[int]:
    """
    Split ``total_cents`` into ``count`` integer parts that sum exactly.

    Algorithm:
        1. ``base = total_cents // count``
        2. ``remainder = total_cents - base * count``
        3. The first ``remainder`` parts get ``base + 1``, the rest ``base``.

    Example:
        >>> split_cents(10000, 3)
        [3334, 3333, 3333]
    """
    if count <= 0:
        raise ValueError("At least one participant required")
    if total_cents < 0:
        raise ValueError("Total must not be negative")

    base = total_cents // count
    remainder = total_cents - base * count
    return [base + 1 if i < remainder else base for i in range(count)]


def split_amount(total_cents: int, recipients: Sequence[T]) -> List[Tuple[T, int]]:
    """
    Pair each recipient with its share of ``total_cents``.

    Order matters: the earliest recipients absorb the remainder cents.
    """
    shares = list(zip(recipients, split_cents(total_cents, len(recipients))))

    # Verification (safety check)
    if sum(cents for _, cents in shares) != total_cents:
        raise ValueError("Split calculation error")

    return shares
