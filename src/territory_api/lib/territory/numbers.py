"""House-number and interval helpers."""

import re

_DIGITS = re.compile(r"\d+")


def parse_municipal_number(value: str | int | None) -> int | None:
    """Extract the numeric part of a municipal number as printed on a facade.

    Only the first run of digits counts, so ``"450-A"`` gives 450 and
    ``"12-14"`` gives 12 (the lower number of a double-numbered lot).

    Args:
        value: Municipal number text, an int, or None.

    Returns:
        The house number, or None when the value holds no digits.
    """
    if value is None:
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    match = _DIGITS.search(value)
    if match is None:
        return None
    return int(match.group())


def normalize_block(value: str | None) -> str | None:
    """Trim and uppercase a block label; blank labels become None."""
    if value is None:
        return None
    cleaned = value.strip().upper()
    return cleaned or None


def is_even(number: int) -> bool:
    return number % 2 == 0


def interval_intersection(
    a_start: int,
    a_end: int,
    b_start: int,
    b_end: int,
) -> tuple[int, int] | None:
    """Intersect two closed integer intervals.

    Returns:
        The shared ``(start, end)`` interval, or None if they are disjoint.
    """
    if a_start <= b_end and b_start <= a_end:
        return max(a_start, b_start), min(a_end, b_end)
    return None
