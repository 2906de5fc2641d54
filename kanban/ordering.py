"""Helpers for the dense zero-based ``order`` sequences of columns and cards."""
from typing import Iterable, Optional


def clamp_order(order: Optional[int], size: int) -> int:
    """Clamp a requested slot into ``0..size``; ``None`` means append."""
    if order is None:
        return size
    return max(0, min(order, size))


def is_dense(orders: Iterable[int]) -> bool:
    """True when ``orders`` is exactly ``{0, 1, ..., N-1}`` with no repeats."""
    values = sorted(orders)
    return values == list(range(len(values)))
