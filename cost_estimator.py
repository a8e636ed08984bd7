from dataclasses import dataclass
from decimal import Decimal
from typing import Union

from order_book import SideBook


@dataclass(frozen=True)
class Filled:
    notional: Decimal


class InsufficientDepth:
    """Sentinel result: the side cannot fill the target size."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "INSUFFICIENT_DEPTH"


INSUFFICIENT_DEPTH = InsufficientDepth()

Result = Union[Filled, InsufficientDepth]


def compute(book: SideBook, target: int) -> Result:
    """
    Notional value of the best `target` units resting on `book`.

    Walks levels from the best price outwards, taking whole levels until the
    terminal one, from which only the units still needed are taken. Which
    orders inside the terminal level supply those units does not matter:
    they share the level price, so the result is independent of intra-level
    ordering.
    """
    if target <= 0:
        raise ValueError(f"Target size must be positive, got {target}")

    filled = 0
    notional = Decimal(0)

    for level in book.levels():
        take = min(level.size, target - filled)
        if take <= 0:
            continue
        notional += take * level.price
        filled += take
        if filled >= target:
            return Filled(notional)

    return INSUFFICIENT_DEPTH
