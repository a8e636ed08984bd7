import logging
from decimal import Decimal
from typing import Dict, Iterator, NamedTuple

from sortedcontainers import SortedDict

from events import Side

logger = logging.getLogger(__name__)


class PriceLevel:
    """
    The distinct orders resting at one price, keyed by order id.
    """
    __slots__ = ("price", "orders")

    def __init__(self, price: Decimal):
        self.price = price
        self.orders: Dict[str, int] = {}

    @property
    def size(self) -> int:
        return sum(self.orders.values())

    def __len__(self) -> int:
        return len(self.orders)

    def __repr__(self):
        return f"PriceLevel(price={self.price}, size={self.size}, orders={len(self.orders)})"


class ReduceOutcome(NamedTuple):
    found: bool
    removed: bool = False
    level_removed: bool = False
    applied: int = 0


class SideBook:
    """
    Price-ordered levels for one side of the book.

    Both sides share this implementation. Levels are stored in a SortedDict
    keyed by price for asks and by -price for bids, so iterating the dict
    always walks from the best price outwards.
    """
    def __init__(self, side: Side):
        self.side = side
        self._sign = -1 if side is Side.BID else 1
        self._levels: SortedDict = SortedDict()
        self.total_size = 0

    def _key(self, price: Decimal) -> Decimal:
        return price * self._sign

    def add_order(self, order_id: str, price: Decimal, size: int):
        """Rests `size` units for `order_id` at `price`, creating the level if needed."""
        key = self._key(price)
        level = self._levels.get(key)
        if level is None:
            level = PriceLevel(price)
            self._levels[key] = level
        level.orders[order_id] = size
        self.total_size += size

    def reduce_at(self, price: Decimal, order_id: str, amount: int, clamp: bool = True) -> ReduceOutcome:
        """
        Reduces the order resting at `price` by `amount`.

        The order is dropped once its remaining size reaches zero or below and
        the level is dropped once it holds no orders. With clamp=False the side
        total is decremented by the full requested amount even when it exceeds
        what the order had left.
        """
        key = self._key(price)
        level = self._levels.get(key)
        if level is None:
            return ReduceOutcome(found=False)
        remaining = level.orders.get(order_id)
        if remaining is None:
            return ReduceOutcome(found=False)

        if amount > remaining:
            logger.warning(
                "Reduction of %d exceeds remaining size %d for order %s at %s (%s side)",
                amount, remaining, order_id, price, self.side.name
            )
        applied = min(amount, remaining) if clamp else amount
        self.total_size -= applied

        left = remaining - amount
        if left > 0:
            level.orders[order_id] = left
            return ReduceOutcome(found=True, applied=applied)

        del level.orders[order_id]
        if level.orders:
            return ReduceOutcome(found=True, removed=True, applied=applied)

        del self._levels[key]
        return ReduceOutcome(found=True, removed=True, level_removed=True, applied=applied)

    def levels(self) -> Iterator[PriceLevel]:
        """Yields levels best price first."""
        return iter(self._levels.values())

    def level_at(self, price: Decimal):
        return self._levels.get(self._key(price))

    @property
    def best_price(self) -> Decimal | None:
        if not self._levels:
            return None
        return self._levels.peekitem(0)[1].price

    def __len__(self) -> int:
        return len(self._levels)


class OrderBook:
    """
    Manages the resting bid and ask liquidity for a single instrument.
    """
    def __init__(self):
        self.bids = SideBook(Side.BID)
        self.asks = SideBook(Side.ASK)

    def side(self, side: Side) -> SideBook:
        return self.bids if side is Side.BID else self.asks

    @property
    def best_bid(self) -> Decimal | None:
        return self.bids.best_price

    @property
    def best_ask(self) -> Decimal | None:
        return self.asks.best_price

    @property
    def mid_price(self) -> Decimal | None:
        bid, ask = self.best_bid, self.best_ask
        return (bid + ask) / 2 if bid is not None and ask is not None else None

    @property
    def spread(self) -> Decimal | None:
        bid, ask = self.best_bid, self.best_ask
        return ask - bid if bid is not None and ask is not None else None

    def __str__(self):
        bid_str = f"{self.best_bid:.2f}" if self.best_bid is not None else "N/A"
        ask_str = f"{self.best_ask:.2f}" if self.best_ask is not None else "N/A"
        mid_price = self.mid_price
        mid_price_str = f"{mid_price:.3f}" if mid_price is not None else "N/A"
        spread = self.spread
        spread_str = f"{spread:.2f}" if spread is not None else "N/A"

        return (
            f"Book State | Best Bid: {bid_str} ({self.bids.total_size}) | "
            f"Best Ask: {ask_str} ({self.asks.total_size}) | Mid Price: {mid_price_str} | Spread: {spread_str}"
        )
