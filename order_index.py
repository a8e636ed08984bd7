from decimal import Decimal
from typing import Dict, Optional, Tuple

from events import Side


class OrderIndex:
    """
    Maps a resting order id to the side and price it rests at, so a
    reduction can find its price level without scanning the book.
    """
    def __init__(self):
        self._orders: Dict[str, Tuple[Side, Decimal]] = {}

    def insert(self, order_id: str, side: Side, price: Decimal) -> bool:
        """Inserts the id if absent. Returns False (and keeps the existing entry) otherwise."""
        if order_id in self._orders:
            return False
        self._orders[order_id] = (side, price)
        return True

    def lookup(self, order_id: str) -> Optional[Tuple[Side, Decimal]]:
        return self._orders.get(order_id)

    def remove(self, order_id: str):
        self._orders.pop(order_id, None)

    def __contains__(self, order_id: str) -> bool:
        return order_id in self._orders

    def __len__(self) -> int:
        return len(self._orders)
