import logging
from typing import Callable, Iterable, Iterator, List, Optional

import cost_estimator
from emission_gate import BUY_LABEL, SELL_LABEL, Emission, EmissionGate
from events import AddOrder, Event, ReduceOrder, Side
from order_book import OrderBook
from order_index import OrderIndex

logger = logging.getLogger(__name__)


class BookAnalyzer:
    """
    Replays order-book events for one instrument and reports, after every
    change to resting liquidity, the notional of trading `target` units
    against the book right now.

    Bid liquidity feeds the "S" line (proceeds of selling `target` units);
    ask liquidity feeds the "B" line (cost of buying `target` units).
    """

    def __init__(self, target: int, clamp_reductions: bool = True,
                 emit_callback: Optional[Callable[[Emission], None]] = None):
        if target <= 0:
            raise ValueError(f"Target size must be positive, got {target}")
        self.target = target
        self.clamp_reductions = clamp_reductions
        self.emit_callback = emit_callback

        self.book = OrderBook()
        self.index = OrderIndex()
        self._gates = {
            Side.BID: EmissionGate(SELL_LABEL),
            Side.ASK: EmissionGate(BUY_LABEL),
        }
        self.events_processed = 0

    def gate(self, side: Side) -> EmissionGate:
        return self._gates[side]

    def apply(self, event: Event) -> List[Emission]:
        """Applies one event and returns the output lines it produced (zero or one)."""
        self.events_processed += 1
        if isinstance(event, AddOrder):
            emission = self._on_add(event)
        elif isinstance(event, ReduceOrder):
            emission = self._on_reduce(event)
        else:
            logger.debug("Ignoring unrecognised event %r", event)
            emission = None

        if emission is None:
            return []
        logger.debug("Emitting %s | %s", emission.format(), self.book)
        if self.emit_callback is not None:
            self.emit_callback(emission)
        return [emission]

    def run(self, events: Iterable[Event]) -> Iterator[Emission]:
        """Processes events in input order, yielding each output line as it is produced."""
        for event in events:
            yield from self.apply(event)
        logger.info("Processed %d events; %d orders still resting", self.events_processed, len(self.index))

    def _recompute(self, side: Side, timestamp: int) -> Optional[Emission]:
        result = cost_estimator.compute(self.book.side(side), self.target)
        return self._gates[side].maybe_emit(result, timestamp)

    def _on_add(self, event: AddOrder) -> Optional[Emission]:
        if not self.index.insert(event.order_id, event.side, event.price):
            logger.warning("Ignoring add for order %s at %d: id is already resting", event.order_id, event.timestamp)
            return None

        side_book = self.book.side(event.side)
        side_book.add_order(event.order_id, event.price, event.size)

        if side_book.total_size >= self.target:
            return self._recompute(event.side, event.timestamp)
        return None

    def _on_reduce(self, event: ReduceOrder) -> Optional[Emission]:
        location = self.index.lookup(event.order_id)
        if location is None:
            logger.debug("Ignoring reduction for unknown order %s at %d", event.order_id, event.timestamp)
            return None

        side, price = location
        side_book = self.book.side(side)
        outcome = side_book.reduce_at(price, event.order_id, event.size, clamp=self.clamp_reductions)
        if not outcome.found:
            # Index and book disagree; drop the stale entry.
            logger.error("Order %s indexed at %s but missing from the %s book", event.order_id, price, side.name)
            self.index.remove(event.order_id)
            return None

        if outcome.removed:
            self.index.remove(event.order_id)

        if side_book.total_size >= self.target:
            return self._recompute(side, event.timestamp)
        return self._gates[side].maybe_emit(cost_estimator.INSUFFICIENT_DEPTH, event.timestamp)
