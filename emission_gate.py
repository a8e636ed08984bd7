import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from cost_estimator import Filled, Result

logger = logging.getLogger(__name__)

SELL_LABEL = "S"
BUY_LABEL = "B"


@dataclass(frozen=True)
class Emission:
    """One output line. A value of None is the NA (insufficient depth) sentinel."""
    timestamp: int
    label: str
    value: Optional[Decimal]

    @property
    def is_na(self) -> bool:
        return self.value is None

    def format(self) -> str:
        value_str = "NA" if self.value is None else f"{self.value:.2f}"
        return f"{self.timestamp} {self.label} {value_str}"

    def to_dict(self) -> dict:
        return {
            'timestamp': self.timestamp,
            'label': self.label,
            'value': None if self.value is None else f"{self.value:.2f}",
        }


class EmissionGate:
    """
    Remembers what was last emitted on one output line and suppresses
    repeats. Starts in the NA state with no prior value, so a line stays
    silent until it first fills.
    """
    def __init__(self, label: str):
        self.label = label
        self.last_value: Optional[Decimal] = None
        self.is_na = True

    def maybe_emit(self, result: Result, timestamp: int) -> Optional[Emission]:
        if not isinstance(result, Filled):
            if self.is_na:
                return None
            self.is_na = True
            return Emission(timestamp, self.label, None)

        changed = self.is_na or result.notional != self.last_value
        self.last_value = result.notional
        self.is_na = False
        if not changed:
            logger.debug("Line %s unchanged at %s", self.label, result.notional)
            return None
        return Emission(timestamp, self.label, result.notional)
