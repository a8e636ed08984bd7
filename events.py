import gzip
import logging
import zlib
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import IO, Iterator, Union

import orjson

logger = logging.getLogger(__name__)


class BookAnalyzerError(Exception):
    """Base class for book analyzer errors."""


class MalformedRecordError(BookAnalyzerError):
    """The leading timestamp/type tokens of a record could not be parsed. Ends the feed."""


class InvalidEventError(BookAnalyzerError):
    """A recognised record carries bad trailing fields. The record is skipped."""


class Side(Enum):
    BID = "B"
    ASK = "S"


@dataclass(frozen=True)
class AddOrder:
    timestamp: int
    order_id: str
    side: Side
    price: Decimal
    size: int


@dataclass(frozen=True)
class ReduceOrder:
    timestamp: int
    order_id: str
    size: int


@dataclass(frozen=True)
class UnknownEvent:
    timestamp: int
    kind: str


Event = Union[AddOrder, ReduceOrder, UnknownEvent]


def _parse_timestamp(raw) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise MalformedRecordError(f"Unparsable timestamp: {raw!r}")


def _parse_side(raw) -> Side:
    try:
        return Side(str(raw))
    except ValueError:
        raise InvalidEventError(f"Unknown side: {raw!r}")


def _parse_price(raw) -> Decimal:
    try:
        price = Decimal(str(raw))
    except InvalidOperation:
        raise InvalidEventError(f"Unparsable price: {raw!r}")
    if not price.is_finite():
        raise InvalidEventError(f"Non-finite price: {raw!r}")
    return price


def _parse_size(raw) -> int:
    if isinstance(raw, float) or isinstance(raw, bool):
        raise InvalidEventError(f"Size must be an integer: {raw!r}")
    try:
        size = int(raw)
    except (TypeError, ValueError):
        raise InvalidEventError(f"Unparsable size: {raw!r}")
    if size <= 0:
        raise InvalidEventError(f"Size must be positive: {raw!r}")
    return size


def _build_event(timestamp: int, kind: str, fields: list) -> Event:
    if kind == "A":
        if len(fields) < 4:
            raise InvalidEventError(f"Add record needs 4 fields, got {len(fields)}")
        order_id, side, price, size = fields[:4]
        return AddOrder(timestamp, str(order_id), _parse_side(side), _parse_price(price), _parse_size(size))
    if kind == "R":
        if len(fields) < 2:
            raise InvalidEventError(f"Reduce record needs 2 fields, got {len(fields)}")
        order_id, size = fields[:2]
        return ReduceOrder(timestamp, str(order_id), _parse_size(size))
    return UnknownEvent(timestamp, kind)


def parse_line(line: str) -> Event:
    """
    Parses one whitespace-separated record:

        <timestamp> A <order_id> <B|S> <price> <size>
        <timestamp> R <order_id> <size>

    A blank line has no timestamp/type and is malformed like any other.
    """
    tokens = line.split()
    if not tokens:
        raise MalformedRecordError("Blank record")
    if len(tokens) < 2:
        raise MalformedRecordError(f"Missing type token in record: {line.strip()!r}")
    timestamp = _parse_timestamp(tokens[0])
    return _build_event(timestamp, tokens[1], tokens[2:])


def parse_json(record: dict) -> Event:
    """Parses one JSON-lines record with the same semantics as parse_line."""
    if not isinstance(record, dict) or "timestamp" not in record or not record.get("type"):
        raise MalformedRecordError(f"Missing timestamp/type in record: {record!r}")
    if isinstance(record["timestamp"], (float, bool)):
        raise MalformedRecordError(f"Unparsable timestamp: {record['timestamp']!r}")
    timestamp = _parse_timestamp(record["timestamp"])
    kind = str(record["type"])
    if kind == "A":
        fields = [record.get(k) for k in ("order_id", "side", "price", "size")]
    elif kind == "R":
        fields = [record.get(k) for k in ("order_id", "size")]
    else:
        fields = []
    if any(f is None for f in fields):
        raise InvalidEventError(f"Missing fields in record: {record!r}")
    return _build_event(timestamp, kind, fields)


def _open_binary(path: str) -> IO[bytes]:
    if path.endswith(".gz"):
        return gzip.open(path, "rb")
    return open(path, "rb")


def iter_events(lines, fmt: str = "text") -> Iterator[Event]:
    """
    Yields typed events from an iterable of raw lines (str, or UTF-8 bytes).

    A malformed leading timestamp/type stops the feed, as does a line that
    cannot be read or decoded; records with bad trailing fields are skipped.
    """
    if fmt not in ("text", "jsonl"):
        raise ValueError(f"Unknown input format: {fmt}")

    it = iter(lines)
    line_no = 0
    while True:
        line_no += 1
        try:
            line = next(it)
            if isinstance(line, bytes):
                line = line.decode("utf-8")
        except StopIteration:
            return
        except (UnicodeDecodeError, EOFError, OSError, zlib.error) as e:
            logger.error("Stopping feed at line %d: unreadable input: %s", line_no, e)
            return

        try:
            if fmt == "jsonl":
                if not line.strip():
                    raise MalformedRecordError("Blank record")
                try:
                    record = orjson.loads(line)
                except orjson.JSONDecodeError as e:
                    raise MalformedRecordError(f"Invalid JSON: {e}")
                event = parse_json(record)
            else:
                event = parse_line(line)
        except MalformedRecordError as e:
            logger.error("Stopping feed at line %d: %s", line_no, e)
            return
        except InvalidEventError as e:
            logger.warning("Skipping line %d: %s", line_no, e)
            continue

        yield event


def read_events(source: Union[str, IO], fmt: str = "text") -> Iterator[Event]:
    """Reads events from a path (plain or .gz) or an already open stream."""
    if isinstance(source, str):
        logger.info("Reading %s events from %s", fmt, source)
        with _open_binary(source) as f:
            yield from iter_events(f, fmt)
    else:
        yield from iter_events(source, fmt)
