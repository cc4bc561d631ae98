from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Mapping, Tuple, Union


FIELD_NAMES = ("ip", "timestamp", "url", "status", "user_agent")


@dataclass(frozen=True)
class LogRecord:
    """
    One web server log entry.

    Built by the parser from exactly one input line and never
    mutated afterwards. Every downstream stage reads these.
    """
    ip: str
    timestamp: str
    url: str
    status: int
    user_agent: str

    def as_row(self) -> List[str]:
        return [self.ip, self.timestamp, self.url, str(self.status), self.user_agent]


class ParseErrorKind(str, Enum):
    FIELD_COUNT_MISMATCH = "field_count_mismatch"
    BAD_STATUS = "bad_status"


@dataclass(frozen=True)
class ParseError:
    """
    A malformed input line.

    This is a value, not an exception: the batch keeps going.
    """
    kind: ParseErrorKind
    line: int
    raw: str
    detail: str = ""


ParseResult = Union[LogRecord, ParseError]

Row = List[str]


# ---------- Aggregation results ----------

@dataclass(frozen=True)
class TotalCount:
    count: int
    name: str = "total_requests"

    def rows(self) -> Iterator[Row]:
        yield ["total_requests"]
        yield [str(self.count)]


@dataclass(frozen=True)
class StatusHistogram:
    counts: Mapping[int, int]
    name: str = "status_histogram"

    def total(self) -> int:
        return sum(self.counts.values())

    def rows(self) -> Iterator[Row]:
        yield ["status", "count"]
        for status in sorted(self.counts):
            yield [str(status), str(self.counts[status])]


@dataclass(frozen=True)
class TopEntities:
    name: str
    column: str
    entries: Tuple[Tuple[str, int], ...]

    def keys(self) -> List[str]:
        return [key for key, _ in self.entries]

    def rows(self) -> Iterator[Row]:
        yield [self.column, "count"]
        for key, count in self.entries:
            yield [key, str(count)]


@dataclass(frozen=True)
class SuspiciousIPs:
    # ip -> failed request count, insertion order == first seen
    counts: Mapping[str, int]
    threshold: int
    name: str = "suspicious_ips"

    def ranked(self) -> List[Tuple[str, int]]:
        # stable sort: equal counts keep first-seen order
        return sorted(self.counts.items(), key=lambda item: item[1], reverse=True)

    def rows(self) -> Iterator[Row]:
        yield ["ip", "failed_count"]
        for ip, count in self.ranked():
            yield [ip, str(count)]


@dataclass(frozen=True)
class TrafficTrend:
    buckets: Tuple[Tuple[str, int], ...]
    name: str = "traffic_trend"

    def rows(self) -> Iterator[Row]:
        yield ["minute", "count"]
        for minute, count in self.buckets:
            yield [minute, str(count)]


AggregationResult = Union[
    TotalCount,
    StatusHistogram,
    TopEntities,
    SuspiciousIPs,
    TrafficTrend,
]


# ---------- Partitions ----------

@dataclass(frozen=True)
class Partition:
    """
    All valid records sharing one status code, in input order.
    """
    status: int
    records: Tuple[LogRecord, ...] = field(default_factory=tuple)

    @property
    def name(self) -> str:
        return f"partition_{self.status}"

    def __len__(self) -> int:
        return len(self.records)

    def rows(self) -> Iterator[Row]:
        yield list(FIELD_NAMES)
        for record in self.records:
            yield record.as_row()
