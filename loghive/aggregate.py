import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, List, Sequence

from .errors import InvalidArgumentError
from .types import (
    AggregationResult,
    LogRecord,
    StatusHistogram,
    SuspiciousIPs,
    TopEntities,
    TotalCount,
    TrafficTrend,
)


logger = logging.getLogger(__name__)


FAILURE_STATUSES = (404, 500)

DEFAULT_TOP_N = 3
DEFAULT_SUSPICIOUS_THRESHOLD = 3
DEFAULT_TRUNCATE_LEN = 16


# ---------- Internal helpers ----------

def _count_by(records: Iterable[LogRecord], key: Callable[[LogRecord], object]) -> Counter:
    # Counter keeps first-insertion order, which is the tie-break order
    counts: Counter = Counter()
    for record in records:
        counts[key(record)] += 1
    return counts


def _check_positive(name: str, value: int):
    if value <= 0:
        raise InvalidArgumentError(f"{name} must be > 0, got {value}")


# ---------- Queries ----------

def total_requests(records: Iterable[LogRecord]) -> TotalCount:
    return TotalCount(count=sum(1 for _ in records))


def status_histogram(records: Iterable[LogRecord]) -> StatusHistogram:
    return StatusHistogram(counts=dict(_count_by(records, lambda r: r.status)))


def top_entities(
    records: Iterable[LogRecord],
    key: Callable[[LogRecord], str],
    n: int,
    name: str,
    column: str,
) -> TopEntities:
    """
    Group by key, count, keep the n biggest groups.

    sorted() is stable and the counter iterates in first-seen order,
    so equal counts stay in the order their keys first appeared.
    """
    _check_positive("top_n", n)

    counts = _count_by(records, key)
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)

    return TopEntities(name=name, column=column, entries=tuple(ranked[:n]))


def top_urls(records: Iterable[LogRecord], n: int = DEFAULT_TOP_N) -> TopEntities:
    return top_entities(records, lambda r: r.url, n, name="top_urls", column="url")


def top_user_agents(records: Iterable[LogRecord], n: int = DEFAULT_TOP_N) -> TopEntities:
    return top_entities(
        records,
        lambda r: r.user_agent,
        n,
        name="top_user_agents",
        column="user_agent",
    )


def suspicious_ips(
    records: Iterable[LogRecord],
    threshold: int = DEFAULT_SUSPICIOUS_THRESHOLD,
    failure_statuses: Sequence[int] = FAILURE_STATUSES,
) -> SuspiciousIPs:
    """
    IPs with more than `threshold` failed requests.

    Strictly greater-than: an IP with exactly `threshold` failures
    is not suspicious.
    """
    if threshold < 0:
        raise InvalidArgumentError(f"threshold must be >= 0, got {threshold}")

    failing = set(failure_statuses)
    failures = _count_by(
        (r for r in records if r.status in failing),
        lambda r: r.ip,
    )

    flagged: Dict[str, int] = {
        ip: count
        for ip, count in failures.items()
        if count > threshold
    }

    return SuspiciousIPs(counts=flagged, threshold=threshold)


def minute_bucket(timestamp: str, truncate_len: int = DEFAULT_TRUNCATE_LEN) -> str:
    """
    "2024-03-10 12:01:07" -> "2024-03-10 12:01"

    Assumes a fixed-width timestamp so lexical order is
    chronological order.
    """
    return timestamp[:truncate_len]


def traffic_trend(
    records: Iterable[LogRecord],
    truncate_len: int = DEFAULT_TRUNCATE_LEN,
) -> TrafficTrend:
    _check_positive("timestamp_truncate_len", truncate_len)

    counts = _count_by(records, lambda r: minute_bucket(r.timestamp, truncate_len))
    return TrafficTrend(buckets=tuple(sorted(counts.items())))


# ---------- Batch ----------

def run_all(
    records: Sequence[LogRecord],
    top_n: int = DEFAULT_TOP_N,
    threshold: int = DEFAULT_SUSPICIOUS_THRESHOLD,
    truncate_len: int = DEFAULT_TRUNCATE_LEN,
    max_workers: int = 1,
) -> List[AggregationResult]:
    """
    Run the six analyses over an already materialized record sequence.

    Every query only reads `records`, so they can share it across
    threads without locking. Results come back in a fixed order.
    """
    _check_positive("top_n", top_n)
    _check_positive("timestamp_truncate_len", truncate_len)
    if threshold < 0:
        raise InvalidArgumentError(f"threshold must be >= 0, got {threshold}")

    queries: List[Callable[[], AggregationResult]] = [
        lambda: total_requests(records),
        lambda: status_histogram(records),
        lambda: top_urls(records, top_n),
        lambda: top_user_agents(records, top_n),
        lambda: suspicious_ips(records, threshold),
        lambda: traffic_trend(records, truncate_len),
    ]

    if max_workers <= 1:
        results = [query() for query in queries]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(query) for query in queries]
            results = [future.result() for future in futures]

    logger.info(
        "ran %d queries over %d records", len(results), len(records)
    )
    return results
