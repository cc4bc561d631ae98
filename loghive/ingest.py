import logging
from typing import Dict, Iterable, Iterator, List

from .errors import InputUnavailableError
from .parsers import is_blank, parse_record
from .types import LogRecord, ParseError, ParseResult


logger = logging.getLogger(__name__)


# ---------- Source ----------

def parse_lines(
    lines: Iterable[str],
    delimiter: str = ",",
    skip_header: bool = False,
) -> Iterator[ParseResult]:
    """
    Lazily turn raw lines into LogRecord / ParseError values.

    Blank lines are neither records nor errors. With skip_header the
    first non-blank line is dropped, like a table header.
    """
    header_pending = skip_header

    for line_no, line in enumerate(lines, 1):
        if is_blank(line):
            continue

        if header_pending:
            header_pending = False
            continue

        yield parse_record(line, line_no, delimiter)


def read_records(
    path: str,
    delimiter: str = ",",
    skip_header: bool = False,
    encoding: str = "utf-8",
) -> Iterator[ParseResult]:
    """
    Stream parse results from a log file.

    The file is opened eagerly so an unreadable input fails here,
    before iteration starts. Call again to restart from the top.
    """
    f = open_source(path, encoding)
    return _stream(f, delimiter, skip_header)


def open_source(path: str, encoding: str = "utf-8"):
    try:
        return open(path, encoding=encoding, errors="replace", newline="")
    except OSError as e:
        raise InputUnavailableError(path, e.strerror or str(e)) from e


def _stream(f, delimiter: str, skip_header: bool) -> Iterator[ParseResult]:
    with f:
        yield from parse_lines(f, delimiter, skip_header)


# ---------- Metrics ----------

class IngestMetrics:
    def __init__(self):
        self.lines_read = 0
        self.parsed = 0
        self.failed = 0
        self.failures_by_kind: Dict[str, int] = {}

    def record_success(self):
        self.parsed += 1

    def record_failure(self, kind: str):
        self.failed += 1
        self.failures_by_kind[kind] = (
            self.failures_by_kind.get(kind, 0) + 1
        )


# ---------- Ingest Pipeline ----------

class RecordIngestor:
    """
    Filters a parse-result stream down to valid records.

    Parse errors are counted exactly and kept up to max_errors_kept
    so a caller can show them without holding a huge list.
    """

    def __init__(self, max_errors_kept: int = 100):
        self.metrics = IngestMetrics()
        self.errors: List[ParseError] = []
        self.max_errors_kept = max_errors_kept

    def ingest(self, results: Iterable[ParseResult]) -> Iterator[LogRecord]:
        for result in results:
            if isinstance(result, ParseError):
                self._reject(result)
                continue

            self.metrics.record_success()
            yield result

    def ingest_file(
        self,
        path: str,
        delimiter: str = ",",
        skip_header: bool = False,
        encoding: str = "utf-8",
    ) -> Iterator[LogRecord]:
        f = open_source(path, encoding)
        return self._ingest_open(f, delimiter, skip_header)

    def _ingest_open(self, f, delimiter: str, skip_header: bool) -> Iterator[LogRecord]:
        with f:
            yield from self.ingest(
                parse_lines(self._count_lines(f), delimiter, skip_header)
            )

    def _count_lines(self, lines: Iterable[str]) -> Iterator[str]:
        for line in lines:
            self.metrics.lines_read += 1
            yield line

    def _reject(self, error: ParseError):
        self.metrics.record_failure(error.kind.value)
        if len(self.errors) < self.max_errors_kept:
            self.errors.append(error)

        logger.warning(
            "line %d: %s (%s)", error.line, error.kind.value, error.detail
        )
