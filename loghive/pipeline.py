import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .aggregate import run_all
from .config import PipelineConfig
from .export import Exporter, ExportOutcome
from .ingest import RecordIngestor
from .partition import partition_by_status, partition_counts
from .status import RunStatus, run_status
from .types import AggregationResult, LogRecord, ParseError


logger = logging.getLogger(__name__)


@dataclass
class PipelineSummary:
    lines_read: int = 0
    valid_records: int = 0
    parse_error_count: int = 0
    parse_errors: List[ParseError] = field(default_factory=list)
    failures_by_kind: Dict[str, int] = field(default_factory=dict)
    results: Dict[str, AggregationResult] = field(default_factory=dict)
    partition_counts: Dict[int, int] = field(default_factory=dict)
    exports: List[ExportOutcome] = field(default_factory=list)
    status: RunStatus = RunStatus.SUCCESS

    @property
    def failed_exports(self) -> List[ExportOutcome]:
        return [o for o in self.exports if not o.ok]

    def result(self, name: str) -> Optional[AggregationResult]:
        return self.results.get(name)


def load_records(
    config: PipelineConfig,
) -> Tuple[Tuple[LogRecord, ...], RecordIngestor]:
    """
    Read and parse the whole input once.

    Raises InputUnavailableError if the file cannot be opened.
    """
    ingestor = RecordIngestor(max_errors_kept=config.max_errors_kept)
    stream = ingestor.ingest_file(
        config.input_path,
        delimiter=config.delimiter,
        skip_header=config.skip_header,
        encoding=config.encoding,
    )
    records = tuple(stream)
    return records, ingestor


def run_pipeline(config: PipelineConfig) -> PipelineSummary:
    """
    Parse -> aggregate + partition -> export.

    Pipeline:
      config.validate()        bad arguments fail before any I/O
        → ingest input         unreadable input is fatal
          → six queries + partition by status
            → export each      failures are recorded per artifact

    Parse errors and export errors end up in the summary; only
    configuration and input errors raise.
    """
    config.validate()

    logger.info("reading %s", config.input_path)
    records, ingestor = load_records(config)
    metrics = ingestor.metrics

    logger.info(
        "parsed %d records, %d malformed lines", metrics.parsed, metrics.failed
    )

    results = run_all(
        records,
        top_n=config.top_n,
        threshold=config.suspicious_threshold,
        truncate_len=config.timestamp_truncate_len,
        max_workers=config.max_workers,
    )
    partitions = partition_by_status(records)

    exporter = Exporter(
        config.output_dir,
        delimiter=config.delimiter,
        write_header=config.write_header,
    )
    outcomes = exporter.export_all(
        results,
        partitions,
        max_workers=config.max_workers,
        prune_stale=config.prune_stale,
    )

    summary = PipelineSummary(
        lines_read=metrics.lines_read,
        valid_records=metrics.parsed,
        parse_error_count=metrics.failed,
        parse_errors=list(ingestor.errors),
        failures_by_kind=dict(metrics.failures_by_kind),
        results={r.name: r for r in results},
        partition_counts=partition_counts(partitions),
        exports=outcomes,
    )
    summary.status = run_status(len(summary.failed_exports))

    if summary.status is RunStatus.PARTIAL:
        logger.error(
            "%d of %d exports failed",
            len(summary.failed_exports),
            len(outcomes),
        )

    return summary
