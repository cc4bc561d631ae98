import argparse
import logging
import sys
from typing import List, Optional

from .config import PipelineConfig
from .errors import InputUnavailableError, InvalidArgumentError
from .pipeline import PipelineSummary, run_pipeline
from .status import RunStatus, exit_code
from .types import TopEntities


# ---------------- CLI ----------------

def parse_args(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        description="loghive: web server log analytics"
    )
    parser.add_argument("--log-file", help="Delimited log file to analyse")
    parser.add_argument("--output-dir", help="Where result files are written")
    parser.add_argument(
        "--delimiter",
        help="Field delimiter (default ','; 'tab' or '\\t' for TSV)",
    )
    parser.add_argument("--top-n", type=int)
    parser.add_argument("--suspicious-threshold", type=int)
    parser.add_argument(
        "--truncate-len",
        type=int,
        help="Timestamp prefix length used as the trend bucket",
    )
    parser.add_argument("--workers", type=int)
    parser.add_argument(
        "--skip-header",
        action="store_true",
        default=None,
        help="Ignore the first non-blank input line",
    )
    parser.add_argument(
        "--no-header",
        dest="write_header",
        action="store_false",
        default=None,
        help="Do not write header rows to output files",
    )
    parser.add_argument(
        "--show-errors",
        type=int,
        default=5,
        help="How many malformed lines to print",
    )
    parser.add_argument("--verbose", action="store_true")

    return parser.parse_args(argv)


def build_config(args) -> PipelineConfig:
    return PipelineConfig.from_env(
        input_path=args.log_file,
        output_dir=args.output_dir,
        delimiter=args.delimiter,
        top_n=args.top_n,
        suspicious_threshold=args.suspicious_threshold,
        timestamp_truncate_len=args.truncate_len,
        max_workers=args.workers,
        skip_header=args.skip_header,
        write_header=args.write_header,
    )


# ---------------- Report ----------------

def print_top(result: TopEntities):
    print(f"\n{result.name}")
    if not result.entries:
        print("  (none)")
        return
    width = max(len(key) for key, _ in result.entries)
    for key, count in result.entries:
        print(f"  {key:<{width}}  {count:>8}")


def print_report(summary: PipelineSummary, show_errors: int = 5):
    print("\nIngestion summary")
    print(f"  Lines read    : {summary.lines_read}")
    print(f"  Valid records : {summary.valid_records}")
    print(f"  Parse errors  : {summary.parse_error_count}")

    if summary.parse_error_count:
        print("  Failure reasons:")
        for kind, count in sorted(summary.failures_by_kind.items()):
            print(f"    {kind}: {count}")

        for err in summary.parse_errors[:show_errors]:
            print(f"    line {err.line}: {err.kind.value} {err.raw!r}")

    total = summary.result("total_requests")
    print(f"\nTotal requests: {total.count}")

    histogram = summary.result("status_histogram")
    print("\nStatus codes")
    for status in sorted(histogram.counts):
        print(f"  {status}  {histogram.counts[status]:>8}")

    print_top(summary.result("top_urls"))
    print_top(summary.result("top_user_agents"))

    suspicious = summary.result("suspicious_ips")
    print(f"\nSuspicious IPs (> {suspicious.threshold} failed requests)")
    if not suspicious.counts:
        print("  (none)")
    for ip, count in suspicious.ranked():
        print(f"  {ip:<16} {count:>8}")

    trend = summary.result("traffic_trend")
    print("\nTraffic by minute")
    for minute, count in trend.buckets:
        print(f"  {minute}  {count:>8}")

    print("\nPartitions")
    for status, count in summary.partition_counts.items():
        print(f"  status={status}  {count:>8} records")

    print("\nExports")
    for outcome in summary.exports:
        if outcome.ok:
            print(f"  ok     {outcome.path} ({outcome.rows} rows)")
        else:
            print(f"  FAILED {outcome.path}: {outcome.error}")

    print(f"\nStatus: {summary.status.value}")


# ---------------- Main ----------------

def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = build_config(args)
        summary = run_pipeline(config)
    except InvalidArgumentError as e:
        print(f"error: {e}", file=sys.stderr)
        return exit_code(RunStatus.CONFIG_ERROR)
    except InputUnavailableError as e:
        print(f"error: {e}", file=sys.stderr)
        return exit_code(RunStatus.INPUT_ERROR)

    print_report(summary, show_errors=args.show_errors)
    return exit_code(summary.status)


if __name__ == "__main__":
    sys.exit(main())
