import logging
import os
import re
import tempfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Sequence, Union

from .types import AggregationResult, Partition


logger = logging.getLogger(__name__)


PARTITION_FILE_RE = re.compile(r"^partition_(\d+)\.(csv|tsv)$")


Exportable = Union[AggregationResult, Partition]


@dataclass(frozen=True)
class ExportOutcome:
    name: str
    path: Path
    rows: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Exporter:
    """
    Writes result sets and partitions as delimited text, one file each.

    Every write replaces the destination atomically: rows go to a temp
    file in the same directory which is then renamed over the target.
    Readers see either the previous file or the complete new one.
    """

    def __init__(
        self,
        output_dir: Union[str, Path],
        delimiter: str = ",",
        write_header: bool = True,
    ):
        self.output_dir = Path(output_dir)
        self.delimiter = delimiter
        self.write_header = write_header
        self.file_mode = 0o666 & ~_current_umask()

    @property
    def extension(self) -> str:
        return "tsv" if self.delimiter == "\t" else "csv"

    def path_for(self, name: str) -> Path:
        return self.output_dir / f"{name}.{self.extension}"

    # ---------- Write API ----------

    def export(self, item: Exportable) -> ExportOutcome:
        path = self.path_for(item.name)

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            rows = self._write_atomic(path, item.rows())
        except OSError as e:
            logger.error("export of %s to %s failed: %s", item.name, path, e)
            return ExportOutcome(name=item.name, path=path, error=str(e))

        logger.debug("wrote %d rows to %s", rows, path)
        return ExportOutcome(name=item.name, path=path, rows=rows)

    def export_result(self, result: AggregationResult) -> ExportOutcome:
        return self.export(result)

    def export_partition(self, partition: Partition) -> ExportOutcome:
        return self.export(partition)

    def export_all(
        self,
        results: Sequence[AggregationResult],
        partitions: Mapping[int, Partition],
        max_workers: int = 1,
        prune_stale: bool = True,
    ) -> List[ExportOutcome]:
        """
        Export every result, then every partition by ascending status.

        One failed artifact never stops its siblings.
        """
        items: List[Exportable] = list(results)
        items.extend(partitions[status] for status in sorted(partitions))

        if max_workers <= 1:
            outcomes = [self.export(item) for item in items]
        else:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                outcomes = list(executor.map(self.export, items))

        if prune_stale:
            outcomes.extend(self.prune_partitions(keep=partitions.keys()))

        return outcomes

    def prune_partitions(self, keep: Iterable[int]) -> List[ExportOutcome]:
        """
        Remove partition files left over from an earlier run whose
        status no longer occurs, so the directory mirrors this run.

        Only failed removals are reported.
        """
        keep = set(keep)
        failures: List[ExportOutcome] = []

        if not self.output_dir.is_dir():
            return failures

        for path in sorted(self.output_dir.iterdir()):
            m = PARTITION_FILE_RE.match(path.name)
            if not m or m.group(2) != self.extension:
                continue
            if int(m.group(1)) in keep:
                continue

            try:
                path.unlink()
            except OSError as e:
                logger.error("could not remove stale partition %s: %s", path, e)
                failures.append(
                    ExportOutcome(name=path.stem, path=path, error=str(e))
                )
            else:
                logger.info("removed stale partition %s", path)

        return failures

    # ---------- Internal helpers ----------

    def _write_atomic(self, path: Path, rows: Iterable[List[str]]) -> int:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=self.output_dir
        )
        written = 0

        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                # fields come from a plain split, so they never hold the
                # delimiter and are written as-is
                for idx, row in enumerate(rows):
                    if idx == 0:
                        if self.write_header:
                            f.write(self.delimiter.join(row) + "\n")
                        continue
                    f.write(self.delimiter.join(row) + "\n")
                    written += 1
            # mkstemp creates 0600; match what a plain open() would give
            os.chmod(tmp_name, self.file_mode)
            os.replace(tmp_name, path)
        except BaseException:
            _remove_quietly(tmp_name)
            raise

        return written


def _current_umask() -> int:
    # os.umask can only be read by setting it
    mask = os.umask(0)
    os.umask(mask)
    return mask


def _remove_quietly(path: str):
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("could not remove temp file %s: %s", path, e)
