import codecs
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional

from dotenv import find_dotenv, load_dotenv

from .errors import InvalidArgumentError


ENV_PREFIX = "LOGHIVE_"

DELIMITER_ALIASES = {
    "tab": "\t",
    "\\t": "\t",
    "comma": ",",
    "pipe": "|",
}


@dataclass(frozen=True)
class PipelineConfig:
    input_path: str = ""
    output_dir: str = "output"
    delimiter: str = ","
    top_n: int = 3
    suspicious_threshold: int = 3
    timestamp_truncate_len: int = 16
    skip_header: bool = False
    write_header: bool = True
    encoding: str = "utf-8"
    max_workers: int = 1
    max_errors_kept: int = 100
    prune_stale: bool = True

    @classmethod
    def from_env(cls, env: Optional[Dict[str, str]] = None, **overrides: Any) -> "PipelineConfig":
        """
        Build a config from LOGHIVE_* variables, then apply overrides.

        A .env file in the working directory is loaded first when
        reading the real environment. Overrides set to None are
        ignored so argparse defaults don't clobber the environment.
        """
        if env is None:
            load_dotenv(find_dotenv(usecwd=True))
            env = dict(os.environ)

        values: Dict[str, Any] = {}
        for f in fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            values[f.name] = _coerce(f.name, f.type, raw)

        values.update({k: v for k, v in overrides.items() if v is not None})
        if "delimiter" in values:
            values["delimiter"] = resolve_delimiter(values["delimiter"])

        return cls(**values)

    def with_overrides(self, **overrides: Any) -> "PipelineConfig":
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def validate(self) -> "PipelineConfig":
        if not self.input_path:
            raise InvalidArgumentError("input_path is required")
        if not self.output_dir:
            raise InvalidArgumentError("output_dir is required")
        if len(self.delimiter) != 1:
            raise InvalidArgumentError(
                f"delimiter must be a single character, got {self.delimiter!r}"
            )
        if self.delimiter in "\r\n":
            raise InvalidArgumentError("delimiter cannot be a line break")
        if self.top_n <= 0:
            raise InvalidArgumentError(f"top_n must be > 0, got {self.top_n}")
        if self.suspicious_threshold < 0:
            raise InvalidArgumentError(
                f"suspicious_threshold must be >= 0, got {self.suspicious_threshold}"
            )
        if self.timestamp_truncate_len <= 0:
            raise InvalidArgumentError(
                f"timestamp_truncate_len must be > 0, got {self.timestamp_truncate_len}"
            )
        if self.max_workers <= 0:
            raise InvalidArgumentError(
                f"max_workers must be > 0, got {self.max_workers}"
            )
        if self.max_errors_kept < 0:
            raise InvalidArgumentError(
                f"max_errors_kept must be >= 0, got {self.max_errors_kept}"
            )
        try:
            codecs.lookup(self.encoding)
        except LookupError:
            raise InvalidArgumentError(
                f"unknown encoding {self.encoding!r}"
            ) from None
        return self


def resolve_delimiter(value: str) -> str:
    return DELIMITER_ALIASES.get(value.lower(), value) if len(value) > 1 else value


TRUE_WORDS = {"1", "true", "yes", "on"}
FALSE_WORDS = {"0", "false", "no", "off"}


def _coerce(name: str, kind: Any, raw: str) -> Any:
    # dataclass field types are strings under postponed annotations
    kind_name = getattr(kind, "__name__", kind)

    if kind_name == "int":
        try:
            return int(raw)
        except ValueError:
            raise InvalidArgumentError(
                f"{ENV_PREFIX}{name.upper()} must be an integer, got {raw!r}"
            ) from None

    if kind_name == "bool":
        word = raw.strip().lower()
        if word in TRUE_WORDS:
            return True
        if word in FALSE_WORDS:
            return False
        raise InvalidArgumentError(
            f"{ENV_PREFIX}{name.upper()} must be a boolean, got {raw!r}"
        )

    return raw
