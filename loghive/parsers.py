from typing import Optional

from .types import LogRecord, ParseError, ParseErrorKind, ParseResult


EXPECTED_FIELDS = 5


# -----------------------------
# DELIMITED RECORD PARSER
# -----------------------------

def parse_record(line: str, line_no: int, delimiter: str = ",") -> ParseResult:
    """
    Parse one delimited web log line:
      192.168.1.3,2024-03-10 12:01:07,/index.html,500,Mozilla/5.0

    Field order is fixed: ip, timestamp, url, status, user_agent.

    This function must:
      - never throw on malformed input
      - return a ParseError instead
      - be side-effect free
    """
    raw = line.rstrip("\r\n")
    fields = raw.split(delimiter)

    if len(fields) != EXPECTED_FIELDS:
        return ParseError(
            kind=ParseErrorKind.FIELD_COUNT_MISMATCH,
            line=line_no,
            raw=raw,
            detail=f"expected {EXPECTED_FIELDS} fields, got {len(fields)}",
        )

    ip, timestamp, url, status_text, user_agent = fields

    status = parse_status(status_text)
    if status is None:
        return ParseError(
            kind=ParseErrorKind.BAD_STATUS,
            line=line_no,
            raw=raw,
            detail=f"status {status_text!r} is not an integer",
        )

    return LogRecord(
        ip=ip.strip(),
        timestamp=timestamp.strip(),
        url=url.strip(),
        status=status,
        user_agent=user_agent.strip(),
    )


def parse_status(text: str) -> Optional[int]:
    text = text.strip()
    # int() accepts "+200" and "2_00"; a status column does not
    if not (text.isascii() and text.isdigit()):
        return None
    return int(text)


def is_blank(line: str) -> bool:
    return not line.strip()
