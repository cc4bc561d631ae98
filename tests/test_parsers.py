from loghive.parsers import parse_record, parse_status
from loghive.types import LogRecord, ParseError, ParseErrorKind


def test_parses_five_comma_fields():
    result = parse_record(
        "192.168.1.3,2024-03-10 12:01:07,/index.html,500,Mozilla/5.0\n", 1
    )

    assert result == LogRecord(
        ip="192.168.1.3",
        timestamp="2024-03-10 12:01:07",
        url="/index.html",
        status=500,
        user_agent="Mozilla/5.0",
    )


def test_parses_tab_delimited_line():
    line = "10.0.0.1\t2024-03-10 12:01:07\t/about.html\t200\tChrome/90.0\r\n"
    result = parse_record(line, 7, delimiter="\t")

    assert isinstance(result, LogRecord)
    assert result.status == 200
    assert result.user_agent == "Chrome/90.0"


def test_four_fields_is_field_count_mismatch():
    result = parse_record("192.168.1.3,2024-03-10 12:01:07,/index.html,500", 4)

    assert isinstance(result, ParseError)
    assert result.kind is ParseErrorKind.FIELD_COUNT_MISMATCH
    assert result.line == 4
    assert result.raw == "192.168.1.3,2024-03-10 12:01:07,/index.html,500"


def test_six_fields_is_field_count_mismatch():
    result = parse_record("a,b,c,200,d,e", 1)

    assert result.kind is ParseErrorKind.FIELD_COUNT_MISMATCH


def test_non_numeric_status_is_bad_status():
    result = parse_record("1.2.3.4,2024-03-10 12:01:07,/,OK,UA", 2)

    assert isinstance(result, ParseError)
    assert result.kind is ParseErrorKind.BAD_STATUS
    assert result.line == 2


def test_missing_status_is_bad_status():
    result = parse_record("1.2.3.4,2024-03-10 12:01:07,/,,UA", 3)

    assert result.kind is ParseErrorKind.BAD_STATUS


def test_wrong_delimiter_does_not_split():
    result = parse_record("1.2.3.4\t2024-03-10\t/\t200\tUA", 1, delimiter=",")

    assert result.kind is ParseErrorKind.FIELD_COUNT_MISMATCH


def test_parse_status():
    assert parse_status(" 404 ") == 404
    assert parse_status("+200") is None
    assert parse_status("2_00") is None
    assert parse_status("-1") is None
    assert parse_status("") is None
