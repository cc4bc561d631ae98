from loghive.ingest import parse_lines
from loghive.loggen import generate_lines, main
from loghive.types import LogRecord, ParseError


def test_same_seed_same_lines():
    assert generate_lines(50, seed=1) == generate_lines(50, seed=1)


def test_clean_lines_all_parse():
    results = list(parse_lines(generate_lines(200, seed=3)))

    assert len(results) == 200
    assert all(isinstance(r, LogRecord) for r in results)


def test_malformed_rate_produces_parse_errors():
    results = list(parse_lines(generate_lines(200, seed=3, malformed_rate=1.0)))

    assert all(isinstance(r, ParseError) for r in results)


def test_timestamps_never_go_backwards():
    records = list(parse_lines(generate_lines(300, seed=11)))
    stamps = [r.timestamp for r in records]

    assert stamps == sorted(stamps)


def test_main_writes_file(tmp_path, capsys):
    out = tmp_path / "gen.tsv"

    assert main(["--output", str(out), "--lines", "10", "--seed", "2", "--tab"]) == 0
    assert len(out.read_text().splitlines()) == 10
    assert "\t" in out.read_text()
    assert "Generated 10 lines" in capsys.readouterr().out
