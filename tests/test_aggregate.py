import pytest

from loghive.aggregate import (
    minute_bucket,
    run_all,
    status_histogram,
    suspicious_ips,
    top_urls,
    top_user_agents,
    total_requests,
    traffic_trend,
)
from loghive.errors import InvalidArgumentError
from loghive.types import LogRecord


def rec(ip="10.0.0.1", ts="2024-03-10 12:00:00", url="/", status=200, ua="UA"):
    return LogRecord(ip=ip, timestamp=ts, url=url, status=status, user_agent=ua)


# The four sample rows from the Hive walkthrough
README_RECORDS = (
    rec("192.168.1.1", "2024-03-10 12:00:01", "/index.html", 200, "Mozilla/5.0 Chrome/90.0"),
    rec("192.168.1.2", "2024-03-10 12:00:45", "/products.html", 200, "Mozilla/5.0 Edge/88.0"),
    rec("192.168.1.3", "2024-03-10 12:01:07", "/index.html", 500, "Mozilla/5.0 Chrome/90.0"),
    rec("192.168.1.4", "2024-03-10 12:01:30", "/about.html", 200, "Mozilla/5.0 Opera/74.0"),
)


def test_total_and_histogram_agree():
    total = total_requests(README_RECORDS)
    histogram = status_histogram(README_RECORDS)

    assert total.count == 4
    assert histogram.counts == {200: 3, 500: 1}
    assert histogram.total() == total.count


def test_empty_input_gives_zero_results():
    assert total_requests([]).count == 0
    assert status_histogram([]).counts == {}
    assert top_urls([]).entries == ()
    assert suspicious_ips([]).counts == {}
    assert traffic_trend([]).buckets == ()


def test_top_urls_orders_by_count():
    result = top_urls(README_RECORDS, n=3)

    assert result.entries == (
        ("/index.html", 2),
        ("/products.html", 1),
        ("/about.html", 1),
    )


def test_top_n_truncates_to_distinct_keys():
    assert len(top_urls(README_RECORDS, n=10).entries) == 3
    assert len(top_urls(README_RECORDS, n=1).entries) == 1


def test_top_user_agents_ties_keep_first_seen_order():
    records = (
        [rec(ua="Opera/74.0")] * 21
        + [rec(ua="Chrome/90.0")] * 23
        + [rec(ua="Edge/88.0")] * 23
    )
    # Chrome shows up before Edge but after Opera
    result = top_user_agents(records, n=3)

    assert result.entries == (
        ("Chrome/90.0", 23),
        ("Edge/88.0", 23),
        ("Opera/74.0", 21),
    )


def test_top_user_agents_tie_with_interleaved_input():
    records = []
    for _ in range(23):
        records.append(rec(ua="Edge/88.0"))
        records.append(rec(ua="Chrome/90.0"))

    result = top_user_agents(records, n=2)

    assert result.keys() == ["Edge/88.0", "Chrome/90.0"]


@pytest.mark.parametrize("n", [0, -1])
def test_top_n_rejects_non_positive(n):
    with pytest.raises(InvalidArgumentError):
        top_urls(README_RECORDS, n=n)
    with pytest.raises(InvalidArgumentError):
        top_user_agents(README_RECORDS, n=n)


def test_readme_scenario_has_no_suspicious_ips():
    result = suspicious_ips(README_RECORDS, threshold=3)

    assert result.counts == {}


def test_suspicious_ips_is_strictly_greater_than():
    records = (
        [rec(ip="1.1.1.1", status=404)] * 3
        + [rec(ip="2.2.2.2", status=500)] * 2
        + [rec(ip="2.2.2.2", status=404)] * 2
        + [rec(ip="3.3.3.3", status=403)] * 9
    )

    result = suspicious_ips(records, threshold=3)

    # exactly 3 failures is not enough; 403 is not a failure here
    assert result.counts == {"2.2.2.2": 4}


def test_suspicious_ips_custom_statuses():
    records = [rec(ip="3.3.3.3", status=403)] * 2

    assert suspicious_ips(records, threshold=1, failure_statuses=(403,)).counts == {
        "3.3.3.3": 2
    }


def test_traffic_trend_groups_by_minute_ascending():
    records = [
        rec(ts="2024-03-10 12:01:59"),
        rec(ts="2024-03-10 12:00:01"),
        rec(ts="2024-03-10 12:01:00"),
        rec(ts="2024-03-10 12:00:45"),
        rec(ts="2024-03-10 11:59:59"),
    ]

    result = traffic_trend(records)

    assert result.buckets == (
        ("2024-03-10 11:59", 1),
        ("2024-03-10 12:00", 2),
        ("2024-03-10 12:01", 2),
    )


def test_traffic_trend_custom_truncation():
    result = traffic_trend(README_RECORDS, truncate_len=13)

    assert result.buckets == (("2024-03-10 12", 4),)


def test_minute_bucket_short_timestamp_is_kept_whole():
    assert minute_bucket("2024-03-10") == "2024-03-10"


def test_run_all_fixed_order_and_parallel_matches_sequential():
    sequential = run_all(README_RECORDS)
    parallel = run_all(README_RECORDS, max_workers=4)

    assert [r.name for r in sequential] == [
        "total_requests",
        "status_histogram",
        "top_urls",
        "top_user_agents",
        "suspicious_ips",
        "traffic_trend",
    ]
    assert sequential == parallel


def test_run_all_rejects_bad_arguments():
    with pytest.raises(InvalidArgumentError):
        run_all(README_RECORDS, top_n=0)
    with pytest.raises(InvalidArgumentError):
        run_all(README_RECORDS, truncate_len=0)
    with pytest.raises(InvalidArgumentError):
        run_all(README_RECORDS, threshold=-1)
