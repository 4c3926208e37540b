import random
from datetime import datetime, timedelta, timezone

import pytest

from hostlogs.config.settings import Settings
from hostlogs.core import aggregator
from hostlogs.model.entry import LEVELS, LogEntry, QueryParams

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _entries(n=40, seed=7):
    rnd = random.Random(seed)
    return [
        LogEntry(
            timestamp=BASE + timedelta(seconds=rnd.randint(0, 30)),
            level=rnd.choice(LEVELS),
            message=f"m{i}",
            source=f"s{i % 3}",
        )
        for i in range(n)
    ]


@pytest.mark.parametrize("level", ["all"] + list(LEVELS))
@pytest.mark.parametrize("limit,offset", [(1, 0), (5, 3), (100, 0), (7, 39), (10, 40), (10, 500)])
def test_query_entries_properties(level, limit, offset):
    """total ignora paginação; página é fatia contígua e ordenada."""
    entries = _entries()
    params = QueryParams(level=level, limit=limit, offset=offset)
    page = aggregator.query_entries(entries, params)

    matching = [e for e in entries if level == "all" or e.level == level]
    assert page.total == len(matching)
    assert len(page.entries) <= limit

    full = aggregator.filter_and_sort(entries, params)
    assert page.entries == full[offset : offset + limit]
    stamps = [e.timestamp for e in page.entries]
    assert stamps == sorted(stamps, reverse=True)
    if offset >= page.total:
        assert page.entries == []


def test_sort_is_stable_for_equal_timestamps(make_entry):
    a = make_entry("2024-01-01T00:00:00", message="a")
    b = make_entry("2024-01-01T00:00:00", message="b")
    c = make_entry("2024-01-01T00:00:05", message="c")
    page = aggregator.query_entries([a, b, c], QueryParams())
    assert [e.message for e in page.entries] == ["c", "a", "b"]


def test_search_filter_counts_before_pagination(make_entry):
    entries = [
        make_entry(message="sshd accepted", source="host"),
        make_entry(message="cron ran", source="host"),
        make_entry(message="other", source="sshd-proxy"),
    ]
    page = aggregator.query_entries(entries, QueryParams(search="SSHD", limit=1))
    assert page.total == 2
    assert len(page.entries) == 1


def test_collect_entries_parallel_matches_sequential(static_source, make_entry):
    s1 = static_source([make_entry(message="1")], name="one")
    s2 = static_source([], name="two")
    s3 = static_source([make_entry(message="3a"), make_entry(message="3b")], name="three")
    par = aggregator.collect_entries([s1, s2, s3], 10, parallel=True)
    seq = aggregator.collect_entries([s1, s2, s3], 10, parallel=False)
    assert [e.message for e in par] == ["1", "3a", "3b"]
    assert par == seq
    assert s1.calls == [10, 10]


def test_failing_source_does_not_affect_others(static_source, make_entry):
    class Broken(static_source):
        def _collect(self, limit):
            raise OSError("permission denied")

    ok = static_source([make_entry(message="ok")])
    page = aggregator.list_logs(QueryParams(), sources=[Broken([]), ok], settings=Settings())
    assert page.total == 1
    assert page.entries[0].message == "ok"


def test_list_logs_all_sources_failing_returns_empty(static_source):
    class Broken(static_source):
        def _collect(self, limit):
            raise RuntimeError("nope")

    page = aggregator.list_logs(QueryParams(), sources=[Broken([]), Broken([])], settings=Settings())
    assert page.entries == [] and page.total == 0


def test_list_logs_reruns_sources_every_call(static_source, make_entry):
    """Sem cache: cada consulta executa as origens novamente; resultado idempotente."""
    src = static_source([make_entry("2024-01-01T00:00:00"), make_entry("2024-01-02T00:00:00")])
    params = QueryParams(limit=1)
    first = aggregator.list_logs(params, sources=[src], settings=Settings())
    second = aggregator.list_logs(params, sources=[src], settings=Settings())
    assert len(src.calls) == 2
    assert first == second
    assert first.total == 2


def test_list_logs_passes_limit_to_sources(static_source):
    src = static_source([])
    aggregator.list_logs(QueryParams(limit=42), sources=[src], settings=Settings())
    assert src.calls == [42]


def test_list_logs_never_raises(monkeypatch, caplog):
    def boom(*a, **k):
        raise RuntimeError("unexpected")

    monkeypatch.setattr(aggregator, "read_all", boom)
    page = aggregator.list_logs(QueryParams(level="error", offset=3), settings=Settings())
    assert page.entries == [] and page.total == 0
    assert page.level == "error" and page.offset == 3


def test_list_logs_uses_default_sources(monkeypatch, static_source, make_entry):
    seen = {}

    def fake_defaults(settings):
        seen["settings"] = settings
        return [static_source([make_entry()])]

    monkeypatch.setattr(aggregator, "default_sources", fake_defaults)
    settings = Settings(default_limit=7)
    page = aggregator.list_logs(settings=settings)
    assert seen["settings"] is settings
    assert page.limit == 7
    assert page.total == 1


def test_log_page_to_dict(make_entry):
    page = aggregator.LogPage(entries=[make_entry()], total=1, offset=0, limit=100, level="all")
    d = page.to_dict()
    assert d["success"] is True
    assert d["total"] == 1
    assert d["entries"][0]["timestamp"] == "2024-01-01T00:00:00.000Z"
