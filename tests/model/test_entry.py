from datetime import datetime, timezone

import pytest

from hostlogs.model.entry import LogEntry, QueryParams


def test_log_entry_serializes_with_millisecond_z(make_entry):
    """to_dict usa ISO com milissegundos e omite process/pid ausentes."""
    e = make_entry("2024-01-01T00:00:01", level="info", message="ok", source="y")
    assert e.to_dict() == {
        "timestamp": "2024-01-01T00:00:01.000Z",
        "level": "info",
        "message": "ok",
        "source": "y",
    }


def test_log_entry_text_line(make_entry):
    e = make_entry("2024-01-01T00:00:00", level="error", message="boom", source="x", process="p", pid=3)
    assert e.to_text_line() == "[2024-01-01T00:00:00.000Z] ERROR [x]: boom"
    assert e.to_dict()["pid"] == 3
    assert e.to_dict()["process"] == "p"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"level": "critical"},
        {"timestamp": datetime(2024, 1, 1)},  # naive
        {"pid": -1},
    ],
)
def test_log_entry_rejects_invalid_values(kwargs):
    """Nível fora do conjunto, timestamp naive e pid negativo levantam ValueError."""
    base = {
        "timestamp": datetime(2024, 1, 1, tzinfo=timezone.utc),
        "level": "info",
        "message": "m",
        "source": "s",
    }
    base.update(kwargs)
    with pytest.raises(ValueError):
        LogEntry(**base)


def test_log_entry_is_immutable(make_entry):
    e = make_entry()
    with pytest.raises(AttributeError):
        e.level = "error"


def test_query_params_defaults():
    p = QueryParams.from_raw()
    assert (p.level, p.limit, p.offset, p.search) == ("all", 100, 0, None)


def test_query_params_invalid_values_fall_back():
    """limit/offset inválidos voltam aos defaults; nível desconhecido vira 'all'."""
    p = QueryParams.from_raw(level="verbose", limit="abc", offset="-3", default_limit=25)
    assert p.level == "all"
    assert p.limit == 25
    assert p.offset == 0

    p = QueryParams.from_raw(limit="0")
    assert p.limit == 100


def test_query_params_accepts_valid_strings():
    p = QueryParams.from_raw(level="ERROR", limit="10", offset="5", search="  ssh ")
    assert (p.level, p.limit, p.offset, p.search) == ("error", 10, 5, "ssh")


def test_query_params_no_upper_bound_on_limit():
    assert QueryParams.from_raw(limit="100000").limit == 100000


def test_query_params_matches_level_and_search(make_entry):
    e = make_entry(level="warning", message="Disk nearly FULL", source="kernel")
    assert QueryParams(level="all").matches(e)
    assert QueryParams(level="warning").matches(e)
    assert not QueryParams(level="error").matches(e)
    assert QueryParams(search="full").matches(e)
    assert QueryParams(search="KERN").matches(e)
    assert not QueryParams(search="sshd").matches(e)
