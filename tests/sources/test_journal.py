import json
from datetime import datetime, timezone

from hostlogs.sources.journal import JournalSource, parse_journal_output
from hostlogs.system.commands import CommandError, CommandResult

NOW = datetime(2030, 1, 1, tzinfo=timezone.utc)


def _line(**fields):
    return json.dumps(fields)


def test_parse_journal_output_full_record():
    out = _line(
        __REALTIME_TIMESTAMP="1704067201000000",
        PRIORITY="3",
        MESSAGE="unit crashed",
        SYSLOG_IDENTIFIER="systemd",
        _SYSTEMD_UNIT="foo.service",
        _COMM="systemd",
        _PID="1",
    )
    [e] = parse_journal_output(out, NOW)
    assert e.timestamp == datetime(2024, 1, 1, 0, 0, 1, tzinfo=timezone.utc)
    assert e.level == "warning"
    assert e.message == "unit crashed"
    assert e.source == "systemd"
    assert e.process == "systemd"
    assert e.pid == 1


def test_parse_journal_output_defaults():
    """Sem timestamp/prioridade/identificador: agora, info e unit/system."""
    out = "\n".join([_line(MESSAGE="a", _SYSTEMD_UNIT="cron.service"), _line(MESSAGE="b")])
    a, b = parse_journal_output(out, NOW)
    assert a.timestamp == NOW
    assert a.level == "info"
    assert a.source == "cron.service"
    assert a.process is None and a.pid is None
    assert b.source == "system"


def test_parse_journal_output_priority_zero_is_error():
    [e] = parse_journal_output(_line(PRIORITY="0", MESSAGE="panic"), NOW)
    assert e.level == "error"


def test_parse_journal_output_skips_malformed_lines():
    out = "\n".join(
        [
            "{not json",
            "[1, 2, 3]",
            "",
            _line(MESSAGE="good", PRIORITY="7"),
            '"just a string"',
        ]
    )
    entries = parse_journal_output(out, NOW)
    assert [e.message for e in entries] == ["good"]
    assert entries[0].level == "debug"


def test_parse_journal_output_binary_message_and_bad_pid():
    out = _line(MESSAGE=[104, 105], _PID="abc")
    [e] = parse_journal_output(out, NOW)
    assert e.message == "hi"
    assert e.pid is None


def test_journal_source_invokes_journalctl():
    calls = []

    def runner(name, args, timeout):
        calls.append((name, list(args), timeout))
        return CommandResult(stdout=_line(MESSAGE="x") + "\n")

    src = JournalSource(runner=runner, timeout=4, clock=lambda: NOW)
    entries = src.read(25)
    assert calls == [("journalctl", ["--no-pager", "--lines=25", "--output=json"], 4)]
    assert len(entries) == 1
    assert entries[0].timestamp == NOW


def test_journal_source_failure_is_contained():
    def runner(name, args, timeout):
        raise CommandError(name, "comando não encontrado")

    assert JournalSource(runner=runner).read(10) == []


def test_journal_source_unexpected_error_is_contained(caplog):
    def runner(name, args, timeout):
        raise RuntimeError("boom")

    import logging

    caplog.set_level(logging.WARNING)
    assert JournalSource(runner=runner).read(10) == []
    assert any("journal" in r.getMessage() for r in caplog.records)
