"""Leitor do journal do systemd (``journalctl --output=json``).

Cada linha do stdout é um objeto JSON; linhas que não decodificam (ou que
não são objetos) são ignoradas sem abortar a leitura.
"""

from __future__ import annotations

import json
import logging
from typing import Callable, Iterable, Optional

from ..model.entry import LogEntry
from ..system.commands import DEFAULT_TIMEOUT, run_command
from ..system.time_helpers import from_epoch_micros, utc_now
from .base import Source
from .normalize import priority_to_level

logger = logging.getLogger(__name__)


def _decode_message(raw) -> str:
    # journald serializa mensagens binárias como lista de bytes
    if raw is None:
        return ""
    if isinstance(raw, list):
        try:
            return bytes(int(b) & 0xFF for b in raw).decode("utf-8", errors="replace")
        except (TypeError, ValueError):
            return ""
    return str(raw)


def _parse_pid(raw) -> Optional[int]:
    try:
        pid = int(str(raw).strip())
    except (TypeError, ValueError):
        return None
    return pid if pid >= 0 else None


def entry_from_journal_record(record: dict, now) -> LogEntry:
    """Converte um objeto JSON do journal em ``LogEntry``."""
    ts = from_epoch_micros(record.get("__REALTIME_TIMESTAMP")) or now
    source = record.get("SYSLOG_IDENTIFIER") or record.get("_SYSTEMD_UNIT") or "system"
    process = record.get("_COMM")
    return LogEntry(
        timestamp=ts,
        level=priority_to_level(record.get("PRIORITY")),
        message=_decode_message(record.get("MESSAGE")),
        source=str(source),
        process=str(process) if process is not None else None,
        pid=_parse_pid(record.get("_PID")),
    )


def parse_journal_lines(lines: Iterable[str], now=None) -> list[LogEntry]:
    """Decodifica linhas de ``journalctl --output=json`` (um objeto por linha)."""
    now = now or utc_now()
    entries: list[LogEntry] = []
    skipped = 0
    for line in lines:
        line = line.strip()
        if not line:
            continue
        try:
            record = json.loads(line)
            if not isinstance(record, dict):
                raise ValueError("registro não é objeto")
            entries.append(entry_from_journal_record(record, now))
        except ValueError:
            # JSONDecodeError é ValueError; LogEntry inválido também
            skipped += 1
    if skipped:
        logger.debug("journal: %d linhas ignoradas", skipped)
    return entries


def parse_journal_output(stdout: str, now=None) -> list[LogEntry]:
    return parse_journal_lines(stdout.splitlines(), now)


class JournalSource(Source):
    """Últimos ``limit`` registros do journal."""

    name = "journal"

    def __init__(self, runner: Callable = run_command, timeout: float = DEFAULT_TIMEOUT, clock: Callable = utc_now):
        super().__init__(clock)
        self._runner = runner
        self._timeout = timeout

    def _collect(self, limit: int) -> list[LogEntry]:
        result = self._runner(
            "journalctl",
            ["--no-pager", f"--lines={int(limit)}", "--output=json"],
            timeout=self._timeout,
        )
        return parse_journal_lines(result.lines(), self._clock())
