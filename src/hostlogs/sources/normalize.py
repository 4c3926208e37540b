"""Normalização de registros crus para ``LogEntry``.

Regras partilhadas pelos leitores:

- ``priority_to_level``: prioridade syslog numérica (0-7) -> nível
- ``parse_syslog_line``: linha ``<mon> <day> <HH:MM:SS> <host> <proc>[pid]: msg``
- ``infer_syslog_level`` / ``infer_app_level``: nível por substring
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from ..model.entry import LogEntry
from ..system.time_helpers import parse_syslog_timestamp

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = 6

_SYSLOG_RE = re.compile(r"^(\w{3}\s+\d{1,2}\s+\d{2}:\d{2}:\d{2})\s+(\S+)\s+([^:]+):\s*(.*)$")
_PROCESS_RE = re.compile(r"^([^\[]+)(\[(\d+)\])?$")


def priority_to_level(priority) -> str:
    """Mapeia a prioridade syslog para o nível canónico.

    ``<=2`` error, ``3..4`` warning, ``5..6`` info, ``>=7`` debug. Valores
    ausentes ou não numéricos usam a prioridade 6 (info).
    """
    try:
        p = int(str(priority).strip())
    except (TypeError, ValueError):
        p = DEFAULT_PRIORITY
    if p <= 2:
        return "error"
    if p <= 4:
        return "warning"
    if p <= 6:
        return "info"
    return "debug"


def infer_syslog_level(message: str) -> str:
    lowered = message.lower()
    if "error" in lowered or "fail" in lowered:
        return "error"
    if "warn" in lowered:
        return "warning"
    if "debug" in lowered:
        return "debug"
    return "info"


def infer_app_level(line: str) -> str:
    lowered = line.lower()
    if "error" in lowered:
        return "error"
    if "warn" in lowered:
        return "warning"
    return "info"


def split_process(raw: str) -> tuple[str, Optional[int]]:
    """Separa ``sshd[1234]`` em ``("sshd", 1234)``; sem pid -> ``(nome, None)``."""
    match = _PROCESS_RE.match(raw)
    if not match:
        return raw, None
    pid = int(match.group(3)) if match.group(3) else None
    return match.group(1), pid


def parse_syslog_line(line: str, year: int | None = None) -> Optional[LogEntry]:
    """Converte uma linha syslog em ``LogEntry`` ou ``None`` se não casar.

    O ano vem sempre do relógio atual (ou de ``year``), pois o formato não o
    inclui.
    """
    match = _SYSLOG_RE.match(line)
    if not match:
        return None
    stamp, host, raw_process, message = match.groups()
    ts = parse_syslog_timestamp(stamp, year)
    if ts is None:
        return None
    process, pid = split_process(raw_process)
    return LogEntry(
        timestamp=ts,
        level=infer_syslog_level(message),
        message=message,
        source=host,
        process=process,
        pid=pid,
    )
