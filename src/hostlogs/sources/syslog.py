"""Leitor de ficheiros syslog de texto (``/var/log/syslog`` e afins)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Sequence

from ..model.entry import LogEntry
from ..system.log_helpers import file_exists, read_tail_lines
from ..system.time_helpers import utc_now
from .base import Source
from .normalize import parse_syslog_line

logger = logging.getLogger(__name__)


class SyslogFileSource(Source):
    """Últimas ``limit`` linhas de cada ficheiro syslog configurado.

    Ficheiros ausentes são ignorados; um ficheiro ilegível não impede a
    leitura dos restantes.
    """

    name = "syslog"

    def __init__(self, paths: Sequence[str | Path], clock: Callable = utc_now):
        super().__init__(clock)
        self.paths = [Path(p) for p in paths]

    def _collect(self, limit: int) -> list[LogEntry]:
        entries: list[LogEntry] = []
        for path in self.paths:
            if not file_exists(path):
                continue
            try:
                lines = read_tail_lines(path, limit)
            except OSError as exc:
                logger.warning("syslog: falha ao ler %s: %s", path, exc)
                continue
            for line in lines:
                entry = parse_syslog_line(line)
                if entry is not None:
                    entries.append(entry)
        return entries
