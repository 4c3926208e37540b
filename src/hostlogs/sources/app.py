"""Leitor dos ficheiros de log da própria aplicação."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Sequence

from ..model.entry import LogEntry
from ..system.log_helpers import file_exists, read_tail_lines
from ..system.time_helpers import utc_now
from .base import Source
from .normalize import infer_app_level

logger = logging.getLogger(__name__)

DEFAULT_TAIL_LINES = 50


class AppLogSource(Source):
    """Últimas ``tail_lines`` linhas de cada log da aplicação existente.

    O nível é inferido do texto da linha e o timestamp é o da coleta.
    """

    name = "app"

    def __init__(self, paths: Sequence[str | Path], tail_lines: int = DEFAULT_TAIL_LINES, clock: Callable = utc_now):
        super().__init__(clock)
        self.paths = [Path(p) for p in paths]
        self.tail_lines = tail_lines

    def _collect(self, limit: int) -> list[LogEntry]:
        entries: list[LogEntry] = []
        now = self._clock()
        for path in self.paths:
            if not file_exists(path):
                continue
            try:
                lines = read_tail_lines(path, self.tail_lines)
            except OSError as exc:
                logger.warning("app: falha ao ler %s: %s", path, exc)
                continue
            source = f"app-{path.name}"
            for line in lines:
                entries.append(
                    LogEntry(
                        timestamp=now,
                        level=infer_app_level(line),
                        message=line,
                        source=source,
                        process="app",
                    )
                )
        return entries
