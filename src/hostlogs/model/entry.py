"""Modelo canónico de entrada de log e parâmetros de consulta.

``LogEntry`` é imutável e valida nível e timestamp na construção; os leitores
descartam qualquer registro que não consiga ser convertido.
``QueryParams`` concentra a validação dos parâmetros vindos do CLI/HTTP.
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..system.time_helpers import format_iso_ms

logger = logging.getLogger(__name__)

LEVELS = ("debug", "info", "warning", "error")
LEVEL_ALL = "all"
DEFAULT_LIMIT = 100


@dataclass(frozen=True)
class LogEntry:
    """Unidade canónica de log produzida por todas as origens."""

    timestamp: datetime.datetime
    level: str
    message: str
    source: str
    process: Optional[str] = None
    pid: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.timestamp, datetime.datetime) or self.timestamp.tzinfo is None:
            raise ValueError(f"timestamp deve ser datetime com timezone: {self.timestamp!r}")
        if self.level not in LEVELS:
            raise ValueError(f"nível inválido: {self.level!r}")
        if self.pid is not None and (not isinstance(self.pid, int) or self.pid < 0):
            raise ValueError(f"pid inválido: {self.pid!r}")

    @property
    def timestamp_iso(self) -> str:
        return format_iso_ms(self.timestamp)

    def to_dict(self) -> dict:
        """Representação JSON; ``process``/``pid`` omitidos quando ausentes."""
        out: dict[str, Any] = {
            "timestamp": self.timestamp_iso,
            "level": self.level,
            "message": self.message,
            "source": self.source,
        }
        if self.process is not None:
            out["process"] = self.process
        if self.pid is not None:
            out["pid"] = self.pid
        return out

    def to_text_line(self) -> str:
        """Linha humana: ``[<timestamp>] <LEVEL> [<source>]: <message>``."""
        return f"[{self.timestamp_iso}] {self.level.upper()} [{self.source}]: {self.message}"


def _coerce_int(raw, default: int, minimum: int) -> int:
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    if value < minimum:
        return default
    return value


@dataclass(frozen=True)
class QueryParams:
    """Parâmetros de uma consulta: filtro de nível, paginação e busca textual."""

    level: str = LEVEL_ALL
    limit: int = DEFAULT_LIMIT
    offset: int = 0
    search: Optional[str] = None

    @classmethod
    def from_raw(
        cls,
        level=None,
        limit=None,
        offset=None,
        search=None,
        default_limit: int = DEFAULT_LIMIT,
    ) -> "QueryParams":
        """Constrói parâmetros a partir de valores crus (strings de query/CLI).

        Valores inválidos nunca levantam exceção: ``limit`` volta ao default,
        ``offset`` volta a 0 e um nível desconhecido é tratado como ``all``.
        """
        lvl = str(level).strip().lower() if level not in (None, "") else LEVEL_ALL
        if lvl != LEVEL_ALL and lvl not in LEVELS:
            logger.warning("Nível de filtro desconhecido %r; usando 'all'", level)
            lvl = LEVEL_ALL
        lim = default_limit if limit in (None, "") else _coerce_int(limit, default_limit, 1)
        off = 0 if offset in (None, "") else _coerce_int(offset, 0, 0)
        term = search.strip() if isinstance(search, str) and search.strip() else None
        return cls(level=lvl, limit=lim, offset=off, search=term)

    def matches(self, entry: LogEntry) -> bool:
        """True quando ``entry`` passa pelo filtro de nível e de busca."""
        if self.level != LEVEL_ALL and entry.level != self.level:
            return False
        if self.search:
            needle = self.search.lower()
            if needle not in entry.message.lower() and needle not in entry.source.lower():
                return False
        return True
