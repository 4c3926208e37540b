"""Agregação das origens: coleta, filtro, ordenação e paginação.

Cada consulta executa novamente todas as origens (sem cache) e o caminho de
leitura nunca falha: no pior caso devolve uma página vazia.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from ..config.settings import Settings, load_settings
from ..model.entry import LogEntry, QueryParams
from ..sources import default_sources
from ..sources.base import Source

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogPage:
    """Resultado de uma consulta: página + total filtrado (antes da paginação)."""

    entries: list[LogEntry] = field(default_factory=list)
    total: int = 0
    offset: int = 0
    limit: int = 0
    level: str = "all"

    def to_dict(self) -> dict:
        return {
            "success": True,
            "entries": [e.to_dict() for e in self.entries],
            "total": self.total,
            "offset": self.offset,
            "limit": self.limit,
            "level": self.level,
        }


# ========================
# 1. Coleta
# ========================


def collect_entries(sources: Sequence[Source], limit: int, parallel: bool = True) -> list[LogEntry]:
    """Executa todas as origens e concatena as entradas na ordem das origens.

    Com ``parallel`` as origens rodam em threads; o resultado é o mesmo do
    modo sequencial.
    """
    if not sources:
        return []
    if parallel and len(sources) > 1:
        with ThreadPoolExecutor(max_workers=len(sources), thread_name_prefix="hostlogs-source") as pool:
            batches = list(pool.map(lambda s: s.read(limit), sources))
    else:
        batches = [s.read(limit) for s in sources]

    entries: list[LogEntry] = []
    for source, batch in zip(sources, batches):
        logger.debug("origem %s: %d entradas", source.name, len(batch))
        entries.extend(batch)
    return entries


# ========================
# 2. Filtro, ordenação e paginação
# ========================


def filter_and_sort(entries: Iterable[LogEntry], params: QueryParams) -> list[LogEntry]:
    """Entradas que passam pelo filtro, mais recentes primeiro (ordenação estável)."""
    filtered = [e for e in entries if params.matches(e)]
    return sorted(filtered, key=lambda e: e.timestamp, reverse=True)


def query_entries(entries: Iterable[LogEntry], params: QueryParams) -> LogPage:
    """Aplica filtro/ordenação e recorta ``[offset, offset + limit)``.

    ``offset >= total`` produz página vazia.
    """
    ordered = filter_and_sort(entries, params)
    page = ordered[params.offset : params.offset + params.limit]
    return LogPage(
        entries=page,
        total=len(ordered),
        offset=params.offset,
        limit=params.limit,
        level=params.level,
    )


# ========================
# 3. Ponto de entrada da consulta
# ========================


def read_all(
    params: QueryParams,
    sources: Optional[Sequence[Source]] = None,
    settings: Optional[Settings] = None,
) -> list[LogEntry]:
    """Caminho de leitura partilhado por ``list_logs`` e pelas ações."""
    settings = settings or load_settings()
    if sources is None:
        sources = default_sources(settings)
    return collect_entries(sources, params.limit, parallel=settings.parallel_sources)


def list_logs(
    params: Optional[QueryParams] = None,
    sources: Optional[Sequence[Source]] = None,
    settings: Optional[Settings] = None,
) -> LogPage:
    """Consulta completa: coleta todas as origens e devolve a página pedida.

    Nunca levanta exceção; erros inesperados resultam em página vazia.
    """
    try:
        settings = settings or load_settings()
        params = params or QueryParams(limit=settings.default_limit)
        entries = read_all(params, sources, settings)
        return query_entries(entries, params)
    except Exception as exc:
        logger.error("list_logs: falha inesperada na agregação: %s", exc, exc_info=True)
        params = params or QueryParams()
        return LogPage(offset=params.offset, limit=params.limit, level=params.level)
