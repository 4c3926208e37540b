"""Ações explícitas sobre os logs: limpar, exportar e encaminhar.

O conjunto de ações é fechado (``Action``); cada membro tem um handler e
qualquer outro nome é rejeitado com ``UnsupportedActionError``. Os handlers
nunca levantam exceção para o chamador: falhas viram ``ActionResult`` com
``success=False`` e um motivo legível.
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass
from typing import Optional, Sequence
from urllib.parse import quote

from ..config.settings import Settings, load_settings
from ..exporter.promtail import send_entries_to_loki
from ..model.entry import QueryParams
from ..sources.base import Source
from ..system.log_helpers import ensure_dir_writable, truncate_file, write_new_file
from ..system.time_helpers import export_stamp
from .aggregator import filter_and_sort, read_all

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("text", "json")
DOWNLOAD_ROUTE = "/api/logs/download"


class UnsupportedActionError(ValueError):
    """Nome de ação fora do conjunto suportado."""


class ExportError(OSError):
    """Falha ao serializar ou gravar uma exportação."""


class Action(enum.Enum):
    CLEAR_LOGS = "clear_logs"
    EXPORT_LOGS = "export_logs"
    FORWARD_LOGS = "forward_logs"

    @classmethod
    def parse(cls, name) -> "Action":
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            raise UnsupportedActionError(f"ação não suportada: {name!r}") from None


@dataclass(frozen=True)
class ActionResult:
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    file_path: Optional[str] = None
    download_url: Optional[str] = None
    count: Optional[int] = None

    def to_dict(self) -> dict:
        raw = {
            "success": self.success,
            "message": self.message,
            "error": self.error,
            "filePath": self.file_path,
            "downloadUrl": self.download_url,
            "count": self.count,
        }
        return {k: v for k, v in raw.items() if v is not None}


# ========================
# 1. Clear
# ========================


def clear_application_logs(settings: Optional[Settings] = None) -> ActionResult:
    """Trunca os logs da aplicação configurados (nunca origens do sistema).

    Idempotente: ficheiros ausentes ou já vazios não são erro. Uma falha num
    ficheiro não impede o truncamento dos restantes; o resultado lista os
    ficheiros que falharam.
    """
    settings = settings or load_settings()
    cleared = 0
    failures: list[str] = []
    for rel in settings.clearable_files:
        path = settings.app_path(rel)
        try:
            if truncate_file(path):
                cleared += 1
        except OSError as exc:
            logger.error("clear: falha ao truncar %s: %s", path, exc, exc_info=True)
            failures.append(f"{path}: {exc.strerror or exc}")
    if failures:
        return ActionResult(success=False, error="Failed to clear logs: " + "; ".join(failures), count=cleared)
    logger.info("clear: %d ficheiros de log da aplicação truncados", cleared)
    return ActionResult(success=True, message="Application logs cleared successfully", count=cleared)


# ========================
# 2. Export
# ========================

MAX_NAME_ATTEMPTS = 10


def _full_set(level, sources, settings: Settings):
    """Conjunto filtrado e ordenado completo (sem paginação)."""
    params = QueryParams.from_raw(level=level, default_limit=settings.default_limit)
    entries = read_all(params, sources, settings)
    return filter_and_sort(entries, params)


def serialize_entries(entries, fmt: str) -> str:
    """Serializa em JSON indentado ou em linhas de texto."""
    if fmt == "json":
        return json.dumps([e.to_dict() for e in entries], indent=2, ensure_ascii=False)
    if fmt == "text":
        return "\n".join(e.to_text_line() for e in entries)
    raise ExportError(f"formato de exportação não suportado: {fmt!r}")


def export_file_name(fmt: str, stamp: Optional[str] = None, attempt: int = 0) -> str:
    """``logs-export-<stamp>.<fmt>``; tentativas seguintes recebem ``-<n>``."""
    base = f"logs-export-{stamp or export_stamp()}"
    if attempt:
        base = f"{base}-{attempt}"
    return f"{base}.{fmt}"


def _write_export(export_dir, fmt: str, content: str):
    """Cria o ficheiro de exportação sem sobrescrever exportações existentes."""
    stamp = export_stamp()
    for attempt in range(MAX_NAME_ATTEMPTS):
        name = export_file_name(fmt, stamp, attempt)
        try:
            return write_new_file(export_dir / name, content), name
        except FileExistsError:
            logger.debug("export: %s já existe, tentando outro nome", name)
    raise ExportError(f"nomes de exportação esgotados para {stamp}")


def export_logs(
    level="all",
    fmt: str = "text",
    sources: Optional[Sequence[Source]] = None,
    settings: Optional[Settings] = None,
) -> ActionResult:
    """Exporta todo o conjunto filtrado para um novo ficheiro em ``export_dir``.

    Retorna o caminho gravado em ``file_path``; formatos inválidos e falhas
    de I/O resultam em ``success=False`` (escritas parciais não são
    revertidas).
    """
    settings = settings or load_settings()
    if fmt is None:
        fmt = "text"
    if not isinstance(fmt, str) or fmt.strip().lower() not in EXPORT_FORMATS:
        return ActionResult(success=False, error=f"Unsupported export format: {fmt}")
    fmt = fmt.strip().lower()

    try:
        entries = _full_set(level, sources, settings)
        content = serialize_entries(entries, fmt)
        export_dir = settings.export_path
        if not ensure_dir_writable(export_dir):
            raise ExportError(f"diretório de exportação não gravável: {export_dir}")
        path, name = _write_export(export_dir, fmt, content)
    except OSError as exc:
        logger.error("export: falha ao exportar logs: %s", exc, exc_info=True)
        return ActionResult(success=False, error="Failed to export logs")

    logger.info("export: %d entradas gravadas em %s", len(entries), path)
    return ActionResult(
        success=True,
        message="Logs exported successfully",
        file_path=str(path),
        download_url=f"{DOWNLOAD_ROUTE}?filename={quote(name)}",
        count=len(entries),
    )


# ========================
# 3. Forward (Loki)
# ========================


def forward_logs(
    level="all",
    sources: Optional[Sequence[Source]] = None,
    settings: Optional[Settings] = None,
) -> ActionResult:
    """Envia o conjunto filtrado completo para o endpoint Loki configurado."""
    settings = settings or load_settings()
    entries = _full_set(level, sources, settings)
    if not send_entries_to_loki(entries, settings.loki_url, settings.loki_labels):
        return ActionResult(success=False, error="Failed to forward logs to Loki")
    return ActionResult(success=True, message="Logs forwarded successfully", count=len(entries))


# ========================
# 4. Despacho
# ========================


def perform_action(
    name,
    params: Optional[dict] = None,
    sources: Optional[Sequence[Source]] = None,
    settings: Optional[Settings] = None,
) -> ActionResult:
    """Despacha ``name`` para o handler da ação correspondente.

    Ações desconhecidas são rejeitadas explicitamente (``Unknown action``).
    """
    params = params or {}
    try:
        action = Action.parse(name)
    except UnsupportedActionError as exc:
        logger.warning("%s", exc)
        return ActionResult(success=False, error="Unknown action")

    if action is Action.CLEAR_LOGS:
        return clear_application_logs(settings)
    if action is Action.EXPORT_LOGS:
        return export_logs(params.get("level", "all"), params.get("format", "text"), sources, settings)
    if action is Action.FORWARD_LOGS:
        return forward_logs(params.get("level", "all"), sources, settings)
    # novo membro de Action sem handler
    raise UnsupportedActionError(f"ação sem handler: {action.value}")
