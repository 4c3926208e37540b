"""Pacote sources: leitores de cada origem de log e regras de normalização.

Re-exports e a fábrica ``default_sources`` usada pelo agregador.
"""

from __future__ import annotations

from ..config.settings import Settings
from .app import AppLogSource
from .base import Source
from .docker import DockerSource
from .journal import JournalSource
from .syslog import SyslogFileSource


def default_sources(settings: Settings) -> list[Source]:
    """Instancia as quatro origens conforme as configurações.

    A ordem da lista é a ordem de concatenação antes da ordenação.
    """
    return [
        JournalSource(timeout=settings.command_timeout),
        SyslogFileSource(settings.syslog_files),
        DockerSource(
            max_containers=settings.docker_max_containers,
            tail_lines=settings.docker_tail_lines,
            timeout=settings.command_timeout,
        ),
        AppLogSource(
            [settings.app_path(p) for p in settings.app_log_files],
            tail_lines=settings.app_tail_lines,
        ),
    ]


__all__ = [
    "Source",
    "JournalSource",
    "SyslogFileSource",
    "DockerSource",
    "AppLogSource",
    "default_sources",
]
