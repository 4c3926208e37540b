"""Leitor de logs de containers via CLI do Docker.

Lista os containers em execução (no máximo ``max_containers``) e busca as
últimas ``tail_lines`` linhas de cada um. As linhas de container não trazem
nível nem timestamp confiáveis: viram ``info`` com o instante da coleta.
"""

from __future__ import annotations

import logging
from typing import Callable

from ..model.entry import LogEntry
from ..system.commands import DEFAULT_TIMEOUT, CommandError, run_command
from ..system.time_helpers import utc_now
from .base import Source

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONTAINERS = 5
DEFAULT_TAIL_LINES = 20


class DockerSource(Source):
    name = "docker"

    def __init__(
        self,
        runner: Callable = run_command,
        max_containers: int = DEFAULT_MAX_CONTAINERS,
        tail_lines: int = DEFAULT_TAIL_LINES,
        timeout: float = DEFAULT_TIMEOUT,
        clock: Callable = utc_now,
    ):
        super().__init__(clock)
        self._runner = runner
        self.max_containers = max_containers
        self.tail_lines = tail_lines
        self._timeout = timeout

    def list_containers(self) -> list[str]:
        """Nomes dos containers em execução, limitados a ``max_containers``."""
        result = self._runner("docker", ["ps", "--format", "{{.Names}}"], timeout=self._timeout)
        names = [n.strip() for n in result.lines()]
        return names[: self.max_containers]

    def _container_entries(self, container: str) -> list[LogEntry]:
        result = self._runner(
            "docker",
            ["logs", "--tail", str(self.tail_lines), container],
            timeout=self._timeout,
        )
        now = self._clock()
        return [
            LogEntry(
                timestamp=now,
                level="info",
                message=line,
                source=f"docker-{container}",
                process=container,
            )
            for line in result.lines()
        ]

    def _collect(self, limit: int) -> list[LogEntry]:
        # `limit` não se aplica: cada container contribui com tail_lines
        entries: list[LogEntry] = []
        for container in self.list_containers():
            try:
                entries.extend(self._container_entries(container))
            except CommandError as exc:
                logger.debug("docker: falha ao obter logs de %s: %s", container, exc)
        return entries
