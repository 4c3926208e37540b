"""Contrato comum das origens de log.

Cada origem implementa ``_collect(limit)``; o método público ``read`` nunca
levanta exceção: qualquer falha é registrada e a origem contribui com zero
entradas para a consulta.
"""

from __future__ import annotations

import logging
from typing import Callable

from ..model.entry import LogEntry
from ..system.commands import CommandError
from ..system.time_helpers import utc_now

logger = logging.getLogger(__name__)


class Source:
    """Origem de log com isolamento de falhas."""

    name = "source"

    def __init__(self, clock: Callable = utc_now):
        self._clock = clock

    def _collect(self, limit: int) -> list[LogEntry]:
        raise NotImplementedError

    def read(self, limit: int) -> list[LogEntry]:
        """Lê até onde a origem permitir; em falha devolve lista vazia."""
        try:
            return list(self._collect(limit))
        except CommandError as exc:
            # origem indisponível neste host (binário ausente, daemon parado...)
            logger.debug("origem %s indisponível: %s", self.name, exc)
        except Exception as exc:
            logger.warning("origem %s falhou: %s", self.name, exc, exc_info=True)
        return []

    def __repr__(self):
        return f"<{type(self).__name__} {self.name}>"
