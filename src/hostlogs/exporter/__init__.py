"""Pacote exporter: superfícies externas do agregador.

Servidor HTTP (``main_http``: consulta/ações/download) e encaminhamento para
o Loki (``promtail``). Apenas o encaminhamento é re-exportado aqui: o servidor
depende de ``core`` e é importado sob demanda.
"""

from .promtail import send_entries_to_loki

__all__ = ["send_entries_to_loki"]
