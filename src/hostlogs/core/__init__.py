"""Pacote core: agregação das origens, ações e parsing de argumentos.

Re-exports da interface de consulta e das ações.
"""

from .aggregator import LogPage, list_logs
from .actions import Action, ActionResult, clear_application_logs, export_logs, forward_logs, perform_action

__all__ = [
    "LogPage",
    "list_logs",
    "Action",
    "ActionResult",
    "clear_application_logs",
    "export_logs",
    "forward_logs",
    "perform_action",
]
