"""Pacote system: helpers de processo, ficheiros e datas.

Camada fina sobre ``subprocess`` e o filesystem consumida pelos leitores de
origem e pelas ações.
"""

from .commands import CommandError, CommandResult, run_command
from .log_helpers import file_exists, read_tail_lines

__all__ = ["CommandError", "CommandResult", "run_command", "file_exists", "read_tail_lines"]
