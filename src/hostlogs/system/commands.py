"""Execução de comandos externos com tempo limitado.

Os leitores de origem (journal, docker) usam apenas ``run_command``: o
comando é executado sem shell, sem stdin e com timeout; qualquer falha
(binário ausente, timeout, exit status != 0) vira ``CommandError``.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Sequence

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class CommandError(OSError):
    """Falha ao executar um comando externo."""

    def __init__(self, name: str, reason: str, returncode: int | None = None):
        super().__init__(f"{name}: {reason}")
        self.name = name
        self.reason = reason
        self.returncode = returncode


@dataclass(frozen=True)
class CommandResult:
    """Saída de um comando concluído com sucesso."""

    stdout: str
    returncode: int = 0

    def lines(self) -> list[str]:
        """Linhas não vazias do stdout, sem o ``\\n`` final."""
        return [line for line in self.stdout.splitlines() if line.strip()]


def run_command(name: str, args: Sequence[str] = (), timeout: float = DEFAULT_TIMEOUT) -> CommandResult:
    """Executa ``name args...`` e devolve o stdout decodificado.

    Lança ``CommandError`` quando o comando não existe, excede ``timeout`` ou
    termina com código diferente de zero.
    """
    cmd = [name, *[str(a) for a in args]]
    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            stdin=subprocess.DEVNULL,
            timeout=timeout,
        )
    except FileNotFoundError as exc:
        raise CommandError(name, "comando não encontrado") from exc
    except subprocess.TimeoutExpired as exc:
        raise CommandError(name, f"timeout após {timeout}s") from exc
    except (subprocess.SubprocessError, OSError) as exc:
        raise CommandError(name, str(exc)) from exc

    logger.debug("run_command: %s => %s", cmd, proc.returncode)
    if proc.returncode != 0:
        stderr = (proc.stderr or "").strip().splitlines()
        reason = stderr[-1] if stderr else f"exit status {proc.returncode}"
        raise CommandError(name, reason, proc.returncode)
    return CommandResult(stdout=proc.stdout or "", returncode=proc.returncode)
