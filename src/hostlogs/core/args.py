"""Parser de argumentos da linha de comando.

Docstrings e mensagens em português.

Comandos:
- ``list``: consulta paginada (--level, --limit, --offset, --search, --json)
- ``clear``: trunca os logs da aplicação
- ``export``: exporta o conjunto filtrado (--level, --format)
- ``forward``: envia o conjunto filtrado para o Loki (--level)
- ``serve``: inicia o servidor HTTP (--addr, --port)

Opções globais: verbosidade (-v) e nível de logging (--log-level). Valores
ausentes na CLI podem vir do ambiente (CLI > ENV > default).
"""

import argparse
import logging
import os
from typing import Sequence

from ..model.entry import LEVEL_ALL, LEVELS

COMMANDS = ("list", "clear", "export", "forward", "serve")

# ========================
# 0. Configuração do parser e argumentos padrão
# ========================


def _add_level(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--level",
        choices=(LEVEL_ALL,) + LEVELS,
        default=LEVEL_ALL,
        help="Filtra por nível (default: all)",
    )


# Função principal do módulo; cria e retorna o ArgumentParser configurado
def configure_argparser() -> argparse.ArgumentParser:
    """Cria e retorna ArgumentParser configurado para o agregador."""
    parser = argparse.ArgumentParser(
        prog="hostlogs",
        description="Agregador de logs do host: journal, syslog, containers e aplicação",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Aumenta a verbosidade (-v, -vv)",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        type=str,
        default=None,
        help="Nível de logging (DEBUG/INFO/WARNING/ERROR). Se ausente, definido por -v",
    )

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    p_list = sub.add_parser("list", help="Lista entradas agregadas")
    _add_level(p_list)
    # limit/offset como string: valores inválidos voltam ao default em QueryParams
    p_list.add_argument("--limit", default=None, help="Tamanho da página (default: 100)")
    p_list.add_argument("--offset", default=None, help="Deslocamento inicial (default: 0)")
    p_list.add_argument("--search", default=None, help="Filtra por texto na mensagem ou origem")
    p_list.add_argument("--json", dest="as_json", action="store_true", help="Saída JSON")

    sub.add_parser("clear", help="Trunca os logs da aplicação")

    p_export = sub.add_parser("export", help="Exporta o conjunto filtrado para ficheiro")
    _add_level(p_export)
    p_export.add_argument("--format", dest="fmt", choices=("text", "json"), default="text")

    p_forward = sub.add_parser("forward", help="Envia o conjunto filtrado para o Loki")
    _add_level(p_forward)

    p_serve = sub.add_parser("serve", help="Inicia o servidor HTTP")
    p_serve.add_argument("--addr", default=None, help="Endereço de escuta (default: 127.0.0.1)")
    p_serve.add_argument("--port", type=int, default=None, help="Porta (default: 8000)")

    return parser


# ========================
# 1. Funções auxiliares para análise e validação de argumentos
# ========================


# Auxilia hostlogs.main; criado para analisar argv e validar argumentos
def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Analisa argv e retorna Namespace validado para uso no programa."""
    parser = configure_argparser()
    ns = parser.parse_args(argv)

    # Overrides via ambiente SOMENTE quando o argumento não veio da CLI.
    env_map = {
        "log_level": "HOSTLOGS_LOG_LEVEL",
        "verbose": "HOSTLOGS_VERBOSE",
    }
    for arg, env_var in env_map.items():
        env_val = os.getenv(env_var)
        if env_val is None:
            continue
        current_val = getattr(ns, arg, None)
        if current_val:
            continue
        try:
            setattr(ns, arg, int(env_val) if arg == "verbose" else env_val)
        except ValueError as exc:
            logging.getLogger(__name__).warning(f"{env_var} inválido ('{env_val}'): {exc}. Usando valor do argumento.")
    validate_args(ns)
    return ns


# Auxilia parse_args; criado para garantir valores corretos e seguros
def validate_args(args: argparse.Namespace) -> None:
    """Valida argumentos do servidor; os da consulta são validados em QueryParams."""
    port = getattr(args, "port", None)
    if port is not None and not 0 < port < 65536:
        raise ValueError("porta deve estar entre 1 e 65535")


# ========================
# 2. Função auxiliar para configuração de logging
# ========================


# Auxilia hostlogs.main; criado para extrair configuração de logging dos argumentos
def get_log_config(args: argparse.Namespace) -> dict:
    """Retorna dict com configuração de logging ('level')."""
    if getattr(args, "log_level", None):
        level = str(args.log_level).upper()
    else:
        v = getattr(args, "verbose", 0) or 0
        if v >= 2:
            level = "DEBUG"
        elif v == 1:
            level = "INFO"
        else:
            level = "WARNING"
    return {"level": level}
