"""Configurações do agregador de logs.

Centraliza as listas fixas de origens (ficheiros syslog, logs da aplicação),
limites (containers, linhas por origem), diretório de exportação e endpoints
HTTP/Loki. Carrega valores a partir de ``DEFAULTS`` e permite overrides via
arquivo ``.env`` ou variáveis de ambiente (prefixo ``HOSTLOGS_*``).

As funções públicas principais são:

- ``load_settings()`` -> instância imutável de ``Settings``.
- ``validate_settings()`` -> normaliza/valida um ``Settings`` já construído.

Comentários e mensagens de log estão em português.
"""

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path

logger = logging.getLogger(__name__)

# ========================
# Constantes e padrões globais
# ========================

DEFAULT_SYSLOG_FILES = (
    "/var/log/syslog",
    "/var/log/messages",
    "/var/log/kern.log",
    "/var/log/auth.log",
    "/var/log/daemon.log",
)

# Relativos a ``app_root``
DEFAULT_APP_LOG_FILES = (
    "logs/app.log",
    "logs/error.log",
    "server.log",
)

# Apenas ficheiros da aplicação; nunca as origens do sistema
DEFAULT_CLEARABLE_FILES = (
    "logs/app.log",
    "logs/error.log",
    "server.log",
)

DEFAULTS = {
    "log_level": "INFO",
    "default_limit": 100,
    "app_root": ".",
    "export_dir": "exports",
    "debug_log_root": "logs",
    "docker_max_containers": 5,
    "docker_tail_lines": 20,
    "app_tail_lines": 50,
    "command_timeout": 10.0,
    "parallel_sources": True,
    "http_addr": "127.0.0.1",
    "http_port": 8000,
    "loki_url": "http://loki:3100/loki/api/v1/push",
    "loki_labels": "job=hostlogs",
}

# chave do ambiente -> (campo, conversor)
_ENV_FIELDS = {
    "HOSTLOGS_LOG_LEVEL": ("log_level", str),
    "HOSTLOGS_DEFAULT_LIMIT": ("default_limit", int),
    "HOSTLOGS_APP_ROOT": ("app_root", str),
    "HOSTLOGS_EXPORT_DIR": ("export_dir", str),
    "HOSTLOGS_DEBUG_LOG_ROOT": ("debug_log_root", str),
    "HOSTLOGS_DOCKER_MAX_CONTAINERS": ("docker_max_containers", int),
    "HOSTLOGS_DOCKER_TAIL_LINES": ("docker_tail_lines", int),
    "HOSTLOGS_APP_TAIL_LINES": ("app_tail_lines", int),
    "HOSTLOGS_COMMAND_TIMEOUT": ("command_timeout", float),
    "HOSTLOGS_PARALLEL_SOURCES": ("parallel_sources", "bool"),
    "HOSTLOGS_HTTP_ADDR": ("http_addr", str),
    "HOSTLOGS_HTTP_PORT": ("http_port", int),
    "LOKI_URL": ("loki_url", str),
    "LOKI_LABELS": ("loki_labels", str),
}

_ENV_LISTS = {
    "HOSTLOGS_SYSLOG_FILES": "syslog_files",
    "HOSTLOGS_APP_LOG_FILES": "app_log_files",
    "HOSTLOGS_CLEARABLE_FILES": "clearable_files",
}


@dataclass(frozen=True)
# Configuração efetiva; consumida por sources, core e exporter
class Settings:
    """Configuração imutável do agregador.

    Os caminhos de ``app_log_files`` e ``clearable_files`` são relativos a
    ``app_root``; ``syslog_files`` são absolutos.
    """

    log_level: str = DEFAULTS["log_level"]
    default_limit: int = DEFAULTS["default_limit"]
    app_root: str = DEFAULTS["app_root"]
    export_dir: str = DEFAULTS["export_dir"]
    debug_log_root: str = DEFAULTS["debug_log_root"]
    syslog_files: tuple = DEFAULT_SYSLOG_FILES
    app_log_files: tuple = DEFAULT_APP_LOG_FILES
    clearable_files: tuple = DEFAULT_CLEARABLE_FILES
    docker_max_containers: int = DEFAULTS["docker_max_containers"]
    docker_tail_lines: int = DEFAULTS["docker_tail_lines"]
    app_tail_lines: int = DEFAULTS["app_tail_lines"]
    command_timeout: float = DEFAULTS["command_timeout"]
    parallel_sources: bool = DEFAULTS["parallel_sources"]
    http_addr: str = DEFAULTS["http_addr"]
    http_port: int = DEFAULTS["http_port"]
    loki_url: str = DEFAULTS["loki_url"]
    loki_labels: str = DEFAULTS["loki_labels"]

    def app_path(self, relative: str) -> Path:
        """Resolve um caminho da aplicação relativo a ``app_root``."""
        return Path(self.app_root) / relative

    @property
    def export_path(self) -> Path:
        p = Path(self.export_dir)
        if p.is_absolute():
            return p
        return Path(self.app_root) / p


# ========================
# 1. Carregamento das configurações
# ========================


# Função principal do módulo; carrega todas as configurações do ambiente
def load_settings(env_path: Path | str | None = None) -> Settings:
    """Carrega configurações combinando DEFAULTS + .env + ambiente.

    As variáveis em ambiente sobrescrevem valores do arquivo `.env`. Valores
    inválidos são registrados em warning e ignorados (mantém o default).
    """
    if env_path is None:
        project_root = Path(__file__).resolve().parents[3]
        env_path = os.getenv("HOSTLOGS_ENV_FILE", str(project_root / ".env"))
    env_items = _merge_env_items(Path(env_path))

    overrides: dict = {}
    _apply_scalar_overrides(env_items, overrides)
    _apply_list_overrides(env_items, overrides)

    return validate_settings(replace(Settings(), **overrides))


# ========================
# 2. Funções auxiliares para ambiente e overrides
# ========================


# Auxilia load_settings; criado para centralizar leitura do .env
def _read_env_file(path: Path | str) -> dict:
    """Lê um arquivo `.env` e devolve um dicionário chave->valor.

    Linhas vazias e comentários (começando com '#') são ignorados.
    """
    result: dict[str, str] = {}
    p = Path(path)
    if not p.exists():
        return result
    try:
        with p.open("r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                if "=" not in line:
                    continue
                key, val = line.split("=", 1)
                key = key.strip()
                val = val.strip().strip('"').strip("'")
                result[key] = val
    except OSError as exc:
        logger.debug("Falha ao ler .env em %s: %s", p, exc)
        return {}
    return result


# Auxilia load_settings; criado para unir variáveis do ambiente e .env
def _merge_env_items(env_path: Path) -> dict:
    """Retorna um mapeamento combinado de `.env` e env vars do processo.

    As variáveis do processo sobrescrevem o arquivo `.env`.
    """
    env_items = _read_env_file(env_path)
    if env_items == {} and env_path.exists():
        logger.warning("Erro ou ficheiro .env vazio em %s", env_path)
    env_items.update(os.environ)
    return env_items


def _to_bool(raw: str) -> bool:
    val = str(raw).strip().lower()
    if val in ("1", "true", "yes", "on"):
        return True
    if val in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"booleano inválido: {raw!r}")


# Auxilia load_settings; aplica overrides de campos escalares
def _apply_scalar_overrides(env_items: dict, overrides: dict) -> None:
    for key, (field, conv) in _ENV_FIELDS.items():
        if key not in env_items:
            continue
        raw = env_items[key]
        try:
            if conv == "bool":
                overrides[field] = _to_bool(raw)
            else:
                overrides[field] = conv(str(raw).strip())
        except (TypeError, ValueError):
            logger.warning("Valor inválido para %s: %s", key, raw)


# Auxilia load_settings; listas separadas por vírgula
def _apply_list_overrides(env_items: dict, overrides: dict) -> None:
    for key, field in _ENV_LISTS.items():
        raw = env_items.get(key)
        if raw is None:
            continue
        items = tuple(p.strip() for p in str(raw).split(",") if p.strip())
        overrides[field] = items


# ========================
# 3. Validação e normalização
# ========================


# Função principal de validação; normaliza e valida configurações
def validate_settings(settings: Settings) -> Settings:
    """Normaliza o ``Settings``: limites positivos e nível de log em maiúsculas.

    Valores fora do intervalo voltam ao default e geram warning.
    """
    if not isinstance(settings, Settings):
        raise TypeError("settings deve ser uma instância de Settings")

    fixes: dict = {}
    for field in ("default_limit", "docker_max_containers", "docker_tail_lines", "app_tail_lines"):
        value = getattr(settings, field)
        if value <= 0:
            logger.warning("%s deve ser > 0 (recebido %s); usando %s", field, value, DEFAULTS[field])
            fixes[field] = DEFAULTS[field]
    if settings.command_timeout <= 0:
        logger.warning("command_timeout deve ser > 0; usando %s", DEFAULTS["command_timeout"])
        fixes["command_timeout"] = DEFAULTS["command_timeout"]
    if not 0 < settings.http_port < 65536:
        logger.warning("http_port fora do intervalo: %s", settings.http_port)
        fixes["http_port"] = DEFAULTS["http_port"]
    fixes["log_level"] = (settings.log_level or DEFAULTS["log_level"]).upper()

    logger.debug("Configurações validadas e normalizadas")
    return replace(settings, **fixes)
