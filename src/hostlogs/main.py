"""Ponto de entrada do agregador de logs.

Este módulo realiza a inicialização da aplicação: parsing de argumentos CLI,
configuração de logging, instalação de handlers de debug e despacho para o
comando pedido (list/clear/export/forward/serve). A lógica de consulta e as
ações ficam em `core` para facilitar testes e reutilização.
"""

import json as _json
import logging as _logging
import os
import sys
from datetime import date
from pathlib import Path

from .config.settings import Settings, load_settings
from .core.actions import clear_application_logs, export_logs, forward_logs
from .core.aggregator import list_logs
from .core.args import get_log_config, parse_args
from .model.entry import QueryParams
from .system.log_helpers import ensure_dir_writable


def main(argv: list[str] | None = None) -> int:
    """Inicializa a aplicação e executa o comando pedido.

    Args:
        argv: Lista de argumentos (usada em testes). Quando ``None`` a função
            utiliza os argumentos de linha de comando do processo.

    Returns:
        Código de saída: 0 em sucesso, 1 quando a ação reportar falha.
    """
    args = parse_args(argv)
    log_conf = get_log_config(args)

    level = getattr(_logging, log_conf.get("level", "WARNING"), _logging.WARNING)
    _logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    settings = load_settings()

    if args.command == "serve" or os.getenv("HOSTLOGS_DEBUG_FILE", "0") in ("1", "true", "yes"):
        try:
            _setup_debug_file_handler(get_debug_file_path(settings))
        except Exception as exc:
            _logging.getLogger(__name__).debug("falha ao configurar debug file handler: %s", exc, exc_info=True)

    return _dispatch(args, settings)


def _dispatch(args, settings: Settings) -> int:
    if args.command == "list":
        params = QueryParams.from_raw(
            level=args.level,
            limit=args.limit,
            offset=args.offset,
            search=args.search,
            default_limit=settings.default_limit,
        )
        page = list_logs(params, settings=settings)
        if args.as_json:
            print(_json.dumps(page.to_dict(), ensure_ascii=False, indent=2))
        else:
            for entry in page.entries:
                print(entry.to_text_line())
            print(f"-- {len(page.entries)} de {page.total} entradas (offset {page.offset})")
        return 0

    if args.command == "serve":
        # import tardio: o servidor só é necessário neste comando
        from .exporter.main_http import run_http_server

        run_http_server(addr=args.addr, port=args.port, settings=settings)
        return 0

    if args.command == "clear":
        result = clear_application_logs(settings)
    elif args.command == "export":
        result = export_logs(args.level, args.fmt, settings=settings)
    else:
        result = forward_logs(args.level, settings=settings)

    print(_json.dumps(result.to_dict(), ensure_ascii=False))
    return 0 if result.success else 1


def get_debug_file_path(settings: Settings) -> Path:
    """Retorna caminho do arquivo de debug do dia em ``<debug_log_root>/debug``."""
    debug_dir = Path(settings.debug_log_root) / "debug"
    ensure_dir_writable(debug_dir)
    return debug_dir / f"hostlogs-{date.today().isoformat()}.log"


def _setup_debug_file_handler(debug_path: Path) -> None:
    """Instala handlers de ficheiro para debug e hook global de exceções.

    Adiciona dois handlers ao logger root: um human-readable (texto) e um
    JSONL (uma linha de JSON por evento). Ambos funcionam em modo
    "best-effort": falhas de escrita do handler são registradas e suprimidas.
    Também instala um ``sys.excepthook`` que envia exceções não tratadas para
    o logger root.
    """
    fh = _logging.FileHandler(str(debug_path), encoding="utf-8")
    fh.setLevel(_logging.INFO)
    fh.setFormatter(_logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))

    jfh = _logging.FileHandler(str(debug_path.with_suffix(".jsonl")), encoding="utf-8")
    jfh.setLevel(_logging.INFO)
    jfh.setFormatter(_get_json_formatter())

    root = _logging.getLogger()
    if _has_existing_file_handler(root, fh, jfh):
        fh.close()
        jfh.close()
    else:
        _wrap_emit_safe(fh)
        _wrap_emit_safe(jfh)
        root.addHandler(fh)
        root.addHandler(jfh)

    def _exc_hook(exc_type, exc_value, exc_tb):
        try:
            root.error("Unhandled exception", exc_info=(exc_type, exc_value, exc_tb))
        except Exception:
            sys.__excepthook__(exc_type, exc_value, exc_tb)

    sys.excepthook = _exc_hook


# Auxiliares extraídas para reduzir complexidade


def _get_json_formatter():
    class _JSONFormatter(_logging.Formatter):
        def format(self, record):
            obj = {
                "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%SZ"),
                "level": record.levelname,
                "name": record.name,
                "msg": record.getMessage(),
            }
            if record.exc_info:
                obj["exc"] = self.formatException(record.exc_info)
            return _json.dumps(obj, ensure_ascii=False)

    return _JSONFormatter()


def _has_existing_file_handler(root, fh, jfh):
    bases = (getattr(fh, "baseFilename", None), getattr(jfh, "baseFilename", None))
    for h in root.handlers:
        if isinstance(h, _logging.FileHandler) and getattr(h, "baseFilename", None) in bases:
            return True
    return False


def _wrap_emit_safe(handler):
    import types as _types

    orig = handler.emit

    def _emit_safe(self, record):
        try:
            return orig(record)
        except Exception:
            # não re-logar aqui: o próprio handler receberia o registro
            self.handleError(record)

    handler.emit = _types.MethodType(_emit_safe, handler)  # type: ignore[assignment]


if __name__ == "__main__":
    sys.exit(main())
