"""Entrypoint HTTP: expõe a consulta de logs, as ações e /health.

Endpoints:
- ``GET /api/logs?level=&limit=&offset=&search=`` -> página de entradas
- ``POST /api/logs`` com corpo ``{"action": "...", ...}`` -> resultado da ação
- ``GET /api/logs/download?filename=`` -> ficheiro do diretório de exportação
- ``GET /health`` -> estado e métricas do processo (psutil)

O padrão de escuta é seguro (127.0.0.1); exponha externamente apenas atrás
de firewall/proxy com autenticação.
"""

from __future__ import annotations

import json
import logging
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import parse_qs, urlsplit

import psutil

from ..config.settings import Settings, load_settings
from ..core.actions import DOWNLOAD_ROUTE, perform_action
from ..core.aggregator import list_logs
from ..model.entry import QueryParams
from ..system.log_helpers import file_lock, sanitize_file_name

logger = logging.getLogger(__name__)

LOGS_ROUTE = "/api/logs"
MAX_BODY_BYTES = 64 * 1024


def _first(query: dict, key: str):
    values = query.get(key)
    return values[0] if values else None


def get_process_metrics(prefix: str = "process_") -> dict:
    """Coleta métricas do processo em tempo real."""
    proc = psutil.Process()
    metrics = {
        f"{prefix}cpu_percent": proc.cpu_percent(interval=0.0),
        f"{prefix}memory_percent": proc.memory_percent(),
        f"{prefix}memory_rss_bytes": getattr(proc.memory_info(), "rss", 0),
        f"{prefix}uptime_seconds": float(max(0, (time.time() - proc.create_time()))),
        f"{prefix}num_threads": proc.num_threads(),
    }
    num_fds_fn = getattr(proc, "num_fds", None)
    if callable(num_fds_fn):
        try:
            metrics[f"{prefix}num_fds"] = num_fds_fn()
        except psutil.Error as exc:
            logger.debug("Falha ao obter número de descritores de arquivos: %s", exc, exc_info=True)
    return metrics


class LogsHandler(BaseHTTPRequestHandler):
    """HTTP handler para /api/logs, /api/logs/download e /health."""

    # definido por make_server
    settings: Settings = Settings()

    def _send_json(self, status: int, body: dict) -> None:
        data = json.dumps(body, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def do_GET(self):
        """Manipula requisições GET para /api/logs, download e /health."""
        parts = urlsplit(self.path)
        query = parse_qs(parts.query)
        if parts.path == LOGS_ROUTE:
            params = QueryParams.from_raw(
                level=_first(query, "level"),
                limit=_first(query, "limit"),
                offset=_first(query, "offset"),
                search=_first(query, "search"),
                default_limit=self.settings.default_limit,
            )
            page = list_logs(params, settings=self.settings)
            self._send_json(200, page.to_dict())
        elif parts.path == DOWNLOAD_ROUTE:
            self._send_export(_first(query, "filename"))
        elif parts.path == "/health":
            try:
                process = get_process_metrics()
            except psutil.Error as exc:
                logger.debug("Falha ao coletar métricas do processo: %s", exc, exc_info=True)
                process = {}
            self._send_json(200, {"status": "ok", "service": "hostlogs", "process": process})
        else:
            self._send_json(404, {"success": False, "error": "Not found"})

    def do_POST(self):
        """Executa uma ação (clear_logs, export_logs, forward_logs)."""
        if urlsplit(self.path).path != LOGS_ROUTE:
            self._send_json(404, {"success": False, "error": "Not found"})
            return
        try:
            length = int(self.headers.get("Content-Length") or 0)
        except ValueError:
            length = 0
        if length <= 0 or length > MAX_BODY_BYTES:
            self._send_json(400, {"success": False, "error": "Invalid request body"})
            return
        try:
            body = json.loads(self.rfile.read(length).decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            self._send_json(400, {"success": False, "error": "Invalid request body"})
            return
        if not isinstance(body, dict) or "action" not in body:
            self._send_json(400, {"success": False, "error": "Missing action"})
            return

        action = body.pop("action")
        result = perform_action(action, body, settings=self.settings)
        if result.success:
            status = 200
        elif result.error == "Unknown action":
            status = 400
        else:
            status = 500
        self._send_json(status, result.to_dict())

    def _send_export(self, filename) -> None:
        """Serve um ficheiro exportado; apenas nomes base dentro de export_dir."""
        safe = sanitize_file_name(filename or "")
        if not safe or safe != filename:
            self._send_json(404, {"success": False, "error": "File not found"})
            return
        path = self.settings.export_path / safe
        try:
            with file_lock(path):
                data = path.read_bytes()
        except OSError:
            self._send_json(404, {"success": False, "error": "File not found"})
            return
        ctype = "application/json" if safe.endswith(".json") else "text/plain"
        self.send_response(200)
        self.send_header("Content-Type", f"{ctype}; charset=utf-8")
        self.send_header("Content-Disposition", f'attachment; filename="{safe}"')
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def log_message(self, format, *args):
        """Encaminha o access log para o logging em nível debug."""
        logger.debug("%s - %s", self.address_string(), format % args)


def make_server(addr: str | None = None, port: int | None = None, settings: Settings | None = None):
    """Cria o servidor HTTP (sem iniciar) ligado às configurações dadas."""
    settings = settings or load_settings()
    handler = type("BoundLogsHandler", (LogsHandler,), {"settings": settings})
    return ThreadingHTTPServer((addr or settings.http_addr, port or settings.http_port), handler)


def run_http_server(addr: str | None = None, port: int | None = None, settings: Settings | None = None) -> None:
    """Inicia o servidor HTTP e bloqueia até interrupção."""
    server = make_server(addr, port, settings)
    host, bound_port = server.server_address[:2]
    logger.info("Servindo em http://%s:%s (%s, /health)", host, bound_port, LOGS_ROUTE)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Recebido KeyboardInterrupt, encerrando servidor HTTP")
    finally:
        server.server_close()
