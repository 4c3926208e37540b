# vulture: ignore
"""Helpers de baixo nível para leitura e escrita de ficheiros de log.

Fornece leitura das últimas linhas (tail), truncamento, criação exclusiva de
ficheiros de exportação e verificação de diretórios graváveis. Leituras e
escritas do mesmo caminho são serializadas dentro do processo por um lock por
caminho e, entre processos, por lock consultivo via ``portalocker``.
"""

from __future__ import annotations

import logging
import os
import re
import sys
import threading
from collections import deque
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import portalocker

logger = logging.getLogger(__name__)

DURABLE_WRITES = os.environ.get("HOSTLOGS_DURABLE_WRITES", "1").lower() in ("1", "true", "yes", "on")

_registry_lock = threading.Lock()
_path_locks: dict[str, threading.Lock] = {}


# -----------------------
# Locks por caminho
# -----------------------
def _lock_for(path: Path) -> threading.Lock:
    key = os.path.abspath(str(path))
    with _registry_lock:
        lock = _path_locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _path_locks[key] = lock
        return lock


@contextmanager
def file_lock(path: Path | str) -> Iterator[None]:
    """Exclusão mútua (intra-processo) para operações sobre ``path``."""
    lock = _lock_for(Path(path))
    with lock:
        yield


@contextmanager
def _os_lock(fh, flags) -> Iterator[None]:
    """Aplica lock consultivo em ``fh``; falhas de lock não impedem o I/O."""
    locked = False
    try:
        portalocker.lock(fh, flags)
        locked = True
    except portalocker.exceptions.LockException as exc:
        logger.debug("portalocker.lock falhou em %s: %s", getattr(fh, "name", fh), exc)
    try:
        yield
    finally:
        if locked:
            try:
                portalocker.unlock(fh)
            except portalocker.exceptions.LockException as exc:
                logger.debug("portalocker.unlock falhou em %s: %s", getattr(fh, "name", fh), exc)


# -----------------------
# Leitura
# -----------------------
def file_exists(path: Path | str) -> bool:
    """True quando ``path`` existe e é um ficheiro regular."""
    try:
        return Path(path).is_file()
    except OSError:
        return False


def read_tail_lines(path: Path | str, max_lines: int) -> list[str]:
    """Retorna até ``max_lines`` linhas finais não vazias de ``path``.

    Lança ``OSError`` (incl. ``FileNotFoundError``/``PermissionError``) para
    que o chamador decida como conter a falha.
    """
    if max_lines <= 0:
        return []
    p = Path(path)
    with file_lock(p):
        with p.open("r", encoding="utf-8", errors="replace") as fh:
            with _os_lock(fh, portalocker.LOCK_SH):
                tail = deque((line.rstrip("\r\n") for line in fh if line.strip()), maxlen=min(max_lines, sys.maxsize))
    return list(tail)


# -----------------------
# Escrita segura
# -----------------------
def truncate_file(path: Path | str) -> bool:
    """Trunca ``path`` para zero bytes se existir.

    Retorna False (no-op) quando o ficheiro não existe; propaga ``OSError``
    em falhas de escrita.
    """
    p = Path(path)
    with file_lock(p):
        if not p.exists():
            return False
        with p.open("r+", encoding="utf-8") as fh:
            with _os_lock(fh, portalocker.LOCK_EX):
                fh.seek(0)
                fh.truncate()
                fh.flush()
                if DURABLE_WRITES:
                    try:
                        os.fsync(fh.fileno())
                    except OSError as exc:
                        logger.debug("truncate_file: fsync falhou em %s: %s", p, exc)
    return True


def write_new_file(path: Path | str, text: str) -> Path:
    """Cria ``path`` (exclusivamente) e grava ``text``.

    Lança ``FileExistsError`` se o ficheiro já existir e ``OSError`` em falhas
    de escrita; a escrita parcial não é revertida.
    """
    p = Path(path)
    with file_lock(p):
        with p.open("x", encoding="utf-8") as fh:
            with _os_lock(fh, portalocker.LOCK_EX):
                fh.write(text)
                fh.flush()
                if DURABLE_WRITES:
                    try:
                        os.fsync(fh.fileno())
                    except OSError as exc:
                        logger.debug("write_new_file: fsync falhou em %s: %s", p, exc)
    return p


# -----------------------
# Normalização de nomes
# -----------------------
def sanitize_file_name(raw_name: str, fallback: str = "") -> str:
    """Reduz ``raw_name`` a um nome base seguro (sem diretórios).

    Remove caracteres potencialmente perigosos e limita o comprimento.
    """
    rn = Path(raw_name or fallback).name.lstrip(".")
    name = re.sub(r"[^A-Za-z0-9._-]+", "_", rn)
    if not name:
        name = fallback
    if len(name) > 200:
        name = name[:200]
    return name


# -----------------------
# Diretórios / permissões
# -----------------------
def ensure_dir_writable(p: Path) -> bool:
    """Garante, em melhor esforço, que `p` existe e é gravável."""
    try:
        p.mkdir(parents=True, exist_ok=True)
        test = p / f".touch-{os.getpid()}"
        try:
            with open(test, "a", encoding="utf-8") as f:
                f.write("ok")
                f.flush()
        except PermissionError as exc:
            logger.error("ensure_dir_writable: permission denied writing to %s: %s", p, exc, exc_info=True)
            return False
        except OSError as exc:
            logger.error("ensure_dir_writable: write test failed for %s: %s", p, exc, exc_info=True)
            return False
        finally:
            try:
                if test.exists():
                    test.unlink()
            except OSError:
                # nosec B110 - cleanup must not raise in best-effort path
                pass
        return True
    except PermissionError as exc:
        logger.error("ensure_dir_writable: permission denied creating %s: %s", p, exc, exc_info=True)
        return False
    except OSError as exc:
        logger.error("ensure_dir_writable: failed for %s: %s", p, exc, exc_info=True)
        return False
