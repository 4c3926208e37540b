"""Encaminhamento de entradas agregadas para o Loki via HTTP.

Funções principais:
- build_loki_payload: agrupa entradas em streams por (source, level)
- send_entries_to_loki: envia o payload para o endpoint ``/loki/api/v1/push``

O endpoint e os rótulos base vêm de ``Settings`` (``LOKI_URL``/``LOKI_LABELS``).
"""

from __future__ import annotations

import logging
from typing import Iterable

import requests  # type: ignore[import-untyped]

from ..model.entry import LogEntry

logger = logging.getLogger(__name__)

PUSH_TIMEOUT = 5


def parse_labels(labels) -> dict:
    """Converta rótulos 'k=v,k2=v2' (ou dict, ou '{k="v"}') para dict de strings."""
    if labels is None:
        return {}
    if isinstance(labels, dict):
        return {str(k): str(v) for k, v in labels.items()}
    s = str(labels).strip()
    if s.startswith("{") and s.endswith("}"):
        s = s[1:-1].strip()
    out = {}
    for part in (p.strip() for p in s.split(",")):
        if "=" not in part:
            continue
        k, v = part.split("=", 1)
        v = v.strip()
        if len(v) >= 2 and v[0] == v[-1] and v[0] in ("'", '"'):
            v = v[1:-1]
        out[k.strip()] = v
    return out


def _unix_nanos(entry: LogEntry) -> str:
    ts = entry.timestamp
    return str(int(ts.timestamp()) * 1_000_000_000 + ts.microsecond * 1000)


def build_loki_payload(entries: Iterable[LogEntry], base_labels=None) -> dict:
    """Monta o payload do push do Loki.

    {
      "streams": [
        {"stream": {"job": "...", "source": "...", "level": "..."},
         "values": [["<unix_nano>", "linha"]]}
      ]
    }

    Os valores de cada stream ficam em ordem cronológica crescente.
    """
    base = parse_labels(base_labels)
    streams: dict[tuple[str, str], list] = {}
    for entry in entries:
        streams.setdefault((entry.source, entry.level), []).append(entry)

    out = []
    for (source, level), items in streams.items():
        items.sort(key=lambda e: e.timestamp)
        labels = dict(base)
        labels.update({"source": source, "level": level})
        out.append({"stream": labels, "values": [[_unix_nanos(e), e.message] for e in items]})
    return {"streams": out}


def send_entries_to_loki(entries: list[LogEntry], url: str, labels=None) -> bool:
    """Envia ``entries`` para o Loki; devolve False em qualquer falha de rede/HTTP."""
    if not entries:
        return True
    payload = build_loki_payload(entries, labels)
    logger.debug("Loki push: %d streams para %s", len(payload["streams"]), url)
    try:
        resp = requests.post(url, json=payload, headers={"Content-Type": "application/json"}, timeout=PUSH_TIMEOUT)
        resp.raise_for_status()
        return True
    except requests.RequestException as exc:
        logger.warning("Falha ao enviar logs para Loki: %s", exc)
        return False
