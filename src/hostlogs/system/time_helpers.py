"""Helpers de data/hora usados pela normalização e pelas ações.

Todas as funções devolvem ``datetime`` com timezone UTC ou ``None`` quando o
valor não puder ser interpretado; nunca levantam exceção para entradas
inválidas.
"""

from __future__ import annotations

import datetime
import logging
from typing import Optional

logger = logging.getLogger(__name__)

# Formato das datas em linhas syslog (sem ano), ex.: "Jan  5 12:00:01"
SYSLOG_STAMP_FORMAT = "%Y %b %d %H:%M:%S"


def utc_now() -> datetime.datetime:
    """Retorna o instante atual em UTC (timezone-aware)."""
    return datetime.datetime.now(datetime.timezone.utc)


def format_iso_ms(dt: datetime.datetime) -> str:
    """Formata ``dt`` em ISO-8601 UTC com milissegundos e sufixo ``Z``.

    Ex.: ``2024-01-01T00:00:01.000Z``. Datas naive são tratadas como UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    dt = dt.astimezone(datetime.timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def export_stamp(dt: datetime.datetime | None = None) -> str:
    """Timestamp seguro para nomes de ficheiro (':' e '.' trocados por '-')."""
    s = format_iso_ms(dt or utc_now())
    return s.replace(":", "-").replace(".", "-")


def from_epoch_micros(value) -> Optional[datetime.datetime]:
    """Converte epoch em microssegundos (int ou string numérica) para UTC."""
    if value is None:
        return None
    try:
        micros = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    if micros < 0:
        return None
    try:
        base = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)
        return base + datetime.timedelta(microseconds=micros)
    except OverflowError:
        logger.debug("from_epoch_micros: valor fora do intervalo: %r", value)
        return None


def parse_syslog_timestamp(stamp: str, year: int | None = None) -> Optional[datetime.datetime]:
    """Interpreta ``<mon> <day> <HH:MM:SS>`` acrescentando o ano corrente.

    O texto syslog não traz ano: usamos sempre o ano atual, mesmo para linhas
    de dezembro lidas em janeiro. A hora é interpretada no fuso local do host
    e convertida para UTC.
    """
    if not isinstance(stamp, str):
        return None
    parts = stamp.split()
    if len(parts) != 3:
        return None
    if year is None:
        year = datetime.datetime.now().year
    try:
        naive = datetime.datetime.strptime(f"{year} {' '.join(parts)}", SYSLOG_STAMP_FORMAT)
    except ValueError:
        # ex.: "Feb 29" num ano não bissexto
        return None
    return naive.astimezone(datetime.timezone.utc)
