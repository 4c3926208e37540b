# conftest.py
# Configuração global para pytest: adiciona 'src' ao sys.path para permitir imports absolutos
# e fornece fixtures partilhadas (ambiente isolado, entradas e origens em memória).
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

SRC_PATH = Path(__file__).parent / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Remove overrides HOSTLOGS_*/LOKI_* do ambiente e aponta o .env para tmp."""
    for key in list(os.environ):
        if key.startswith(("HOSTLOGS_", "LOKI_")):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("HOSTLOGS_ENV_FILE", str(tmp_path / "missing.env"))


@pytest.fixture
def make_entry():
    """Fábrica de LogEntry com defaults razoáveis."""
    from hostlogs.model.entry import LogEntry

    def _make(ts="2024-01-01T00:00:00", level="info", message="msg", source="src", **kw):
        if isinstance(ts, str):
            ts = datetime.fromisoformat(ts).replace(tzinfo=timezone.utc)
        return LogEntry(timestamp=ts, level=level, message=message, source=source, **kw)

    return _make


@pytest.fixture
def static_source():
    """Fábrica de origens em memória (subclasses de Source)."""
    from hostlogs.sources.base import Source

    class StaticSource(Source):
        def __init__(self, entries, name="static"):
            super().__init__()
            self.entries = list(entries)
            self.name = name
            self.calls = []

        def _collect(self, limit):
            self.calls.append(limit)
            return list(self.entries)

    return StaticSource
