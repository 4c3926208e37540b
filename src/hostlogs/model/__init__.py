"""Pacote model: tipos canónicos partilhados pelos leitores e pelo agregador."""

from .entry import LEVELS, LEVEL_ALL, LogEntry, QueryParams

__all__ = ["LEVELS", "LEVEL_ALL", "LogEntry", "QueryParams"]
