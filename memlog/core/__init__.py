"""Core components: the log contract, its in-memory implementation and time sources."""

from memlog.core import log, time

__all__ = ["log", "time"]
