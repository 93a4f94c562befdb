"""Persistence for requirements, balance snapshots and access decisions."""

from tokengate.storage.sqlite import SQLiteGateStore

__all__ = ["SQLiteGateStore"]
