"""GateStore protocol - persists requirements, balance snapshots and decisions."""

from __future__ import annotations

from typing import Protocol

from tokengate.models.records import (
    AccessLogEntry,
    AccessVerdict,
    BalanceSnapshot,
    RequirementRecord,
)
from tokengate.models.requirements import Network, TokenStandard


class GateStore(Protocol):
    """Persists gate state for the web layer and the balance cache."""

    # ── Lifecycle ──────────────────────────────────────────

    async def initialize(self) -> None:
        """Create tables if they don't exist."""
        ...

    async def close(self) -> None:
        ...

    # ── Requirements ───────────────────────────────────────

    async def save_requirement(self, content_kind: str, content_id: int, raw: dict) -> None:
        ...

    async def get_requirement(self, content_kind: str, content_id: int) -> dict | None:
        ...

    async def delete_requirement(self, content_kind: str, content_id: int) -> bool:
        ...

    async def list_requirements(self, content_kind: str | None = None) -> list[RequirementRecord]:
        ...

    # ── Balance cache ──────────────────────────────────────

    async def get_cached_balance(
        self,
        wallet: str,
        token_address: str,
        standard: TokenStandard,
        network: Network,
    ) -> BalanceSnapshot | None:
        ...

    async def cache_balance(self, snapshot: BalanceSnapshot) -> None:
        ...

    # ── Access log ─────────────────────────────────────────

    async def log_access(
        self, wallet: str, content_kind: str, content_id: int, verdict: AccessVerdict,
    ) -> None:
        ...

    async def get_recent_access(self, limit: int = 50) -> list[AccessLogEntry]:
        ...
