"""SQLite implementation of the GateStore protocol."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from tokengate.models.records import (
    AccessLogEntry,
    AccessVerdict,
    BalanceSnapshot,
    RequirementRecord,
)
from tokengate.models.requirements import Network, TokenStandard

SCHEMA = """
-- Token requirements of gated courses and live sessions
CREATE TABLE IF NOT EXISTS requirements (
    content_kind TEXT NOT NULL,
    content_id INTEGER NOT NULL,
    requirement TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now')),
    PRIMARY KEY (content_kind, content_id)
);

-- Balance snapshots (replaced, never updated in place)
CREATE TABLE IF NOT EXISTS balance_cache (
    network TEXT NOT NULL,
    wallet TEXT NOT NULL,
    token_address TEXT NOT NULL,
    standard TEXT NOT NULL,
    amount TEXT NOT NULL,
    decimals INTEGER NOT NULL DEFAULT 0,
    fetched_at TEXT NOT NULL,
    PRIMARY KEY (network, wallet, token_address, standard)
);

-- Access decisions
CREATE TABLE IF NOT EXISTS access_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    wallet TEXT NOT NULL,
    content_kind TEXT NOT NULL,
    content_id INTEGER NOT NULL,
    granted INTEGER NOT NULL,
    reason TEXT NOT NULL,
    shortfall TEXT,
    unchecked_options TEXT NOT NULL DEFAULT '[]',
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_access_created ON access_log(created_at);
CREATE INDEX IF NOT EXISTS idx_access_wallet ON access_log(wallet);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteGateStore:
    """SQLite-backed implementation of the GateStore protocol."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self._db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        assert self._db is not None, "Store not initialized. Call initialize() first."
        return self._db

    # ── Requirements ───────────────────────────────────────

    async def save_requirement(self, content_kind: str, content_id: int, raw: dict) -> None:
        await self.db.execute(
            "INSERT INTO requirements (content_kind, content_id, requirement, updated_at)"
            " VALUES (?, ?, ?, ?)"
            " ON CONFLICT(content_kind, content_id) DO UPDATE SET"
            " requirement=excluded.requirement, updated_at=excluded.updated_at",
            (content_kind, content_id, json.dumps(raw), _now()),
        )
        await self.db.commit()

    async def get_requirement(self, content_kind: str, content_id: int) -> dict | None:
        async with self.db.execute(
            "SELECT requirement FROM requirements WHERE content_kind=? AND content_id=?",
            (content_kind, content_id),
        ) as cur:
            row = await cur.fetchone()
            return json.loads(row["requirement"]) if row else None

    async def delete_requirement(self, content_kind: str, content_id: int) -> bool:
        cur = await self.db.execute(
            "DELETE FROM requirements WHERE content_kind=? AND content_id=?",
            (content_kind, content_id),
        )
        await self.db.commit()
        return cur.rowcount > 0

    async def list_requirements(self, content_kind: str | None = None) -> list[RequirementRecord]:
        if content_kind is None:
            sql, params = "SELECT * FROM requirements ORDER BY content_kind, content_id", ()
        else:
            sql = "SELECT * FROM requirements WHERE content_kind=? ORDER BY content_id"
            params = (content_kind,)
        async with self.db.execute(sql, params) as cur:
            return [
                RequirementRecord(
                    content_kind=row["content_kind"],
                    content_id=row["content_id"],
                    requirement=json.loads(row["requirement"]),
                    updated_at=row["updated_at"],
                )
                async for row in cur
            ]

    # ── Balance cache ──────────────────────────────────────

    async def get_cached_balance(
        self,
        wallet: str,
        token_address: str,
        standard: TokenStandard,
        network: Network,
    ) -> BalanceSnapshot | None:
        async with self.db.execute(
            "SELECT * FROM balance_cache"
            " WHERE network=? AND wallet=? AND token_address=? AND standard=?",
            (Network(network).value, wallet, token_address, TokenStandard(standard).value),
        ) as cur:
            row = await cur.fetchone()
            if row:
                return _row_to_snapshot(row)
        return None

    async def cache_balance(self, snapshot: BalanceSnapshot) -> None:
        # amount is a uint256 and can overflow SQLite INTEGER, so it is stored as text
        await self.db.execute(
            "INSERT OR REPLACE INTO balance_cache"
            " (network, wallet, token_address, standard, amount, decimals, fetched_at)"
            " VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                Network(snapshot.network).value,
                snapshot.wallet,
                snapshot.token_address,
                TokenStandard(snapshot.standard).value,
                str(snapshot.amount),
                snapshot.decimals,
                snapshot.fetched_at.isoformat(),
            ),
        )
        await self.db.commit()

    # ── Access log ─────────────────────────────────────────

    async def log_access(
        self, wallet: str, content_kind: str, content_id: int, verdict: AccessVerdict,
    ) -> None:
        await self.db.execute(
            "INSERT INTO access_log"
            " (wallet, content_kind, content_id, granted, reason, shortfall,"
            " unchecked_options, created_at)"
            " VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                wallet,
                content_kind,
                content_id,
                int(verdict.granted),
                verdict.reason.value,
                str(verdict.shortfall) if verdict.shortfall is not None else None,
                json.dumps(verdict.unchecked_options),
                _now(),
            ),
        )
        await self.db.commit()

    async def get_recent_access(self, limit: int = 50) -> list[AccessLogEntry]:
        async with self.db.execute(
            "SELECT * FROM access_log ORDER BY id DESC LIMIT ?", (limit,)
        ) as cur:
            return [
                AccessLogEntry(
                    id=row["id"],
                    wallet=row["wallet"],
                    content_kind=row["content_kind"],
                    content_id=row["content_id"],
                    granted=bool(row["granted"]),
                    reason=row["reason"],
                    shortfall=row["shortfall"],
                    unchecked_options=json.loads(row["unchecked_options"]),
                    created_at=row["created_at"],
                )
                async for row in cur
            ]


# ── Row converters ─────────────────────────────────────────


def _row_to_snapshot(row: aiosqlite.Row) -> BalanceSnapshot:
    fetched_at = datetime.fromisoformat(row["fetched_at"].replace("Z", "+00:00"))
    if fetched_at.tzinfo is None:
        fetched_at = fetched_at.replace(tzinfo=timezone.utc)
    return BalanceSnapshot(
        wallet=row["wallet"],
        token_address=row["token_address"],
        standard=TokenStandard(row["standard"]),
        amount=int(row["amount"]),
        fetched_at=fetched_at,
        decimals=row["decimals"],
        network=Network(row["network"]),
    )
