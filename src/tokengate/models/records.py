"""Wallet identities, balance snapshots and access verdicts."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from tokengate.models.requirements import Network, TokenStandard

ADDRESS_RE = re.compile(r"^0x[0-9a-f]{40}$")


def normalize_address(address: str) -> str:
    """Lowercase and strip an EVM address. Raises ValueError if malformed."""
    normalized = (address or "").strip().lower()
    if not ADDRESS_RE.match(normalized):
        raise ValueError(f"not a 20-byte hex address: {address!r}")
    return normalized


@dataclass(frozen=True)
class WalletIdentity:
    """A wallet address; case is never significant."""

    address: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", normalize_address(self.address))

    def __str__(self) -> str:
        return self.address


@dataclass(frozen=True)
class BalanceSnapshot:
    """Holdings of one wallet for one token at one point in time."""

    wallet: str
    token_address: str
    standard: TokenStandard
    amount: int  # smallest unit
    fetched_at: datetime
    decimals: int = 0
    network: Network = Network.MAINNET

    def age_seconds(self, now: datetime | None = None) -> float:
        now = now or datetime.now(timezone.utc)
        return (now - self.fetched_at).total_seconds()

    def is_stale(self, max_age_seconds: float, now: datetime | None = None) -> bool:
        return self.age_seconds(now) > max_age_seconds


class AccessReason(str, Enum):
    NO_REQUIREMENT = "NO_REQUIREMENT"
    SUFFICIENT_BALANCE = "SUFFICIENT_BALANCE"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    ORACLE_UNAVAILABLE = "ORACLE_UNAVAILABLE"
    INVALID_REQUIREMENT = "INVALID_REQUIREMENT"


@dataclass(frozen=True)
class OptionCheck:
    """Outcome of checking a single ERC20/NFT requirement against the oracle."""

    index: int  # position in the requirement's option list
    token_address: str
    standard: TokenStandard
    reason: AccessReason  # SUFFICIENT_BALANCE | INSUFFICIENT_BALANCE | ORACLE_UNAVAILABLE
    amount: int | None = None  # held, smallest unit; None if not checked
    shortfall: Decimal | None = None
    error: str | None = None

    @property
    def completed(self) -> bool:
        return self.reason is not AccessReason.ORACLE_UNAVAILABLE


@dataclass(frozen=True)
class AccessVerdict:
    """Decision of the access policy evaluator."""

    granted: bool
    reason: AccessReason
    shortfall: Decimal | None = None  # display units, only for INSUFFICIENT_BALANCE
    checks: tuple[OptionCheck, ...] = field(default_factory=tuple)
    detail: str = ""

    @property
    def unchecked_options(self) -> list[int]:
        """Indices of options whose balance could not be determined."""
        return [c.index for c in self.checks if not c.completed]

    def to_dict(self) -> dict:
        return {
            "granted": self.granted,
            "reason": self.reason.value,
            "shortfall": str(self.shortfall) if self.shortfall is not None else None,
            "unchecked_options": self.unchecked_options,
            "checks": [
                {
                    "index": c.index,
                    "token_address": c.token_address,
                    "standard": c.standard.value,
                    "reason": c.reason.value,
                    "amount": c.amount,
                    "shortfall": str(c.shortfall) if c.shortfall is not None else None,
                    "error": c.error,
                }
                for c in self.checks
            ],
            "detail": self.detail,
        }


@dataclass
class RequirementRecord:
    """A stored requirement for one course or live session."""

    content_kind: str  # "course" | "session"
    content_id: int
    requirement: dict  # canonical JSON shape
    updated_at: str = ""


@dataclass
class AccessLogEntry:
    """A single recorded access decision."""

    id: int
    wallet: str
    content_kind: str
    content_id: int
    granted: bool
    reason: str
    shortfall: str | None
    unchecked_options: list[int]
    created_at: str
