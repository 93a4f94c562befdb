"""Token gate service - wires store, oracle and evaluator for the web layer."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from tokengate.chain.cache import CachingBalanceOracle
from tokengate.chain.oracle import RpcBalanceOracle
from tokengate.errors import InvalidRequirementError
from tokengate.interfaces.oracle import BalanceOracle
from tokengate.interfaces.store import GateStore
from tokengate.models.config import GateConfig, TokenAlias
from tokengate.models.records import AccessReason, AccessVerdict, WalletIdentity
from tokengate.models.requirements import TokenRequirement
from tokengate.policy.decode import decode_requirement, encode_requirement
from tokengate.policy.evaluator import AccessPolicyEvaluator
from tokengate.policy.validation import validate
from tokengate.storage.sqlite import SQLiteGateStore

log = logging.getLogger(__name__)


class ContentKind(str, Enum):
    """Kinds of content that can carry a token requirement."""

    COURSE = "course"
    SESSION = "session"


class TokenGate:
    """Checks wallets against the stored requirements of courses and sessions.

    Requirements are stored in canonical form; decoding problems in
    stored blobs surface as INVALID_REQUIREMENT verdicts and are logged
    for administrators. Every decision is written to the access log.
    """

    def __init__(
        self,
        store: GateStore,
        oracle: BalanceOracle,
        evaluator: AccessPolicyEvaluator | None = None,
        aliases: Mapping[str, TokenAlias] | None = None,
    ) -> None:
        self.store = store
        self.oracle = oracle
        self.evaluator = evaluator or AccessPolicyEvaluator()
        self._aliases = aliases

    @classmethod
    def from_config(cls, cfg: GateConfig) -> TokenGate:
        store = SQLiteGateStore(cfg.db_path)
        oracle: BalanceOracle = RpcBalanceOracle(
            cfg.rpc_urls, timeout=cfg.rpc_timeout, retries=cfg.rpc_retries,
        )
        if cfg.cache_enabled:
            oracle = CachingBalanceOracle(oracle, store, cfg.balance_max_age)
        return cls(
            store=store,
            oracle=oracle,
            evaluator=AccessPolicyEvaluator(parallel_options=cfg.parallel_options),
            aliases=cfg.token_aliases,
        )

    async def start(self) -> None:
        await self.store.initialize()

    async def close(self) -> None:
        await self.store.close()

    # ── Requirements ───────────────────────────────────────

    def decode(self, raw: Any) -> TokenRequirement:
        """Decode and validate a requirement blob. Raises InvalidRequirementError."""
        return validate(decode_requirement(raw, self._aliases))

    async def set_requirement(
        self, kind: ContentKind | str, content_id: int, raw: Any,
    ) -> TokenRequirement:
        """Validate and store the requirement of a course or session."""
        kind = ContentKind(kind)
        requirement = self.decode(raw)
        await self.store.save_requirement(
            kind.value, content_id, encode_requirement(requirement),
        )
        log.info(
            "Stored %s requirement for %s %d", requirement.kind.value, kind.value, content_id,
        )
        return requirement

    async def get_requirement(self, kind: ContentKind | str, content_id: int) -> TokenRequirement:
        """Stored requirement of a course or session; NONE when none is stored."""
        raw = await self.store.get_requirement(ContentKind(kind).value, content_id)
        return decode_requirement(raw, self._aliases)

    # ── Access checks ──────────────────────────────────────

    async def check_requirement(
        self, requirement: TokenRequirement, wallet: WalletIdentity | str,
    ) -> AccessVerdict:
        """Evaluate an ad-hoc requirement without touching the access log."""
        return await self.evaluator.evaluate(requirement, wallet, self.oracle)

    async def check_access(
        self, kind: ContentKind | str, content_id: int, wallet: WalletIdentity | str,
    ) -> AccessVerdict:
        """Decide whether ``wallet`` may access a course or session."""
        kind = ContentKind(kind)
        if not isinstance(wallet, WalletIdentity):
            wallet = WalletIdentity(wallet)

        try:
            requirement = await self.get_requirement(kind, content_id)
        except InvalidRequirementError as exc:
            log.error(
                "Stored requirement for %s %d cannot be decoded: %s",
                kind.value, content_id, exc,
            )
            verdict = AccessVerdict(
                granted=False, reason=AccessReason.INVALID_REQUIREMENT, detail=str(exc),
            )
        else:
            verdict = await self.evaluator.evaluate(requirement, wallet, self.oracle)

        await self.store.log_access(wallet.address, kind.value, content_id, verdict)
        log.debug(
            "%s %d for %s: %s", kind.value, content_id, wallet, verdict.reason.value,
        )
        return verdict

    async def check_many(
        self, kind: ContentKind | str, content_ids: Iterable[int], wallet: WalletIdentity | str,
    ) -> dict[int, AccessVerdict]:
        """Verdicts for a listing page, keyed by content id."""
        return {cid: await self.check_access(kind, cid, wallet) for cid in content_ids}
