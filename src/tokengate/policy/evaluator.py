"""Access policy evaluator - decides whether a wallet meets a token requirement."""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal, localcontext

from tokengate.errors import InvalidRequirementError, MalformedResponse, OracleUnavailable
from tokengate.interfaces.oracle import BalanceOracle
from tokengate.models.records import (
    AccessReason,
    AccessVerdict,
    BalanceSnapshot,
    OptionCheck,
    WalletIdentity,
)
from tokengate.models.requirements import (
    EitherRequirement,
    NoRequirement,
    TokenCheck,
    TokenRequirement,
)
from tokengate.policy.validation import validate

log = logging.getLogger(__name__)


class AccessPolicyEvaluator:
    """Evaluates token requirements against balances reported by an oracle.

    Holds no state between calls. Any failure to read a balance resolves
    to ORACLE_UNAVAILABLE, never to a grant and never to a zero balance.

    For EITHER requirements options are checked in listed order and the
    first sufficient option wins. With ``parallel_options`` all options
    are queried concurrently and the same precedence is applied to the
    ordered results.
    """

    def __init__(self, parallel_options: bool = False) -> None:
        self._parallel = parallel_options

    @property
    def parallel_options(self) -> bool:
        return self._parallel

    async def evaluate(
        self,
        requirement: TokenRequirement,
        wallet: WalletIdentity | str,
        oracle: BalanceOracle,
    ) -> AccessVerdict:
        """Evaluate ``requirement`` for ``wallet``."""
        try:
            requirement = validate(requirement)
        except InvalidRequirementError as exc:
            log.error("Invalid token requirement, denying access: %s", exc)
            return AccessVerdict(
                granted=False,
                reason=AccessReason.INVALID_REQUIREMENT,
                detail=str(exc),
            )

        if isinstance(requirement, NoRequirement):
            return AccessVerdict(granted=True, reason=AccessReason.NO_REQUIREMENT)

        if not isinstance(wallet, WalletIdentity):
            wallet = WalletIdentity(wallet)

        if isinstance(requirement, EitherRequirement):
            return await self._evaluate_either(requirement, wallet, oracle)

        check = await self._check(0, requirement, wallet, oracle)
        if check.reason is AccessReason.SUFFICIENT_BALANCE:
            log.info("Access granted for %s via %s", wallet, check.token_address)
        return _verdict_from_check(check)

    # ── EITHER ─────────────────────────────────────────────

    async def _evaluate_either(
        self,
        requirement: EitherRequirement,
        wallet: WalletIdentity,
        oracle: BalanceOracle,
    ) -> AccessVerdict:
        checks: list[OptionCheck] = []
        if self._parallel:
            checks = list(await asyncio.gather(*(
                self._check(i, option, wallet, oracle)
                for i, option in enumerate(requirement.options)
            )))
        else:
            for i, option in enumerate(requirement.options):
                check = await self._check(i, option, wallet, oracle)
                checks.append(check)
                if check.reason is AccessReason.SUFFICIENT_BALANCE:
                    break

        for check in checks:
            if check.reason is AccessReason.SUFFICIENT_BALANCE:
                log.info(
                    "Access granted for %s via option %d (%s)",
                    wallet, check.index, check.token_address,
                )
                return AccessVerdict(
                    granted=True,
                    reason=AccessReason.SUFFICIENT_BALANCE,
                    checks=tuple(checks),
                )

        completed = [c for c in checks if c.completed]
        if not completed:
            return AccessVerdict(
                granted=False,
                reason=AccessReason.ORACLE_UNAVAILABLE,
                checks=tuple(checks),
            )

        unchecked = [c.index for c in checks if not c.completed]
        if unchecked:
            log.warning(
                "Denying %s on confirmed insufficient balance; options %s could not be checked",
                wallet, unchecked,
            )
        return AccessVerdict(
            granted=False,
            reason=AccessReason.INSUFFICIENT_BALANCE,
            shortfall=completed[0].shortfall,
            checks=tuple(checks),
        )

    # ── Single token check ─────────────────────────────────

    async def _check(
        self,
        index: int,
        requirement: TokenCheck,
        wallet: WalletIdentity,
        oracle: BalanceOracle,
    ) -> OptionCheck:
        """Query one balance and compare it to the requirement."""
        try:
            snapshot = await oracle.fetch_balance(
                wallet, requirement.token_address, requirement.standard, requirement.network,
            )
            amount = _snapshot_amount(snapshot)
        except MalformedResponse as exc:
            log.error(
                "Malformed balance for %s / %s: %s", wallet, requirement.token_address, exc,
            )
            return _unavailable(index, requirement, f"malformed response: {exc}")
        except OracleUnavailable as exc:
            log.warning(
                "Balance oracle unavailable for %s / %s: %s",
                wallet, requirement.token_address, exc,
            )
            return _unavailable(index, requirement, f"oracle unavailable: {exc}")
        except Exception as exc:
            log.exception(
                "Balance oracle failed for %s / %s", wallet, requirement.token_address,
            )
            return _unavailable(index, requirement, f"oracle error: {exc}")

        decimals = snapshot.decimals or 0
        required = requirement.required_units(decimals)
        if amount >= required:
            return OptionCheck(
                index=index,
                token_address=requirement.token_address,
                standard=requirement.standard,
                reason=AccessReason.SUFFICIENT_BALANCE,
                amount=amount,
            )

        return OptionCheck(
            index=index,
            token_address=requirement.token_address,
            standard=requirement.standard,
            reason=AccessReason.INSUFFICIENT_BALANCE,
            amount=amount,
            shortfall=_display_units(required - amount, decimals),
        )


def _display_units(units: int, decimals: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(str(units)) + 1)
        return Decimal(units).scaleb(-decimals)


def _snapshot_amount(snapshot: BalanceSnapshot) -> int:
    amount = getattr(snapshot, "amount", None)
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise MalformedResponse(f"balance is not an integer: {amount!r}")
    if amount < 0:
        raise MalformedResponse(f"negative balance: {amount}")
    decimals = getattr(snapshot, "decimals", 0) or 0
    if not isinstance(decimals, int) or decimals < 0:
        raise MalformedResponse(f"invalid decimals: {decimals!r}")
    return amount


def _unavailable(index: int, requirement: TokenCheck, error: str) -> OptionCheck:
    return OptionCheck(
        index=index,
        token_address=requirement.token_address,
        standard=requirement.standard,
        reason=AccessReason.ORACLE_UNAVAILABLE,
        error=error,
    )


def _verdict_from_check(check: OptionCheck) -> AccessVerdict:
    return AccessVerdict(
        granted=check.reason is AccessReason.SUFFICIENT_BALANCE,
        reason=check.reason,
        shortfall=check.shortfall,
        checks=(check,),
    )
