"""Token requirement validation and address normalization."""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal, InvalidOperation

from tokengate.errors import InvalidRequirementError
from tokengate.models.records import normalize_address
from tokengate.models.requirements import (
    EitherRequirement,
    Erc20Requirement,
    Network,
    NftRequirement,
    NoRequirement,
    TokenCheck,
    TokenRequirement,
)


def validate(requirement: TokenRequirement) -> TokenRequirement:
    """Return a normalized copy of ``requirement`` or raise InvalidRequirementError.

    Token addresses are lowercased. ``EITHER`` requirements must hold at
    least one option, and every option must be an ERC20 or NFT
    requirement (no nesting).
    """
    if isinstance(requirement, NoRequirement):
        return requirement
    if isinstance(requirement, (Erc20Requirement, NftRequirement)):
        return _validate_check(requirement)
    if isinstance(requirement, EitherRequirement):
        options = tuple(requirement.options or ())
        if not options:
            raise InvalidRequirementError("EITHER requirement has no options")
        validated = []
        for i, option in enumerate(options):
            if isinstance(option, EitherRequirement):
                raise InvalidRequirementError(f"option {i}: nested EITHER is not allowed")
            if not isinstance(option, (Erc20Requirement, NftRequirement)):
                raise InvalidRequirementError(
                    f"option {i}: expected ERC20 or NFT, got {type(option).__name__}"
                )
            try:
                validated.append(_validate_check(option))
            except InvalidRequirementError as exc:
                raise InvalidRequirementError(f"option {i}: {exc}") from exc
        return EitherRequirement(options=tuple(validated))
    raise InvalidRequirementError(f"unknown requirement type: {type(requirement).__name__}")


def _validate_check(requirement: TokenCheck) -> TokenCheck:
    kind = requirement.kind.value
    if not requirement.token_address or not str(requirement.token_address).strip():
        raise InvalidRequirementError(f"{kind} requirement is missing tokenAddress")
    try:
        address = normalize_address(requirement.token_address)
    except (ValueError, AttributeError) as exc:
        raise InvalidRequirementError(f"{kind} requirement: {exc}") from exc

    try:
        min_amount = Decimal(requirement.min_amount)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidRequirementError(
            f"{kind} requirement: minAmount {requirement.min_amount!r} is not a number"
        ) from exc
    if not min_amount.is_finite():
        raise InvalidRequirementError(f"{kind} requirement: minAmount must be finite")
    if min_amount < 0:
        raise InvalidRequirementError(f"{kind} requirement: minAmount must be >= 0")
    if isinstance(requirement, NftRequirement) and min_amount != min_amount.to_integral_value():
        raise InvalidRequirementError("NFT requirement: minAmount must be a whole number")

    if not isinstance(requirement.network, Network):
        try:
            network = Network(requirement.network)
        except ValueError as exc:
            raise InvalidRequirementError(
                f"{kind} requirement: unknown network {requirement.network!r}"
            ) from exc
    else:
        network = requirement.network

    return replace(requirement, token_address=address, min_amount=min_amount, network=network)
