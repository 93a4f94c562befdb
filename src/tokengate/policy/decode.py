"""Requirement (de)serialization - maps stored JSON blobs to requirement models.

Course and live-session rows store their token requirement as a loosely
typed JSON document. Several field spellings exist in the wild
(``tokenAddress``/``contractAddress``, ``minAmount``/``amount``) along
with legacy shapes that name a token symbol instead of an address::

    {"type": "THINK", "amount": 100}
    {"type": "EITHER", "think": 1000, "nft": "0x742d..."}

Everything is resolved here into one canonical shape. Structural
checks (empty addresses, negative amounts, empty options) are left to
``validate``.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from tokengate.errors import InvalidRequirementError
from tokengate.models.config import TokenAlias, default_token_aliases
from tokengate.models.requirements import (
    EitherRequirement,
    Erc20Requirement,
    Network,
    NftRequirement,
    NoRequirement,
    RequirementKind,
    TokenCheck,
    TokenRequirement,
    TokenStandard,
)

ADDRESS_KEYS = ("tokenAddress", "contractAddress", "token_address", "contract_address")
AMOUNT_KEYS = ("minAmount", "amount", "min_amount")
NAME_KEYS = ("tokenName", "token_name")

NETWORK_ALIASES = {
    "mainnet": Network.MAINNET,
    "ethereum": Network.MAINNET,
    "eth": Network.MAINNET,
    "base": Network.BASE,
}


def decode_requirement(
    raw: Any,
    aliases: Mapping[str, TokenAlias] | None = None,
) -> TokenRequirement:
    """Decode a stored requirement blob (dict, JSON string or None)."""
    if aliases is None:
        aliases = default_token_aliases()
    aliases = {k.upper(): v for k, v in aliases.items()}

    if raw is None:
        return NoRequirement()
    if isinstance(raw, (str, bytes)):
        if not raw.strip():
            return NoRequirement()
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise InvalidRequirementError(f"requirement is not valid JSON: {exc}") from exc
        if raw is None:
            return NoRequirement()
    if not isinstance(raw, Mapping):
        raise InvalidRequirementError(f"requirement must be an object, got {type(raw).__name__}")
    if not raw:
        return NoRequirement()

    type_name = str(raw.get("type") or "").strip().upper()
    if not type_name:
        raise InvalidRequirementError("requirement is missing 'type'")

    if type_name == RequirementKind.NONE.value:
        return NoRequirement()
    if type_name in (RequirementKind.ERC20.value, RequirementKind.NFT.value):
        return _decode_check(raw, TokenStandard(type_name))
    if type_name == RequirementKind.EITHER.value:
        return _decode_either(raw, aliases)
    if type_name in aliases:
        return _decode_alias(type_name, aliases[type_name], raw)
    raise InvalidRequirementError(f"unknown requirement type {raw.get('type')!r}")


def encode_requirement(requirement: TokenRequirement) -> dict:
    """Canonical JSON shape of a requirement."""
    if isinstance(requirement, NoRequirement):
        return {"type": RequirementKind.NONE.value}
    if isinstance(requirement, EitherRequirement):
        return {
            "type": RequirementKind.EITHER.value,
            "options": [encode_requirement(o) for o in requirement.options],
        }
    return {
        "type": requirement.kind.value,
        "tokenAddress": requirement.token_address,
        "tokenName": requirement.token_name,
        "minAmount": str(requirement.min_amount),
        "network": _network_value(requirement.network),
    }


# ── Helpers ────────────────────────────────────────────────


def _decode_either(raw: Mapping, aliases: Mapping[str, TokenAlias]) -> EitherRequirement:
    options = raw.get("options")
    if options is None:
        return EitherRequirement(options=tuple(_legacy_options(raw, aliases)))
    if not isinstance(options, (list, tuple)):
        raise InvalidRequirementError("EITHER 'options' must be a list")

    decoded: list = []
    for i, option in enumerate(options):
        if not isinstance(option, Mapping):
            raise InvalidRequirementError(f"option {i} must be an object")
        # Nested EITHER and NONE decode as-is so validation can reject them.
        decoded.append(decode_requirement(option, aliases))
    return EitherRequirement(options=tuple(decoded))


def _legacy_options(raw: Mapping, aliases: Mapping[str, TokenAlias]) -> list[TokenCheck]:
    """Options of a pre-``options`` EITHER blob, keyed by token symbol."""
    options: list[TokenCheck] = []
    for key, value in raw.items():
        if key == "type":
            continue
        symbol = key.upper()
        if symbol in aliases:
            alias = aliases[symbol]
            options.append(_make_check(
                alias.standard, alias.address, _parse_amount(value, alias.standard),
                symbol, alias.network,
            ))
        elif symbol == TokenStandard.NFT.value:
            if not isinstance(value, str):
                raise InvalidRequirementError(
                    f"EITHER key {key!r} must be a contract address, got {value!r}"
                )
            options.append(_make_check(TokenStandard.NFT, value, Decimal(1), "", Network.MAINNET))
        else:
            raise InvalidRequirementError(f"EITHER key {key!r} is not a known token symbol")
    return options


def _decode_alias(symbol: str, alias: TokenAlias, raw: Mapping) -> TokenCheck:
    amount_raw = _first(raw, AMOUNT_KEYS)
    return _make_check(
        alias.standard,
        alias.address,
        _parse_amount(amount_raw, alias.standard),
        str(_first(raw, NAME_KEYS) or symbol),
        _parse_network(raw.get("network"), alias.network),
    )


def _decode_check(raw: Mapping, standard: TokenStandard) -> TokenCheck:
    return _make_check(
        standard,
        str(_first(raw, ADDRESS_KEYS) or ""),
        _parse_amount(_first(raw, AMOUNT_KEYS), standard),
        str(_first(raw, NAME_KEYS) or ""),
        _parse_network(raw.get("network"), Network.MAINNET),
    )


def _make_check(
    standard: TokenStandard,
    address: str,
    min_amount: Decimal,
    name: str,
    network: Network,
) -> TokenCheck:
    cls = Erc20Requirement if standard is TokenStandard.ERC20 else NftRequirement
    return cls(token_address=address, min_amount=min_amount, token_name=name, network=network)


def _first(raw: Mapping, keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def _parse_amount(value: Any, standard: TokenStandard) -> Decimal:
    if value is None:
        return Decimal(1) if standard is TokenStandard.NFT else Decimal(0)
    if isinstance(value, bool):
        raise InvalidRequirementError(f"minAmount {value!r} is not a number")
    try:
        return Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise InvalidRequirementError(f"minAmount {value!r} is not a number") from exc


def _parse_network(value: Any, default: Network) -> Network:
    if value is None or value == "":
        return default
    network = NETWORK_ALIASES.get(str(value).strip().lower())
    if network is None:
        raise InvalidRequirementError(f"unknown network {value!r}")
    return network


def _network_value(network: Network | str) -> str:
    return network.value if isinstance(network, Network) else str(network)
