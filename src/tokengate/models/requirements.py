"""Token requirement models attached to courses and live sessions."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Union


class RequirementKind(str, Enum):
    """Tag of a token requirement variant."""

    NONE = "NONE"
    ERC20 = "ERC20"
    NFT = "NFT"
    EITHER = "EITHER"


class TokenStandard(str, Enum):
    """Token standard queried on-chain."""

    ERC20 = "ERC20"  # fungible: amount in smallest unit
    NFT = "NFT"  # ERC-721: count of units owned


class Network(str, Enum):
    """EVM networks a gated token can live on."""

    MAINNET = "mainnet"
    BASE = "base"


@dataclass(frozen=True)
class NoRequirement:
    """Content is open to everyone."""

    kind = RequirementKind.NONE


@dataclass(frozen=True)
class Erc20Requirement:
    """Minimum fungible token balance, expressed in display units."""

    token_address: str
    min_amount: Decimal = Decimal(0)
    token_name: str = ""
    network: Network = Network.MAINNET

    kind = RequirementKind.ERC20
    standard = TokenStandard.ERC20

    def required_units(self, decimals: int) -> int:
        """Smallest-unit balance needed for a token with ``decimals``.

        Computed on integers and rounded up, independent of the Decimal
        context precision.
        """
        sign, digits, exp = self.min_amount.as_tuple()
        coefficient = int("".join(map(str, digits)) or "0")
        shift = exp + decimals
        if shift >= 0:
            units = coefficient * 10**shift
        else:
            units = -(-coefficient // 10**-shift)
        return -units if sign else units


@dataclass(frozen=True)
class NftRequirement:
    """Minimum number of NFTs owned from one collection."""

    token_address: str
    min_amount: Decimal = Decimal(1)
    token_name: str = ""
    network: Network = Network.MAINNET

    kind = RequirementKind.NFT
    standard = TokenStandard.NFT

    def required_units(self, decimals: int = 0) -> int:
        return int(self.min_amount)


@dataclass(frozen=True)
class EitherRequirement:
    """Satisfied when any one of ``options`` is satisfied, checked in order."""

    options: tuple[Erc20Requirement | NftRequirement, ...] = field(default_factory=tuple)

    kind = RequirementKind.EITHER


TokenCheck = Union[Erc20Requirement, NftRequirement]
TokenRequirement = Union[NoRequirement, Erc20Requirement, NftRequirement, EitherRequirement]
