"""Data models for the token gate."""

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
from tokengate.models.records import (
    AccessLogEntry,
    AccessReason,
    AccessVerdict,
    BalanceSnapshot,
    OptionCheck,
    RequirementRecord,
    WalletIdentity,
    normalize_address,
)
from tokengate.models.config import GateConfig, TokenAlias, default_token_aliases

__all__ = [
    "EitherRequirement", "Erc20Requirement", "Network", "NftRequirement",
    "NoRequirement", "RequirementKind", "TokenCheck", "TokenRequirement",
    "TokenStandard",
    "AccessLogEntry", "AccessReason", "AccessVerdict", "BalanceSnapshot",
    "OptionCheck", "RequirementRecord",
    "WalletIdentity", "normalize_address",
    "GateConfig", "TokenAlias", "default_token_aliases",
]
