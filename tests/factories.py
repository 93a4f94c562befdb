"""Synthetic requirement and snapshot factories for testing."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from tokengate.models.records import BalanceSnapshot
from tokengate.models.requirements import (
    EitherRequirement,
    Erc20Requirement,
    Network,
    NftRequirement,
    TokenStandard,
)

THINK_TOKEN = "0xF9ff95468cb9A0cD57b8542bbc4c148e290Ff465"
THINK_NFT = "0x11b3efbf04f0ba505f380ac20444b6952970ada6"
OTHER_NFT = "0x742d35cc6644c89532e51b0cd2ba4a68c8b70e30"

WALLET = "0xAbC0000000000000000000000000000000001234"
WALLET_LOWER = WALLET.lower()


def make_erc20(
    token_address: str = THINK_TOKEN,
    min_amount: int | str | Decimal = 100,
    token_name: str = "THINK",
    network: Network = Network.MAINNET,
) -> Erc20Requirement:
    return Erc20Requirement(
        token_address=token_address,
        min_amount=Decimal(str(min_amount)),
        token_name=token_name,
        network=network,
    )


def make_nft(
    token_address: str = THINK_NFT,
    min_amount: int | str | Decimal = 1,
    token_name: str = "THINK Agent Bundle",
    network: Network = Network.MAINNET,
) -> NftRequirement:
    return NftRequirement(
        token_address=token_address,
        min_amount=Decimal(str(min_amount)),
        token_name=token_name,
        network=network,
    )


def make_either(*options) -> EitherRequirement:
    return EitherRequirement(options=tuple(options))


def make_snapshot(
    token_address: str = THINK_TOKEN,
    amount: int = 500,
    standard: TokenStandard = TokenStandard.ERC20,
    age_seconds: int = 0,
    wallet: str = WALLET_LOWER,
    decimals: int = 0,
    network: Network = Network.MAINNET,
) -> BalanceSnapshot:
    return BalanceSnapshot(
        wallet=wallet,
        token_address=token_address.lower(),
        standard=standard,
        amount=amount,
        fetched_at=datetime.now(timezone.utc) - timedelta(seconds=age_seconds),
        decimals=decimals,
        network=network,
    )
