"""Configuration models for the token gate."""

from __future__ import annotations

from dataclasses import dataclass, field

from tokengate.models.requirements import Network, TokenStandard

THINK_TOKEN_ADDRESS = "0xf9ff95468cb9a0cd57b8542bbc4c148e290ff465"
THINK_NFT_ADDRESS = "0x11b3efbf04f0ba505f380ac20444b6952970ada6"


@dataclass(frozen=True)
class TokenAlias:
    """A token symbol used by legacy requirement blobs instead of an address."""

    address: str
    standard: TokenStandard
    network: Network = Network.MAINNET


def default_token_aliases() -> dict[str, TokenAlias]:
    return {
        "THINK": TokenAlias(THINK_TOKEN_ADDRESS, TokenStandard.ERC20),
        "THINK_AGENT_BUNDLE": TokenAlias(THINK_NFT_ADDRESS, TokenStandard.NFT),
    }


def default_rpc_urls() -> dict[str, str]:
    return {
        Network.MAINNET.value: "https://ethereum-rpc.publicnode.com",
        Network.BASE.value: "https://base-rpc.publicnode.com",
    }


@dataclass
class GateConfig:
    """Complete token gate configuration."""

    # Gate
    log_level: str = "info"
    parallel_options: bool = False  # query EITHER options concurrently

    # Chain
    rpc_urls: dict[str, str] = field(default_factory=default_rpc_urls)
    rpc_timeout: int = 10  # seconds per JSON-RPC call
    rpc_retries: int = 2

    # Cache
    cache_enabled: bool = True
    balance_max_age: int = 300  # seconds before a cached balance is refreshed

    # Storage
    db_path: str = "~/.tokengate/state.db"

    # Legacy token symbols
    token_aliases: dict[str, TokenAlias] = field(default_factory=default_token_aliases)
