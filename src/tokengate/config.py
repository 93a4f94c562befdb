"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path

from tokengate.models.config import GateConfig, TokenAlias
from tokengate.models.records import normalize_address
from tokengate.models.requirements import Network, TokenStandard


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "TOKENGATE_",
) -> GateConfig:
    """Load gate configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (TOKENGATE_MAINNET_RPC_URL, etc.)
        2. TOML config file
        3. Defaults from GateConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = GateConfig()

    # ── Gate section ───────────────────────────────────────
    gate = raw.get("gate", {})
    if v := gate.get("log_level"):
        cfg.log_level = str(v)
    if "parallel_options" in gate:
        cfg.parallel_options = bool(gate["parallel_options"])

    # ── Chain section ──────────────────────────────────────
    chain = raw.get("chain", {})
    if v := chain.get("rpc_timeout"):
        cfg.rpc_timeout = int(v)
    if "rpc_retries" in chain:
        cfg.rpc_retries = int(chain["rpc_retries"])
    for network, url in chain.get("rpc_urls", {}).items():
        cfg.rpc_urls[Network(network).value] = str(url)

    # ── Cache section ──────────────────────────────────────
    cache = raw.get("cache", {})
    if "enabled" in cache:
        cfg.cache_enabled = bool(cache["enabled"])
    if "balance_max_age" in cache:
        cfg.balance_max_age = int(cache["balance_max_age"])

    # ── Storage section ────────────────────────────────────
    storage = raw.get("storage", {})
    if v := storage.get("db_path"):
        cfg.db_path = str(v)

    # ── Token aliases ──────────────────────────────────────
    for symbol, alias in raw.get("tokens", {}).items():
        cfg.token_aliases[symbol.upper()] = TokenAlias(
            address=normalize_address(alias["address"]),
            standard=TokenStandard(str(alias.get("standard", "ERC20")).upper()),
            network=Network(alias.get("network", Network.MAINNET.value)),
        )

    # ── Environment variable overrides (highest priority) ──
    for network in Network:
        if url := os.environ.get(f"{env_prefix}{network.name}_RPC_URL"):
            cfg.rpc_urls[network.value] = url
    if db_path := os.environ.get(f"{env_prefix}DB_PATH"):
        cfg.db_path = db_path
    if max_age := os.environ.get(f"{env_prefix}BALANCE_MAX_AGE"):
        cfg.balance_max_age = int(max_age)
    if level := os.environ.get(f"{env_prefix}LOG_LEVEL"):
        cfg.log_level = level

    # Expand ~ in paths
    if cfg.db_path != ":memory:":
        cfg.db_path = str(Path(cfg.db_path).expanduser())

    return cfg
