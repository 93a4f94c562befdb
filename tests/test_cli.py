"""CLI commands that need no network access."""

from __future__ import annotations

import asyncio
import json

import pytest
from click.testing import CliRunner

from tokengate.cli import EXIT_DENIED, cli
from tests.factories import THINK_NFT, THINK_TOKEN, WALLET, WALLET_LOWER


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.setenv("TOKENGATE_DB_PATH", str(tmp_path / "gate.db"))
    # Nothing listens here; checks that need a balance fail closed.
    monkeypatch.setenv("TOKENGATE_MAINNET_RPC_URL", "http://127.0.0.1:9")
    return CliRunner()


def test_status(runner):
    result = runner.invoke(cli, ["status"], obj={})

    assert result.exit_code == 0
    assert "http://127.0.0.1:9" in result.output
    assert "Token THINK" in result.output


def test_check_open_requirement(runner):
    result = runner.invoke(
        cli, ["check", WALLET, "--requirement", '{"type": "NONE"}', "--json"], obj={},
    )

    assert result.exit_code == 0
    assert json.loads(result.output)["reason"] == "NO_REQUIREMENT"


def test_check_needs_exactly_one_target(runner):
    result = runner.invoke(cli, ["check", WALLET], obj={})
    assert result.exit_code == 1


def test_check_invalid_requirement(runner):
    result = runner.invoke(
        cli, ["check", WALLET, "--requirement", '{"type": "EITHER", "options": []}'], obj={},
    )
    assert result.exit_code == 1


def test_check_invalid_wallet(runner):
    result = runner.invoke(cli, ["check", "0x1234", "--course", "1"], obj={})
    assert result.exit_code == 1


def test_unreachable_node_denies(runner):
    requirement = json.dumps({"type": "NFT", "tokenAddress": THINK_NFT})
    runner.invoke(cli, ["set-requirement", "course", "7", requirement], obj={})

    result = runner.invoke(cli, ["check", WALLET, "--course", "7"], obj={})

    assert result.exit_code == EXIT_DENIED
    assert "ORACLE_UNAVAILABLE" in result.output


def test_set_and_list_requirements(runner):
    result = runner.invoke(
        cli, ["set-requirement", "session", "3", '{"type": "THINK", "amount": 100}'], obj={},
    )
    assert result.exit_code == 0
    assert "ERC20" in result.output

    listing = runner.invoke(cli, ["requirements"], obj={})
    assert "session" in listing.output
    assert '"minAmount": "100"' in listing.output


def test_activity_lists_decisions(runner):
    runner.invoke(cli, ["check", WALLET, "--session", "1"], obj={})

    result = runner.invoke(cli, ["activity"], obj={})

    assert result.exit_code == 0
    assert "session 1: granted (NO_REQUIREMENT)" in result.output


# ── balance (against the local JSON-RPC node) ────────────────────


@pytest.mark.rpc
async def test_balance_resolves_alias(runner, node, monkeypatch):
    monkeypatch.setenv("TOKENGATE_MAINNET_RPC_URL", node.url)
    node.balances[THINK_TOKEN.lower()] = 1500 * 10**18

    # The command runs its own event loop; the node keeps serving on this one.
    result = await asyncio.to_thread(runner.invoke, cli, ["balance", WALLET, "THINK"], obj={})

    assert result.exit_code == 0, result.output
    assert f"Wallet:     {WALLET_LOWER}" in result.output
    assert f"Amount:     {1500 * 10**18}" in result.output
    assert "Decimals:   18" in result.output
    assert node.requests[0]["params"][0]["to"] == THINK_TOKEN.lower()


@pytest.mark.rpc
async def test_balance_nft_by_address(runner, node, monkeypatch):
    monkeypatch.setenv("TOKENGATE_MAINNET_RPC_URL", node.url)
    node.balances[THINK_NFT] = 2

    result = await asyncio.to_thread(
        runner.invoke, cli, ["balance", WALLET, THINK_NFT, "--standard", "nft"], obj={},
    )

    assert result.exit_code == 0, result.output
    assert "Amount:     2" in result.output
    assert "Decimals" not in result.output


@pytest.mark.rpc
async def test_balance_node_error(runner, node, monkeypatch):
    monkeypatch.setenv("TOKENGATE_MAINNET_RPC_URL", node.url)
    node.status = 500

    result = await asyncio.to_thread(runner.invoke, cli, ["balance", WALLET, "THINK"], obj={})

    assert result.exit_code == 1
    assert "HTTP 500" in result.output
