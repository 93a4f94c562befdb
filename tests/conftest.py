"""Shared fixtures for tokengate tests."""

from __future__ import annotations

import pytest
from aiohttp import web
from pytest_metadata.plugin import metadata_key

from tokengate.gate import TokenGate
from tokengate.models.config import GateConfig
from tokengate.policy.evaluator import AccessPolicyEvaluator
from tokengate.storage.sqlite import SQLiteGateStore

from tests.factories import THINK_NFT, THINK_TOKEN
from tests.mocks import RPC_PORT, FakeNode, FakeOracle


# ── Report metadata ──────────────────────────────────────────────


def pytest_configure(config):
    """Add gated token info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["THINK token"] = THINK_TOKEN
    meta["THINK Agent Bundle NFT"] = THINK_NFT


def make_test_config(**overrides) -> GateConfig:
    """Build a GateConfig suitable for testing."""
    defaults = dict(
        rpc_urls={"mainnet": "http://127.0.0.1:9311", "base": "http://127.0.0.1:9312"},
        rpc_timeout=2,
        rpc_retries=0,
        balance_max_age=300,
        db_path=":memory:",
    )
    defaults.update(overrides)
    return GateConfig(**defaults)


@pytest.fixture
def test_config():
    return make_test_config()


@pytest.fixture
async def store():
    """Initialized in-memory SQLiteGateStore."""
    s = SQLiteGateStore(":memory:")
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def oracle():
    return FakeOracle()


@pytest.fixture
def evaluator():
    return AccessPolicyEvaluator()


@pytest.fixture
async def gate(store, oracle):
    """TokenGate wired to the in-memory store and the fake oracle."""
    return TokenGate(store=store, oracle=oracle)


@pytest.fixture
async def node():
    """Local aiohttp server speaking just enough JSON-RPC for eth_call."""
    state = FakeNode()
    app = web.Application()
    app.router.add_post("/", state.handle)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", RPC_PORT)
    await site.start()
    yield state
    await runner.cleanup()
