"""Token gate service: stored requirements, access checks and the access log."""

from __future__ import annotations

import pytest

from tokengate.chain.cache import CachingBalanceOracle
from tokengate.chain.oracle import RpcBalanceOracle
from tokengate.errors import InvalidRequirementError
from tokengate.gate import ContentKind, TokenGate
from tokengate.models.records import AccessReason
from tokengate.models.requirements import EitherRequirement, NoRequirement, RequirementKind
from tests.conftest import make_test_config
from tests.factories import OTHER_NFT, THINK_NFT, THINK_TOKEN, WALLET, WALLET_LOWER


async def test_missing_requirement_means_open_access(gate, oracle):
    verdict = await gate.check_access(ContentKind.COURSE, 1, WALLET)

    assert verdict.granted
    assert verdict.reason is AccessReason.NO_REQUIREMENT
    assert oracle.calls == []
    assert await gate.get_requirement("course", 1) == NoRequirement()


async def test_set_requirement_stores_canonical_form(gate, store):
    await gate.set_requirement("session", 4, '{"type": "THINK", "amount": 100}')

    stored = await store.get_requirement("session", 4)
    assert stored == {
        "type": "ERC20",
        "tokenAddress": THINK_TOKEN.lower(),
        "tokenName": "THINK",
        "minAmount": "100",
        "network": "mainnet",
    }


async def test_set_requirement_rejects_invalid(gate, store):
    with pytest.raises(InvalidRequirementError):
        await gate.set_requirement(ContentKind.COURSE, 2, {"type": "EITHER", "options": []})

    assert await store.get_requirement("course", 2) is None


async def test_set_requirement_rejects_unknown_kind(gate):
    with pytest.raises(ValueError):
        await gate.set_requirement("webinar", 1, {"type": "NONE"})


async def test_check_access_grants_and_logs(gate, oracle, store):
    oracle.set_balance(THINK_TOKEN, 1000)
    await gate.set_requirement(
        ContentKind.COURSE, 10,
        {"type": "EITHER", "options": [
            {"type": "NFT", "tokenAddress": THINK_NFT},
            {"type": "ERC20", "tokenAddress": THINK_TOKEN, "minAmount": 1000},
        ]},
    )

    verdict = await gate.check_access(ContentKind.COURSE, 10, WALLET)

    assert verdict.granted
    assert verdict.reason is AccessReason.SUFFICIENT_BALANCE
    entries = await store.get_recent_access()
    assert len(entries) == 1
    assert entries[0].wallet == WALLET_LOWER
    assert entries[0].content_kind == "course"
    assert entries[0].content_id == 10
    assert entries[0].granted


async def test_check_access_denied_with_shortfall(gate, oracle, store):
    oracle.set_balance(THINK_TOKEN, 40)
    await gate.set_requirement("course", 11, {"type": "ERC20", "tokenAddress": THINK_TOKEN, "minAmount": 100})

    verdict = await gate.check_access("course", 11, WALLET)

    assert not verdict.granted
    assert verdict.shortfall == 60
    entries = await store.get_recent_access()
    assert entries[0].reason == "INSUFFICIENT_BALANCE"
    assert entries[0].shortfall == "60"


async def test_corrupt_stored_requirement_is_flagged(gate, store, oracle, caplog):
    await store.save_requirement("session", 3, {"type": "DOGE"})

    verdict = await gate.check_access(ContentKind.SESSION, 3, WALLET)

    assert not verdict.granted
    assert verdict.reason is AccessReason.INVALID_REQUIREMENT
    assert oracle.calls == []
    assert "cannot be decoded" in caplog.text
    assert (await store.get_recent_access())[0].reason == "INVALID_REQUIREMENT"


async def test_stored_requirement_failing_validation_is_flagged(gate, store):
    await store.save_requirement("course", 5, {"type": "NFT", "tokenAddress": "0x123"})

    verdict = await gate.check_access("course", 5, WALLET)

    assert verdict.reason is AccessReason.INVALID_REQUIREMENT


async def test_invalid_wallet_rejected(gate):
    with pytest.raises(ValueError):
        await gate.check_access("course", 1, "not-a-wallet")


async def test_check_requirement_does_not_log(gate, oracle, store):
    oracle.set_balance(OTHER_NFT, 1)
    requirement = gate.decode({"type": "NFT", "contractAddress": OTHER_NFT})

    verdict = await gate.check_requirement(requirement, WALLET)

    assert verdict.granted
    assert await store.get_recent_access() == []


async def test_check_many(gate, oracle):
    oracle.set_balance(THINK_NFT, 1)
    await gate.set_requirement("course", 1, {"type": "NFT", "tokenAddress": THINK_NFT})
    await gate.set_requirement("course", 2, {"type": "NFT", "tokenAddress": OTHER_NFT})

    verdicts = await gate.check_many("course", [1, 2, 3], WALLET)

    assert list(verdicts) == [1, 2, 3]
    assert verdicts[1].granted
    assert not verdicts[2].granted
    assert verdicts[3].reason is AccessReason.NO_REQUIREMENT


async def test_legacy_either_roundtrips_through_store(gate):
    await gate.set_requirement("course", 8, {"type": "EITHER", "think": 1000, "nft": OTHER_NFT})

    requirement = await gate.get_requirement("course", 8)

    assert isinstance(requirement, EitherRequirement)
    assert [o.kind for o in requirement.options] == [RequirementKind.ERC20, RequirementKind.NFT]


def test_from_config_wraps_oracle_in_cache():
    gate = TokenGate.from_config(make_test_config())
    assert isinstance(gate.oracle, CachingBalanceOracle)

    uncached = TokenGate.from_config(make_test_config(cache_enabled=False))
    assert isinstance(uncached.oracle, RpcBalanceOracle)


def test_from_config_parallel_flag():
    gate = TokenGate.from_config(make_test_config(parallel_options=True))
    assert gate.evaluator.parallel_options
