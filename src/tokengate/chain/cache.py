"""Caching balance oracle - serves recent snapshots from the store."""

from __future__ import annotations

import logging

from tokengate.interfaces.oracle import BalanceOracle
from tokengate.interfaces.store import GateStore
from tokengate.models.records import BalanceSnapshot, WalletIdentity
from tokengate.models.requirements import Network, TokenStandard

log = logging.getLogger(__name__)


class CachingBalanceOracle:
    """Local cache of on-chain balances in front of another oracle.

    Snapshots are stored in the gate store and reused while they are at
    most ``max_age_seconds`` old. A failed refresh propagates the
    oracle's error; a stale snapshot is never returned in its place.
    """

    def __init__(
        self,
        inner: BalanceOracle,
        store: GateStore,
        max_age_seconds: int = 300,
    ) -> None:
        self._inner = inner
        self._store = store
        self._max_age = max_age_seconds

    @property
    def max_age_seconds(self) -> int:
        return self._max_age

    async def fetch_balance(
        self,
        wallet: WalletIdentity,
        token_address: str,
        standard: TokenStandard,
        network: Network = Network.MAINNET,
    ) -> BalanceSnapshot:
        cached = await self._store.get_cached_balance(
            wallet.address, token_address.lower(), standard, network,
        )
        if cached and not cached.is_stale(self._max_age):
            log.debug("Cache hit for %s / %s", wallet, token_address)
            return cached
        return await self.refresh(wallet, token_address, standard, network)

    async def refresh(
        self,
        wallet: WalletIdentity,
        token_address: str,
        standard: TokenStandard,
        network: Network = Network.MAINNET,
    ) -> BalanceSnapshot:
        """Force a fetch from the inner oracle and replace the cached snapshot."""
        snapshot = await self._inner.fetch_balance(wallet, token_address, standard, network)
        await self._store.cache_balance(snapshot)
        log.debug(
            "Cached balance for %s / %s: %d", wallet, token_address, snapshot.amount,
        )
        return snapshot
