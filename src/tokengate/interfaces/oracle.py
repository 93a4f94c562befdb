"""BalanceOracle protocol - reports on-chain token holdings."""

from __future__ import annotations

from typing import Protocol

from tokengate.models.records import BalanceSnapshot, WalletIdentity
from tokengate.models.requirements import Network, TokenStandard


class BalanceOracle(Protocol):
    """Reads a wallet's ERC-20 balance or NFT count, possibly from cache."""

    async def fetch_balance(
        self,
        wallet: WalletIdentity,
        token_address: str,
        standard: TokenStandard,
        network: Network = Network.MAINNET,
    ) -> BalanceSnapshot:
        """Return a snapshot.

        Raises OracleUnavailable on network/RPC failure or timeout and
        MalformedResponse when the answer is not a valid balance.
        """
        ...
