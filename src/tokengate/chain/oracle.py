"""RPC balance oracle - reads ERC-20 balances and NFT counts via eth_call."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone

from tokengate.chain.rpc import DECIMALS_SELECTOR, EthRpcClient, decode_uint256, encode_balance_of
from tokengate.errors import MalformedResponse, OracleUnavailable
from tokengate.models.records import BalanceSnapshot, WalletIdentity
from tokengate.models.requirements import Network, TokenStandard

log = logging.getLogger(__name__)

MAX_DECIMALS = 255  # decimals() returns uint8


class RpcBalanceOracle:
    """BalanceOracle backed by one JSON-RPC endpoint per network.

    Both token standards expose ``balanceOf(address)``; for ERC-20 tokens
    ``decimals()`` is read once per token and remembered, since it never
    changes for a deployed contract.
    """

    def __init__(
        self,
        rpc_urls: Mapping[str, str],
        timeout: float = 10,
        retries: int = 2,
    ) -> None:
        self._clients = {
            network: EthRpcClient(url, timeout=timeout, retries=retries)
            for network, url in rpc_urls.items()
            if url
        }
        self._decimals: dict[tuple[str, str], int] = {}

    def _client(self, network: Network | str) -> EthRpcClient:
        key = network.value if isinstance(network, Network) else str(network)
        client = self._clients.get(key)
        if client is None:
            raise OracleUnavailable(f"no RPC endpoint configured for network {key!r}")
        return client

    async def fetch_balance(
        self,
        wallet: WalletIdentity,
        token_address: str,
        standard: TokenStandard,
        network: Network = Network.MAINNET,
    ) -> BalanceSnapshot:
        try:
            network = Network(network)
        except ValueError as exc:
            raise OracleUnavailable(f"unknown network {network!r}") from exc
        client = self._client(network)
        token = token_address.lower()
        result = await client.eth_call(token, encode_balance_of(wallet.address))
        amount = decode_uint256(result)

        decimals = 0
        if standard is TokenStandard.ERC20:
            decimals = await self.get_decimals(token, network)

        log.debug(
            "balanceOf(%s) on %s/%s = %d (decimals=%d)",
            wallet, network.value, token, amount, decimals,
        )
        return BalanceSnapshot(
            wallet=wallet.address,
            token_address=token,
            standard=standard,
            amount=amount,
            fetched_at=datetime.now(timezone.utc),
            decimals=decimals,
            network=network,
        )

    async def get_decimals(self, token_address: str, network: Network = Network.MAINNET) -> int:
        """Read and memoize an ERC-20 token's ``decimals()``."""
        key = (Network(network).value, token_address.lower())
        if key in self._decimals:
            return self._decimals[key]
        result = await self._client(network).eth_call(key[1], DECIMALS_SELECTOR)
        decimals = decode_uint256(result)
        if not 0 <= decimals <= MAX_DECIMALS:
            raise MalformedResponse(f"decimals() returned {decimals}")
        self._decimals[key] = decimals
        return decimals
