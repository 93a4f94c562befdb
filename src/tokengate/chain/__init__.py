"""EVM chain integration: JSON-RPC client and balance oracles."""

from tokengate.chain.cache import CachingBalanceOracle
from tokengate.chain.oracle import RpcBalanceOracle
from tokengate.chain.rpc import EthRpcClient

__all__ = ["CachingBalanceOracle", "EthRpcClient", "RpcBalanceOracle"]
