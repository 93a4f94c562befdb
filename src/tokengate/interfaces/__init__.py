"""Protocol interfaces for the injectable token gate components."""

from tokengate.interfaces.oracle import BalanceOracle
from tokengate.interfaces.store import GateStore

__all__ = ["BalanceOracle", "GateStore"]
