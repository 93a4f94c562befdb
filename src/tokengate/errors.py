"""Error types raised by requirement validation and balance oracles."""

from __future__ import annotations


class InvalidRequirementError(ValueError):
    """A token requirement is malformed (a data/configuration bug)."""


class OracleError(Exception):
    """Base class for balance oracle failures."""


class OracleUnavailable(OracleError):
    """The chain could not be queried (network, RPC or timeout failure)."""


class MalformedResponse(OracleError):
    """The chain answered with data that cannot be interpreted as a balance."""
