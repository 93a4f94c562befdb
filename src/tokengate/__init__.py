"""tokengate - token-gated access policy for courses and live sessions."""

from tokengate.errors import (
    InvalidRequirementError,
    MalformedResponse,
    OracleError,
    OracleUnavailable,
)
from tokengate.gate import ContentKind, TokenGate
from tokengate.policy import AccessPolicyEvaluator, decode_requirement, encode_requirement, validate

__all__ = [
    "AccessPolicyEvaluator",
    "ContentKind",
    "InvalidRequirementError",
    "MalformedResponse",
    "OracleError",
    "OracleUnavailable",
    "TokenGate",
    "decode_requirement",
    "encode_requirement",
    "validate",
]
