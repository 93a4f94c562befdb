"""Access policy: requirement decoding, validation and evaluation."""

from tokengate.policy.decode import decode_requirement, encode_requirement
from tokengate.policy.evaluator import AccessPolicyEvaluator
from tokengate.policy.validation import validate

__all__ = [
    "AccessPolicyEvaluator",
    "decode_requirement",
    "encode_requirement",
    "validate",
]
