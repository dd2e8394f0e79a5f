"""Exception hierarchy for smallbasis.

Every error is also a ``ValueError`` so callers that only guard against bad
input values keep working.
"""


class SmallBasisError(ValueError):
    """Base class for all smallbasis errors."""


class ConfigurationError(SmallBasisError):
    """Invalid compressor construction parameters (basis, block size, quality)."""


class DecodeError(SmallBasisError):
    """A serialized record is truncated or structurally malformed."""


class ValidationError(SmallBasisError):
    """A decoded record is well formed but unsafe to reconstruct from."""


__all__ = ["SmallBasisError", "ConfigurationError", "DecodeError", "ValidationError"]
