"""Error taxonomy for the governance sync pipeline."""


class GovernanceError(Exception):
    """Base class for all pipeline errors."""


class TransientChainError(GovernanceError):
    """Reading chain state failed (RPC, network or ABI decoding failure)."""


class NotFoundError(GovernanceError):
    """A required row (usually a cursor) does not exist."""


class DecodeError(GovernanceError):
    """A vote payload or off-chain document could not be fetched or decoded."""


class PersistenceError(GovernanceError):
    """A store read or write failed."""


class ConfigError(ValueError):
    """Invalid configuration."""


__all__ = [
    "ConfigError",
    "DecodeError",
    "GovernanceError",
    "NotFoundError",
    "PersistenceError",
    "TransientChainError",
]
