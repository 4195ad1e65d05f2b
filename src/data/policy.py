"""Per-index fetch policies used by the syncers.

A syncer hands every chain read for a single index to its policy. When the
policy gives up, the error propagates and the syncer advances past the index
and ends the pass.
"""

from typing import TYPE_CHECKING, Protocol

from src.helpers.constants import FETCH_MAX_RETRIES, RETRY_BASE_DELAY
from src.helpers.errors import ConfigError, TransientChainError
from src.helpers.http import retry_with_backoff


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


class FetchPolicy(Protocol):
    """Decides how often a failing chain read is attempted."""

    async def fetch[T](self, description: str, call: Callable[[], Awaitable[T]]) -> T: ...


class SkipAndAdvance:
    """Single attempt; a failure propagates straight away."""

    async def fetch[T](self, description: str, call: Callable[[], Awaitable[T]]) -> T:
        return await call()


class RetryBoundedThenAdvance:
    """Retry transient chain errors with exponential backoff, then give up."""

    def __init__(
        self,
        max_retries: int = FETCH_MAX_RETRIES,
        base_delay: float = RETRY_BASE_DELAY,
    ) -> None:
        self.max_retries = max_retries
        self.base_delay = base_delay

    async def fetch[T](self, description: str, call: Callable[[], Awaitable[T]]) -> T:
        async def attempt() -> T:
            return await call()

        attempt.__name__ = description
        retrying = retry_with_backoff(
            max_retries=self.max_retries,
            base_delay=self.base_delay,
            retry_on=(TransientChainError,),
        )(attempt)
        return await retrying()


def build_policy(name: str, max_retries: int = FETCH_MAX_RETRIES) -> FetchPolicy:
    """Create a fetch policy from its configured name.

    Args:
        name: 'skip' or 'retry'
        max_retries: Attempt budget of the retrying policy

    Returns:
        Policy instance

    Raises:
        ConfigError: If the name is unknown
    """
    if name == "skip":
        return SkipAndAdvance()
    if name == "retry":
        return RetryBoundedThenAdvance(max_retries=max_retries)
    msg = f"Unknown fetch policy: {name!r}"
    raise ConfigError(msg)


__all__ = [
    "FetchPolicy",
    "RetryBoundedThenAdvance",
    "SkipAndAdvance",
    "build_policy",
]
