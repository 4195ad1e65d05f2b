"""Configuration management and environment variable utilities."""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from src.helpers.constants import (
    DEFAULT_IPFS_GATEWAY,
    FETCH_MAX_RETRIES,
    PROPOSAL_SYNC_INTERVAL,
    TALLY_INTERVAL,
    VOTE_SYNC_INTERVAL,
)
from src.helpers.errors import ConfigError


# Load environment variables from .env file
load_dotenv()


class Network(BaseModel):
    """A configured chain endpoint running the voting contract."""

    id: int = Field(..., ge=0, description="Small integer network identifier")
    name: str = Field(default="", description="Human readable name")
    rpc_url: str = Field(..., min_length=1, description="JSON-RPC endpoint URL")
    contract_address: str = Field(..., description="Voting contract address")
    token_address: str = Field(..., description="ERC-20 used to weight votes")

    model_config = ConfigDict(frozen=True)


def get_required_env(key: str) -> str:
    """Get a required environment variable.

    Args:
        key: Environment variable name

    Returns:
        Environment variable value

    Raises:
        ValueError: If the environment variable is not set

    Example:
        ```python
        from src.helpers.config import get_required_env

        host = get_required_env("POSTGRE_HOST")
        ```
    """
    value = os.getenv(key)
    if not value:
        msg = f"{key} environment variable is not set"
        raise ValueError(msg)
    return value


def get_optional_env(key: str, default: str | None = None) -> str | None:
    """Get an optional environment variable with a default value.

    Args:
        key: Environment variable name
        default: Default value if not set

    Returns:
        Environment variable value or default
    """
    return os.getenv(key, default)


def get_int_env(key: str, default: int) -> int:
    """Get an integer environment variable.

    Args:
        key: Environment variable name
        default: Default value if not set or empty

    Returns:
        Parsed integer value

    Raises:
        ValueError: If the value is not an integer
    """
    value = os.getenv(key)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        msg = f"{key} must be an integer, got {value!r}"
        raise ValueError(msg) from None


def parse_networks(raw: str) -> list[Network]:
    """Parse and validate a JSON network list.

    Args:
        raw: JSON array of network objects

    Returns:
        Validated networks in configuration order

    Raises:
        ConfigError: If the JSON is invalid, an entry is malformed or ids repeat

    Example:
        ```python
        networks = parse_networks(
            '[{"id": 314, "rpc_url": "https://api.node.glif.io", '
            '"contract_address": "0x...", "token_address": "0x..."}]'
        )
        ```
    """
    try:
        networks = TypeAdapter(list[Network]).validate_json(raw)
    except ValidationError as e:
        msg = f"Invalid network configuration: {e}"
        raise ConfigError(msg) from e

    seen: set[int] = set()
    for network in networks:
        if network.id in seen:
            msg = f"Duplicate network id: {network.id}"
            raise ConfigError(msg)
        seen.add(network.id)

    return networks


def load_networks() -> list[Network]:
    """Load networks from NETWORKS_FILE or the inline NETWORKS variable.

    Returns:
        Validated list of networks

    Raises:
        ConfigError: If neither variable is set or the content is invalid
    """
    networks_file = os.getenv("NETWORKS_FILE")
    if networks_file:
        path = Path(networks_file)
        if not path.is_file():
            msg = f"NETWORKS_FILE does not exist: {networks_file}"
            raise ConfigError(msg)
        return parse_networks(path.read_text(encoding="utf-8"))

    inline = os.getenv("NETWORKS")
    if inline:
        return parse_networks(inline)

    msg = "NETWORKS_FILE or NETWORKS must be set"
    raise ConfigError(msg)


def get_ipfs_gateway_url() -> str:
    """Get the IPFS gateway used to resolve content identifiers.

    Returns:
        Gateway base URL, always ending with a slash
    """
    url = os.getenv("IPFS_GATEWAY_URL") or DEFAULT_IPFS_GATEWAY
    return url if url.endswith("/") else f"{url}/"


def get_fetch_policy_settings() -> tuple[str, int]:
    """Get the configured fetch policy name and retry budget.

    Returns:
        Tuple of (policy name, max retries)

    Raises:
        ConfigError: If FETCH_POLICY is not 'skip' or 'retry'
    """
    name = (os.getenv("FETCH_POLICY") or "skip").lower()
    if name not in {"skip", "retry"}:
        msg = f"FETCH_POLICY must be 'skip' or 'retry', got {name!r}"
        raise ConfigError(msg)
    return name, get_int_env("FETCH_MAX_RETRIES", FETCH_MAX_RETRIES)


def get_schedule_intervals() -> dict[str, int]:
    """Get the cadence of every periodic handler in seconds.

    Returns:
        Mapping of handler name to interval
    """
    return {
        "proposals": get_int_env("PROPOSAL_SYNC_INTERVAL", PROPOSAL_SYNC_INTERVAL),
        "votes": get_int_env("VOTE_SYNC_INTERVAL", VOTE_SYNC_INTERVAL),
        "tally": get_int_env("TALLY_INTERVAL", TALLY_INTERVAL),
    }


__all__ = [
    "Network",
    "get_fetch_policy_settings",
    "get_int_env",
    "get_ipfs_gateway_url",
    "get_optional_env",
    "get_required_env",
    "get_schedule_intervals",
    "load_networks",
    "parse_networks",
]
