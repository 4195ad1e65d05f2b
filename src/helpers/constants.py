"""Common configuration constants used across the application."""

# HTTP and Network Constants
DEFAULT_TIMEOUT = 30.0
"""Default HTTP request timeout in seconds"""

CONNECTION_TIMEOUT = 3.0
"""Timeout for establishing connections"""

# Retry Configuration
MAX_RETRIES = 5
"""Default maximum number of retry attempts"""

FETCH_MAX_RETRIES = 3
"""Default attempts per chain read under the retry-bounded fetch policy"""

RETRY_BASE_DELAY = 1.0
"""Base delay for exponential backoff in seconds"""

RETRY_MAX_DELAY = 60.0
"""Maximum delay between retries in seconds"""

# HTTP Connection Pooling
MAX_KEEPALIVE_CONNECTIONS = 5
"""Maximum number of keepalive connections in pool"""

MAX_CONNECTIONS = 10
"""Maximum total number of connections"""

# Scheduling
PROPOSAL_SYNC_INTERVAL = 60
"""Seconds between proposal sync passes"""

VOTE_SYNC_INTERVAL = 60
"""Seconds between vote sync passes"""

TALLY_INTERVAL = 300
"""Seconds between tally passes"""

# Cursors
PROPOSAL_START_KEY = "proposal_start_key"
"""Prefix of the per-network proposal stream cursor"""

VOTE_START_KEY = "vote_start_key"
"""Prefix of the per-proposal vote stream cursor"""

INITIAL_CURSOR = 1
"""First on-chain index of a stream (proposal and vote indices start at 1)"""

# Tally
TOKEN_UNIT = 10**8
"""Smallest token units per whole token used for vote weights"""

PERCENT_SCALE = 100
"""Vote percentages are expressed in 0..100"""

# Off-chain content
DEFAULT_IPFS_GATEWAY = "https://ipfs.io/ipfs/"
"""Gateway used to resolve content identifiers"""


__all__ = [
    "CONNECTION_TIMEOUT",
    "DEFAULT_IPFS_GATEWAY",
    "DEFAULT_TIMEOUT",
    "FETCH_MAX_RETRIES",
    "INITIAL_CURSOR",
    "MAX_CONNECTIONS",
    "MAX_KEEPALIVE_CONNECTIONS",
    "MAX_RETRIES",
    "PERCENT_SCALE",
    "PROPOSAL_START_KEY",
    "PROPOSAL_SYNC_INTERVAL",
    "RETRY_BASE_DELAY",
    "RETRY_MAX_DELAY",
    "TALLY_INTERVAL",
    "TOKEN_UNIT",
    "VOTE_START_KEY",
    "VOTE_SYNC_INTERVAL",
]
