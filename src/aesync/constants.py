"""
Chain and sync constants shared across aesync modules.
"""

from __future__ import annotations

# Confirmations after which a block is treated as final
SAFE_REORG_THRESHOLD = 80

# Highest derivation index probed during account discovery (exclusive)
MAX_ACCOUNT_INDEX = 255

# In-flight block requests per history fetch batch
FETCH_CONCURRENCY = 10

# Only spend transactions move value between two accounts
SPEND_TX_TYPE = "SpendTx"

# Spend draft defaults (aettos / blocks)
MIN_FEE = 1
MAX_TTL = 2**53 - 1

# Sequence number assigned to operations we broadcast ourselves
DEFAULT_SEQUENCE_NUMBER = 0

DEFAULT_NODE_URL = "https://mainnet.aeternity.io"
