from decimal import Decimal
import os
from dotenv import load_dotenv
load_dotenv()
# ---- Base RPC ----
BASE_RPC_URL = os.environ.get("BASE_RPC_URL", "https://mainnet.base.org")
RPC_TIMEOUT_SEC = int(os.environ.get("RPC_TIMEOUT_SEC", "15"))
RPC_MAX_RETRIES = 3

# ---- Etherscan V2 (BaseScan) ----
ETHERSCAN_API_KEY = os.environ.get("ETHERSCAN_API_KEY") or os.environ.get("BASESCAN_API_KEY", "")
ETHERSCAN_CHAIN_ID = 8453          # Base mainnet
ETHERSCAN_BASE_URL = "https://api.etherscan.io/v2/api"

ETHERSCAN_REQUESTS_PER_SEC = 2.0
ETHERSCAN_TIMEOUT_SEC = 15
ETHERSCAN_MAX_RETRIES = 3

EXPLORER_TX_URL = "https://basescan.org/tx/"

# ---- Telegram ----
TELEGRAM_BOT_TOKEN = os.environ.get("TELEGRAM_BOT_TOKEN", "")
TELEGRAM_API_BASE = "https://api.telegram.org"
TELEGRAM_TIMEOUT_SEC = 20
CHANNEL_ID = os.environ.get("CHANNEL_ID", "")   # optional broadcast channel

# ---- Tracking ----
POLL_INTERVAL_SEC = int(os.environ.get("POLL_INTERVAL", "30"))
DATA_FILE = os.environ.get("DATA_FILE", "data/tracked-wallets.json")

# ---- Token metadata ----
TOKEN_META_TIMEOUT_SEC = float(os.environ.get("TOKEN_META_TIMEOUT_SEC", "5"))
TOKEN_META_WORKERS = int(os.environ.get("TOKEN_META_WORKERS", "4"))

# ----- Pricing ------

# Fixed ETH/USD rate used for display estimates only
ETH_USD_FALLBACK = Decimal(os.environ.get("ETH_USD_FALLBACK", "3000"))

# Known DEX routers on Base. Lowercase.
KNOWN_DEX_ROUTERS = {
    "0x4752ba5dbc23f44d87826276bf6fd6b1c372ad24": "BaseSwap",
    "0x327df1e6de05895d2ab08513aadd9313fe505d86": "Aerodrome",
    "0x2626664c2603336e57b271c5c0b26f421741e481": "Uniswap V3 Router",
    "0xd0dbb1d0b0d4e0e482c1c1a6cf7e6a13b9a7e8c3": "SushiSwap",
    "0x1b81d678ffb9c0263b24a97847620c99d213eb14": "Balancer",
    "0x3fc91a3afd70395cd496c647d5a6cc9d4b2b7fad": "Uniswap Universal Router",
}
UNKNOWN_DEX = "Unknown DEX"

# ----- Logging -----
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
