"""Configuration helpers: read from environment with sensible defaults."""
import os
from typing import Set


# Solana JSON-RPC endpoint used for every lookup
RPC_URL = os.getenv("RPC_URL", "https://api.mainnet-beta.solana.com")

# Block explorer account page; the wallet address is appended after a "/"
EXPLORER_ACCOUNT_URL = os.getenv("EXPLORER_ACCOUNT_URL", "https://solscan.io/account").rstrip("/")


# How metadata account bytes are decoded:
#   fixed - fixed-width name(32)/symbol(10)/uri(200) slices after the 65-byte header
#   borsh - u32 length-prefixed strings as written by the Metaplex program
METADATA_LAYOUTS: Set[str] = {"fixed", "borsh"}
DEFAULT_METADATA_LAYOUT = "fixed"

METADATA_LAYOUT = DEFAULT_METADATA_LAYOUT
env_layout = os.getenv("METADATA_LAYOUT")
if env_layout:
    layout = env_layout.strip().lower()
    METADATA_LAYOUT = layout if layout in METADATA_LAYOUTS else DEFAULT_METADATA_LAYOUT


# Logging level
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
