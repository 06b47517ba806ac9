# wallet.py
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable
import logging

from solana.rpc.api import Client

from config import EXPLORER_ACCOUNT_URL, DEFAULT_METADATA_LAYOUT
from metadata import get_token_metadata
from rpc import get_sol_balance, get_token_accounts

logger = logging.getLogger(__name__)


def explorer_url(address: str) -> str:
    return f"{EXPLORER_ACCOUNT_URL}/{address}"


def format_amount(amount: float) -> str:
    """Thousands separators and at most 3 fraction digits, trailing zeros dropped.

    Halves round away from zero (1.0625 -> 1.063), as en-US number formatting does.
    """
    rounded = Decimal(repr(amount)).quantize(Decimal("0.001"), rounding=ROUND_HALF_UP)
    text = f"{rounded:,.3f}"
    return text.rstrip("0").rstrip(".")


def format_sol(sol: float) -> str:
    return f"{sol:.15f}"


def check_wallet(
    client: Client,
    address: str,
    layout: str = DEFAULT_METADATA_LAYOUT,
    echo: Callable[[str], None] = print,
) -> bool:
    """Print the balance and token report for one wallet.

    Lines are emitted as soon as their data is available. Any failure is
    logged and reported as False so the caller can move on to the next wallet.
    """
    try:
        echo(f"\nWallet: {address}")
        echo(f" | Solscan: {explorer_url(address)}")

        sol_balance = get_sol_balance(client, address)
        echo(f" | SOL Balance: {format_sol(sol_balance)} SOL")

        tokens = get_token_accounts(client, address)
        if not tokens:
            echo(" | No tokens found.")
            return True

        echo("\n | Tokens:")
        for index, token in enumerate(tokens, start=1):
            identity = get_token_metadata(client, token.mint, layout=layout)
            echo(
                f" | {index}. Mint: {token.mint} ({identity.name} - {identity.symbol})\n"
                f"   Amount: {format_amount(token.amount)} ({token.decimals} decimals)"
            )
        return True

    except Exception as e:
        logger.error("Error checking wallet %s: %s", address, e)
        return False
