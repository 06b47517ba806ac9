# main.py
import logging
import sys
from typing import Iterable, Optional, TextIO

from solana.rpc.api import Client

from logging_config import setup_logging
from config import RPC_URL, METADATA_LAYOUT, DEFAULT_METADATA_LAYOUT
from rpc import get_client
from wallet import check_wallet

logger = logging.getLogger(__name__)

PROMPT = "Enter Solana wallet addresses (Ctrl+C to stop):"


def run(client: Client, lines: Iterable[str], layout: str = DEFAULT_METADATA_LAYOUT) -> int:
    """Inspect every non-blank line of `lines` as a wallet address.

    Returns the number of wallets that were checked.
    """
    checked = 0
    for line in lines:
        address = line.strip()
        if not address:
            continue
        check_wallet(client, address, layout=layout)
        checked += 1
    return checked


def main(stdin: Optional[TextIO] = None):
    setup_logging()
    client = get_client(RPC_URL)
    logger.debug("Using RPC %s with %s metadata layout", RPC_URL, METADATA_LAYOUT)

    print(PROMPT)
    try:
        count = run(client, stdin if stdin is not None else sys.stdin, layout=METADATA_LAYOUT)
        logger.debug("Input closed after %d wallets", count)
    except KeyboardInterrupt:
        logger.debug("Interrupted, exiting")


if __name__ == "__main__":
    main()
