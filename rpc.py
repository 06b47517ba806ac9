# rpc.py
from dataclasses import dataclass
from typing import List, Optional, Union
from base64 import b64decode
import logging

from solana.rpc.api import Client
from solana.rpc.types import TokenAccountOpts
from solders.pubkey import Pubkey

from config import RPC_URL

logger = logging.getLogger(__name__)

DEFAULT_RPC = RPC_URL
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
LAMPORTS_PER_SOL = 1_000_000_000


@dataclass
class TokenHolding:
    mint: str
    amount: float   # uiAmount, already scaled by decimals
    decimals: int


def get_client(rpc_url: str = DEFAULT_RPC) -> Client:
    logger.debug("rpc.get_client creating Client for %s", rpc_url)
    return Client(rpc_url)


def _to_pubkey(address: Union[str, Pubkey]) -> Pubkey:
    if isinstance(address, Pubkey):
        return address
    return Pubkey.from_string(address)


def get_sol_balance(client: Client, address: Union[str, Pubkey]) -> float:
    """Return the wallet's native balance in SOL."""
    resp = client.get_balance(_to_pubkey(address))
    lamports = resp.value or 0
    logger.debug("rpc.get_sol_balance address=%s lamports=%s", address, lamports)
    return lamports / LAMPORTS_PER_SOL


def get_token_accounts(client: Client, address: Union[str, Pubkey]) -> List[TokenHolding]:
    """
    Fetch the SPL token accounts owned by a wallet, in the order the RPC returns them.
    """
    opts = TokenAccountOpts(program_id=Pubkey.from_string(TOKEN_PROGRAM_ID))
    resp = client.get_token_accounts_by_owner_json_parsed(_to_pubkey(address), opts)

    holdings: List[TokenHolding] = []
    for acc in resp.value:
        info = acc.account.data.parsed["info"]
        token_amount = info.get("tokenAmount") or {}
        # uiAmount is null for zero balances on some RPC nodes
        ui_amount = token_amount.get("uiAmount")
        holdings.append(
            TokenHolding(
                mint=info["mint"],
                amount=float(ui_amount) if ui_amount is not None else 0.0,
                decimals=int(token_amount.get("decimals", 0)),
            )
        )

    logger.debug("rpc.get_token_accounts address=%s count=%d", address, len(holdings))
    return holdings


def get_account_data(client: Client, address: Union[str, Pubkey]) -> Optional[bytes]:
    """Return an account's raw data, or None if the account does not exist."""
    resp = client.get_account_info(_to_pubkey(address))
    val = resp.value
    if val is None:
        return None

    data = val.data
    # Raw JSON responses carry data as [base64, encoding]
    if isinstance(data, (list, tuple)):
        return b64decode(data[0]) if data else b""
    if isinstance(data, str):
        return b64decode(data)
    return bytes(data)
