import logging
from types import SimpleNamespace

import pytest

from config import EXPLORER_ACCOUNT_URL
from metadata import find_metadata_pda
from wallet import check_wallet, format_amount, format_sol

WALLET = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"
USDC_MINT = "EPjFWdd5AufqSSqeM2qcxkEzY6BpyHQzdDrRmqw5yHq3"
BONK_MINT = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"


def fixed_buffer(name: bytes, symbol: bytes) -> bytes:
    return bytes(65) + name.ljust(32, b"\x00") + symbol.ljust(10, b"\x00") + bytes(200)


def token_account(mint, ui_amount, decimals):
    info = {"mint": mint, "tokenAmount": {"decimals": decimals, "uiAmount": ui_amount}}
    return SimpleNamespace(account=SimpleNamespace(data=SimpleNamespace(parsed={"info": info})))


class FakeClient:
    def __init__(self, lamports=0, accounts=(), metadata_accounts=None, balance_error=None):
        self.lamports = lamports
        self.accounts = list(accounts)
        # str(pda) -> raw bytes
        self.metadata_accounts = metadata_accounts or {}
        self.balance_error = balance_error

    def get_balance(self, pubkey):
        if self.balance_error is not None:
            raise self.balance_error
        return SimpleNamespace(value=self.lamports)

    def get_token_accounts_by_owner_json_parsed(self, owner, opts):
        return SimpleNamespace(value=self.accounts)

    def get_account_info(self, pubkey):
        raw = self.metadata_accounts.get(str(pubkey))
        if raw is None:
            return SimpleNamespace(value=None)
        return SimpleNamespace(value=SimpleNamespace(data=raw))


@pytest.mark.parametrize(
    "amount,expected",
    [
        (0.0, "0"),
        (3.0, "3"),
        (1234.5, "1,234.5"),
        (1000000.0, "1,000,000"),
        (0.123456, "0.123"),
        (2.0006, "2.001"),
        (1.0625, "1.063"),
        (0.0625, "0.063"),
        (-1.0625, "-1.063"),
        (1234567.8905, "1,234,567.891"),
    ],
)
def test_format_amount(amount, expected):
    assert format_amount(amount) == expected


def test_format_sol_fixed_fifteen_places():
    assert format_sol(1.5) == "1.500000000000000"
    assert format_sol(0.0) == "0.000000000000000"


def test_report_with_tokens(capsys):
    client = FakeClient(
        lamports=1_500_000_000,
        accounts=[token_account(USDC_MINT, 1234.5, 6), token_account(BONK_MINT, 42.0, 5)],
        metadata_accounts={str(find_metadata_pda(USDC_MINT)): fixed_buffer(b"USD Coin", b"USDC")},
    )
    assert check_wallet(client, WALLET) is True

    out = capsys.readouterr().out
    assert out == (
        f"\nWallet: {WALLET}\n"
        f" | Solscan: {EXPLORER_ACCOUNT_URL}/{WALLET}\n"
        " | SOL Balance: 1.500000000000000 SOL\n"
        "\n | Tokens:\n"
        f" | 1. Mint: {USDC_MINT} (USD Coin - USDC)\n"
        "   Amount: 1,234.5 (6 decimals)\n"
        f" | 2. Mint: {BONK_MINT} (Unknown Token - ???)\n"
        "   Amount: 42 (5 decimals)\n"
    )


def test_report_without_tokens():
    lines = []
    assert check_wallet(FakeClient(lamports=0), WALLET, echo=lines.append) is True
    assert lines[-2:] == [" | SOL Balance: 0.000000000000000 SOL", " | No tokens found."]


def test_rpc_failure_is_logged_not_raised(caplog):
    lines = []
    client = FakeClient(balance_error=RuntimeError("connection refused"))
    with caplog.at_level(logging.ERROR, logger="wallet"):
        assert check_wallet(client, WALLET, echo=lines.append) is False
    # header lines were already printed before the failure
    assert lines == [f"\nWallet: {WALLET}", f" | Solscan: {EXPLORER_ACCOUNT_URL}/{WALLET}"]
    assert "connection refused" in caplog.text
    assert WALLET in caplog.text


def test_invalid_address_is_logged(caplog):
    lines = []
    with caplog.at_level(logging.ERROR, logger="wallet"):
        assert check_wallet(FakeClient(), "not-a-wallet", echo=lines.append) is False
    assert "not-a-wallet" in caplog.text
    assert len(lines) == 2


def test_borsh_layout_is_passed_through():
    raw = (
        bytes([4]) + bytes(64)
        + (32).to_bytes(4, "little") + b"USD Coin".ljust(32, b"\x00")
        + (10).to_bytes(4, "little") + b"USDC".ljust(10, b"\x00")
        + (200).to_bytes(4, "little") + bytes(200)
    )
    client = FakeClient(
        accounts=[token_account(USDC_MINT, 1.0, 6)],
        metadata_accounts={str(find_metadata_pda(USDC_MINT)): raw},
    )
    lines = []
    assert check_wallet(client, WALLET, layout="borsh", echo=lines.append)
    assert f" | 1. Mint: {USDC_MINT} (USD Coin - USDC)\n   Amount: 1 (6 decimals)" in lines
