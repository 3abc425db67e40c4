"""
acefantasy/wallet.py - Dev accounts and wallet generation.

The simulated chain funds a fixed set of accounts derived from a BIP-39
mnemonic, the same scheme local hardhat/anvil nodes use, so addresses are
stable across runs. Uses eth-account (no RPC connection needed).
"""

import functools
import logging

from eth_account import Account
from eth_account.signers.local import LocalAccount

from .config import DEFAULT_MNEMONIC

logger = logging.getLogger(__name__)

DERIVATION_PATH = "m/44'/60'/0'/0/{index}"


def generate_wallet() -> tuple[str, str]:
    """Generate a new Ethereum wallet.

    Returns:
        (address, private_key_hex) — the private key includes the 0x prefix.
    """
    account = Account.create()
    key_hex = account.key.hex()
    if not key_hex.startswith("0x"):
        key_hex = "0x" + key_hex
    return (account.address, key_hex)


@functools.lru_cache(maxsize=8)
def derive_accounts(mnemonic: str = DEFAULT_MNEMONIC, count: int = 20) -> tuple[LocalAccount, ...]:
    """Derive ``count`` accounts from ``mnemonic`` along m/44'/60'/0'/0/i.

    Cached: derivation runs PBKDF2 per account and tests build many chains.
    """
    Account.enable_unaudited_hdwallet_features()
    accounts = tuple(
        Account.from_mnemonic(mnemonic, account_path=DERIVATION_PATH.format(index=i))
        for i in range(count)
    )
    logger.debug(f"Derived {count} dev accounts (first: {accounts[0].address if accounts else None})")
    return accounts
