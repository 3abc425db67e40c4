"""
acefantasy/units.py - Ether/wei conversion.

All balances, fees and rewards are integer wei. These helpers exist for the
human-facing edges (config, CLI, tests) where amounts are written in ether.
"""

from decimal import Decimal

from web3 import Web3

WEI_PER_ETHER = 10**18


def parse_ether(amount: str | int | float | Decimal) -> int:
    """Ether amount -> wei. ``parse_ether("0.1") == 10**17``."""
    return int(Web3.to_wei(Decimal(str(amount)), "ether"))


def format_ether(wei: int) -> str:
    """Wei -> ether string without trailing zeros."""
    value = Decimal(Web3.from_wei(wei, "ether"))
    return format(value.normalize(), "f")
