"""
Web3 helpers for eth_sniper.

Address normalisation and unit conversion on top of ``web3.Web3``. No provider
is attached: balances and gas come from the data gateway, so only the static
helpers are needed here.
"""

from __future__ import annotations

import re

from web3 import Web3

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
DEAD_ADDRESS = "0x000000000000000000000000000000000000dEaD"
BURN_ADDRESSES = frozenset({ZERO_ADDRESS.lower(), DEAD_ADDRESS.lower()})

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_hex_address(value: str) -> bool:
    """``0x`` followed by 40 hex digits, in any letter case."""
    return bool(_ADDRESS_RE.match(value or ""))


def to_checksum(address: str) -> str:
    """Return the EIP-55 form of ``address`` regardless of its current casing.

    ``Web3.to_checksum_address`` rejects mixed-case input with a bad checksum,
    so the address is lower-cased first.
    """
    return Web3.to_checksum_address(address.lower())


def is_burn_address(address: str | None) -> bool:
    return (address or "").lower() in BURN_ADDRESSES


def hex_to_int(value: str | int | None) -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, int):
        return value
    return int(value, 16) if value.startswith("0x") else int(value)


def wei_to_eth(wei: int | str) -> float:
    return float(Web3.from_wei(hex_to_int(wei) if isinstance(wei, str) else wei, "ether"))


def wei_to_gwei(wei: int | str) -> float:
    return float(Web3.from_wei(hex_to_int(wei) if isinstance(wei, str) else wei, "gwei"))


def scale_amount(raw: int | str, decimals: int) -> float:
    """Convert an integer token amount to units using ``decimals``."""
    value = hex_to_int(raw) if isinstance(raw, str) else int(raw)
    return value / (10 ** int(decimals or 0))
