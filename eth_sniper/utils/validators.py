"""
Parameter validators used by the conversation engine.

Every validator takes the raw user text and returns the normalised value or
raises ``ValidationError`` with a message that can be shown to the user as is.
"""

from __future__ import annotations

import math
import re
from typing import List

from eth_sniper.utils.errors import ValidationError
from eth_sniper.utils.web3_utils import is_hex_address, to_checksum

SLIPPAGE_WARNING_PCT = 50.0
DEFAULT_MAX_ADDRESSES = 10

_LIST_SPLIT_RE = re.compile(r"[,\s]+")


def validate_wallet_address(text: str) -> str:
    value = (text or "").strip()
    if not is_hex_address(value):
        raise ValidationError(
            f"'{value or '(empty)'}' is not a valid address: expected 0x followed by 40 hex characters."
        )
    return to_checksum(value)


def validate_contract_address(text: str) -> str:
    try:
        return validate_wallet_address(text)
    except ValidationError:
        value = (text or "").strip() or "(empty)"
        raise ValidationError(
            f"'{value}' is not a valid contract address: expected 0x followed by 40 hex characters."
        ) from None


def _parse_number(text: str, what: str) -> float:
    raw = (text or "").strip()
    try:
        value = float(raw)
    except ValueError:
        raise ValidationError(f"'{raw or '(empty)'}' is not a valid {what}.") from None
    if not math.isfinite(value):
        raise ValidationError(f"The {what} must be a finite number.")
    return value


def validate_usd_amount(text: str) -> float:
    raw = (text or "").strip().lstrip("$").replace(",", "")
    value = _parse_number(raw, "USD amount")
    if value <= 0:
        raise ValidationError("The USD amount must be greater than 0.")
    return value


def validate_slippage_percent(text: str) -> float:
    raw = (text or "").strip().rstrip("%")
    value = _parse_number(raw, "slippage percentage")
    if value <= 0 or value > 100:
        raise ValidationError("Slippage must be greater than 0 and at most 100 (%).")
    return value


def slippage_warning(value: float) -> str | None:
    if value > SLIPPAGE_WARNING_PCT:
        return f"⚠️ Slippage of {value:g}% is unusually high; you may receive far fewer tokens than quoted."
    return None


def validate_address_list(text: str, max_items: int = DEFAULT_MAX_ADDRESSES) -> List[str]:
    parts = [p for p in _LIST_SPLIT_RE.split((text or "").strip()) if p]
    if not parts:
        raise ValidationError("Please send at least one wallet address.")
    addresses: List[str] = []
    invalid: List[str] = []
    for part in parts:
        try:
            address = validate_wallet_address(part)
        except ValidationError:
            invalid.append(part)
            continue
        if address not in addresses:
            addresses.append(address)
    if invalid:
        raise ValidationError(f"Invalid address(es): {', '.join(invalid)}")
    if len(addresses) > max_items:
        raise ValidationError(f"At most {max_items} addresses can be watched at once.")
    return addresses
