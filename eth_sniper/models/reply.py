from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Reply:
    """Outbound chat text; ``ask_confirmation`` asks the transport for yes/no buttons."""

    text: str
    ask_confirmation: bool = False
