"""
Error taxonomy shared by the bot, the gateway and the monitor.

``ValidationError`` is recovered locally by re-prompting. Gateway errors are
split into transient ones (timeouts, rate limits, 5xx), which are retried, and
permanent ones (unknown contract, invalid input), which are not.
``ConfigError`` is fatal at startup.
"""

from __future__ import annotations


class EthSniperError(Exception):
    """Base class for all errors raised by eth_sniper."""


class ValidationError(EthSniperError):
    """A user supplied value is malformed or out of range."""


class GatewayError(EthSniperError):
    """A blockchain data provider call failed."""

    def __init__(self, message: str, provider: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider


class TransientGatewayError(GatewayError):
    """Timeout, rate limit or server error; worth retrying."""


class PermanentGatewayError(GatewayError):
    """Unknown address/contract or rejected input; retrying will not help."""


class StateError(EthSniperError):
    """A message arrived with no compatible command context."""


class ConfigError(EthSniperError):
    """Required startup configuration is missing or invalid."""
