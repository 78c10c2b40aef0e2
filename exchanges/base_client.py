"""
Abstract client definitions for centralized exchange integrations.

Concrete adapters (e.g. WEEX) should subclass `ExchangeClient` and implement
the required methods. Pacing and retries are the caller's responsibility.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(slots=True, frozen=True)
class ExchangeCredentials:
    """Typed container for exchange authentication data."""

    api_key: str = ""
    api_secret: str = ""
    passphrase: str = ""

    @property
    def complete(self) -> bool:
        """True when every field needed to sign a private request is present."""
        return bool(self.api_key and self.api_secret and self.passphrase)


@runtime_checkable
class ExchangeClient(Protocol):
    """Protocol describing the surface area the trading loop relies on."""

    name: str

    @property
    def has_credentials(self) -> bool:
        """Whether private endpoints can be called."""

    def get_ticker(self, symbol: str) -> dict:
        """Return the latest ticker snapshot for `symbol`."""

    def get_all_positions(self) -> list[dict]:
        """Return every open position of the account."""

    def place_order(self, payload: dict) -> dict:
        """Submit an order to the exchange and return the raw response."""

    def cancel_order(self, order_id: str) -> dict:
        """Cancel an existing order by identifier."""

    def close(self) -> None:
        """Release network resources."""
