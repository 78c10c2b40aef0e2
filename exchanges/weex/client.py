"""
WEEX contract REST client with HMAC request signing.

Every call is independent and synchronous. Failures surface immediately as
``WeexClientError`` subclasses; retrying is left to the caller.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Literal, Mapping, Optional

import httpx

from exchanges.base_client import ExchangeClient, ExchangeCredentials
from exchanges.weex.signing import canonical_query, current_timestamp_ms, sign_request

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api-contract.weex.com"
SUCCESS_CODE = "00000"

_ORDER_FIELDS = ("symbol", "client_oid", "size", "type", "order_type", "match_price")


class WeexClientError(RuntimeError):
    """Base class for every failure raised by the WEEX client."""


class WeexApiError(WeexClientError):
    """Raised when WEEX answers with a non-2xx status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"API request failed: {status_code} - {body}")
        self.status_code = status_code
        self.body = body

    @property
    def payload(self) -> dict:
        try:
            parsed = json.loads(self.body)
        except (TypeError, ValueError):
            return {}
        return parsed if isinstance(parsed, dict) else {}


class WeexTransportError(WeexClientError):
    """Raised when WEEX could not be reached (DNS, connect, timeout, reset)."""

    status_code = None


class MissingCredentialsError(WeexClientError):
    """Raised when a private endpoint is called without complete credentials."""


class WeexClient(ExchangeClient):
    """Client for the WEEX USDT-margined contract REST API."""

    name = "weex"

    def __init__(
        self,
        credentials: ExchangeCredentials | None = None,
        *,
        base_url: str | None = None,
        timeout: float = 10.0,
        locale: str = "en-US",
    ) -> None:
        self._credentials = credentials or ExchangeCredentials()
        self._base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self._locale = locale
        self._client = httpx.Client(base_url=self._base_url, timeout=timeout)

    def __enter__(self) -> "WeexClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def has_credentials(self) -> bool:
        return self._credentials.complete

    @property
    def base_url(self) -> str:
        return self._base_url

    # ------------------------------------------------------------------
    # Market data (public)
    # ------------------------------------------------------------------
    def get_server_time(self) -> dict:
        return self._request("GET", "/capi/v2/market/time", signed=False)

    def get_contracts(self, symbol: str | None = None) -> list[dict]:
        params = {"symbol": symbol} if symbol else None
        return self._request("GET", "/capi/v2/market/contracts", params=params, signed=False)

    def get_candles(
        self,
        symbol: str,
        granularity: str,
        *,
        limit: int | None = None,
        start_time: int | None = None,
        end_time: int | None = None,
    ) -> list[list[str]]:
        """
        Fetch candlesticks as WEEX rows:
        ``[timestamp_ms, open, high, low, close, base_volume, quote_volume]``.
        """
        params = {
            "symbol": symbol,
            "granularity": granularity,
            "startTime": start_time,
            "endTime": end_time,
            "limit": limit,
        }
        return self._request("GET", "/capi/v2/market/candles", params=params, signed=False)

    def get_depth(self, symbol: str, limit: int = 15) -> dict:
        params = {"symbol": symbol, "limit": limit}
        return self._request("GET", "/capi/v2/market/depth", params=params, signed=False)

    def get_ticker(self, symbol: str) -> dict:
        return self._request("GET", "/capi/v2/market/ticker", params={"symbol": symbol}, signed=False)

    # ------------------------------------------------------------------
    # Account (private)
    # ------------------------------------------------------------------
    def get_assets(self) -> list[dict]:
        return self._request("GET", "/capi/v2/account/assets")

    def get_all_positions(self) -> list[dict]:
        return self._request("GET", "/capi/v2/account/position/allPosition")

    def get_single_position(self, symbol: str) -> list[dict]:
        return self._request(
            "GET",
            "/capi/v2/account/position/singlePosition",
            params={"symbol": symbol},
        )

    def set_leverage(
        self,
        symbol: str,
        *,
        long_leverage: int | str,
        short_leverage: int | str | None = None,
        margin_mode: int = 1,
    ) -> dict:
        body = {
            "symbol": symbol,
            "marginMode": margin_mode,
            "longLeverage": str(long_leverage),
            "shortLeverage": str(short_leverage if short_leverage is not None else long_leverage),
        }
        return self._request("POST", "/capi/v2/account/leverage", json_body=body)

    def change_hold_mode(self, symbol: str, *, margin_mode: int = 1, separated_mode: int = 1) -> dict:
        """Switch between isolated/cross margin and combined/separated positions."""
        body = {
            "symbol": symbol,
            "marginMode": margin_mode,
            "separatedMode": separated_mode,
        }
        return self._request("POST", "/capi/v2/account/position/changeHoldModel", json_body=body)

    # ------------------------------------------------------------------
    # Trading (private)
    # ------------------------------------------------------------------
    def place_order(self, payload: dict) -> dict:
        missing = [field for field in _ORDER_FIELDS if field not in payload]
        if missing:
            raise ValueError(f"Missing required order field(s): {', '.join(missing)}")
        return self._request("POST", "/capi/v2/order/placeOrder", json_body=payload)

    def cancel_order(self, order_id: str) -> dict:
        if not order_id:
            raise ValueError("order_id is required to cancel a WEEX order")
        return self._request("POST", "/capi/v2/order/cancel_order", json_body={"orderId": order_id})

    def upload_ai_log(self, payload: dict) -> dict:
        """Upload one AI decision record; WEEX acknowledges with ``code == "00000"``."""
        return self._request("POST", "/capi/v2/order/uploadAiLog", json_body=payload)

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _request(
        self,
        method: Literal["GET", "POST"],
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        json_body: Optional[dict] = None,
        *,
        signed: bool = True,
    ) -> Any:
        query = canonical_query(params)
        # Serialised once: these exact bytes are both signed and transmitted.
        body_text = json.dumps(json_body, separators=(",", ":")) if json_body is not None else ""

        headers = {
            "Content-Type": "application/json",
            "locale": self._locale,
        }
        if signed:
            headers.update(self._auth_headers(method, path, query, body_text))

        logger.debug("WEEX %s %s%s", method, path, query)
        try:
            response = self._client.request(
                method,
                f"{path}{query}",
                content=body_text if body_text else None,
                headers=headers,
            )
        except httpx.TransportError as exc:
            raise WeexTransportError(f"WEEX {method} {path} failed: {exc}") from exc

        if not response.is_success:
            raise WeexApiError(response.status_code, response.text)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise WeexClientError(f"WEEX returned a non-JSON body for {path}: {response.text[:200]}") from exc

    def _auth_headers(self, method: str, path: str, query: str, body_text: str) -> dict:
        if not self._credentials.complete:
            raise MissingCredentialsError(
                f"WEEX credentials are required for private endpoint {path}"
            )
        timestamp = current_timestamp_ms()
        signature = sign_request(
            self._credentials.api_secret,
            timestamp,
            method,
            path,
            query,
            body_text if method.upper() != "GET" else "",
        )
        return {
            "ACCESS-KEY": self._credentials.api_key,
            "ACCESS-SIGN": signature,
            "ACCESS-TIMESTAMP": timestamp,
            "ACCESS-PASSPHRASE": self._credentials.passphrase,
        }


def is_acknowledged(response: Any) -> bool:
    """True when a WEEX envelope response carries the success code."""
    return isinstance(response, dict) and str(response.get("code")) == SUCCESS_CODE
