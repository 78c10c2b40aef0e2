import json

import httpx
import pytest

from exchanges.base_client import ExchangeCredentials
from exchanges.weex.client import (
    MissingCredentialsError,
    WeexApiError,
    WeexClient,
    WeexClientError,
    WeexTransportError,
    is_acknowledged,
)
from exchanges.weex.signing import sign_request

BASE_URL = "https://api-contract.weex.com"
CREDENTIALS = ExchangeCredentials(api_key="key", api_secret="secret", passphrase="pass")


@pytest.fixture
def mock_httpx_client(mocker):
    return mocker.patch("httpx.Client")


def _response(status=200, payload=None, text=None):
    request = httpx.Request("GET", BASE_URL)
    if text is not None:
        return httpx.Response(status, text=text, request=request)
    return httpx.Response(status, json=payload if payload is not None else {}, request=request)


def _last_call(mock_httpx_client):
    args, kwargs = mock_httpx_client.return_value.request.call_args
    return args, kwargs


def test_public_call_sends_no_signing_headers(mock_httpx_client):
    mock_httpx_client.return_value.request.return_value = _response(payload={"last": "65000"})

    client = WeexClient()
    ticker = client.get_ticker("cmt_btcusdt")

    assert ticker == {"last": "65000"}
    args, kwargs = _last_call(mock_httpx_client)
    assert args == ("GET", "/capi/v2/market/ticker?symbol=cmt_btcusdt")
    assert kwargs["content"] is None
    assert "ACCESS-SIGN" not in kwargs["headers"]
    assert kwargs["headers"]["Content-Type"] == "application/json"
    assert kwargs["headers"]["locale"] == "en-US"


def test_signed_post_transmits_exactly_the_signed_body(mock_httpx_client, mocker):
    mocker.patch("exchanges.weex.client.current_timestamp_ms", return_value="1700000000000")
    mock_httpx_client.return_value.request.return_value = _response(payload={"order_id": "42"})

    client = WeexClient(CREDENTIALS)
    client.place_order(
        {
            "symbol": "cmt_btcusdt",
            "client_oid": "ai_1_1_1",
            "size": "0.001",
            "type": "1",
            "order_type": "0",
            "match_price": "1",
            "price": "",
        }
    )

    args, kwargs = _last_call(mock_httpx_client)
    assert args == ("POST", "/capi/v2/order/placeOrder")
    body = kwargs["content"]
    assert json.loads(body)["client_oid"] == "ai_1_1_1"
    assert " " not in body
    headers = kwargs["headers"]
    assert headers["ACCESS-KEY"] == "key"
    assert headers["ACCESS-PASSPHRASE"] == "pass"
    assert headers["ACCESS-TIMESTAMP"] == "1700000000000"
    assert headers["ACCESS-SIGN"] == sign_request(
        "secret", "1700000000000", "POST", "/capi/v2/order/placeOrder", "", body
    )


def test_signed_get_signs_query_without_body(mock_httpx_client, mocker):
    mocker.patch("exchanges.weex.client.current_timestamp_ms", return_value="1700000000000")
    mock_httpx_client.return_value.request.return_value = _response(payload=[])

    WeexClient(CREDENTIALS).get_single_position("cmt_btcusdt")

    args, kwargs = _last_call(mock_httpx_client)
    assert args[1] == "/capi/v2/account/position/singlePosition?symbol=cmt_btcusdt"
    assert kwargs["headers"]["ACCESS-SIGN"] == sign_request(
        "secret",
        "1700000000000",
        "GET",
        "/capi/v2/account/position/singlePosition",
        "?symbol=cmt_btcusdt",
    )


def test_private_call_without_credentials_fails_before_io(mock_httpx_client):
    client = WeexClient(ExchangeCredentials(api_key="key"))

    assert not client.has_credentials
    with pytest.raises(MissingCredentialsError):
        client.get_assets()
    mock_httpx_client.return_value.request.assert_not_called()


def test_non_2xx_raises_api_error_with_status_and_body(mock_httpx_client):
    mock_httpx_client.return_value.request.return_value = _response(
        400, text='{"code":"40017","msg":"Parameter verification failed"}'
    )

    with pytest.raises(WeexApiError) as excinfo:
        WeexClient(CREDENTIALS).cancel_order("123")

    assert excinfo.value.status_code == 400
    assert "40017" in excinfo.value.body
    assert excinfo.value.payload["code"] == "40017"
    assert mock_httpx_client.return_value.request.call_count == 1


def test_transport_failure_is_distinct_and_not_retried(mock_httpx_client):
    mock_httpx_client.return_value.request.side_effect = httpx.ConnectError("connection reset")

    with pytest.raises(WeexTransportError) as excinfo:
        WeexClient().get_server_time()

    assert excinfo.value.status_code is None
    assert not isinstance(excinfo.value, WeexApiError)
    assert mock_httpx_client.return_value.request.call_count == 1


def test_non_json_body_raises_client_error(mock_httpx_client):
    mock_httpx_client.return_value.request.return_value = _response(text="<html>gateway</html>")

    with pytest.raises(WeexClientError):
        WeexClient().get_server_time()


def test_empty_body_returns_empty_dict(mock_httpx_client):
    mock_httpx_client.return_value.request.return_value = _response(text="")

    assert WeexClient().get_server_time() == {}


def test_place_order_validates_required_fields(mock_httpx_client):
    with pytest.raises(ValueError, match="client_oid"):
        WeexClient(CREDENTIALS).place_order({"symbol": "cmt_btcusdt", "size": "1", "type": "1"})
    mock_httpx_client.return_value.request.assert_not_called()


def test_candles_query_skips_unset_window(mock_httpx_client):
    mock_httpx_client.return_value.request.return_value = _response(payload=[])

    WeexClient().get_candles("cmt_btcusdt", "5m", limit=48)

    args, _ = _last_call(mock_httpx_client)
    assert args[1] == "/capi/v2/market/candles?symbol=cmt_btcusdt&granularity=5m&limit=48"


def test_is_acknowledged():
    assert is_acknowledged({"code": "00000", "data": "upload success"})
    assert not is_acknowledged({"code": "40001"})
    assert not is_acknowledged([])
