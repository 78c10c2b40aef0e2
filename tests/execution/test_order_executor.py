import pytest

from exchanges.weex.client import WeexApiError, WeexTransportError
from execution.order_executor import OrderExecutor
from models.schemas import OrderInstruction


def _market(order_type="1", size="0.001"):
    return OrderInstruction(type=order_type, size=size, price_type="MARKET", price="65000")


def _limit(order_type="2", size="0.002", price="66000"):
    return OrderInstruction(type=order_type, size=size, price_type="LIMIT", price=price)


@pytest.fixture
def client(mocker):
    return mocker.MagicMock()


def test_market_payload_uses_match_price_and_empty_price(client):
    executor = OrderExecutor(client, "cmt_btcusdt", clock=lambda: 1700000000.5)

    payload = executor.build_payload(_market(), 1)

    assert payload == {
        "symbol": "cmt_btcusdt",
        "client_oid": "ai_1_1700000000500_1",
        "size": "0.001",
        "type": "1",
        "order_type": "0",
        "match_price": "1",
        "price": "",
        "marginMode": 1,
        "separatedMode": 1,
    }


def test_limit_payload_carries_price(client):
    executor = OrderExecutor(client, "cmt_btcusdt", margin_mode=3, separated_mode=2)

    payload = executor.build_payload(_limit(), 2)

    assert payload["match_price"] == "0"
    assert payload["price"] == "66000"
    assert payload["marginMode"] == 3
    assert payload["separatedMode"] == 2
    assert payload["client_oid"].startswith("ai_2_")
    assert payload["client_oid"].endswith("_2")


def test_one_failed_order_does_not_stop_the_rest(client, caplog):
    client.place_order.side_effect = [
        {"order_id": "111", "client_oid": "ai_1"},
        WeexApiError(400, '{"code":"40762","msg":"insufficient balance"}'),
        {"orderId": "333"},
    ]
    executor = OrderExecutor(client, "cmt_btcusdt")

    outcomes = executor.execute([_market(), _limit(), _market("3")])

    assert client.place_order.call_count == 3
    assert [outcome.success for outcome in outcomes] == [True, False, True]
    assert outcomes[0].order_id == "111"
    assert outcomes[0].client_oid == "ai_1"
    assert "40762" in outcomes[1].error
    assert outcomes[2].order_id == "333"
    assert "Order 2" in caplog.text


def test_unexpected_errors_are_isolated_too(client):
    client.place_order.side_effect = [RuntimeError("boom"), WeexTransportError("timeout")]
    executor = OrderExecutor(client, "cmt_btcusdt")

    outcomes = executor.execute([_market(), _market("4")])

    assert [outcome.success for outcome in outcomes] == [False, False]
    assert outcomes[0].error == "RuntimeError: boom"
    assert outcomes[1].error == "timeout"


@pytest.mark.parametrize("response", [{"code": "40762", "msg": "insufficient balance"}, {}, None])
def test_reply_without_order_id_is_a_failure(client, response):
    client.place_order.return_value = response
    executor = OrderExecutor(client, "cmt_btcusdt", clock=lambda: 1700000000.5)

    outcome = executor.execute([_market()])[0]

    assert outcome.success is False
    assert outcome.order_id is None
    assert outcome.client_oid == "ai_1_1700000000500_1"
    assert outcome.error.startswith("No order id in response")
    if response:
        assert "40762" in outcome.error


def test_orders_are_submitted_in_list_order(client):
    client.place_order.return_value = {"order_id": "1"}
    executor = OrderExecutor(client, "cmt_btcusdt")

    executor.execute([_market("3"), _market("1")])

    types = [call.args[0]["type"] for call in client.place_order.call_args_list]
    assert types == ["3", "1"]


def test_outcome_to_dict(client):
    client.place_order.return_value = {"order_id": "9"}
    outcome = OrderExecutor(client, "cmt_btcusdt").execute([_limit()])[0]

    data = outcome.to_dict()

    assert data["index"] == 1
    assert data["priceType"] == "LIMIT"
    assert data["success"] is True
    assert data["order_id"] == "9"
