import asyncio
from datetime import datetime, timezone

import pytest

from data_pipeline.collector import MarketSnapshot
from execution.audit import AuditReporter
from execution.order_executor import OrderOutcome
from execution.reporting import action_label, render_decision, render_execution_report
from models.validation import parse_decision

DECISION = {
    "analysis": {"marketTrend": "Up", "positionStatus": "Flat", "riskAssessment": "Low"},
    "signal": {"action": "OPEN_SHORT", "confidence": "HIGH", "reasoning": "Breakdown below support."},
    "execution": {
        "hasOrder": True,
        "orders": [{"type": "2", "size": "0.01", "priceType": "LIMIT", "price": "64000", "reasoning": "Retest."}],
    },
    "riskWarning": "Funding is negative.",
}


@pytest.fixture
def decision():
    return parse_decision(DECISION)


@pytest.fixture
def snapshot():
    return MarketSnapshot(
        symbol="cmt_btcusdt",
        fetched_at=datetime(2024, 5, 1, 12, 5, tzinfo=timezone.utc),
        ticker={"last": "64100"},
        candles={},
        depth={},
        positions=[{"symbol": "cmt_btcusdt", "side": "long"}],
        report="# Market report",
    )


def _outcomes(decision, success=True):
    order = decision.orders[0]
    if success:
        return [OrderOutcome(1, order, True, "ai_2_1_1", order_id="555")]
    return [OrderOutcome(1, order, False, "ai_2_1_1", error="insufficient balance")]


def test_action_label_is_bilingual():
    assert action_label("OPEN_SHORT") == "OPEN_SHORT (open short / 开空)"
    assert action_label("SOMETHING") == "SOMETHING (something / SOMETHING)"


def test_render_decision_lists_orders(decision):
    text = render_decision(decision)

    assert "Action: OPEN_SHORT (open short / 开空)" in text
    assert "1. open short 0.01 @ 64000 (LIMIT) / 开空 0.01" in text
    assert "Risk warning: Funding is negative." in text


def test_execution_report_headings(decision):
    dry = render_execution_report(decision, [], dry_run=True)
    executed = render_execution_report(decision, _outcomes(decision))
    failed = render_execution_report(decision, _outcomes(decision, success=False))

    assert dry.startswith("# Dry run")
    assert "Execution results" not in dry
    assert executed.startswith("# Executed 1/1 orders")
    assert "OK order_id=555" in executed
    assert failed.startswith("# Executed 0/1 orders")
    assert "FAILED client_oid=ai_2_1_1: insufficient balance" in failed


def test_no_action_report():
    hold = parse_decision(
        {**DECISION, "signal": {**DECISION["signal"], "action": "HOLD"}, "execution": {"hasOrder": False, "orders": []}}
    )
    assert render_execution_report(hold, []).startswith("# No action taken")


def test_audit_payload_shape(mocker, decision, snapshot):
    reporter = AuditReporter(mocker.MagicMock(), model_id="deepseek/deepseek-r1", stage="live")

    payload = reporter.build_payload(snapshot, decision, _outcomes(decision), "Breakdown below support.")

    assert payload["orderId"] == "555"
    assert payload["stage"] == "live"
    assert payload["model"] == "deepseek/deepseek-r1"
    assert payload["input"]["symbol"] == "cmt_btcusdt"
    assert payload["input"]["currentPrice"] == 64100.0
    assert payload["input"]["timestamp"] == "2024-05-01T12:05:00+00:00"
    assert payload["output"]["signal"]["action"] == "OPEN_SHORT"
    assert payload["output"]["executionResults"][0]["order_id"] == "555"
    assert payload["explanation"] == "Breakdown below support."


def test_audit_payload_without_successful_order(mocker, decision, snapshot):
    reporter = AuditReporter(mocker.MagicMock(), model_id="m")

    payload = reporter.build_payload(snapshot, decision, _outcomes(decision, success=False), "x", stage="test")

    assert payload["orderId"] is None
    assert payload["stage"] == "test"


def test_audit_submit_uploads_in_background(mocker):
    client = mocker.MagicMock()
    client.has_credentials = True
    client.upload_ai_log.return_value = {"code": "00000", "data": "upload success"}
    reporter = AuditReporter(client, model_id="m")

    async def scenario():
        task = reporter.submit({"orderId": None})
        await reporter.drain()
        return task

    task = asyncio.run(scenario())

    assert task is not None
    client.upload_ai_log.assert_called_once_with({"orderId": None})


@pytest.mark.parametrize(
    "side_effect, expected_log",
    [
        (RuntimeError("network down"), "AI log upload failed"),
        ({"code": "40001", "msg": "bad sign"}, "not acknowledged"),
    ],
)
def test_audit_failures_are_logged_not_raised(mocker, caplog, side_effect, expected_log):
    client = mocker.MagicMock()
    client.has_credentials = True
    if isinstance(side_effect, Exception):
        client.upload_ai_log.side_effect = side_effect
    else:
        client.upload_ai_log.return_value = side_effect
    reporter = AuditReporter(client, model_id="m")

    async def scenario():
        reporter.submit({"orderId": None})
        await reporter.drain()

    asyncio.run(scenario())

    assert expected_log in caplog.text


def test_audit_skipped_without_credentials_or_when_disabled(mocker):
    client = mocker.MagicMock()
    client.has_credentials = False

    async def scenario():
        first = AuditReporter(client, model_id="m").submit({})
        client.has_credentials = True
        second = AuditReporter(client, model_id="m", enabled=False).submit({})
        return first, second

    assert asyncio.run(scenario()) == (None, None)
    client.upload_ai_log.assert_not_called()
