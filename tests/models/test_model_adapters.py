import asyncio
import json
from types import SimpleNamespace

import httpx
import pytest

from models.adapters.base import ModelInvocationError
from models.adapters.deepseek import DeepSeekAdapter
from models.adapters.openrouter import OPENROUTER_ENDPOINT, OpenRouterAdapter
from models.bootstrap import build_default_registry
from models.prompts import FORMAT_INSTRUCTIONS, build_prompt, get_strategy_prompt, save_strategy_prompt
from models.registry import AdapterRegistry
from models.validation import parse_decision

REPORT = "# Market report for cmt_btcusdt\nLast price: 65000"


def _completion(content):
    return {
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": 10, "completion_tokens": 5},
    }


def _attach_transport(adapter, handler):
    adapter._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_offline_adapter_returns_valid_hold_decision():
    adapter = OpenRouterAdapter(api_key="")

    reply = asyncio.run(adapter.generate_decision(REPORT))

    assert adapter.offline
    assert reply.model_id == "openrouter-offline"
    decision = parse_decision(reply.content)
    assert decision.signal.action == "HOLD"
    assert decision.execution.has_order is False


def test_offline_adapter_ignores_environment_key(monkeypatch):
    monkeypatch.setenv("DEEPSEEK_API_KEY", "env-key")

    assert DeepSeekAdapter(api_key="").offline
    assert not DeepSeekAdapter().offline


def test_openrouter_posts_chat_completion_request():
    captured = {}

    def handler(request):
        captured["url"] = str(request.url)
        captured["headers"] = request.headers
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion('{"signal": {}}'))

    adapter = OpenRouterAdapter(api_key="or-key", strategy_prompt="Be careful.")
    _attach_transport(adapter, handler)

    async def scenario():
        try:
            return await adapter.generate_decision(REPORT)
        finally:
            await adapter.aclose()

    reply = asyncio.run(scenario())

    assert captured["url"] == OPENROUTER_ENDPOINT
    assert captured["headers"]["Authorization"] == "Bearer or-key"
    assert captured["headers"]["X-Title"] == "weex-ai-trader"
    body = captured["body"]
    assert body["model"] == "deepseek/deepseek-r1"
    assert body["response_format"] == {"type": "json_object"}
    assert body["messages"][0]["role"] == "system"
    assert body["messages"][1]["content"].startswith("Be careful.")
    assert REPORT in body["messages"][1]["content"]
    assert reply.content == '{"signal": {}}'
    assert reply.model_id == "deepseek/deepseek-r1"
    assert reply.usage["completion_tokens"] == 5


def test_provider_http_error_propagates():
    adapter = DeepSeekAdapter(api_key="ds-key")
    _attach_transport(adapter, lambda request: httpx.Response(500, json={"error": "boom"}))

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(adapter.generate_decision(REPORT))


@pytest.mark.parametrize("payload", [{"choices": []}, _completion("")])
def test_unusable_completion_raises_invocation_error(payload):
    adapter = DeepSeekAdapter(api_key="ds-key")
    _attach_transport(adapter, lambda request: httpx.Response(200, json=payload))

    with pytest.raises(ModelInvocationError):
        asyncio.run(adapter.generate_decision(REPORT))


def test_build_prompt_orders_strategy_report_and_format():
    prompt = build_prompt(REPORT, strategy="STRATEGY")

    assert prompt.index("STRATEGY") < prompt.index(REPORT) < prompt.index(FORMAT_INSTRUCTIONS)


def test_strategy_prompt_persistence(tmp_path):
    path = tmp_path / "prompt.md"

    default = get_strategy_prompt(path)
    saved = save_strategy_prompt("  Only trade breakouts.  ", path)

    assert "WEEX" in default
    assert saved == "Only trade breakouts."
    assert get_strategy_prompt(path) == "Only trade breakouts."


def test_registry_rejects_duplicates_and_unknown_ids():
    registry = AdapterRegistry()
    registry.register(DeepSeekAdapter(api_key=""))

    with pytest.raises(KeyError):
        registry.register(DeepSeekAdapter(api_key=""))
    with pytest.raises(KeyError):
        registry.get("missing")
    assert registry.get(" DeepSeek ").model_id == "deepseek"
    assert registry.select("DeepSeek").offline


def test_default_registry_honours_offline_and_selected_model(tmp_path):
    settings = SimpleNamespace(
        provider="deepseek",
        model="deepseek-reasoner",
        offline=True,
        openrouter_api_key="or-key",
        deepseek_api_key="ds-key",
        prompt_path=tmp_path / "missing.md",
    )

    registry = build_default_registry(settings)

    deepseek = registry.get("deepseek")
    openrouter = registry.get("openrouter")
    assert deepseek.offline and openrouter.offline
    assert deepseek.remote_model == "deepseek-reasoner"
    assert openrouter.remote_model == "deepseek/deepseek-r1"
