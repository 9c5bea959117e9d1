from __future__ import annotations

import json

import httpx
import pytest

from treasury_intel.config import ProviderConfig
from treasury_intel.core.types import (
    ConversationTurn,
    StopReason,
    TextBlock,
    ToolInvocation,
    ToolResult,
    ToolSpec,
)
from treasury_intel.errors import MissingApiKeyError, ProviderError
from treasury_intel.llm.providers import AnthropicProvider, GeminiProvider, available_providers, create_provider


SEARCH_SPEC = ToolSpec(
    name="search_financial_news",
    description="Search news",
    input_schema={"type": "object", "properties": {"query": {"type": "string"}}, "required": ["query"]},
)


def _recording_transport(payload: dict, status: int = 200):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status, json=payload)

    return httpx.MockTransport(handler), seen


def test_available_providers():
    assert available_providers() == ["anthropic", "claude", "gemini"]


def test_create_provider_uses_registry(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
    monkeypatch.setenv("GOOGLE_API_KEY", "g-test")

    assert isinstance(create_provider(ProviderConfig(name="claude")), AnthropicProvider)
    gemini = create_provider(ProviderConfig(name="Gemini", model="gemini-2.0-flash"))
    assert isinstance(gemini, GeminiProvider)
    assert gemini.api_key == "g-test"


def test_create_provider_rejects_unknown_name():
    with pytest.raises(ValueError, match="Unsupported provider"):
        create_provider(ProviderConfig(name="openai", api_key="x"))


def test_missing_api_key_is_reported(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    with pytest.raises(MissingApiKeyError, match="Missing API key for provider anthropic"):
        create_provider(ProviderConfig(name="anthropic"))


def test_anthropic_request_shape_and_tool_use_decode():
    transport, seen = _recording_transport(
        {
            "id": "msg_1",
            "stop_reason": "tool_use",
            "content": [
                {"type": "text", "text": "Let me search."},
                {"type": "tool_use", "id": "toolu_1", "name": "search_financial_news", "input": {"query": "ECB"}},
            ],
            "usage": {"input_tokens": 10, "output_tokens": 5},
        }
    )
    provider = AnthropicProvider(ProviderConfig(model="claude-test"), "sk-test", transport=transport)
    history = [
        ConversationTurn("user", "What did the ECB do?"),
        ConversationTurn("assistant", [ToolInvocation("toolu_0", "search_financial_news", {"query": "x"})]),
        ConversationTurn("user", [ToolResult("toolu_0", "Search failed: boom", status="error")]),
    ]

    response = provider.converse(history, system="ctx", tools=[SEARCH_SPEC], max_tokens=300, temperature=0.2)

    request = seen[0]
    assert str(request.url) == "https://api.anthropic.com/v1/messages"
    assert request.headers["x-api-key"] == "sk-test"
    assert request.headers["anthropic-version"] == "2023-06-01"
    body = json.loads(request.content)
    assert body["model"] == "claude-test"
    assert body["system"] == "ctx"
    assert body["max_tokens"] == 300
    assert body["tools"][0]["input_schema"]["required"] == ["query"]
    assert body["messages"][0] == {"role": "user", "content": "What did the ECB do?"}
    assert body["messages"][1]["content"][0]["type"] == "tool_use"
    assert body["messages"][2]["content"][0] == {
        "type": "tool_result",
        "tool_use_id": "toolu_0",
        "content": "Search failed: boom",
        "is_error": True,
    }

    assert response.stop_reason == StopReason.TOOL_USE
    assert response.first_text() == "Let me search."
    assert response.tool_invocations() == [ToolInvocation("toolu_1", "search_financial_news", {"query": "ECB"})]


def test_anthropic_drops_empty_text_blocks_both_ways():
    transport, seen = _recording_transport(
        {
            "stop_reason": "tool_use",
            "content": [
                {"type": "text", "text": ""},
                {"type": "tool_use", "id": "toolu_2", "name": "search_financial_news", "input": {"query": "BoE"}},
            ],
        }
    )
    provider = AnthropicProvider(ProviderConfig(), "sk-test", transport=transport)
    history = [
        ConversationTurn("user", "Rates?"),
        ConversationTurn(
            "assistant",
            [TextBlock(""), ToolInvocation("toolu_1", "search_financial_news", {"query": "rates"})],
        ),
        ConversationTurn("user", [ToolResult("toolu_1", "No matches")]),
    ]

    response = provider.converse(history)

    assert response.content == [ToolInvocation("toolu_2", "search_financial_news", {"query": "BoE"})]
    sent = json.loads(seen[0].content)["messages"][1]["content"]
    assert [block["type"] for block in sent] == ["tool_use"]


def test_anthropic_http_error_becomes_provider_error():
    transport, _ = _recording_transport({"error": {"message": "overloaded"}}, status=529)
    provider = AnthropicProvider(ProviderConfig(), "sk-test", transport=transport)

    with pytest.raises(ProviderError):
        provider.converse([ConversationTurn("user", "hi")])


def test_complete_without_text_raises():
    transport, _ = _recording_transport({"stop_reason": "end_turn", "content": []})
    provider = AnthropicProvider(ProviderConfig(), "sk-test", transport=transport)

    with pytest.raises(ProviderError, match="no text"):
        provider.complete("classify these")


def test_complete_returns_text_and_honours_base_url():
    transport, seen = _recording_transport(
        {"stop_reason": "end_turn", "content": [{"type": "text", "text": "[]"}]}
    )
    cfg = ProviderConfig(base_url="https://proxy.internal/anthropic/")
    provider = AnthropicProvider(cfg, "sk-test", transport=transport)

    assert provider.complete("prompt", system="sys") == "[]"
    assert str(seen[0].url) == "https://proxy.internal/anthropic/v1/messages"


def test_gemini_function_calls_get_synthesized_ids():
    transport, seen = _recording_transport(
        {
            "candidates": [
                {
                    "content": {
                        "parts": [
                            {"text": "Looking that up."},
                            {"functionCall": {"name": "search_financial_news", "args": {"query": "yen"}}},
                        ]
                    },
                    "finishReason": "STOP",
                }
            ]
        }
    )
    provider = GeminiProvider(ProviderConfig(name="gemini", model="gemini-test"), "g-key", transport=transport)

    response = provider.converse([ConversationTurn("user", "yen?")], system="ctx", tools=[SEARCH_SPEC])

    request = seen[0]
    assert request.url.path == "/v1beta/models/gemini-test:generateContent"
    assert request.url.params["key"] == "g-key"
    body = json.loads(request.content)
    assert body["systemInstruction"] == {"parts": [{"text": "ctx"}]}
    assert body["tools"][0]["functionDeclarations"][0]["name"] == "search_financial_news"
    assert response.stop_reason == StopReason.TOOL_USE
    (invocation,) = response.tool_invocations()
    assert invocation.id == "search_financial_news-1"
    assert invocation.input == {"query": "yen"}


def test_gemini_maps_tool_results_back_to_function_names():
    transport, seen = _recording_transport(
        {"candidates": [{"content": {"parts": [{"text": "Done."}]}, "finishReason": "STOP"}]}
    )
    provider = GeminiProvider(ProviderConfig(name="gemini"), "g-key", transport=transport)
    history = [
        ConversationTurn("user", "yen?"),
        ConversationTurn(
            "assistant",
            [TextBlock("Checking"), ToolInvocation("search_financial_news-1", "search_financial_news", {"query": "yen"})],
        ),
        ConversationTurn("user", [ToolResult("search_financial_news-1", "Yen weakens")]),
    ]

    response = provider.converse(history)

    contents = json.loads(seen[0].content)["contents"]
    assert [c["role"] for c in contents] == ["user", "model", "user"]
    assert contents[2]["parts"][0]["functionResponse"] == {
        "name": "search_financial_news",
        "response": {"content": "Yen weakens", "status": "success"},
    }
    assert response.stop_reason == StopReason.END_TURN
    assert response.first_text() == "Done."


def test_gemini_without_candidates_is_provider_error():
    transport, _ = _recording_transport({"promptFeedback": {"blockReason": "SAFETY"}})
    provider = GeminiProvider(ProviderConfig(name="gemini"), "g-key", transport=transport)

    with pytest.raises(ProviderError, match="no candidates"):
        provider.converse([ConversationTurn("user", "hi")])
