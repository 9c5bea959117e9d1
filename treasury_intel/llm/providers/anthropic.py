"""Anthropic Messages API provider."""

from __future__ import annotations

from typing import Any

import httpx

from ...core.types import (
    ConversationTurn,
    ModelResponse,
    StopReason,
    TextBlock,
    ToolInvocation,
    ToolResult,
    ToolSpec,
)
from ...errors import ProviderError
from ..tracing import llm_span, record_span_error, set_span_output
from .base import ChatProvider


ANTHROPIC_VERSION = "2023-06-01"


class AnthropicProvider(ChatProvider):
    """Claude over the Messages API, with native tool use."""

    name = "anthropic"
    default_base_url = "https://api.anthropic.com"

    def converse(
        self,
        messages: list[ConversationTurn],
        system: str | None = None,
        tools: list[ToolSpec] | None = None,
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> ModelResponse:
        payload: dict[str, Any] = {
            "model": self.cfg.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [_encode_turn(turn) for turn in messages],
        }
        if system:
            payload["system"] = system
        if tools:
            payload["tools"] = [
                {"name": t.name, "description": t.description, "input_schema": t.input_schema}
                for t in tools
            ]

        with llm_span(
            self.name, "messages", self.cfg.model, payload["messages"], len(tools or [])
        ) as span:
            try:
                data = self._post(payload)
            except (httpx.HTTPError, ValueError) as exc:
                record_span_error(span, exc)
                self._log_call("provider_error", error=str(exc))
                raise ProviderError(f"Anthropic request failed: {exc}") from exc

            response = _decode_response(data)
            set_span_output(span, response.first_text() or data.get("content"))

        self._log_call(
            "ok",
            stop_reason=response.stop_reason.value,
            tool_calls=len(response.tool_invocations()),
            usage=data.get("usage"),
        )
        return response

    def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }
        with self._client() as client:
            resp = client.post(f"{self.base_url}/v1/messages", headers=headers, json=payload)
            resp.raise_for_status()
            return resp.json()


def _encode_turn(turn: ConversationTurn) -> dict[str, Any]:
    if isinstance(turn.content, str):
        return {"role": turn.role, "content": turn.content}
    # the Messages API rejects empty text blocks
    blocks = [b for b in turn.content if not (isinstance(b, TextBlock) and not b.text)]
    return {"role": turn.role, "content": [_encode_block(b) for b in blocks]}


def _encode_block(block: Any) -> dict[str, Any]:
    if isinstance(block, TextBlock):
        return {"type": "text", "text": block.text}
    if isinstance(block, ToolInvocation):
        return {"type": "tool_use", "id": block.id, "name": block.name, "input": block.input}
    if isinstance(block, ToolResult):
        return {
            "type": "tool_result",
            "tool_use_id": block.tool_use_id,
            "content": block.text,
            "is_error": block.is_error,
        }
    raise TypeError(f"Unsupported content block: {type(block).__name__}")


def _decode_response(data: dict[str, Any]) -> ModelResponse:
    blocks: list[Any] = []
    for item in data.get("content") or []:
        kind = item.get("type")
        if kind == "text":
            if item.get("text"):
                blocks.append(TextBlock(item["text"]))
        elif kind == "tool_use":
            blocks.append(
                ToolInvocation(
                    id=str(item.get("id") or ""),
                    name=str(item.get("name") or ""),
                    input=item.get("input") or {},
                )
            )
    return ModelResponse(
        stop_reason=_stop_reason(data.get("stop_reason")),
        content=blocks,
        meta={"id": data.get("id"), "usage": data.get("usage")},
    )


def _stop_reason(value: Any) -> StopReason:
    try:
        return StopReason(value)
    except ValueError:
        return StopReason.END_TURN
