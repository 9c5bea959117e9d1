"""Google Gemini provider using generateContent with function declarations."""

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
from ...utils.logging import redact_secrets
from ..tracing import llm_span, record_span_error, set_span_output
from .base import ChatProvider


class GeminiProvider(ChatProvider):
    """Gemini-backed chat provider.

    Gemini has no tool-call ids, so ids are synthesized from the response
    position and mapped back to function names when results are sent.
    """

    name = "gemini"
    default_base_url = "https://generativelanguage.googleapis.com"

    def converse(
        self,
        messages: list[ConversationTurn],
        system: str | None = None,
        tools: list[ToolSpec] | None = None,
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> ModelResponse:
        payload: dict[str, Any] = {
            "contents": _encode_contents(messages),
            "generationConfig": {"temperature": temperature, "maxOutputTokens": max_tokens},
        }
        if system:
            payload["systemInstruction"] = {"parts": [{"text": system}]}
        if tools:
            payload["tools"] = [
                {
                    "functionDeclarations": [
                        {"name": t.name, "description": t.description, "parameters": t.input_schema}
                        for t in tools
                    ]
                }
            ]

        with llm_span(
            self.name, "generate_content", self.cfg.model, payload["contents"], len(tools or [])
        ) as span:
            try:
                data = self._post(payload)
            except (httpx.HTTPError, ValueError) as exc:
                record_span_error(span, exc)
                detail = redact_secrets(str(exc))
                self._log_call("provider_error", error=detail)
                raise ProviderError(f"Gemini request failed: {detail}") from exc

            response = _decode_response(data)
            set_span_output(span, response.first_text())

        self._log_call(
            "ok",
            stop_reason=response.stop_reason.value,
            tool_calls=len(response.tool_invocations()),
        )
        return response

    def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}/v1beta/models/{self.cfg.model}:generateContent"
        with self._client() as client:
            resp = client.post(url, params={"key": self.api_key}, json=payload)
            resp.raise_for_status()
            return resp.json()


def _encode_contents(messages: list[ConversationTurn]) -> list[dict[str, Any]]:
    names: dict[str, str] = {}
    contents = []
    for turn in messages:
        parts = []
        for block in turn.blocks():
            if isinstance(block, TextBlock):
                parts.append({"text": block.text})
            elif isinstance(block, ToolInvocation):
                names[block.id] = block.name
                parts.append({"functionCall": {"name": block.name, "args": block.input}})
            elif isinstance(block, ToolResult):
                parts.append(
                    {
                        "functionResponse": {
                            "name": names.get(block.tool_use_id, block.tool_use_id),
                            "response": {"content": block.text, "status": block.status},
                        }
                    }
                )
        role = "model" if turn.role == "assistant" else "user"
        contents.append({"role": role, "parts": parts})
    return contents


def _decode_response(data: dict[str, Any]) -> ModelResponse:
    candidates = data.get("candidates") or []
    if not candidates:
        raise ProviderError("Gemini returned no candidates")
    candidate = candidates[0]
    blocks: list[Any] = []
    for idx, part in enumerate((candidate.get("content") or {}).get("parts") or []):
        if "functionCall" in part:
            call = part["functionCall"]
            name = str(call.get("name") or "")
            blocks.append(ToolInvocation(id=f"{name}-{idx}", name=name, input=call.get("args") or {}))
        elif part.get("text"):
            blocks.append(TextBlock(part["text"]))

    if any(isinstance(b, ToolInvocation) for b in blocks):
        stop = StopReason.TOOL_USE
    elif candidate.get("finishReason") == "MAX_TOKENS":
        stop = StopReason.MAX_TOKENS
    else:
        stop = StopReason.END_TURN
    return ModelResponse(stop_reason=stop, content=blocks, meta={"usage": data.get("usageMetadata")})
