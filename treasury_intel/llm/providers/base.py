"""Abstract interface for tool-capable chat models."""

from __future__ import annotations

from abc import ABC, abstractmethod
import logging

import httpx

from ...config import ProviderConfig
from ...core.types import ConversationTurn, ModelResponse, ToolSpec
from ...errors import MissingApiKeyError, ProviderError
from ...utils.logging import log_event


logger = logging.getLogger(__name__)


class ChatProvider(ABC):
    """A model endpoint that accepts a message list and optional tool declarations.

    Attributes:
        name: Registry name of the backend
        cfg: Provider configuration
        api_key: Credential sent with every request
        transport: Optional httpx transport (tests inject a MockTransport)
    """

    name = "base"
    default_base_url = ""

    def __init__(
        self,
        cfg: ProviderConfig,
        api_key: str | None,
        transport: httpx.BaseTransport | None = None,
    ):
        if not api_key:
            raise MissingApiKeyError(f"Missing API key for provider {self.name}")
        self.cfg = cfg
        self.api_key = api_key
        self.transport = transport

    @property
    def base_url(self) -> str:
        return (self.cfg.base_url or self.default_base_url).rstrip("/")

    @abstractmethod
    def converse(
        self,
        messages: list[ConversationTurn],
        system: str | None = None,
        tools: list[ToolSpec] | None = None,
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> ModelResponse:
        """Run one model call and return its provider-neutral response.

        Raises:
            ProviderError: On transport failure or an unusable response body.
        """
        raise NotImplementedError

    def complete(
        self,
        prompt: str,
        system: str | None = None,
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> str:
        """Single-turn text completion."""
        response = self.converse(
            [ConversationTurn(role="user", content=prompt)],
            system=system,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        text = response.first_text()
        if not text:
            raise ProviderError(f"{self.name} returned no text output")
        return text

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.cfg.timeout_seconds,
            trust_env=self.cfg.trust_env,
            transport=self.transport,
        )

    def _log_call(self, status: str, **fields) -> None:
        level = logging.INFO if status == "ok" else logging.WARNING
        log_event(
            logger,
            "LLM call",
            level=level,
            event="llm_call",
            provider=self.name,
            model=self.cfg.model,
            status=status,
            **fields,
        )
