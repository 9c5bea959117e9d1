"""Exception taxonomy shared by the pipeline, the caches and the agent."""

from __future__ import annotations


class TreasuryIntelError(Exception):
    """Base class for all errors raised by this package."""


class ProviderError(TreasuryIntelError):
    """The model call failed at the transport level or returned no usable output."""


class MissingApiKeyError(ProviderError):
    """No credential is configured for the selected model provider."""


class ResponseParseError(TreasuryIntelError):
    """Structured model output could not be parsed."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class NoSourceDataError(TreasuryIntelError):
    """A briefing was requested while the news cache holds no records."""


class ToolInputError(TreasuryIntelError):
    """A tool invocation's input does not satisfy the tool's schema."""


class AgentProtocolError(TreasuryIntelError):
    """The model broke the conversation protocol; fatal for the current request."""


class MissingFinalTextError(AgentProtocolError):
    """The model signalled a final answer without any text block."""


class TurnBudgetExceededError(AgentProtocolError):
    """The agent loop used every allowed model round-trip without a final answer."""

    def __init__(self, max_turns: int):
        super().__init__(f"Chat exceeded maximum tool-use turns ({max_turns})")
        self.max_turns = max_turns
