"""
Turn-bounded tool-calling conversation loop.

One request moves through AWAITING_MODEL, then either TERMINAL_TEXT or
DISPATCHING_TOOLS and back to AWAITING_MODEL, until the model gives a final
answer or the turn budget runs out (TURN_EXHAUSTED). Every tool invocation
in a response is resolved, in order, before the next model call, and all of
its results go back to the model as a single user turn.
"""

from __future__ import annotations

from enum import Enum
import logging
from typing import Sequence

from ..config import AgentConfig
from ..core.types import ConversationTurn, ToolResult
from ..errors import MissingFinalTextError, TurnBudgetExceededError
from ..llm.providers.base import ChatProvider
from ..llm.tracing import start_span
from ..utils.logging import log_event
from .tools import FINANCIALS_TOOL_NAME, ToolDispatcher


logger = logging.getLogger(__name__)

BASE_TURN_BUDGET = 4


class AgentState(str, Enum):
    AWAITING_MODEL = "awaiting_model"
    DISPATCHING_TOOLS = "dispatching_tools"
    TERMINAL_TEXT = "terminal_text"
    TURN_EXHAUSTED = "turn_exhausted"


class AgentLoop:
    """Run conversations against a tool-capable provider."""

    def __init__(self, provider: ChatProvider, dispatcher: ToolDispatcher, cfg: AgentConfig):
        self.provider = provider
        self.dispatcher = dispatcher
        self.cfg = cfg

    @property
    def max_turns(self) -> int:
        if self.cfg.max_turns:
            return self.cfg.max_turns
        # financial lookups get one extra round-trip
        if self.dispatcher.has(FINANCIALS_TOOL_NAME):
            return BASE_TURN_BUDGET + 1
        return BASE_TURN_BUDGET

    def run(self, history: Sequence[ConversationTurn], system: str) -> str:
        """Return the model's final answer for ``history``.

        Raises:
            ValueError: If ``history`` is empty.
            MissingFinalTextError: If the model stops without any text.
            TurnBudgetExceededError: If no final answer arrives within the budget.
            ProviderError: If a model call fails.
        """
        if not history:
            raise ValueError("messages required")

        conversation = list(history)
        specs = self.dispatcher.specs()
        state = AgentState.AWAITING_MODEL

        with start_span("agent.run", kind="agent", attributes={"max_turns": self.max_turns}):
            for turn in range(1, self.max_turns + 1):
                response = self.provider.converse(
                    conversation,
                    system=system,
                    tools=specs,
                    max_tokens=self.cfg.max_output_tokens,
                    temperature=self.cfg.temperature,
                )
                conversation.append(response.as_turn())
                invocations = response.tool_invocations()

                if not response.wants_tools or not invocations:
                    state = AgentState.TERMINAL_TEXT
                    self._log_turn(turn, state, response.stop_reason.value, 0)
                    text = response.first_text()
                    if text is None:
                        raise MissingFinalTextError(
                            f"Model stopped ({response.stop_reason.value}) without a text answer"
                        )
                    return text

                state = AgentState.DISPATCHING_TOOLS
                self._log_turn(turn, state, response.stop_reason.value, len(invocations))
                results: list[ToolResult] = [self.dispatcher.dispatch(inv) for inv in invocations]
                conversation.append(ConversationTurn(role="user", content=list(results)))
                state = AgentState.AWAITING_MODEL

        self._log_turn(self.max_turns, AgentState.TURN_EXHAUSTED, "tool_use", 0)
        raise TurnBudgetExceededError(self.max_turns)

    def _log_turn(self, turn: int, state: AgentState, stop_reason: str, tool_calls: int) -> None:
        log_event(
            logger,
            f"Agent turn {turn}/{self.max_turns}: {state.value}",
            level=logging.WARNING if state == AgentState.TURN_EXHAUSTED else logging.INFO,
            event="agent_turn",
            turn=turn,
            state=state.value,
            stop_reason=stop_reason,
            tool_calls=tool_calls,
        )
