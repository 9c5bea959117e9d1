from .context import build_system_context
from .loop import AgentLoop, AgentState
from .tools import (
    FinancialLookupInput,
    NewsSearchInput,
    Tool,
    ToolDispatcher,
    build_dispatcher,
)

__all__ = [
    "AgentLoop",
    "AgentState",
    "FinancialLookupInput",
    "NewsSearchInput",
    "Tool",
    "ToolDispatcher",
    "build_dispatcher",
    "build_system_context",
]
