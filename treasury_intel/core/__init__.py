"""
Core domain models and business logic.

This package contains data types and helpers that are independent of
any specific pipeline stage.
"""

from .types import (
    Briefing,
    Category,
    Classification,
    ConversationTurn,
    ModelResponse,
    NewsRecord,
    StopReason,
    TextBlock,
    ToolInvocation,
    ToolResult,
    ToolSpec,
)
from .dedup import dedup_records, normalize_url

__all__ = [
    "Briefing",
    "Category",
    "Classification",
    "ConversationTurn",
    "ModelResponse",
    "NewsRecord",
    "StopReason",
    "TextBlock",
    "ToolInvocation",
    "ToolResult",
    "ToolSpec",
    "dedup_records",
    "normalize_url",
]
