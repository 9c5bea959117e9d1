"""
Core data types for the treasury intelligence pipeline.

This module defines the fundamental data structures used throughout:
- Category: The fixed ten-value treasury classification
- NewsRecord: One canonical, cached news article
- Classification: One model annotation for a NewsRecord
- Briefing: One generated executive briefing per calendar date
- ConversationTurn and content blocks: the agent's message model
- ModelResponse: What a provider returns for one model call
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union


class Category(str, Enum):
    """Treasury news categories."""

    LIQUIDITY = "liquidity"
    CAPITAL_MARKETS = "capital-markets"
    FX_RATES = "fx-rates"
    CREDIT_RATINGS = "credit-ratings"
    MA = "ma"
    RISK = "risk"
    MACRO = "macro"
    PENSIONS = "pensions"
    GEOPOLITICAL = "geopolitical"
    GENERAL = "general"

    @classmethod
    def parse(cls, value: Any) -> Category | None:
        """Return the matching category, or None for unknown values.

        "m&a" is accepted as a spelling of the M&A category.
        """
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        if text in ("m&a", "m-and-a"):
            return cls.MA
        for member in cls:
            if member.value == text:
                return member
        return None

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]


CATEGORY_LABELS: dict[Category, str] = {
    Category.LIQUIDITY: "Liquidity & Cash",
    Category.CAPITAL_MARKETS: "Capital Markets",
    Category.FX_RATES: "FX & Rates",
    Category.CREDIT_RATINGS: "Credit & Ratings",
    Category.MA: "M&A",
    Category.RISK: "Risk & Insurance",
    Category.MACRO: "Macro & Markets",
    Category.PENSIONS: "Pensions",
    Category.GEOPOLITICAL: "Geopolitical",
    Category.GENERAL: "General",
}

MIN_URGENCY = 1
MAX_URGENCY = 5
DEFAULT_URGENCY = 3


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO 8601 string into an aware UTC datetime."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not value:
        return None
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def clamp_urgency(value: Any) -> int:
    """Coerce a model-supplied urgency into the 1-5 range."""
    try:
        urgency = int(value)
    except (TypeError, ValueError):
        return DEFAULT_URGENCY
    return max(MIN_URGENCY, min(MAX_URGENCY, urgency))


@dataclass
class NewsRecord:
    """One ingested article.

    Attributes:
        id: Opaque identifier generated at ingestion
        title: Headline (placeholder when the feed had none)
        description: Plain text, HTML-stripped and length-capped
        source_url: Canonical link; unique within the news cache
        source_name: Feed or query label the record came from
        published_at: Publish time, falling back to fetch time
        fetched_at: Time the source was fetched
        category: Provisional source category, replaced by classification
        urgency: 1 (minimal) to 5 (critical)
        ai_summary: Model summary; None marks the record as pending classification
    """

    id: str
    title: str
    description: str
    source_url: str
    source_name: str
    published_at: datetime
    fetched_at: datetime
    category: Category = Category.GENERAL
    urgency: int = DEFAULT_URGENCY
    ai_summary: str | None = None

    @property
    def is_pending(self) -> bool:
        return not self.ai_summary

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "source_url": self.source_url,
            "source_name": self.source_name,
            "published_at": self.published_at.isoformat(),
            "fetched_at": self.fetched_at.isoformat(),
            "category": self.category.value,
            "urgency": self.urgency,
            "ai_summary": self.ai_summary,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NewsRecord:
        fetched_at = parse_timestamp(data.get("fetched_at")) or utcnow()
        return cls(
            id=str(data["id"]),
            title=data.get("title") or "Untitled",
            description=data.get("description") or "",
            source_url=data.get("source_url") or "",
            source_name=data.get("source_name") or "",
            published_at=parse_timestamp(data.get("published_at")) or fetched_at,
            fetched_at=fetched_at,
            category=Category.parse(data.get("category")) or Category.GENERAL,
            urgency=clamp_urgency(data.get("urgency", DEFAULT_URGENCY)),
            ai_summary=data.get("ai_summary") or None,
        )


@dataclass
class Classification:
    """Model annotation for one record, keyed by record id."""

    id: str
    category: Category
    urgency: int
    ai_summary: str


@dataclass
class Briefing:
    """One generated executive briefing; ``date`` (YYYY-MM-DD) is the natural key."""

    date: str
    content: str
    generated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "content": self.content,
            "generated_at": self.generated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Briefing:
        return cls(
            date=str(data["date"]),
            content=data.get("content") or "",
            generated_at=parse_timestamp(data.get("generated_at")) or utcnow(),
        )


# --- Conversation model -----------------------------------------------------


@dataclass
class TextBlock:
    text: str


@dataclass
class ToolInvocation:
    """A model request to run one tool; ``id`` correlates it with its result."""

    id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolResult:
    """Outcome of one ToolInvocation, fed back to the model."""

    tool_use_id: str
    text: str
    status: str = "success"

    @property
    def is_error(self) -> bool:
        return self.status != "success"


ContentBlock = Union[TextBlock, ToolInvocation, ToolResult]


@dataclass
class ConversationTurn:
    """One message in a conversation.

    ``content`` is plain text for ordinary user/assistant messages and a list
    of blocks for assistant tool requests and user tool results.
    """

    role: str
    content: str | list[ContentBlock]

    def blocks(self) -> list[ContentBlock]:
        if isinstance(self.content, str):
            return [TextBlock(self.content)]
        return list(self.content)


class StopReason(str, Enum):
    END_TURN = "end_turn"
    TOOL_USE = "tool_use"
    MAX_TOKENS = "max_tokens"
    STOP_SEQUENCE = "stop_sequence"


@dataclass
class ToolSpec:
    """A tool declaration sent to the model."""

    name: str
    description: str
    input_schema: dict[str, Any]


@dataclass
class ModelResponse:
    """Provider-neutral result of one model call."""

    stop_reason: StopReason
    content: list[ContentBlock] = field(default_factory=list)
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def wants_tools(self) -> bool:
        return self.stop_reason == StopReason.TOOL_USE

    def first_text(self) -> str | None:
        for block in self.content:
            if isinstance(block, TextBlock) and block.text:
                return block.text
        return None

    def tool_invocations(self) -> list[ToolInvocation]:
        return [block for block in self.content if isinstance(block, ToolInvocation)]

    def as_turn(self) -> ConversationTurn:
        return ConversationTurn(role="assistant", content=list(self.content))
