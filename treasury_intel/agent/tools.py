"""
Tools declared to the chat model.

Each tool pairs a declaration (name, description, JSON schema) with a typed
input parser and a runner. The dispatcher validates a model's invocation
against the tool's input type before running it, and always answers with a
ToolResult: unknown tools, invalid input and runner exceptions all become
error results instead of propagating into the agent loop.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import time
from typing import Any, Callable, Generic, TypeVar

from ..core.types import ToolInvocation, ToolResult, ToolSpec
from ..errors import ToolInputError
from ..external.edgar import DATA_TYPES, EdgarClient
from ..ingest.search import NewsSearch
from ..utils.logging import log_event


logger = logging.getLogger(__name__)

UNKNOWN_TOOL_TEXT = "Tool not available."

SEARCH_TOOL_NAME = "search_financial_news"
FINANCIALS_TOOL_NAME = "get_company_financials"


@dataclass(frozen=True)
class NewsSearchInput:
    query: str

    @classmethod
    def parse(cls, raw: Any) -> NewsSearchInput:
        return cls(query=_required_string(raw, "query"))


@dataclass(frozen=True)
class FinancialLookupInput:
    company: str
    data_type: str

    @classmethod
    def parse(cls, raw: Any) -> FinancialLookupInput:
        company = _required_string(raw, "company")
        data_type = _required_string(raw, "data_type")
        if data_type not in DATA_TYPES:
            raise ToolInputError(f"data_type must be one of: {', '.join(DATA_TYPES)}")
        return cls(company=company, data_type=data_type)


def _required_string(raw: Any, key: str) -> str:
    if not isinstance(raw, dict):
        raise ToolInputError("tool input must be an object")
    value = raw.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ToolInputError(f"'{key}' is required and must be a non-empty string")
    return value.strip()


SEARCH_TOOL_SPEC = ToolSpec(
    name=SEARCH_TOOL_NAME,
    description=(
        "Search for recent financial news on a specific topic to supplement the current "
        "intelligence feed. Use this when the question requires information not covered "
        "in today's feed or briefing."
    ),
    input_schema={
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": (
                    "Search query for financial news, be specific (e.g. \"Federal Reserve "
                    "rate decision March 2025\", \"Deutsche Bank counterparty risk\")"
                ),
            }
        },
        "required": ["query"],
    },
)

FINANCIALS_TOOL_SPEC = ToolSpec(
    name=FINANCIALS_TOOL_NAME,
    description=(
        "Look up a US public company's latest financial data from SEC EDGAR XBRL filings: "
        "balance sheet, debt maturity ladder, income statement, cash flow or a full snapshot."
    ),
    input_schema={
        "type": "object",
        "properties": {
            "company": {
                "type": "string",
                "description": "Ticker symbol (preferred, e.g. \"JPM\") or company name",
            },
            "data_type": {
                "type": "string",
                "enum": list(DATA_TYPES),
                "description": "Which group of figures to return",
            },
        },
        "required": ["company", "data_type"],
    },
)


InputT = TypeVar("InputT")


@dataclass
class Tool(Generic[InputT]):
    """A declared tool.

    Attributes:
        spec: Declaration sent to the model
        parse: Validates raw model input into the typed input, raising ToolInputError
        run: Executes the tool and returns result text
        failure_label: Prefix of the result text when ``run`` raises
    """

    spec: ToolSpec
    parse: Callable[[Any], InputT]
    run: Callable[[InputT], str]
    failure_label: str = "Tool failed"

    @property
    def name(self) -> str:
        return self.spec.name


def news_search_tool(search: NewsSearch) -> Tool[NewsSearchInput]:
    return Tool(
        spec=SEARCH_TOOL_SPEC,
        parse=NewsSearchInput.parse,
        run=lambda args: search.search(args.query),
        failure_label="Search failed",
    )


def financial_lookup_tool(edgar: EdgarClient) -> Tool[FinancialLookupInput]:
    return Tool(
        spec=FINANCIALS_TOOL_SPEC,
        parse=FinancialLookupInput.parse,
        run=lambda args: edgar.lookup(args.company, args.data_type),
        failure_label="Financial lookup failed",
    )


class ToolDispatcher:
    """Resolve ToolInvocations into ToolResults."""

    def __init__(self, tools: list[Tool]):
        self._tools = {tool.name: tool for tool in tools}

    def specs(self) -> list[ToolSpec]:
        return [tool.spec for tool in self._tools.values()]

    def has(self, name: str) -> bool:
        return name in self._tools

    def dispatch(self, invocation: ToolInvocation) -> ToolResult:
        """Run one invocation; never raises."""
        started = time.monotonic()
        tool = self._tools.get(invocation.name)
        if tool is None:
            result = ToolResult(invocation.id, UNKNOWN_TOOL_TEXT, status="error")
        else:
            result = self._run(tool, invocation)

        log_event(
            logger,
            f"Tool {invocation.name} -> {result.status}",
            level=logging.INFO if not result.is_error else logging.WARNING,
            event="tool_dispatch",
            tool=invocation.name,
            tool_use_id=invocation.id,
            status=result.status,
            elapsed_ms=int((time.monotonic() - started) * 1000),
        )
        return result

    def _run(self, tool: Tool, invocation: ToolInvocation) -> ToolResult:
        try:
            args = tool.parse(invocation.input)
        except ToolInputError as exc:
            return ToolResult(invocation.id, f"Invalid input for {tool.name}: {exc}", status="error")
        try:
            text = tool.run(args)
        except Exception as exc:  # noqa: BLE001
            return ToolResult(invocation.id, f"{tool.failure_label}: {exc}", status="error")
        return ToolResult(invocation.id, text)


def build_dispatcher(search: NewsSearch, edgar: EdgarClient | None = None) -> ToolDispatcher:
    """The news-search tool, plus financial lookup when an EDGAR client is given."""
    tools: list[Tool] = [news_search_tool(search)]
    if edgar is not None:
        tools.append(financial_lookup_tool(edgar))
    return ToolDispatcher(tools)
