"""Static registry of news sources: direct RSS feeds and Google News search queries."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote_plus

from ..config import FetchConfig
from ..core.types import Category


GOOGLE_NEWS_SEARCH = "https://news.google.com/rss/search?q={query}&hl=en-US&gl=US&ceid=US:en"


@dataclass(frozen=True)
class Source:
    """One fetchable endpoint.

    Attributes:
        name: Label stored on every record from this source
        url: Feed URL
        default_category: Provisional category until classification
        kind: "feed" for direct feeds, "search" for parameterized search queries
    """

    name: str
    url: str
    default_category: Category
    kind: str = "feed"


@dataclass(frozen=True)
class SearchQuery:
    query: str
    category: Category
    label: str


RSS_FEEDS: tuple[Source, ...] = (
    Source("Reuters Business", "https://feeds.reuters.com/reuters/businessNews", Category.MACRO),
    Source("CNBC Markets", "https://www.cnbc.com/id/10000664/device/rss/rss.html", Category.MACRO),
    Source("MarketWatch", "https://feeds.marketwatch.com/marketwatch/topstories/", Category.MACRO),
    Source("Financial Times", "https://www.ft.com/rss/home", Category.GENERAL),
    Source("Barron's", "https://www.barrons.com/xml/rss/3_7551.xml", Category.GENERAL),
    Source(
        "Investopedia",
        "https://www.investopedia.com/feedbuilder/feed/getfeed/?feedName=rss_headline",
        Category.GENERAL,
    ),
)

SEARCH_QUERIES: tuple[SearchQuery, ...] = (
    SearchQuery("treasury cash management liquidity", Category.LIQUIDITY, "Liquidity & Cash"),
    SearchQuery("capital markets corporate bonds debt", Category.CAPITAL_MARKETS, "Capital Markets"),
    SearchQuery("interest rates FX currency exchange", Category.FX_RATES, "FX & Rates"),
    SearchQuery("credit rating Moodys SP Fitch downgrade", Category.CREDIT_RATINGS, "Credit Ratings"),
    SearchQuery("mergers acquisitions M&A deal", Category.MA, "M&A"),
    SearchQuery("counterparty risk bank failure systemic", Category.RISK, "Risk"),
    SearchQuery("federal reserve central bank inflation GDP", Category.MACRO, "Macro"),
    SearchQuery("pension fund defined benefit retirement", Category.PENSIONS, "Pensions"),
    SearchQuery("geopolitical risk sanctions regional conflict", Category.GEOPOLITICAL, "Geopolitical"),
    SearchQuery("insurance corporate risk coverage", Category.RISK, "Insurance"),
)


def build_search_url(query: str) -> str:
    """Return the Google News RSS URL for a free-text query."""
    return GOOGLE_NEWS_SEARCH.format(query=quote_plus(query.strip()))


def search_source(query: str, label: str | None = None, category: Category = Category.GENERAL) -> Source:
    return Source(
        name=f"Google News – {label or query}",
        url=build_search_url(query),
        default_category=category,
        kind="search",
    )


def default_sources() -> list[Source]:
    """Every registered source: direct feeds first, then search queries."""
    sources = list(RSS_FEEDS)
    for item in SEARCH_QUERIES:
        sources.append(search_source(item.query, item.label, item.category))
    return sources


def item_limit(source: Source, cfg: FetchConfig) -> int:
    if source.kind == "search":
        return cfg.search_item_limit
    return cfg.feed_item_limit
