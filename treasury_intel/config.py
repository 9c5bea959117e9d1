"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- ProviderConfig: LLM provider settings
- FetchConfig: Feed fetching settings
- DedupConfig: Cross-source deduplication settings
- StorageConfig: Data directory and cache caps
- ClassifyConfig: Batched AI classification settings
- BriefingConfig: Daily briefing generation settings
- AgentConfig: Tool-calling chat agent settings
- CompanyConfig: Tracked company (SEC EDGAR) settings
- LoggingConfig: Logging behavior
- LangfuseConfig: Langfuse tracing settings
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import os
from typing import Any

import yaml


@dataclass
class ProviderConfig:
    """Configuration for pluggable LLM providers.

    Attributes:
        name: Provider name ("anthropic" or "gemini")
        model: Model identifier
        api_key_env: Environment variable holding the API key (optional)
        base_url: Base URL for the provider API; None uses the provider default
        api_key: Optional inline API key (overrides env var)
        trust_env: Whether to respect system proxy settings for API requests
        timeout_seconds: Timeout for a single model call
    """

    name: str = "anthropic"
    model: str = "claude-sonnet-4-5"
    api_key_env: str | None = None
    base_url: str | None = None
    api_key: str | None = None
    trust_env: bool = True
    timeout_seconds: float = 60.0


@dataclass
class FetchConfig:
    """Configuration for concurrent feed fetching.

    Attributes:
        timeout_seconds: Per-source request timeout
        feed_item_limit: Maximum entries kept from a direct feed
        search_item_limit: Maximum entries kept from a search query feed
        trust_env: Whether to respect system proxy settings
        user_agent: HTTP User-Agent header string
    """

    timeout_seconds: float = 12.0
    feed_item_limit: int = 10
    search_item_limit: int = 8
    trust_env: bool = True
    user_agent: str = "TreasuryIntelligencePlatform/1.0 (RSS Reader)"


@dataclass
class DedupConfig:
    """Configuration for cross-source deduplication.

    Attributes:
        title_similarity_threshold: Fuzzy match threshold (0-100) for an extra
            title pass after URL dedup; None disables the pass
    """

    title_similarity_threshold: int | None = None


@dataclass
class StorageConfig:
    """Configuration for the persistent record collections.

    Attributes:
        data_dir: Directory holding news.json, briefings.json, settings.json
        max_news_records: Cap applied after every news upsert
        max_briefings: Number of dated briefings kept
        default_news_feed_days: Retention window used until settings.json overrides it
    """

    data_dir: str = "data"
    max_news_records: int = 500
    max_briefings: int = 30
    default_news_feed_days: int = 2


@dataclass
class ClassifyConfig:
    """Configuration for the classification pipeline.

    Attributes:
        working_set: Maximum pending records classified in one run
        batch_size: Records per model call
        description_chars: Description excerpt sent per record
        max_output_tokens: Output budget for one batch
        temperature: Sampling temperature for structured output
    """

    working_set: int = 80
    batch_size: int = 20
    description_chars: int = 200
    max_output_tokens: int = 4096
    temperature: float = 0.1


@dataclass
class BriefingConfig:
    """Configuration for daily briefing generation."""

    query_limit: int = 50
    digest_size: int = 40
    max_output_tokens: int = 1500
    temperature: float = 0.4


@dataclass
class AgentConfig:
    """Configuration for the tool-calling chat agent.

    Attributes:
        max_turns: Model round-trips per request; None picks 4, or 5 when the
            financial lookup tool is enabled
        context_news_limit: Cached records listed in the system context
        max_output_tokens: Output budget per model call
        temperature: Sampling temperature
        enable_financial_lookup: Whether to declare the EDGAR lookup tool
    """

    max_turns: int | None = None
    context_news_limit: int = 150
    max_output_tokens: int = 1200
    temperature: float = 0.5
    enable_financial_lookup: bool = True


@dataclass
class CompanyConfig:
    """Configuration for the tracked company and SEC access.

    Attributes:
        cik: Zero-padded CIK of the company whose snapshot feeds the chat context
        contact_email: Contact address SEC requires in the User-Agent
        timeout_seconds: Timeout for SEC requests
    """

    cik: str | None = "0001932393"
    contact_email: str | None = None
    timeout_seconds: float = 20.0


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the main log file (inside the data directory)
    """

    level: str = "INFO"
    console: bool = True
    file: bool = True
    format: str = "jsonl"
    filename: str = "run.jsonl"


@dataclass
class LangfuseConfig:
    """Configuration for Langfuse tracing.

    Attributes:
        enabled: Whether to enable Langfuse tracing
        public_key: Langfuse public key (optional)
        secret_key: Langfuse secret key (optional)
        host: Langfuse host URL (optional)
        environment: Langfuse environment label (optional)
        release: Langfuse release identifier (optional)
        max_text_chars: Maximum characters for prompt/response payloads
    """

    enabled: bool = False
    public_key: str | None = None
    secret_key: str | None = None
    host: str | None = None
    environment: str | None = None
    release: str | None = None
    max_text_chars: int = 20000


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    provider: ProviderConfig = field(default_factory=ProviderConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    dedup: DedupConfig = field(default_factory=DedupConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    classify: ClassifyConfig = field(default_factory=ClassifyConfig)
    briefing: BriefingConfig = field(default_factory=BriefingConfig)
    agent: AgentConfig = field(default_factory=AgentConfig)
    company: CompanyConfig = field(default_factory=CompanyConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    langfuse: LangfuseConfig = field(default_factory=LangfuseConfig)


_SECTIONS: dict[str, type] = {
    "provider": ProviderConfig,
    "fetch": FetchConfig,
    "dedup": DedupConfig,
    "storage": StorageConfig,
    "classify": ClassifyConfig,
    "briefing": BriefingConfig,
    "agent": AgentConfig,
    "company": CompanyConfig,
    "logging": LoggingConfig,
    "langfuse": LangfuseConfig,
}


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return _merge_config(AppConfig(), raw)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update(value)
        else:
            data[key] = value
    return _fromdict(data)


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    sections = {}
    for name, cls in _SECTIONS.items():
        known = set(cls.__dataclass_fields__)
        values = {k: v for k, v in (data.get(name) or {}).items() if k in known}
        sections[name] = cls(**values)
    return AppConfig(**sections)


def get_api_key(cfg: ProviderConfig) -> str | None:
    """Get API key from inline config or environment variable."""
    if cfg.api_key:
        return cfg.api_key
    if cfg.api_key_env:
        return os.getenv(cfg.api_key_env)
    defaults = {
        "anthropic": "ANTHROPIC_API_KEY",
        "gemini": "GOOGLE_API_KEY",
    }
    env_name = defaults.get(cfg.name.lower(), "ANTHROPIC_API_KEY")
    return os.getenv(env_name)


def get_sec_contact(cfg: CompanyConfig) -> str:
    """Get the SEC contact address from config or the ADMIN_EMAIL variable."""
    return cfg.contact_email or os.getenv("ADMIN_EMAIL") or "admin@example.com"
