"""Treasury news intelligence: multi-source ingestion, AI classification, briefings and a tool-calling assistant."""

__version__ = "0.1.0"
