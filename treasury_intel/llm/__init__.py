"""LLM providers, prompt rendering and observability."""

from .parsing import parse_json_array, strip_code_fences
from .providers.anthropic import AnthropicProvider
from .providers.base import ChatProvider
from .providers.factory import available_providers, create_provider
from .providers.gemini import GeminiProvider
from .tracing import flush, llm_span, record_span_error, set_span_output, setup_langfuse, start_span

__all__ = [
    "AnthropicProvider",
    "ChatProvider",
    "GeminiProvider",
    "available_providers",
    "create_provider",
    "parse_json_array",
    "strip_code_fences",
    "setup_langfuse",
    "flush",
    "start_span",
    "llm_span",
    "set_span_output",
    "record_span_error",
]
