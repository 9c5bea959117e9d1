from .anthropic import AnthropicProvider
from .base import ChatProvider
from .factory import available_providers, create_provider
from .gemini import GeminiProvider

__all__ = [
    "AnthropicProvider",
    "ChatProvider",
    "GeminiProvider",
    "available_providers",
    "create_provider",
]
