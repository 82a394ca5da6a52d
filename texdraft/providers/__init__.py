"""Provider abstraction for chat-completion APIs."""

from texdraft.providers.adapter import (
    PROVIDER_SPECS,
    ProviderRequest,
    ProviderSpec,
    build_request,
    parse_response,
)
from texdraft.providers.client import ProviderClient
from texdraft.providers.prompts import build_prompt, document_class

__all__ = [
    "PROVIDER_SPECS",
    "ProviderClient",
    "ProviderRequest",
    "ProviderSpec",
    "build_prompt",
    "build_request",
    "document_class",
    "parse_response",
]
