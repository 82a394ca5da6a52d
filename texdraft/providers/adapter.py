"""Mapping between logical generation requests and provider wire formats.

Each provider has a fixed endpoint, auth header and JSON schema. Building a
request and parsing a response are pure functions over the PROVIDER_SPECS
table; the network call itself lives in ProviderClient.
"""

from dataclasses import dataclass, field
from typing import Any

from texdraft.errors import MalformedResponseError, UnknownProviderError
from texdraft.models import Provider

JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class ProviderSpec:
    """Wire contract of one chat-completion provider."""

    url: str
    model: str
    auth_header: str
    auth_scheme: str | None = None
    extra_headers: dict[str, str] = field(default_factory=dict)
    max_tokens: int | None = None
    temperature: float | None = None
    # Keys (str) and list positions (int) leading to the reply text
    response_path: tuple[str | int, ...] = ("choices", 0, "message", "content")


@dataclass(frozen=True)
class ProviderRequest:
    """A fully built HTTP request, ready to POST."""

    url: str
    headers: dict[str, str] = field(repr=False)
    body: dict[str, Any]


PROVIDER_SPECS: dict[Provider, ProviderSpec] = {
    Provider.CLAUDE: ProviderSpec(
        url="https://api.anthropic.com/v1/messages",
        model="claude-3-opus-20240229",
        auth_header="x-api-key",
        extra_headers={"anthropic-version": "2023-06-01"},
        max_tokens=4000,
        response_path=("content", 0, "text"),
    ),
    Provider.PERPLEXITY: ProviderSpec(
        url="https://api.perplexity.ai/chat/completions",
        model="pplx-7b-online",
        auth_header="authorization",
        auth_scheme="Bearer",
    ),
    Provider.MISTRAL: ProviderSpec(
        url="https://api.mistral.ai/v1/chat/completions",
        model="mistral-large-latest",
        auth_header="authorization",
        auth_scheme="Bearer",
        temperature=0.7,
    ),
}

_missing = set(Provider) - set(PROVIDER_SPECS)
if _missing:
    raise RuntimeError(f"No provider spec for: {sorted(p.value for p in _missing)}")


def resolve_provider(provider: Provider | str) -> Provider:
    """Coerce a provider id to the closed Provider set.

    Raises:
        UnknownProviderError: If the id is not a supported provider.
    """
    try:
        return Provider(provider)
    except (ValueError, TypeError) as e:
        raise UnknownProviderError(provider) from e


def get_spec(provider: Provider | str) -> ProviderSpec:
    """Look up the wire contract for a provider."""
    return PROVIDER_SPECS[resolve_provider(provider)]


def build_request(provider: Provider | str, api_key: str, prompt: str) -> ProviderRequest:
    """Build the provider-specific HTTP request for a prompt.

    Args:
        provider: Provider id.
        api_key: Secret for that provider; only ever placed in its own header.
        prompt: Single user message.

    Returns:
        ProviderRequest with URL, headers and JSON body.

    Raises:
        UnknownProviderError: If the provider is not supported.
    """
    spec = get_spec(provider)

    credential = f"{spec.auth_scheme} {api_key}" if spec.auth_scheme else api_key
    headers = {spec.auth_header: credential, **spec.extra_headers}
    headers["content-type"] = JSON_CONTENT_TYPE

    body: dict[str, Any] = {"model": spec.model}
    if spec.max_tokens is not None:
        body["max_tokens"] = spec.max_tokens
    body["messages"] = [{"role": "user", "content": prompt}]
    if spec.temperature is not None:
        body["temperature"] = spec.temperature

    return ProviderRequest(url=spec.url, headers=headers, body=body)


def parse_response(provider: Provider | str, payload: Any) -> str:
    """Extract the reply text from a provider's JSON response.

    Args:
        provider: Provider that produced the response.
        payload: Decoded JSON body.

    Returns:
        Free-form reply text.

    Raises:
        UnknownProviderError: If the provider is not supported.
        MalformedResponseError: If the expected field path is absent or the
            text field is not a string.
    """
    resolved = resolve_provider(provider)
    spec = PROVIDER_SPECS[resolved]

    node = payload
    walked = ""
    for step in spec.response_path:
        if isinstance(step, int):
            if not isinstance(node, list) or len(node) <= step:
                raise MalformedResponseError(resolved.value, f"missing {walked}[{step}]")
            node = node[step]
            walked = f"{walked}[{step}]"
        else:
            if not isinstance(node, dict) or step not in node:
                path = f"{walked}.{step}".lstrip(".")
                raise MalformedResponseError(resolved.value, f"missing {path}")
            node = node[step]
            walked = f"{walked}.{step}".lstrip(".")

    if not isinstance(node, str):
        raise MalformedResponseError(
            resolved.value, f"{walked} is {type(node).__name__}, expected string"
        )
    return node
