"""HTTP client for chat-completion providers."""

import logging

import httpx

from texdraft.config import settings
from texdraft.errors import ApiError, MalformedResponseError, NetworkError
from texdraft.models import Provider
from texdraft.providers.adapter import (
    ProviderRequest,
    build_request,
    parse_response,
    resolve_provider,
)

logger = logging.getLogger(__name__)


class ProviderClient:
    """Client performing the single POST behind each generate call.

    No retries: every failure is raised as a typed ProviderError.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ):
        """Initialize the provider client.

        Args:
            http_client: Shared async client. If not provided, a client is
                opened and closed around each request.
            timeout: Request timeout in seconds. Defaults to settings.request_timeout.
        """
        self._http_client = http_client
        self.timeout = timeout if timeout is not None else settings.request_timeout

    async def complete(self, provider: Provider | str, api_key: str, prompt: str) -> str:
        """Send a prompt to a provider and return its reply text.

        Args:
            provider: Provider id.
            api_key: Key for that provider.
            prompt: Single user message.

        Returns:
            Free-form reply text.

        Raises:
            UnknownProviderError: If the provider is not supported.
            NetworkError: If the request could not be completed.
            ApiError: If the provider answers with a non-success status.
            MalformedResponseError: If the body is not the expected JSON shape.
        """
        # Fails before any network attempt for unknown providers
        request = build_request(provider, api_key, prompt)
        resolved = resolve_provider(provider)

        logger.info(f"Sending request to {resolved.value} ({request.url})")
        if self._http_client is not None:
            response = await self._post(self._http_client, request)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await self._post(client, request)

        if not response.is_success:
            logger.warning(f"{resolved.value} returned HTTP {response.status_code}")
            raise ApiError(response.status_code, response.reason_phrase, response.text)

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponseError(resolved.value, "body is not valid JSON") from e

        return parse_response(resolved, payload)

    async def _post(self, client: httpx.AsyncClient, request: ProviderRequest) -> httpx.Response:
        try:
            return await client.post(
                request.url, json=request.body, headers=request.headers, timeout=self.timeout
            )
        except httpx.RequestError as e:
            logger.error(f"Request error calling {request.url}: {e}")
            raise NetworkError(str(e) or type(e).__name__) from e
