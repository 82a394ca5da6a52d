"""Exception hierarchy for document generation."""

from typing import Any


class TexDraftError(Exception):
    """Base exception for texdraft errors"""

    pass


class InvalidRequestError(TexDraftError):
    """Request rejected before dispatch (empty topic or API key)"""

    pass


class SessionBusyError(TexDraftError):
    """A generation is already in flight for this session"""

    def __init__(self) -> None:
        super().__init__("A document is already being generated")


class NoDocumentError(TexDraftError):
    """Preview or download requested before any document exists"""

    def __init__(self) -> None:
        super().__init__("No content generated yet.")


class ProviderError(TexDraftError):
    """Failure of a single generate call; the session ends in Failed."""

    pass


class UnknownProviderError(ProviderError):
    """Provider id outside the supported set"""

    def __init__(self, provider: Any) -> None:
        self.provider = provider
        super().__init__(f"Invalid API provider: {provider}")


class NetworkError(ProviderError):
    """Transport-level failure while awaiting the provider"""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Network error: {detail}")


class ApiError(ProviderError):
    """Provider answered with a non-success HTTP status"""

    def __init__(self, status: int, reason: str, body: str) -> None:
        self.status = status
        self.reason = reason
        self.body = body
        super().__init__(f"API error: {status} {reason}\n{body}")


class MalformedResponseError(ProviderError):
    """Provider response lacks the expected text field"""

    def __init__(self, provider: Any, detail: str) -> None:
        self.provider = provider
        self.detail = detail
        super().__init__(f"Invalid response format from {provider} API: {detail}")
