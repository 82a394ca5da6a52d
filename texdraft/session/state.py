"""State models for a generation session."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from texdraft.models import GenerationRequest, GenerationResult


class Idle(BaseModel):
    """No request outstanding and no current document."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["idle"] = "idle"


class Loading(BaseModel):
    """A request is in flight."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["loading"] = "loading"
    request: GenerationRequest = Field(description="Request being served")


class Success(BaseModel):
    """A document is current."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["success"] = "success"
    result: GenerationResult = Field(description="Accepted document")


class Failed(BaseModel):
    """The last request failed; the user may retry."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["failed"] = "failed"
    request: GenerationRequest = Field(description="Request that failed")
    error_message: str = Field(description="User-visible error message")
    error_kind: str = Field(default="ProviderError", description="Exception class name")
    status: int | None = Field(default=None, description="HTTP status for API errors")


SessionState = Idle | Loading | Success | Failed
