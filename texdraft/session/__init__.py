"""Generation session, its states and artifact lifecycle."""

from texdraft.session.artifacts import (
    ArtifactHandle,
    ArtifactLifecycle,
    ObjectUrlRegistry,
    SimulatedCompiler,
    render_placeholder_pdf,
)
from texdraft.session.generation import GenerationSession, summarize_result
from texdraft.session.state import Failed, Idle, Loading, SessionState, Success

__all__ = [
    "ArtifactHandle",
    "ArtifactLifecycle",
    "Failed",
    "GenerationSession",
    "Idle",
    "Loading",
    "ObjectUrlRegistry",
    "SessionState",
    "SimulatedCompiler",
    "Success",
    "render_placeholder_pdf",
    "summarize_result",
]
