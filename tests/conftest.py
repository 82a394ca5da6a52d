"""Pytest configuration and fixtures."""

import asyncio
import os
from collections.abc import Callable, Iterator
from datetime import datetime, timedelta

import pytest

SAMPLE_DOCUMENT = (
    "\\documentclass{article}\n"
    "\\usepackage{amsmath}\n"
    "\\title{Thermodynamics}\n"
    "\\begin{document}\n"
    "\\maketitle\n"
    "\\section{Introduction}\n"
    "Energy is conserved.\n"
    "\\section{Laws}\n"
    "\\begin{equation} dU = \\delta Q - \\delta W \\end{equation}\n"
    "\\section*{References}\n"
    "\\end{document}"
)


def pytest_configure(config):
    """Set up test environment variables before tests run."""
    os.environ.setdefault("TEXDRAFT_COMPILE_DELAY_SECONDS", "0")
    os.environ.setdefault("TEXDRAFT_REQUEST_TIMEOUT", "5")
    os.environ.setdefault("TEXDRAFT_LOG_LEVEL", "DEBUG")


class FakeProviderClient:
    """ProviderClient double that records calls.

    Set ``gate`` to an asyncio.Event to hold the reply until it is set.
    """

    def __init__(self, reply: str = SAMPLE_DOCUMENT, error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.gate: asyncio.Event | None = None
        self.calls: list[tuple] = []

    async def complete(self, provider, api_key, prompt):
        self.calls.append((provider, api_key, prompt))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.reply


def ticking_clock(start: datetime | None = None, step: timedelta = timedelta(minutes=1)):
    """Clock returning a later moment on every call."""
    moments: Iterator[datetime] = iter(
        (start or datetime(2026, 10, 19, 15, 4, 5)) + step * i for i in range(10_000)
    )
    return lambda: next(moments)


@pytest.fixture
def memory_store():
    """Empty in-memory key/value store."""
    from texdraft.storage.backends import MemoryStore

    return MemoryStore()


@pytest.fixture
def history(memory_store):
    """History store with a deterministic clock."""
    from texdraft.storage.history import HistoryStore

    return HistoryStore(memory_store, clock=ticking_clock())


@pytest.fixture
def artifacts():
    """Artifact lifecycle with an instant compiler."""
    from texdraft.session.artifacts import ArtifactLifecycle, SimulatedCompiler

    return ArtifactLifecycle(compiler=SimulatedCompiler(delay_seconds=0))


@pytest.fixture
def make_session(history, artifacts) -> Callable:
    """Factory building a session around a provider client double."""
    from texdraft.session.generation import GenerationSession

    def _make(client=None, vault=None):
        return GenerationSession(
            client or FakeProviderClient(), history, artifacts=artifacts, vault=vault
        )

    return _make


@pytest.fixture
def valid_request():
    """Request that passes validation."""
    from texdraft.models import GenerationRequest, PdfSize, Provider, Template

    return GenerationRequest(
        topic="Thermodynamics",
        template=Template.ARTICLE,
        provider=Provider.CLAUDE,
        api_key="k",
        pdf_size=PdfSize.MEDIUM,
    )

