"""Generation session: the request/response state machine behind the UI.

One session serves one conversation. It owns the session state, the visible
conversation and the current artifact handle; the UI reads them and calls
the mutation methods below.
"""

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

from texdraft.errors import InvalidRequestError, ProviderError, SessionBusyError
from texdraft.extraction import extract_latex_document
from texdraft.models import (
    ChatMessage,
    GenerationRequest,
    GenerationResult,
    HistoryEntry,
    MessageRole,
    PdfSize,
    Provider,
    Template,
)
from texdraft.providers.client import ProviderClient
from texdraft.providers.prompts import build_prompt
from texdraft.session.artifacts import DEFAULT_DOWNLOAD_NAME, ArtifactHandle, ArtifactLifecycle
from texdraft.session.state import Failed, Idle, Loading, SessionState, Success
from texdraft.storage.history import HistoryStore
from texdraft.storage.vault import ApiKeyVault

logger = logging.getLogger(__name__)

StateListener = Callable[[SessionState], None]

PENDING_MESSAGE = "Generating document..."


def summarize_result(result: GenerationResult) -> str:
    """Conversation text shown for an accepted document."""
    return (
        f"Generated LaTeX document with {result.section_count} sections\n"
        f"Template: {result.template.value} | AI: {result.provider.value} "
        f"| Size: {result.pdf_size.value}"
    )


class GenerationSession:
    """Orchestrates generate requests for one conversation.

    States: Idle -> Loading -> Success | Failed, and back to Idle on reset().
    At most one request is in flight; a second generate() while Loading
    raises SessionBusyError. Results arriving after reset(), restore() or
    import_document() are discarded.
    """

    def __init__(
        self,
        client: ProviderClient,
        history: HistoryStore,
        artifacts: ArtifactLifecycle | None = None,
        vault: ApiKeyVault | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            client: Provider client performing the network call.
            history: History log that accepted results are appended to.
            artifacts: Artifact lifecycle manager for previews and downloads.
            vault: Key vault used by make_request(). Optional for callers
                that build requests themselves.
        """
        self._client = client
        self._history = history
        self._artifacts = artifacts or ArtifactLifecycle()
        self._vault = vault

        self._state: SessionState = Idle()
        self._conversation: list[ChatMessage] = []
        self._artifact: ArtifactHandle | None = None
        self._listeners: list[StateListener] = []
        # Bumped whenever the current document is superseded
        self._epoch = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_busy(self) -> bool:
        """True while a request is in flight; the UI disables generate."""
        return isinstance(self._state, Loading)

    @property
    def current_result(self) -> GenerationResult | None:
        if isinstance(self._state, Success):
            return self._state.result
        return None

    @property
    def conversation(self) -> tuple[ChatMessage, ...]:
        return tuple(self._conversation)

    @property
    def artifact(self) -> ArtifactHandle | None:
        return self._artifact

    @property
    def document_version(self) -> int:
        return self._epoch

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener called with every new state.

        Returns:
            Callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def make_request(
        self,
        topic: str,
        template: Template = Template.ARTICLE,
        pdf_size: PdfSize = PdfSize.MEDIUM,
        provider: Provider | None = None,
    ) -> GenerationRequest:
        """Build a request using the vault's key for the provider.

        The provider defaults to the vault's selected provider.
        """
        if provider is None:
            provider = self._vault.selected_provider if self._vault else Provider.CLAUDE
        api_key = self._vault.get(provider) if self._vault else ""
        return GenerationRequest(
            topic=topic,
            template=template,
            provider=provider,
            api_key=api_key,
            pdf_size=pdf_size,
        )

    @staticmethod
    def validate(request: GenerationRequest) -> None:
        """Check preconditions that must hold before dispatch.

        Raises:
            InvalidRequestError: If the topic or the API key is blank.
        """
        if not request.topic.strip():
            raise InvalidRequestError("Please enter a topic")
        if not request.api_key.strip():
            raise InvalidRequestError(
                f"Please enter your {request.provider.value} API key in the profile settings"
            )

    async def generate(self, request: GenerationRequest) -> SessionState:
        """Generate a document for a request.

        Args:
            request: Topic, template, provider, key and preview size.

        Returns:
            The session state once the request completes: Success or Failed,
            or the newer state if the session was reset meanwhile.

        Raises:
            SessionBusyError: If a request is already in flight.
            InvalidRequestError: If the topic or key is blank. No state change.
            asyncio.CancelledError: Re-raised after the session is marked Failed.
        """
        if self.is_busy:
            raise SessionBusyError()
        self.validate(request)

        self._epoch += 1
        epoch = self._epoch
        self.release_artifact()
        self._conversation.append(ChatMessage(role=MessageRole.USER, content=request.topic))
        self._conversation.append(
            ChatMessage(role=MessageRole.AI, content=PENDING_MESSAGE, is_pending=True)
        )
        self._transition(Loading(request=request))

        logger.info(
            f"Generating {request.template.value} document with {request.provider.value}"
        )
        try:
            prompt = build_prompt(request.topic, request.template)
            reply = await self._client.complete(request.provider, request.api_key, prompt)
        except ProviderError as e:
            return self._finish_failed(epoch, request, e)
        except asyncio.CancelledError:
            self._finish_failed(epoch, request, None, detail="Request cancelled")
            raise
        except Exception:
            logger.exception("Unexpected error during generation")
            self._finish_failed(epoch, request, None)
            raise

        return self._finish_success(epoch, request, reply)

    def reset(self) -> None:
        """Start a new chat: clear the document, conversation and artifact.

        An in-flight request is not aborted; its result will be discarded.
        History is kept.
        """
        self._epoch += 1
        self.release_artifact()
        self._conversation.clear()
        self._transition(Idle())

    def restore(self, entry: HistoryEntry) -> GenerationResult:
        """Make a history entry the current document, as if just generated.

        No provider is called and nothing is appended to history.
        """
        result = entry.to_result()
        self._epoch += 1
        self.release_artifact()
        self._conversation = [
            ChatMessage(role=MessageRole.USER, content=entry.topic),
            ChatMessage(role=MessageRole.AI, content=summarize_result(result)),
        ]
        self._transition(Success(result=result))
        return result

    def import_document(
        self,
        document_text: str,
        template: Template = Template.ARTICLE,
        provider: Provider = Provider.CLAUDE,
        pdf_size: PdfSize = PdfSize.MEDIUM,
    ) -> GenerationResult:
        """Use uploaded LaTeX source as the current document, unmodified.

        Bypasses the provider and the extractor. The conversation is emptied
        and nothing is appended to history.
        """
        result = GenerationResult.from_document(
            document_text, provider=provider, template=template, pdf_size=pdf_size
        )
        self._epoch += 1
        self.release_artifact()
        self._conversation.clear()
        self._transition(Success(result=result))
        logger.info(f"Imported document ({len(document_text)} chars)")
        return result

    async def preview(self) -> ArtifactHandle:
        """Compile the current document into a fresh preview handle."""
        return await self._artifacts.get_or_create(self)

    async def download(self, path: str | Path = DEFAULT_DOWNLOAD_NAME) -> Path:
        """Compile the current document and save it to a file."""
        return await self._artifacts.download(self, path)

    def attach_artifact(self, handle: ArtifactHandle) -> None:
        """Make a handle the session's live artifact, revoking the old one."""
        if self._artifact is not None and self._artifact is not handle:
            self._artifacts.invalidate(self._artifact)
        self._artifact = handle

    def release_artifact(self) -> None:
        """Revoke and drop the live artifact, if any."""
        if self._artifact is not None:
            self._artifacts.invalidate(self._artifact)
            self._artifact = None

    def _finish_success(self, epoch: int, request: GenerationRequest, reply: str) -> SessionState:
        if epoch != self._epoch:
            logger.warning("Discarding result of a superseded request")
            return self._state

        document = extract_latex_document(reply)
        result = GenerationResult.from_document(
            document,
            provider=request.provider,
            template=request.template,
            pdf_size=request.pdf_size,
            topic=request.topic,
        )
        self._replace_trailing(ChatMessage(role=MessageRole.AI, content=summarize_result(result)))
        self._transition(Success(result=result))
        self._history.append(self._history.new_entry(result))
        logger.info(f"Document generated with {result.section_count} sections")
        return self._state

    def _finish_failed(
        self,
        epoch: int,
        request: GenerationRequest,
        error: ProviderError | None,
        detail: str = "Unknown error",
    ) -> SessionState:
        if epoch != self._epoch:
            logger.warning(f"Discarding failure of a superseded request: {error}")
            return self._state

        message = f"Error: {error if error is not None else detail}"
        logger.warning(f"Generation failed: {message}")
        self._replace_trailing(
            ChatMessage(
                role=MessageRole.AI,
                content=f"Failed to generate document: {message}",
                is_error=True,
            )
        )
        self._transition(
            Failed(
                request=request,
                error_message=message,
                error_kind=type(error).__name__ if error is not None else "Exception",
                status=getattr(error, "status", None),
            )
        )
        return self._state

    def _replace_trailing(self, message: ChatMessage) -> None:
        if self._conversation and self._conversation[-1].role == MessageRole.AI:
            self._conversation[-1] = message
        else:
            self._conversation.append(message)

    def _transition(self, state: SessionState) -> None:
        logger.debug(f"Session state: {self._state.kind} -> {state.kind}")
        self._state = state
        for listener in list(self._listeners):
            listener(state)
