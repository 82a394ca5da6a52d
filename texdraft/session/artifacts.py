"""Lifecycle of the compiled-artifact previews handed to the UI.

Real LaTeX compilation is not performed. SimulatedCompiler stands in for a
compilation service and produces a one-page PDF that shows the source text.
A compiler with the same async interface can replace it without changing
ArtifactLifecycle.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from texdraft.config import settings
from texdraft.errors import NoDocumentError
from texdraft.models import PdfSize

if TYPE_CHECKING:
    from texdraft.session.generation import GenerationSession

logger = logging.getLogger(__name__)

DEFAULT_DOWNLOAD_NAME = "document.pdf"

FONT_SIZES: dict[PdfSize, int] = {
    PdfSize.SMALL: 10,
    PdfSize.MEDIUM: 12,
    PdfSize.LARGE: 14,
    PdfSize.EXTRA_LARGE: 18,
}

# US Letter, 1in margins
PAGE_WIDTH = 612
PAGE_HEIGHT = 792
MARGIN = 72


def _escape_pdf_text(text: str) -> str:
    return (
        text.replace("\\", "\\\\")
        .replace("(", "\\(")
        .replace(")", "\\)")
        .replace("\t", "    ")
    )


def render_placeholder_pdf(document_text: str, pdf_size: PdfSize = PdfSize.MEDIUM) -> bytes:
    """Build a minimal single-page PDF 1.4 showing the document source.

    Lines that do not fit the page are cut. Characters outside Latin-1
    are replaced.
    """
    font_size = FONT_SIZES[PdfSize(pdf_size)]
    leading = font_size * 1.2
    max_lines = int((PAGE_HEIGHT - 2 * MARGIN) // leading)
    # Courier advance width is 0.6em
    max_chars = int((PAGE_WIDTH - 2 * MARGIN) // (font_size * 0.6))

    lines = document_text.splitlines()[:max_lines] or [""]
    ops = ["BT", f"/F1 {font_size} Tf", f"{leading:g} TL", f"{MARGIN} {PAGE_HEIGHT - MARGIN} Td"]
    for line in lines:
        ops.append(f"({_escape_pdf_text(line[:max_chars])}) Tj T*")
    ops.append("ET")
    stream = "\n".join(ops).encode("latin-1", errors="replace")

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 %d %d] "
        b"/Resources << /Font << /F1 4 0 R >> >> /Contents 5 0 R >>" % (PAGE_WIDTH, PAGE_HEIGHT),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Courier >>",
        b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream",
    ]

    pdf = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(pdf))
        pdf += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_offset = len(pdf)
    pdf += b"xref\n0 %d\n" % (len(objects) + 1)
    pdf += b"0000000000 65535 f \n"
    for offset in offsets:
        pdf += b"%010d 00000 n \n" % offset
    pdf += b"trailer\n<< /Size %d /Root 1 0 R >>\n" % (len(objects) + 1)
    pdf += b"startxref\n%d\n%%%%EOF\n" % xref_offset
    return bytes(pdf)


class DocumentCompiler(Protocol):
    """Asynchronous LaTeX-to-PDF job."""

    async def compile(self, document_text: str, pdf_size: PdfSize) -> bytes: ...


class SimulatedCompiler:
    """Compiler stand-in that waits, then returns a placeholder PDF."""

    def __init__(self, delay_seconds: float = 1.0) -> None:
        self.delay_seconds = delay_seconds

    async def compile(self, document_text: str, pdf_size: PdfSize) -> bytes:
        await asyncio.sleep(self.delay_seconds)
        return render_placeholder_pdf(document_text, pdf_size)


class ObjectUrlRegistry:
    """Registry of live blob references, the process-local object URLs."""

    SCHEME = "blob:texdraft/"

    def __init__(self) -> None:
        self._blobs: dict[str, bytes] = {}

    @property
    def live_count(self) -> int:
        return len(self._blobs)

    def create(self, data: bytes) -> str:
        url = f"{self.SCHEME}{uuid.uuid4()}"
        self._blobs[url] = data
        logger.debug(f"Created object URL {url} ({len(data)} bytes)")
        return url

    def revoke(self, url: str) -> None:
        """Release a reference. Revoking twice is a no-op."""
        if self._blobs.pop(url, None) is not None:
            logger.debug(f"Revoked object URL {url}")

    def is_live(self, url: str) -> bool:
        return url in self._blobs

    def resolve(self, url: str) -> bytes:
        """Bytes behind a live reference.

        Raises:
            KeyError: If the reference was revoked or never existed.
        """
        return self._blobs[url]


@dataclass
class ArtifactHandle:
    """Compiled bytes plus the reference the UI loads them from."""

    binary_data: bytes = field(repr=False)
    object_url: str | None = None


class ArtifactLifecycle:
    """Creates and revokes artifact handles for sessions.

    A session never holds more than one live object URL: the previous one is
    revoked before a new one is attached.
    """

    def __init__(
        self,
        registry: ObjectUrlRegistry | None = None,
        compiler: DocumentCompiler | None = None,
    ) -> None:
        self.registry = registry or ObjectUrlRegistry()
        self.compiler = compiler or SimulatedCompiler(settings.compile_delay_seconds)

    async def get_or_create(self, session: "GenerationSession") -> ArtifactHandle:
        """Compile the session's current document into a fresh handle.

        Any live handle of the session is revoked first. If the session's
        document changes while compiling, the bytes are returned without a
        reference and nothing is attached.

        Raises:
            NoDocumentError: If the session has no current document.
        """
        result = session.current_result
        if result is None:
            raise NoDocumentError()

        version = session.document_version
        session.release_artifact()

        data = await self.compiler.compile(result.document_text, result.pdf_size)

        if session.document_version != version:
            logger.warning("Document changed during compilation, discarding preview reference")
            return ArtifactHandle(binary_data=data)

        # Another preview may have attached while this one was compiling
        session.release_artifact()
        handle = ArtifactHandle(binary_data=data, object_url=self.registry.create(data))
        session.attach_artifact(handle)
        return handle

    def invalidate(self, handle: ArtifactHandle) -> None:
        """Revoke a handle's reference."""
        if handle.object_url is not None:
            self.registry.revoke(handle.object_url)
            handle.object_url = None

    async def download(
        self,
        session: "GenerationSession",
        path: str | Path = DEFAULT_DOWNLOAD_NAME,
    ) -> Path:
        """Compile the current document and write it to a file.

        Returns:
            Path written.
        """
        handle = await self.get_or_create(session)
        target = Path(path)
        target.write_bytes(handle.binary_data)
        logger.info(f"Wrote {len(handle.binary_data)} bytes to {target}")
        return target
