"""Domain models shared by the generation session, history and storage."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

SECTION_MARKER = "\\section"


class Template(str, Enum):
    """LaTeX document template offered to the user."""

    ARTICLE = "Article"
    REPORT = "Report"
    IEEETRAN = "IEEEtran"
    BOOK = "Book"
    LETTER = "Letter"


class Provider(str, Enum):
    """Supported chat-completion providers."""

    CLAUDE = "Claude"
    PERPLEXITY = "Perplexity"
    MISTRAL = "Mistral"


class PdfSize(str, Enum):
    """Preview size chosen for the compiled artifact."""

    SMALL = "Small"
    MEDIUM = "Medium"
    LARGE = "Large"
    EXTRA_LARGE = "Extra Large"


class MessageRole(str, Enum):
    """Author of a conversation bubble."""

    USER = "user"
    AI = "ai"


def count_sections(document_text: str) -> int:
    """Count section markers in a LaTeX document.

    Starred sections count, subsections do not.
    """
    return document_text.count(SECTION_MARKER)


class GenerationRequest(BaseModel):
    """A user's request to generate one document."""

    topic: str = Field(description="Free-form topic typed by the user")
    template: Template = Field(default=Template.ARTICLE, description="Document template")
    provider: Provider = Field(default=Provider.CLAUDE, description="Chat-completion provider")
    api_key: str = Field(default="", repr=False, description="Key for the chosen provider")
    pdf_size: PdfSize = Field(default=PdfSize.MEDIUM, description="Preview size")


class GenerationResult(BaseModel):
    """An accepted document, immutable once produced."""

    model_config = ConfigDict(frozen=True)

    document_text: str = Field(description="Extracted LaTeX source")
    provider: Provider
    template: Template
    pdf_size: PdfSize = PdfSize.MEDIUM
    topic: str = ""
    section_count: int = Field(ge=0, description="Number of \\section markers")

    @classmethod
    def from_document(
        cls,
        document_text: str,
        provider: Provider,
        template: Template,
        pdf_size: PdfSize = PdfSize.MEDIUM,
        topic: str = "",
    ) -> "GenerationResult":
        """Build a result, deriving the section count from the text."""
        return cls(
            document_text=document_text,
            provider=provider,
            template=template,
            pdf_size=pdf_size,
            topic=topic,
            section_count=count_sections(document_text),
        )


class HistoryEntry(BaseModel):
    """One accepted generation recorded in the history log."""

    model_config = ConfigDict(frozen=True)

    date: str = Field(description="Local date, e.g. 10/19/2026")
    time: str = Field(description="Local time, e.g. 3:04:05 PM")
    topic: str
    document_text: str
    template: Template = Template.ARTICLE
    provider: Provider = Provider.CLAUDE
    pdf_size: PdfSize = PdfSize.MEDIUM

    def to_record(self) -> dict[str, str]:
        """Serialize to the structured record kept in durable storage."""
        return {
            "date": self.date,
            "time": self.time,
            "topic": self.topic,
            "content": self.document_text,
            "template": self.template.value,
            "ai_provider": self.provider.value,
            "pdf_size": self.pdf_size.value,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "HistoryEntry":
        """Rebuild an entry from a stored record.

        Records written before template/provider/size were tracked fall back
        to Article, Claude and Medium.
        """
        return cls(
            date=str(record.get("date") or ""),
            time=str(record.get("time") or ""),
            topic=str(record.get("topic") or ""),
            document_text=str(record.get("content") or ""),
            template=Template(record.get("template") or Template.ARTICLE.value),
            provider=Provider(record.get("ai_provider") or Provider.CLAUDE.value),
            pdf_size=PdfSize(record.get("pdf_size") or PdfSize.MEDIUM.value),
        )

    def to_result(self) -> GenerationResult:
        """Reconstruct the result this entry was recorded from."""
        return GenerationResult.from_document(
            self.document_text,
            provider=self.provider,
            template=self.template,
            pdf_size=self.pdf_size,
            topic=self.topic,
        )


class ChatMessage(BaseModel):
    """One bubble in the visible conversation."""

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str
    is_error: bool = False
    is_pending: bool = False
