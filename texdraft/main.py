"""Command-line entry point for generating LaTeX documents."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import httpx

from texdraft.config import settings
from texdraft.errors import TexDraftError
from texdraft.models import MessageRole, PdfSize, Provider, Template
from texdraft.providers.client import ProviderClient
from texdraft.session.artifacts import ArtifactLifecycle, SimulatedCompiler
from texdraft.session.generation import GenerationSession
from texdraft.session.state import Failed, Success
from texdraft.storage.backends import JsonFileStore
from texdraft.storage.history import HistoryStore
from texdraft.storage.vault import ApiKeyVault, Theme, ThemePreference

logger = logging.getLogger(__name__)


def create_http_client() -> httpx.AsyncClient:
    """HTTP client shared by every request of one CLI run."""
    return httpx.AsyncClient(timeout=settings.request_timeout)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="texdraft",
        description="Generate LaTeX documents with a chat-completion provider",
    )
    parser.add_argument(
        "--storage",
        type=Path,
        default=None,
        help="Path of the local storage file (uses TEXDRAFT_STORAGE_PATH if not specified)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    generate = commands.add_parser("generate", help="Generate a document for a topic")
    generate.add_argument("topic", nargs="+", help="Topic of the document")
    _add_document_options(generate)
    generate.add_argument(
        "--provider",
        choices=[p.value for p in Provider],
        default=None,
        help="Provider to use (uses the saved provider if not specified)",
    )
    generate.add_argument("--output", type=Path, default=None, help="Write LaTeX source here")
    generate.add_argument("--pdf", type=Path, default=None, help="Write the compiled artifact here")

    commands.add_parser("history", help="List previous generations")

    replay = commands.add_parser("replay", help="Restore a previous generation")
    replay.add_argument("index", type=int, help="Index shown by the history command")
    replay.add_argument("--output", type=Path, default=None, help="Write LaTeX source here")
    replay.add_argument("--pdf", type=Path, default=None, help="Write the compiled artifact here")

    import_ = commands.add_parser("import", help="Load a LaTeX file as the current document")
    import_.add_argument("file", type=Path, help="LaTeX file to import")
    _add_document_options(import_)
    import_.add_argument("--pdf", type=Path, default=None, help="Write the compiled artifact here")

    keys = commands.add_parser("keys", help="Save API keys and the default provider")
    keys.add_argument("--claude", default=None, help="Claude API key")
    keys.add_argument("--perplexity", default=None, help="Perplexity API key")
    keys.add_argument("--mistral", default=None, help="Mistral API key")
    keys.add_argument(
        "--provider",
        choices=[p.value for p in Provider],
        default=None,
        help="Default provider",
    )

    theme = commands.add_parser("theme", help="Show or set the color theme")
    theme.add_argument("value", nargs="?", choices=[t.value for t in Theme], default=None)

    commands.add_parser("clear-history", help="Delete all previous generations")
    return parser


def _add_document_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--template",
        choices=[t.value for t in Template],
        default=Template.ARTICLE.value,
        help="Document template",
    )
    parser.add_argument(
        "--pdf-size",
        choices=[s.value for s in PdfSize],
        default=PdfSize.MEDIUM.value,
        help="Preview size of the compiled artifact",
    )


def print_conversation(session: GenerationSession) -> None:
    for message in session.conversation:
        prefix = "you" if message.role == MessageRole.USER else "ai "
        for line in message.content.splitlines():
            print(f"[{prefix}] {line}")


def print_history(history: HistoryStore) -> None:
    groups = history.groups()
    if not groups:
        print("No chat history yet")
        return
    index = 0
    for date, entries in groups:
        print(date)
        for entry in entries:
            meta = f"{entry.template.value}, {entry.provider.value}"
            print(f"  [{index}] {entry.time}  {entry.topic}  ({meta})")
            index += 1


async def emit_document(
    session: GenerationSession,
    output: Path | None,
    pdf: Path | None,
) -> None:
    """Write or print the current document, and compile it if asked."""
    result = session.current_result
    if result is None:
        return
    if output is not None:
        output.write_text(result.document_text, encoding="utf-8")
        logger.info(f"Wrote LaTeX source to {output}")
    else:
        print(result.document_text)
    if pdf is not None:
        await session.download(pdf)


async def run(args: argparse.Namespace) -> int:
    """Execute one CLI command.

    Returns:
        Process exit code.
    """
    store = JsonFileStore(args.storage or settings.storage_path)
    vault = ApiKeyVault(store)
    history = HistoryStore(store)
    history.load()

    if args.command == "keys":
        updates = {
            provider: value
            for provider, value in (
                (Provider.CLAUDE, args.claude),
                (Provider.PERPLEXITY, args.perplexity),
                (Provider.MISTRAL, args.mistral),
            )
            if value is not None
        }
        vault.save(updates, Provider(args.provider) if args.provider else None)
        print("API keys and provider saved successfully!")
        return 0

    if args.command == "theme":
        preference = ThemePreference(store)
        if args.value is not None:
            preference.set(Theme(args.value))
        print(preference.get().value)
        return 0

    if args.command == "history":
        print_history(history)
        return 0

    if args.command == "clear-history":
        history.clear()
        return 0

    artifacts = ArtifactLifecycle(compiler=SimulatedCompiler(settings.compile_delay_seconds))
    async with create_http_client() as http_client:
        session = GenerationSession(
            ProviderClient(http_client), history, artifacts=artifacts, vault=vault
        )

        if args.command == "generate":
            request = session.make_request(
                " ".join(args.topic),
                template=Template(args.template),
                pdf_size=PdfSize(args.pdf_size),
                provider=Provider(args.provider) if args.provider else None,
            )
            state = await session.generate(request)
            print_conversation(session)
            if isinstance(state, Failed):
                return 1
            await emit_document(session, args.output, args.pdf)
            return 0

        if args.command == "replay":
            history.replay(args.index, session)
            print_conversation(session)
            await emit_document(session, args.output, args.pdf)
            return 0

        if args.command == "import":
            session.import_document(
                args.file.read_text(encoding="utf-8"),
                template=Template(args.template),
                provider=vault.selected_provider,
                pdf_size=PdfSize(args.pdf_size),
            )
            if isinstance(session.state, Success):
                print(f"Imported {args.file} ({session.state.result.section_count} sections)")
            if args.pdf is not None:
                await session.download(args.pdf)
            return 0

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    """Main function for the texdraft CLI."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    # Request logs would echo provider URLs on every call
    logging.getLogger("httpx").setLevel(logging.WARNING)

    try:
        return asyncio.run(run(args))
    except (TexDraftError, IndexError, OSError) as e:
        logger.error(f"{e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
