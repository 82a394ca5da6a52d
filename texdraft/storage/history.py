"""History of accepted generations, persisted in the local store."""

import json
import logging
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

from jinja2 import Environment, PackageLoader, select_autoescape

from texdraft.models import GenerationResult, HistoryEntry
from texdraft.storage.backends import KeyValueStore, StorageKey

if TYPE_CHECKING:
    from texdraft.session.generation import GenerationSession

logger = logging.getLogger(__name__)

_templates = Environment(
    loader=PackageLoader("texdraft", "templates"),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def format_timestamp(moment: datetime) -> tuple[str, str]:
    """Format a moment as en-US short date and time strings.

    Returns:
        (date, time), e.g. ("10/19/2026", "3:04:05 PM").
    """
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    date = f"{moment.month}/{moment.day}/{moment.year}"
    time = f"{hour}:{moment.minute:02d}:{moment.second:02d} {suffix}"
    return date, time


class HistoryStore:
    """Append-only log of generations, grouped by date for display.

    Groups are ordered ascending by their date string and list entries
    newest first. The flattened display order is also the order of the
    stored record array, so a display index is a record index.
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize the history store.

        Args:
            store: Durable key/value store shared with the key vault.
            clock: Source of the local time stamped on new entries.
        """
        self._store = store
        self._clock = clock
        self._log: list[HistoryEntry] = []

    def __len__(self) -> int:
        return len(self._log)

    def load(self) -> list[HistoryEntry]:
        """Restore the log from the stored record array.

        Returns:
            Entries in display order.
        """
        records = self._read_records()
        # Records are stored newest-first; reversing gives a log whose
        # regrouping reproduces the same display
        self._log = list(reversed(records))
        logger.debug(f"Loaded {len(self._log)} history entries")
        return self.all()

    def new_entry(self, result: GenerationResult, topic: str | None = None) -> HistoryEntry:
        """Stamp a result with the current local date and time."""
        date, time = format_timestamp(self._clock())
        return HistoryEntry(
            date=date,
            time=time,
            topic=result.topic if topic is None else topic,
            document_text=result.document_text,
            template=result.template,
            provider=result.provider,
            pdf_size=result.pdf_size,
        )

    def append(self, entry: HistoryEntry) -> None:
        """Add an entry and persist the regrouped history."""
        self._log.append(entry)
        logger.info(f"History entry added: {entry.date} {entry.time} ({entry.provider.value})")
        self.persist()

    def groups(self) -> list[tuple[str, list[HistoryEntry]]]:
        """Entries grouped by date key, ascending, newest first within a date."""
        grouped: dict[str, list[HistoryEntry]] = {}
        for entry in reversed(self._log):
            grouped.setdefault(entry.date, []).append(entry)
        return sorted(grouped.items(), key=lambda item: item[0])

    def all(self) -> list[HistoryEntry]:
        """Entries in display order."""
        return [entry for _, entries in self.groups() for entry in entries]

    def persist(self) -> None:
        """Write the display blob and the structured record array."""
        indexed_groups = []
        index = 0
        records = []
        for date, entries in self.groups():
            rows = []
            for entry in entries:
                rows.append((index, entry))
                records.append(entry.to_record())
                index += 1
            indexed_groups.append((date, rows))

        html = _templates.get_template("history_list.html").render(groups=indexed_groups)
        self._store.set(StorageKey.CHAT_HISTORY.value, html)
        self._store.set(StorageKey.CHAT_HISTORY_DATA.value, json.dumps(records))

    def display(self) -> str:
        """Display-ready history, as last persisted."""
        html = self._store.get(StorageKey.CHAT_HISTORY.value)
        if html is None:
            return _templates.get_template("history_list.html").render(groups=[])
        return html

    def entry(self, index: int) -> HistoryEntry:
        """Reconstruct a stored record by its display index.

        Raises:
            IndexError: If no record exists at that index.
        """
        records = self._read_records()
        if index < 0 or index >= len(records):
            raise IndexError(f"No history entry at index {index}")
        return records[index]

    def replay(self, index: int, session: "GenerationSession") -> GenerationResult:
        """Load a stored entry into a session without calling any provider.

        Args:
            index: Display index of the entry.
            session: Session to restore into; its artifact is reset.

        Returns:
            The reconstructed result now current in the session.
        """
        entry = self.entry(index)
        logger.info(f"Replaying history entry {index}: {entry.topic!r}")
        return session.restore(entry)

    def clear(self) -> None:
        """Delete every entry, in memory and in the store."""
        self._log.clear()
        self._store.remove(StorageKey.CHAT_HISTORY.value)
        self._store.remove(StorageKey.CHAT_HISTORY_DATA.value)
        logger.info("History cleared")

    def _read_records(self) -> list[HistoryEntry]:
        raw = self._store.get(StorageKey.CHAT_HISTORY_DATA.value)
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Stored history is not valid JSON, ignoring it: {e}")
            return []
        if not isinstance(data, list):
            logger.warning("Stored history is not a list, ignoring it")
            return []

        entries = []
        for record in data:
            if not isinstance(record, dict):
                continue
            try:
                entries.append(HistoryEntry.from_record(record))
            except ValueError as e:
                logger.warning(f"Skipping unreadable history record: {e}")
        return entries
