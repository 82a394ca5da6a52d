"""Tests for the generation history store."""

import json
from datetime import datetime

import pytest
from conftest import FakeProviderClient, ticking_clock

from texdraft.models import GenerationResult, PdfSize, Provider, Template
from texdraft.session.state import Success
from texdraft.storage.backends import MemoryStore, StorageKey
from texdraft.storage.history import HistoryStore, format_timestamp


def make_result(topic, provider=Provider.CLAUDE, template=Template.ARTICLE):
    return GenerationResult.from_document(
        f"\\documentclass{{article}}\\section{{{topic}}}\\end{{document}}",
        provider=provider,
        template=template,
        topic=topic,
    )


def clock_at(*moments):
    it = iter(moments)
    return lambda: next(it)


class TestFormatTimestamp:
    """Tests for format_timestamp."""

    @pytest.mark.parametrize(
        "moment,expected",
        [
            (datetime(2026, 10, 19, 15, 4, 5), ("10/19/2026", "3:04:05 PM")),
            (datetime(2026, 1, 2, 0, 0, 9), ("1/2/2026", "12:00:09 AM")),
            (datetime(2026, 7, 4, 12, 30, 0), ("7/4/2026", "12:30:00 PM")),
            (datetime(2026, 7, 4, 9, 5, 59), ("7/4/2026", "9:05:59 AM")),
        ],
    )
    def test_formats(self, moment, expected):
        """Test en-US short date and time formatting."""
        assert format_timestamp(moment) == expected


class TestHistoryStore:
    """Tests for HistoryStore."""

    def test_append_persists_both_keys(self, history, memory_store):
        """Test that an append writes the display blob and the records."""
        history.append(history.new_entry(make_result("Thermodynamics")))

        records = json.loads(memory_store.get(StorageKey.CHAT_HISTORY_DATA.value))
        assert records == [
            {
                "date": "10/19/2026",
                "time": "3:04:05 PM",
                "topic": "Thermodynamics",
                "content": "\\documentclass{article}\\section{Thermodynamics}\\end{document}",
                "template": "Article",
                "ai_provider": "Claude",
                "pdf_size": "Medium",
            }
        ]
        html = memory_store.get(StorageKey.CHAT_HISTORY.value)
        assert '<div class="history-date">10/19/2026</div>' in html
        assert 'data-index="0"' in html
        assert "Thermodynamics" in html

    def test_new_entry_copies_result(self, history):
        """Test that a new entry carries the result's metadata."""
        result = make_result("Optics", provider=Provider.MISTRAL, template=Template.BOOK)

        entry = history.new_entry(result)

        assert entry.topic == "Optics"
        assert entry.provider == Provider.MISTRAL
        assert entry.template == Template.BOOK
        assert entry.document_text == result.document_text
        assert history.new_entry(result, topic="Override").topic == "Override"

    def test_grouping_order(self, memory_store):
        """Test date groups ascending by string and newest first within a date."""
        history = HistoryStore(
            memory_store,
            clock=clock_at(
                datetime(2026, 10, 19, 9, 0, 0),
                datetime(2026, 9, 30, 9, 0, 0),
                datetime(2026, 10, 19, 10, 0, 0),
                datetime(2026, 10, 20, 8, 0, 0),
            ),
        )
        for topic in ["a", "b", "c", "d"]:
            history.append(history.new_entry(make_result(topic)))

        groups = history.groups()

        assert [date for date, _ in groups] == ["10/19/2026", "10/20/2026", "9/30/2026"]
        assert [e.topic for e in groups[0][1]] == ["c", "a"]
        assert [e.topic for e in history.all()] == ["c", "a", "d", "b"]

        records = json.loads(memory_store.get(StorageKey.CHAT_HISTORY_DATA.value))
        assert [r["topic"] for r in records] == ["c", "a", "d", "b"]

    def test_display_index_matches_record(self, history):
        """Test that each data-index refers to the record shown next to it."""
        for topic in ["first", "second", "third"]:
            history.append(history.new_entry(make_result(topic)))

        html = history.display()

        for index, entry in enumerate(history.all()):
            assert f'data-index="{index}"' in html
            assert history.entry(index).topic == entry.topic

    def test_display_escapes_topic(self, history):
        """Test that topics are HTML-escaped in the display blob."""
        history.append(history.new_entry(make_result("<script>alert(1)</script>")))

        html = history.display()

        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_empty_display(self, history):
        """Test the empty-state display."""
        assert "No chat history yet" in history.display()

    def test_load_restores_previous_session(self, memory_store):
        """Test that a new store instance sees and extends the saved history."""
        first = HistoryStore(memory_store, clock=ticking_clock())
        for topic in ["a", "b"]:
            first.append(first.new_entry(make_result(topic)))

        second = HistoryStore(memory_store, clock=ticking_clock(datetime(2026, 10, 19, 16, 0, 0)))
        loaded = second.load()

        assert [e.topic for e in loaded] == ["b", "a"]
        second.append(second.new_entry(make_result("c")))
        assert [e.topic for e in second.all()] == ["c", "b", "a"]
        assert len(second) == 3

    def test_load_tolerates_bad_data(self):
        """Test that unreadable stored history is ignored."""
        store = MemoryStore({StorageKey.CHAT_HISTORY_DATA.value: "{not json"})

        assert HistoryStore(store).load() == []

    def test_load_skips_bad_records(self):
        """Test that invalid records are skipped and old records get defaults."""
        records = [
            {"date": "1/1/2026", "time": "1:00:00 AM", "topic": "old", "content": "x"},
            {"date": "1/1/2026", "topic": "bad", "content": "y", "ai_provider": "OpenAI"},
            "not a record",
        ]
        store = MemoryStore({StorageKey.CHAT_HISTORY_DATA.value: json.dumps(records)})

        loaded = HistoryStore(store).load()

        assert [e.topic for e in loaded] == ["old"]
        assert loaded[0].template == Template.ARTICLE
        assert loaded[0].provider == Provider.CLAUDE
        assert loaded[0].pdf_size == PdfSize.MEDIUM

    def test_load_null_fields_become_empty(self):
        """Test that null text fields in a record load as empty strings."""
        records = [{"date": "1/1/2026", "time": None, "topic": None, "content": None}]
        store = MemoryStore({StorageKey.CHAT_HISTORY_DATA.value: json.dumps(records)})

        (entry,) = HistoryStore(store).load()

        assert entry.topic == ""
        assert entry.time == ""
        assert entry.document_text == ""
        assert entry.date == "1/1/2026"

    def test_entry_out_of_range(self, history):
        """Test that an unknown index raises IndexError."""
        with pytest.raises(IndexError):
            history.entry(0)
        with pytest.raises(IndexError):
            history.entry(-1)

    def test_clear(self, history, memory_store):
        """Test that clear removes entries and both stored keys."""
        history.append(history.new_entry(make_result("a")))

        history.clear()

        assert len(history) == 0
        assert memory_store.get(StorageKey.CHAT_HISTORY.value) is None
        assert memory_store.get(StorageKey.CHAT_HISTORY_DATA.value) is None
        assert "No chat history yet" in history.display()


class TestReplay:
    """Tests for replaying history into a session."""

    def test_replay_restores_without_provider_call(self, history, make_session):
        """Test that replay makes the entry current without a request."""
        history.append(
            history.new_entry(make_result("Optics", provider=Provider.PERPLEXITY))
        )
        client = FakeProviderClient()
        session = make_session(client)

        result = history.replay(0, session)

        assert isinstance(session.state, Success)
        assert result.topic == "Optics"
        assert result.provider == Provider.PERPLEXITY
        assert result.section_count == 1
        assert client.calls == []
        assert len(history) == 1

    def test_replay_unknown_index(self, history, make_session):
        """Test that replaying a missing entry raises IndexError."""
        with pytest.raises(IndexError):
            history.replay(3, make_session())
