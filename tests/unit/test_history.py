"""
Unit tests for the comparison history store.
"""

import csv
import io
import json

import pytest

from sitediff.history import CSV_HEADERS, HistoryStore, summarize_for_history
from sitediff.job_runner import PageComparator
from sitediff.models import AlertRecord, PageInput
from sitediff.storage import JSONFileBackend, StorageError

ERROR = AlertRecord("error", "SEO", "Critical meta tag missing")
WARNING = AlertRecord("warning", "DOM", "Script count increased")


class TestHistoryStore:
    """Tests for HistoryStore."""

    def test_save_assigns_id_and_timestamp(self):
        """Test that a saved entry gets an id and timezone-aware timestamp."""
        store = HistoryStore()
        entry = store.save("https://dev", "https://prod", {"lines": {}}, [ERROR])

        assert entry.id
        assert entry.timestamp.tzinfo is not None
        assert entry.alerts == [ERROR.to_dict()]
        assert store.get_by_id(entry.id) == entry

    def test_trimmed_to_max_items(self):
        """Test that only the most recent entries are kept."""
        store = HistoryStore(max_items=3)
        ids = [store.save(f"https://dev/{i}", "https://prod", {}, []).id for i in range(5)]

        assert [entry.id for entry in store.get_all()] == ids[2:]

    def test_zero_max_items_keeps_nothing(self):
        """Test that a limit of zero keeps no entries."""
        store = HistoryStore(max_items=0)
        store.save("https://dev", "https://prod", {}, [])

        assert store.get_all() == []

    def test_get_recent_newest_first(self):
        """Test that recent entries come back newest first."""
        store = HistoryStore()
        ids = [store.save(f"https://dev/{i}", "https://prod", {}, []).id for i in range(4)]

        assert [entry.id for entry in store.get_recent(2)] == [ids[3], ids[2]]
        assert store.get_recent(0) == []

    def test_delete_and_clear(self):
        """Test deleting by id and clearing."""
        store = HistoryStore()
        entry = store.save("https://dev", "https://prod", {}, [])
        store.save("https://dev", "https://prod", {}, [])

        assert store.delete(entry.id) is True
        assert store.delete(entry.id) is False
        assert len(store.get_all()) == 1

        store.clear()
        assert store.get_all() == []

    def test_export_csv(self):
        """Test the CSV export columns and counts."""
        store = HistoryStore()
        store.save(
            "https://dev",
            "https://prod",
            {"dom": {"scripts_diff": 8}, "performance": {"score_diff": -5}},
            [ERROR, WARNING, WARNING],
        )

        rows = list(csv.reader(io.StringIO(store.export_csv())))

        assert rows[0] == CSV_HEADERS
        row = dict(zip(CSV_HEADERS, rows[1]))
        assert row["Scripts Diff"] == "8"
        assert row["Performance Score Diff"] == "-5"
        assert row["Alert Count"] == "3"
        assert row["Error Count"] == "1"
        assert row["Warning Count"] == "2"

    def test_import_dedupes_by_id(self):
        """Test that importing keeps existing entries and skips known ids."""
        source = HistoryStore()
        kept = source.save("https://dev/a", "https://prod", {}, [])
        source.save("https://dev/b", "https://prod", {}, [])

        target = HistoryStore()
        target.import_json(json.dumps([kept.to_dict()]))
        added = target.import_json(source.export_json())

        assert added == 1
        assert len(target.get_all()) == 2

    def test_import_invalid_payload(self):
        """Test that malformed imports raise StorageError."""
        store = HistoryStore()

        with pytest.raises(StorageError):
            store.import_json("not json")
        with pytest.raises(StorageError):
            store.import_json('{"id": 1}')
        with pytest.raises(StorageError):
            store.import_json('[{"id": "x"}]')

    def test_statistics(self):
        """Test aggregate statistics."""
        store = HistoryStore()
        assert store.statistics() is None

        store.save("https://dev/a", "https://prod/a", {}, [ERROR])
        store.save("https://dev/a", "https://prod/a", {}, [WARNING, ERROR])
        store.save("https://dev/b", "https://prod/b", {}, [])

        stats = store.statistics()
        assert stats.total_comparisons == 3
        assert stats.total_alerts == 3
        assert stats.total_errors == 2
        assert stats.total_warnings == 1
        assert stats.average_alerts_per_comparison == 1.0
        assert stats.most_compared[0] == {
            "dev_url": "https://dev/a",
            "prod_url": "https://prod/a",
            "count": 2,
        }
        assert stats.alert_categories == {"SEO": 2, "DOM": 1}
        assert stats.first_timestamp <= stats.last_timestamp


class TestJSONFileBackend:
    """Tests for file-backed history."""

    def test_persists_between_stores(self, tmp_path):
        """Test that a second store sees entries written by the first."""
        path = tmp_path / "history.json"
        entry = HistoryStore(JSONFileBackend(path)).save("https://dev", "https://prod", {}, [])

        reopened = HistoryStore(JSONFileBackend(path))
        assert [e.id for e in reopened.get_all()] == [entry.id]

    def test_missing_file_is_empty(self, tmp_path):
        """Test that a missing history file reads as empty."""
        assert JSONFileBackend(tmp_path / "absent.json").load() == []

    def test_corrupt_file_raises(self, tmp_path):
        """Test that a corrupt history file raises StorageError."""
        path = tmp_path / "history.json"
        path.write_text("{broken", encoding="utf-8")

        with pytest.raises(StorageError, match="Failed to read history"):
            JSONFileBackend(path).load()


class TestSummarizeForHistory:
    """Tests for summarize_for_history."""

    def test_deltas_are_prod_minus_dev(self):
        """Test the compact summary of a comparison."""
        result = PageComparator().compare(
            PageInput("https://dev", "<title>A</title><script src='/a.js'></script>"),
            PageInput("https://prod", "<title>B</title>"),
        )

        summary = summarize_for_history(result)

        assert summary["dom"]["scripts_diff"] == -1
        assert summary["seo"]["title_match"] is False
        assert summary["seo"]["description_match"] is True
        assert "resources" not in summary
