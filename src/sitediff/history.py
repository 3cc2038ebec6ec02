"""
Append-only history of past comparisons.

Each entry is a compact summary of one comparison plus its alerts, with an
assigned id and UTC timestamp. Only the most recent ``max_items`` entries are
kept.
"""

import csv
import io
import json
import uuid
from collections import Counter
from datetime import datetime, timezone
from typing import Any

from .config import MAX_HISTORY_ITEMS
from .logger import get_logger
from .models import AlertRecord, ComparisonResult, HistoryEntry, HistoryStatistics
from .storage import HistoryBackend, MemoryBackend, StorageError

logger = get_logger(__name__)

CSV_HEADERS = [
    "ID",
    "Timestamp",
    "Dev URL",
    "Prod URL",
    "DOM Elements Diff",
    "Scripts Diff",
    "Images Diff",
    "Performance Score Diff",
    "Alert Count",
    "Error Count",
    "Warning Count",
]


def summarize_for_history(result: ComparisonResult) -> dict[str, Any]:
    """
    Build the compact results summary stored with a history entry.

    Deltas are production minus development.
    """
    dev, prod = result.dev, result.prod
    summary: dict[str, Any] = {
        "dom": {
            "total_elements_diff": prod.dom.total_elements - dev.dom.total_elements,
            "scripts_diff": prod.dom.scripts - dev.dom.scripts,
            "images_diff": prod.dom.images - dev.dom.images,
            "styles_diff": prod.dom.styles - dev.dom.styles,
        },
        "seo": {
            "title_match": dev.seo.title == prod.seo.title,
            "description_match": dev.seo.description == prod.seo.description,
        },
        "performance": {"score_diff": prod.performance.score - dev.performance.score},
        "lines": {"added": len(result.summary.added), "removed": len(result.summary.removed)},
    }
    if result.resources:
        summary["resources"] = {
            category: reconciliation.counts()
            for category, reconciliation in result.resources.categories.items()
        }
    return summary


class HistoryStore:
    """
    Comparison history over a pluggable backend.

    Entries are only ever appended, trimmed from the oldest end, or deleted
    by id; they are never edited.
    """

    def __init__(self, backend: HistoryBackend | None = None, max_items: int = MAX_HISTORY_ITEMS):
        self.backend = backend or MemoryBackend()
        self.max_items = max_items

    def get_all(self) -> list[HistoryEntry]:
        return [HistoryEntry.from_dict(item) for item in self.backend.load()]

    def _write(self, entries: list[HistoryEntry]) -> None:
        kept = entries[-self.max_items :] if self.max_items > 0 else []
        self.backend.dump([entry.to_dict() for entry in kept])

    def save(
        self,
        dev_url: str,
        prod_url: str,
        results: dict[str, Any],
        alerts: list[AlertRecord],
    ) -> HistoryEntry:
        """
        Append a comparison summary.

        Args:
            dev_url: Development page URL
            prod_url: Production page URL
            results: Compact summary (see :func:`summarize_for_history`)
            alerts: Alerts raised by the comparison

        Returns:
            The stored entry with its assigned id and timestamp
        """
        entry = HistoryEntry(
            id=uuid.uuid4().hex,
            timestamp=datetime.now(timezone.utc),
            dev_url=dev_url,
            prod_url=prod_url,
            results=results,
            alerts=[alert.to_dict() for alert in alerts],
        )
        entries = self.get_all()
        entries.append(entry)
        self._write(entries)
        logger.debug("Saved history entry %s", entry.id)
        return entry

    def record(self, result: ComparisonResult) -> HistoryEntry:
        """Append the summary of a finished comparison."""
        return self.save(result.dev_url, result.prod_url, summarize_for_history(result), result.alerts)

    def get_by_id(self, entry_id: str) -> HistoryEntry | None:
        for entry in self.get_all():
            if entry.id == entry_id:
                return entry
        return None

    def get_recent(self, limit: int = 10) -> list[HistoryEntry]:
        """Most recent entries, newest first."""
        if limit <= 0:
            return []
        return list(reversed(self.get_all()[-limit:]))

    def delete(self, entry_id: str) -> bool:
        entries = self.get_all()
        remaining = [entry for entry in entries if entry.id != entry_id]
        if len(remaining) == len(entries):
            return False
        self._write(remaining)
        return True

    def clear(self) -> None:
        self.backend.dump([])

    def export_json(self) -> str:
        return json.dumps(self.backend.load(), indent=2, ensure_ascii=False)

    def export_csv(self) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(CSV_HEADERS)

        for entry in self.get_all():
            dom = entry.results.get("dom", {})
            performance = entry.results.get("performance", {})
            writer.writerow(
                [
                    entry.id,
                    entry.timestamp.isoformat(),
                    entry.dev_url,
                    entry.prod_url,
                    dom.get("total_elements_diff", 0),
                    dom.get("scripts_diff", 0),
                    dom.get("images_diff", 0),
                    performance.get("score_diff", 0),
                    len(entry.alerts),
                    entry.count_alerts("error"),
                    entry.count_alerts("warning"),
                ]
            )

        return buffer.getvalue()

    def import_json(self, payload: str) -> int:
        """
        Merge exported history into the store.

        Entries are de-duplicated by id (the existing entry wins) and the
        result is trimmed to ``max_items``.

        Returns:
            Number of entries added

        Raises:
            StorageError: If the payload is not a valid history export
        """
        try:
            data = json.loads(payload)
            if not isinstance(data, list):
                raise StorageError("Invalid format: expected a JSON array")
            imported = [HistoryEntry.from_dict(item) for item in data]
        except (ValueError, KeyError, TypeError) as e:
            raise StorageError(f"Failed to import history: {e}") from e

        entries = self.get_all()
        known = {entry.id for entry in entries}
        added = 0
        for entry in imported:
            if entry.id in known:
                continue
            known.add(entry.id)
            entries.append(entry)
            added += 1

        self._write(entries)
        return added

    def statistics(self) -> HistoryStatistics | None:
        """Aggregate figures over the whole history, or None when empty."""
        entries = self.get_all()
        if not entries:
            return None

        total_alerts = sum(len(entry.alerts) for entry in entries)

        pair_counts = Counter((entry.dev_url, entry.prod_url) for entry in entries)
        most_compared = [
            {"dev_url": dev_url, "prod_url": prod_url, "count": count}
            for (dev_url, prod_url), count in pair_counts.most_common(5)
        ]

        categories: Counter[str] = Counter()
        for entry in entries:
            categories.update(alert.get("category", "") for alert in entry.alerts)

        return HistoryStatistics(
            total_comparisons=len(entries),
            total_alerts=total_alerts,
            total_errors=sum(entry.count_alerts("error") for entry in entries),
            total_warnings=sum(entry.count_alerts("warning") for entry in entries),
            average_alerts_per_comparison=round(total_alerts / len(entries), 2),
            most_compared=most_compared,
            alert_categories=dict(categories),
            first_timestamp=entries[0].timestamp,
            last_timestamp=entries[-1].timestamp,
        )
