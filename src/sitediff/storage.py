"""
Storage layer for comparison reports and comparison history.

Provides abstract interfaces for storage backends and file-based
implementations for CSV and JSON export.
"""

import csv
import io
import json
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any

from .alerts import summarize_alerts
from .models import ComparisonResult


class StorageError(Exception):
    """Base exception for storage errors."""

    pass


class Storage(ABC):
    """
    Abstract interface for report storage backends.

    Swappable so a report can go to a database instead of a file without
    changing engine code.
    """

    @abstractmethod
    def save(
        self, result: ComparisonResult, format: str = "json", output_path: str | None = None
    ) -> str:
        """
        Save a comparison report.

        Args:
            result: ComparisonResult to save
            format: Output format ('csv' or 'json')
            output_path: Optional output file path. If not provided, generates one.

        Returns:
            Path to the saved file (for file storage) or identifier (for database)

        Raises:
            StorageError: If save operation fails
        """
        pass


class FileStorage(Storage):
    """
    File-based report storage.

    Exports a comparison to CSV (one row per alert and per resource
    category) or JSON (the full result dictionary).
    """

    def __init__(self, output_directory: str = "."):
        """
        Initialize file storage.

        Args:
            output_directory: Directory to save output files (default: current directory)

        Raises:
            StorageError: If the directory cannot be created
        """
        self.output_directory = Path(output_directory)
        try:
            self.output_directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create output directory {output_directory}: {e}") from e

    def save(
        self, result: ComparisonResult, format: str = "json", output_path: str | None = None
    ) -> str:
        format_lower = format.lower()

        if format_lower not in ("csv", "json"):
            raise StorageError(f"Unsupported format: {format}. Use 'csv' or 'json'.")

        if output_path is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            output_path = f"sitediff_report_{timestamp}.{format_lower}"

        output_file_path = self.output_directory / output_path

        try:
            if format_lower == "csv":
                output_file_path.write_text(render_csv(result), encoding="utf-8")
            else:
                output_file_path.write_text(render_json(result), encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to save report: {e}") from e

        return str(output_file_path)


def render_json(result: ComparisonResult) -> str:
    return json.dumps(result.to_dict(), indent=2, ensure_ascii=False)


def render_csv(result: ComparisonResult) -> str:
    """
    Render a comparison as CSV.

    A commented summary header is followed by one row per alert and one row
    per resource category.
    """
    buffer = io.StringIO()
    summary = summarize_alerts(result.alerts)

    buffer.write("# Dev/Prod Comparison Report\n")
    buffer.write(f"# Dev URL: {result.dev_url}\n")
    buffer.write(f"# Prod URL: {result.prod_url}\n")
    buffer.write(f"# Lines Added: {len(result.summary.added)}\n")
    buffer.write(f"# Lines Removed: {len(result.summary.removed)}\n")
    buffer.write(f"# Alerts: {summary['total']} ({summary['errors']} errors)\n")
    buffer.write("\n")

    fieldnames = ["Section", "Name", "Severity", "Message", "Only Dev", "Only Prod", "Common"]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()

    for alert in result.alerts:
        writer.writerow(
            {
                "Section": "alert",
                "Name": alert.category,
                "Severity": alert.severity,
                "Message": alert.message,
            }
        )

    if result.resources:
        for category, reconciliation in result.resources.categories.items():
            counts = reconciliation.counts()
            writer.writerow(
                {
                    "Section": "resources",
                    "Name": category,
                    "Only Dev": counts["only_a"],
                    "Only Prod": counts["only_b"],
                    "Common": counts["common"],
                }
            )

    return buffer.getvalue()


class HistoryBackend(ABC):
    """Where the history store keeps its serialized entries."""

    @abstractmethod
    def load(self) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    def dump(self, entries: list[dict[str, Any]]) -> None:
        pass


class MemoryBackend(HistoryBackend):
    def __init__(self):
        self._entries: list[dict[str, Any]] = []

    def load(self) -> list[dict[str, Any]]:
        return list(self._entries)

    def dump(self, entries: list[dict[str, Any]]) -> None:
        self._entries = list(entries)


class JSONFileBackend(HistoryBackend):
    """Keeps history as a JSON array in a single file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to read history from {self.path}: {e}") from e

        if not isinstance(data, list):
            raise StorageError(f"Invalid history file {self.path}: expected a JSON array")
        return data

    def dump(self, entries: list[dict[str, Any]]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(entries, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to write history to {self.path}: {e}") from e
