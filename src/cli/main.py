"""
CLI main entry point for the dev/prod page comparison tool.

Thin wrapper around the core engine - no business logic here. Pages and
resource lists are read from local files; fetching them is up to the caller.
Without a resource list, resources are discovered from the page markup.
"""

import argparse
import json
import sys
from pathlib import Path

from sitediff import PageComparator, PageInput, StaticResource, get_thresholds
from sitediff.config import HISTORY_FILE, THRESHOLD_PRESET
from sitediff.discovery import discover_resources, resource_from_entry
from sitediff.history import HistoryStore
from sitediff.logger import setup_logger
from sitediff.resources import build_inventory
from sitediff.storage import FileStorage, JSONFileBackend, StorageError

from .output import print_comparison_summary, print_inventory, print_side_by_side


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="Compare a development page against its production counterpart.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s dev.html prod.html
  %(prog)s dev.html prod.html --dev-resources dev.json --prod-resources prod.json
  %(prog)s dev.html prod.html --thresholds strict -o report.json
        """,
    )

    parser.add_argument("dev_html", type=str, help="HTML file rendered from development")
    parser.add_argument("prod_html", type=str, help="HTML file rendered from production")

    parser.add_argument("--dev-url", type=str, default="dev", help="Label/URL of the development page")
    parser.add_argument("--prod-url", type=str, default="prod", help="Label/URL of the production page")

    parser.add_argument(
        "--dev-resources",
        type=str,
        default=None,
        help="JSON array of static resources for development (default: discovered from the HTML)",
    )
    parser.add_argument(
        "--prod-resources",
        type=str,
        default=None,
        help="JSON array of static resources for production (default: discovered from the HTML)",
    )

    parser.add_argument(
        "--thresholds",
        type=str,
        choices=["default", "strict"],
        default=THRESHOLD_PRESET,
        help=f"Alert threshold preset (default: {THRESHOLD_PRESET})",
    )

    parser.add_argument(
        "-f",
        "--format",
        type=str,
        choices=["csv", "json"],
        default="json",
        help="Report file format when --output is given (default: json)",
    )

    parser.add_argument("-o", "--output", type=str, default=None, help="Write the report to this file")

    parser.add_argument(
        "--history",
        type=str,
        nargs="?",
        const=str(HISTORY_FILE),
        default=None,
        help=f"Append a summary to the history file (default file: {HISTORY_FILE})",
    )

    parser.add_argument("--side-by-side", action="store_true", help="Print the aligned line diff")

    return parser.parse_args(argv)


def read_text(path: str) -> str:
    """
    Read a UTF-8 text file.

    Raises:
        SystemExit: If file cannot be read
    """
    file_path = Path(path)
    if not file_path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        sys.exit(1)

    try:
        return file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error reading file {path}: {e}", file=sys.stderr)
        sys.exit(1)


def read_resources(path: str | None) -> tuple[StaticResource, ...] | None:
    """
    Read a JSON array of resources.

    Raises:
        SystemExit: If the file is not a valid resource list
    """
    if path is None:
        return None

    try:
        data = json.loads(read_text(path))
        if not isinstance(data, list):
            raise ValueError("expected a JSON array")
        return tuple(resource_from_entry(item) for item in data)
    except (ValueError, TypeError) as e:
        print(f"Error: Invalid resource list {path}: {e}", file=sys.stderr)
        sys.exit(1)


def load_page(url: str, html_path: str, resources_path: str | None) -> PageInput:
    """
    Read one environment's page and its resources.

    Falls back to scanning the HTML when no resource list is given.
    """
    html = read_text(html_path)
    resources = read_resources(resources_path)
    if resources is None:
        resources = tuple(discover_resources(html, url))
    return PageInput(url, html, resources)


def main(argv: list[str] | None = None) -> None:
    """
    Main CLI entry point.

    Orchestrates the CLI workflow:
    1. Parse arguments
    2. Read pages and resource lists
    3. Run the comparison
    4. Display results
    5. Save report and history
    """
    args = parse_arguments(argv)
    setup_logger()

    dev = load_page(args.dev_url, args.dev_html, args.dev_resources)
    prod = load_page(args.prod_url, args.prod_html, args.prod_resources)

    comparator = PageComparator(thresholds=get_thresholds(args.thresholds))
    result = comparator.compare(dev, prod)

    print_comparison_summary(result)
    print_inventory("Dev", build_inventory(dev.resources))
    print_inventory("Prod", build_inventory(prod.resources))
    if args.side_by_side:
        print_side_by_side(result.aligned_rows)

    try:
        if args.output:
            output_path = Path(args.output)
            storage = FileStorage(output_directory=str(output_path.parent or "."))
            saved = storage.save(result, format=args.format, output_path=output_path.name)
            print(f"✓ Report saved to: {saved}")

        if args.history:
            entry = HistoryStore(JSONFileBackend(args.history)).record(result)
            print(f"✓ History entry {entry.id} saved to: {args.history}")
    except StorageError as e:
        print(f"✗ {e}", file=sys.stderr)
        sys.exit(1)

    # Exit with error code if any error-severity alert fired
    if result.has_errors:
        sys.exit(1)


if __name__ == "__main__":
    main()
