"""
Terminal output formatter for CLI.

Handles all display logic - no business logic, just presentation.
"""

from sitediff.alerts import format_bytes, summarize_alerts
from sitediff.models import AlignedRow, ComparisonResult, ResourceInventory
from sitediff.tree import iter_files

MAX_ITEMS = 5


def _print_limited(items: list[str], noun: str) -> None:
    for item in items[:MAX_ITEMS]:
        print(f"      • {item[:100]}..." if len(item) > 100 else f"      • {item}")
    if len(items) > MAX_ITEMS:
        print(f"      ... and {len(items) - MAX_ITEMS} more {noun}")


def print_comparison_summary(result: ComparisonResult) -> None:
    """
    Print a human-readable summary of a comparison to the terminal.

    Args:
        result: ComparisonResult to display
    """
    print("\n" + "=" * 80)
    print("DEV / PROD COMPARISON REPORT")
    print("=" * 80)
    print(f"\nDev:  {result.dev_url}")
    print(f"Prod: {result.prod_url}")

    print(f"\n    HTML Lines:")
    print(f"      Added in prod:   {len(result.summary.added)}")
    print(f"      Removed in prod: {len(result.summary.removed)}")

    dev_dom, prod_dom = result.dev.dom, result.prod.dom
    print(f"\n    DOM Counts (dev → prod):")
    for label, dev_value, prod_value in (
        ("Elements", dev_dom.total_elements, prod_dom.total_elements),
        ("Scripts", dev_dom.scripts, prod_dom.scripts),
        ("Styles", dev_dom.styles, prod_dom.styles),
        ("Images", dev_dom.images, prod_dom.images),
        ("Links", dev_dom.links, prod_dom.links),
        ("Forms", dev_dom.forms, prod_dom.forms),
    ):
        print(f"      {label + ':':<10} {dev_value} → {prod_value} ({prod_value - dev_value:+d})")

    changed_tags = {
        category: comparison.diff
        for category, comparison in result.tags.items()
        if not comparison.diff.is_identical
    }
    if changed_tags:
        print(f"\n    Tag Differences:")
        for category, diff in changed_tags.items():
            print(f"      {category}: {len(diff.only_a)} only in dev, {len(diff.only_b)} only in prod")

    if result.resources:
        print(f"\n    Resources (only dev / only prod / common):")
        for category, reconciliation in result.resources.categories.items():
            counts = reconciliation.counts()
            if not any(counts.values()):
                continue
            print(
                f"      {category + ':':<12} {counts['only_a']} / {counts['only_b']} / {counts['common']}"
                f"  (size diffs: {counts['size_diffs']}, url diffs: {counts['url_diffs']})"
            )

    if result.trees:
        dev_files = sum(1 for _ in iter_files(result.trees.tree_a))
        prod_files = sum(1 for _ in iter_files(result.trees.tree_b))
        print(f"\n    Script/Style Files: {dev_files} dev, {prod_files} prod")
        if result.trees.different_files:
            print(f"\n    Files with different content ({len(result.trees.different_files)}):")
            _print_limited(result.trees.different_files, "files")

    summary = summarize_alerts(result.alerts)
    print(f"\n{'=' * 80}")
    print(
        f"Alerts: {summary['total']} "
        f"({summary['errors']} errors, {summary['warnings']} warnings, {summary['info']} info)"
    )
    print(f"{'=' * 80}\n")

    if not result.alerts:
        print("✓ No threshold alerts.\n")
    for alert in result.alerts:
        print(f"  [{alert.severity.upper()}] {alert.category}: {alert.message}")

    if result.errors:
        print("\n  Errors:")
        for error in result.errors:
            print(f"    • {error}")


def print_side_by_side(rows: list[AlignedRow], width: int = 60) -> None:
    """Print aligned diff rows in two columns."""
    markers = {"removed": "-", "added": "+", "normal": " ", "empty": " "}

    for row in rows:
        left_no = "" if row.left_line_no is None else str(row.left_line_no)
        right_no = "" if row.right_line_no is None else str(row.right_line_no)
        left = row.left_text[: width - 8]
        right = row.right_text[: width - 8]
        print(
            f"{left_no:>5} {markers[row.left_kind]} {left:<{width - 8}} │ "
            f"{right_no:>5} {markers[row.right_kind]} {right}"
        )


def print_inventory(label: str, inventory: ResourceInventory) -> None:
    """
    Print one environment's resource totals by category.

    Args:
        label: Environment name shown in the heading
        inventory: Grouped resources of that environment
    """
    print(f"\n{label} resources: {inventory.total_requests} ({format_bytes(inventory.total_size)})")
    for category, resources in inventory.by_category.items():
        if resources:
            print(f"      {category + ':':<12} {len(resources)}")
