"""
Core data models for the dev/prod page comparison engine.

All models are plain data structures that can be serialized and reused by
both the CLI and any other front end. Nothing here performs I/O.
"""

import json
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime
from typing import Any, ClassVar, Literal, Union

ResourceType = Literal["script", "stylesheet", "image", "font", "media", "document", "other"]
RESOURCE_TYPES: tuple[str, ...] = (
    "script",
    "stylesheet",
    "image",
    "font",
    "media",
    "document",
    "other",
)

# Reconciliation never matches across these buckets
RESOURCE_CATEGORIES: tuple[str, ...] = ("script", "stylesheet", "image", "font", "media", "other")

Severity = Literal["error", "warning", "info"]
SegmentOp = Literal["equal", "insert", "delete"]


@dataclass(frozen=True)
class URLInput:
    """
    Wrapper for a URL input with validation.

    Frozen to ensure immutability once created.
    """

    url: str

    def __post_init__(self):
        """Validate URL format."""
        if not self.url or not isinstance(self.url, str):
            raise ValueError(f"URL must be a non-empty string: {self.url}")

        url_lower = self.url.lower().strip()
        if not url_lower.startswith(("http://", "https://")):
            raise ValueError(f"URL must start with http:// or https://: {self.url}")


# ---------------------------------------------------------------------------
# Line diff
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DiffSegment:
    """A run of consecutive lines sharing one edit operation."""

    op: SegmentOp
    lines: tuple[str, ...]


@dataclass(frozen=True)
class DiffLine:
    kind: Literal["unchanged", "added", "removed"]
    text: str


@dataclass(frozen=True)
class AlignedRow:
    """
    One row of a two-column diff view.

    The left column belongs to the first document, the right column to the
    second. A side marked ``empty`` has no line number and no text.
    """

    left_line_no: int | None
    left_text: str
    left_kind: Literal["normal", "removed", "empty"]
    right_line_no: int | None
    right_text: str
    right_kind: Literal["normal", "added", "empty"]


@dataclass
class DiffSummary:
    """Added/removed line texts with blank lines filtered out for display."""

    added: list[str]
    removed: list[str]
    segments: list[DiffSegment]

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed)


# ---------------------------------------------------------------------------
# DOM facts
# ---------------------------------------------------------------------------


class _FactKeyMixin:
    category: ClassVar[str]

    def key(self) -> str:
        """Deterministic serialization of every field, used for exact matching."""
        payload = {"category": self.category, **asdict(self)}  # type: ignore[call-overload]
        return json.dumps(payload, sort_keys=True, ensure_ascii=False)

    def to_dict(self) -> dict[str, Any]:
        return {"category": self.category, **asdict(self)}  # type: ignore[call-overload]


@dataclass(frozen=True)
class ScriptFact(_FactKeyMixin):
    category: ClassVar[str] = "script"

    src: str | None
    content: str | None  # Inline body, truncated; None for external scripts
    is_async: bool
    defer: bool
    type: str


@dataclass(frozen=True)
class StyleFact(_FactKeyMixin):
    category: ClassVar[str] = "style"

    href: str | None
    content: str | None  # Inline <style> body, truncated
    rel: str
    media: str


@dataclass(frozen=True)
class ImageFact(_FactKeyMixin):
    category: ClassVar[str] = "image"

    src: str | None
    alt: str | None
    width: str | None
    height: str | None
    loading: str


@dataclass(frozen=True)
class LinkFact(_FactKeyMixin):
    category: ClassVar[str] = "link"

    href: str | None
    text: str
    target: str
    rel: str


@dataclass(frozen=True)
class MetaFact(_FactKeyMixin):
    category: ClassVar[str] = "meta"

    name: str | None  # name or property attribute
    content: str | None
    charset: str | None


@dataclass(frozen=True)
class HeadingFact(_FactKeyMixin):
    category: ClassVar[str] = "heading"

    level: int
    text: str
    id: str | None = None
    class_name: str | None = None

    def __post_init__(self):
        if self.level not in range(1, 7):
            raise ValueError(f"Heading level must be 1-6: {self.level}")


ElementFact = Union[ScriptFact, StyleFact, ImageFact, LinkFact, MetaFact, HeadingFact]

FACT_CATEGORIES: tuple[str, ...] = ("script", "style", "image", "link", "meta", "heading")


@dataclass(frozen=True)
class DOMSnapshot:
    """
    Structural fact sheet for one HTML document.

    Counts plus ordered per-element detail records. Built once per
    environment per comparison.
    """

    total_elements: int
    scripts: int
    styles: int
    images: int
    links: int
    forms: int
    headings: dict[str, int]  # {"h1": n, ..., "h6": n}
    h1_texts: tuple[str, ...]
    detailed_scripts: tuple[ScriptFact, ...]
    detailed_styles: tuple[StyleFact, ...]
    detailed_images: tuple[ImageFact, ...]
    detailed_links: tuple[LinkFact, ...]
    detailed_metas: tuple[MetaFact, ...]
    detailed_headings: tuple[HeadingFact, ...]  # Document order across all levels

    def facts(self, category: str) -> tuple[ElementFact, ...]:
        """Return the detail records for a fact category."""
        mapping: dict[str, tuple[ElementFact, ...]] = {
            "script": self.detailed_scripts,
            "style": self.detailed_styles,
            "image": self.detailed_images,
            "link": self.detailed_links,
            "meta": self.detailed_metas,
            "heading": self.detailed_headings,
        }
        if category not in mapping:
            raise ValueError(f"Unknown fact category: {category}")
        return mapping[category]

    def headings_at(self, level: int) -> tuple[HeadingFact, ...]:
        return tuple(h for h in self.detailed_headings if h.level == level)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_elements": self.total_elements,
            "scripts": self.scripts,
            "styles": self.styles,
            "images": self.images,
            "links": self.links,
            "forms": self.forms,
            "headings": dict(self.headings),
            "h1_texts": list(self.h1_texts),
        }


@dataclass
class SEOData:
    title: str
    description: str
    keywords: str
    og_title: str
    og_description: str
    og_image: str
    og_url: str
    canonical: str | None
    h1_count: int
    h1_texts: list[str]
    structured_data: list[Any]
    recommendations: list[str]

    def meta_values(self) -> dict[str, str]:
        """Meta values keyed the way they appear in markup."""
        return {
            "description": self.description,
            "keywords": self.keywords,
            "og:title": self.og_title,
            "og:description": self.og_description,
            "og:image": self.og_image,
            "og:url": self.og_url,
        }


@dataclass
class PerformanceData:
    html_size: int  # UTF-8 bytes
    scripts: int
    styles: int
    images: int
    score: int
    recommendations: list[str]

    @property
    def total_resources(self) -> int:
        return self.scripts + self.styles + self.images


@dataclass
class PageAnalysis:
    dom: DOMSnapshot
    seo: SEOData
    performance: PerformanceData


# ---------------------------------------------------------------------------
# Tag reconciliation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TagDiff:
    """Exact-match partition of two fact lists. Source of truth for counts."""

    category: str
    only_a: tuple[ElementFact, ...]
    only_b: tuple[ElementFact, ...]
    total_a: int
    total_b: int

    @property
    def shared_a(self) -> int:
        """Number of records in A whose key also occurs in B."""
        return self.total_a - len(self.only_a)

    @property
    def is_identical(self) -> bool:
        return not self.only_a and not self.only_b


@dataclass(frozen=True)
class TagPair:
    """Records shown opposite each other. Pairing is by position only."""

    index: int
    a: ElementFact
    b: ElementFact

    @property
    def matches(self) -> bool:
        return self.a.key() == self.b.key()


@dataclass(frozen=True)
class TagComparison:
    diff: TagDiff
    pairs: tuple[TagPair, ...]


# ---------------------------------------------------------------------------
# Static resources
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StaticResource:
    """
    A static resource discovered for one environment.

    ``content`` is None when it was not fetched; an empty string means it was
    fetched and empty. The two states are never conflated.
    """

    url: str
    type: ResourceType
    size: int | None = None
    cached: bool | None = None
    content: str | None = None
    path: str | None = None
    file_name: str | None = None
    status: int | None = None
    mime_type: str | None = None
    initiator: str | None = None

    def __post_init__(self):
        if not isinstance(self.url, str):
            raise TypeError(f"Resource URL must be a string: {self.url!r}")
        if self.type not in RESOURCE_TYPES:
            raise ValueError(f"Unknown resource type: {self.type}")

    @property
    def category(self) -> str:
        """Reconciliation bucket; documents share the ``other`` bucket."""
        return "other" if self.type == "document" else self.type

    @property
    def is_text(self) -> bool:
        return self.type in ("script", "stylesheet")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StaticResource":
        """
        Build a resource from a mapping.

        Accepts both snake_case keys and the camelCase keys used by browser
        side collectors (``fileName``, ``mimeType``).
        """
        aliases = {"fileName": "file_name", "mimeType": "mime_type"}
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = aliases.get(key, key)
            if name in known:
                kwargs[name] = value
        kwargs.setdefault("type", "other")
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


@dataclass(frozen=True)
class ResourceMatch:
    """A resource present in both environments under the same normalized key."""

    key: str
    a: StaticResource
    b: StaticResource
    size_diff: bool
    url_diff: bool


@dataclass(frozen=True)
class CategoryReconciliation:
    category: str
    only_a: tuple[StaticResource, ...]
    only_b: tuple[StaticResource, ...]
    common: tuple[ResourceMatch, ...]

    @property
    def size_diffs(self) -> tuple[ResourceMatch, ...]:
        return tuple(m for m in self.common if m.size_diff)

    @property
    def url_diffs(self) -> tuple[ResourceMatch, ...]:
        return tuple(m for m in self.common if m.url_diff)

    def counts(self) -> dict[str, int]:
        return {
            "only_a": len(self.only_a),
            "only_b": len(self.only_b),
            "common": len(self.common),
            "size_diffs": len(self.size_diffs),
            "url_diffs": len(self.url_diffs),
        }


@dataclass(frozen=True)
class ResourceReconciliation:
    categories: dict[str, CategoryReconciliation]

    def __getitem__(self, category: str) -> CategoryReconciliation:
        return self.categories[category]

    @property
    def has_differences(self) -> bool:
        return any(
            c.only_a or c.only_b or c.size_diffs or c.url_diffs for c in self.categories.values()
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            category: {
                **result.counts(),
                "only_a": [r.url for r in result.only_a],
                "only_b": [r.url for r in result.only_b],
                "size_diffs": [m.key for m in result.size_diffs],
                "url_diffs": [m.key for m in result.url_diffs],
            }
            for category, result in self.categories.items()
        }


@dataclass
class ResourceInventory:
    """Resources for one environment grouped by reconciliation category."""

    all: list[StaticResource]
    by_category: dict[str, list[StaticResource]]
    total_size: int
    total_requests: int


# ---------------------------------------------------------------------------
# Folder trees
# ---------------------------------------------------------------------------


@dataclass
class FolderNode:
    kind: ClassVar[str] = "folder"

    name: str
    path: str
    children: list["TreeNode"] = field(default_factory=list)

    def child(self, name: str, kind: str) -> "TreeNode | None":
        for node in self.children:
            if node.name == name and node.kind == kind:
                return node
        return None


@dataclass
class FileNode:
    kind: ClassVar[str] = "file"

    name: str
    path: str
    resource: StaticResource
    # Later resources resolving to the same path; the first one owns the node
    duplicates: list[StaticResource] = field(default_factory=list)


TreeNode = Union[FolderNode, FileNode]


@dataclass(frozen=True)
class TreeNodeStatus:
    """A node of one tree annotated against the other tree."""

    path: str
    kind: str
    exists_in_other: bool
    content_differs: bool


@dataclass
class TreeComparison:
    tree_a: FolderNode
    tree_b: FolderNode
    nodes_a: list[TreeNodeStatus]
    nodes_b: list[TreeNodeStatus]

    @property
    def only_a_files(self) -> list[str]:
        return [n.path for n in self.nodes_a if n.kind == "file" and not n.exists_in_other]

    @property
    def only_b_files(self) -> list[str]:
        return [n.path for n in self.nodes_b if n.kind == "file" and not n.exists_in_other]

    @property
    def different_files(self) -> list[str]:
        return [n.path for n in self.nodes_a if n.content_differs]

    @property
    def same_files(self) -> list[str]:
        return [
            n.path
            for n in self.nodes_a
            if n.kind == "file" and n.exists_in_other and not n.content_differs
        ]

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "only_a_files": self.only_a_files,
            "only_b_files": self.only_b_files,
            "different_files": self.different_files,
        }


# ---------------------------------------------------------------------------
# Alerts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ComparisonThresholds:
    """
    Alert thresholds. A field left as None disables its rule; zero is a
    real threshold.
    """

    html_size_diff: float | None = None  # percentage
    script_count_diff: int | None = None
    image_count_diff: int | None = None
    performance_score_diff: float | None = None
    seo_score_diff: float | None = None
    broken_links_max: int | None = None
    lighthouse_performance_min: float | None = None


@dataclass(frozen=True)
class AlertRecord:
    severity: Severity
    category: str
    message: str
    threshold: float | None = None
    actual_value: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity,
            "category": self.category,
            "message": self.message,
            "threshold": self.threshold,
            "actual_value": self.actual_value,
        }


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PageInput:
    """One environment's page as handed over by a collaborator."""

    url: str
    html: str
    resources: tuple[StaticResource, ...] | None = None

    def __post_init__(self):
        if not isinstance(self.html, str):
            raise TypeError(f"HTML for {self.url} must be a string, got {type(self.html).__name__}")


@dataclass(frozen=True)
class ComparisonExtras:
    """Optional collaborator data. Missing values skip the matching alert rules."""

    lighthouse_performance: float | None = None  # production Lighthouse score
    performance_score_dev: float | None = None  # overrides the HTML heuristic
    performance_score_prod: float | None = None
    seo_score_dev: float | None = None
    seo_score_prod: float | None = None
    broken_links: int | None = None
    visual_diff_percent: float | None = None


@dataclass
class ComparisonResult:
    """Complete comparison of a development page against its production counterpart."""

    dev_url: str
    prod_url: str
    segments: list[DiffSegment]
    diff_lines: list[DiffLine]
    aligned_rows: list[AlignedRow]
    summary: DiffSummary
    dev: PageAnalysis
    prod: PageAnalysis
    tags: dict[str, TagComparison]
    resources: ResourceReconciliation | None
    trees: TreeComparison | None
    alerts: list[AlertRecord]
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return len(self.errors) == 0

    @property
    def has_errors(self) -> bool:
        """True when any error-severity alert fired."""
        return any(alert.severity == "error" for alert in self.alerts)

    @property
    def has_differences(self) -> bool:
        if self.summary.has_changes:
            return True
        if any(not comparison.diff.is_identical for comparison in self.tags.values()):
            return True
        return bool(self.resources and self.resources.has_differences)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the comparison to a dictionary for serialization.

        Used for JSON export and history summaries.
        """
        return {
            "dev_url": self.dev_url,
            "prod_url": self.prod_url,
            "lines_added": len(self.summary.added),
            "lines_removed": len(self.summary.removed),
            "dom": {"dev": self.dev.dom.to_dict(), "prod": self.prod.dom.to_dict()},
            "seo": {
                "dev": {"title": self.dev.seo.title, **self.dev.seo.meta_values()},
                "prod": {"title": self.prod.seo.title, **self.prod.seo.meta_values()},
            },
            "performance": {
                "dev": {"html_size": self.dev.performance.html_size, "score": self.dev.performance.score},
                "prod": {
                    "html_size": self.prod.performance.html_size,
                    "score": self.prod.performance.score,
                },
            },
            "tags": {
                category: {
                    "only_a": [fact.to_dict() for fact in comparison.diff.only_a],
                    "only_b": [fact.to_dict() for fact in comparison.diff.only_b],
                    "pairs": len(comparison.pairs),
                }
                for category, comparison in self.tags.items()
            },
            "resources": self.resources.to_dict() if self.resources else None,
            "trees": self.trees.to_dict() if self.trees else None,
            "alerts": [alert.to_dict() for alert in self.alerts],
            "errors": self.errors,
            "success": self.success,
        }


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


@dataclass
class HistoryEntry:
    id: str
    timestamp: datetime
    dev_url: str
    prod_url: str
    results: dict[str, Any]
    alerts: list[dict[str, Any]]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "dev_url": self.dev_url,
            "prod_url": self.prod_url,
            "results": self.results,
            "alerts": self.alerts,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryEntry":
        return cls(
            id=str(data["id"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            dev_url=data["dev_url"],
            prod_url=data["prod_url"],
            results=dict(data.get("results") or {}),
            alerts=list(data.get("alerts") or []),
        )

    def count_alerts(self, severity: str) -> int:
        return sum(1 for alert in self.alerts if alert.get("severity") == severity)


@dataclass
class HistoryStatistics:
    total_comparisons: int
    total_alerts: int
    total_errors: int
    total_warnings: int
    average_alerts_per_comparison: float
    most_compared: list[dict[str, Any]]
    alert_categories: dict[str, int]
    first_timestamp: datetime
    last_timestamp: datetime
