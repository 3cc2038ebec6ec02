"""
Resource reconciliation between two environments.

Resources are matched by a normalized key: the URL path with host, query and
fragment removed, anchored at the static-asset marker when the path has one.
That makes ``https://dev.site/app/static/js/a.js`` and
``https://cdn.prod.site/static/js/a.js?v=2`` the same resource.
"""

import re
from collections.abc import Iterable, Sequence
from urllib.parse import urlsplit

from .config import STATIC_MARKER
from .logger import get_logger
from .models import (
    RESOURCE_CATEGORIES,
    CategoryReconciliation,
    ResourceInventory,
    ResourceMatch,
    ResourceReconciliation,
    StaticResource,
)

logger = get_logger(__name__)

IMAGE_EXTENSIONS = re.compile(r"\.(jpg|jpeg|png|gif|webp|svg|ico)")
FONT_EXTENSIONS = re.compile(r"\.(woff|woff2|ttf|eot|otf)")
MEDIA_EXTENSIONS = re.compile(r"\.(mp4|webm|ogg|mp3|wav)")


def truncate_at_marker(path: str, marker: str | None = STATIC_MARKER) -> str:
    """
    Cut ``path`` so it begins at the first ``marker`` segment.

    Only whole segments count: ``/static`` matches ``/a/static/x.js`` and
    ``/static`` but not ``/staticfiles/x.js``.
    """
    if not marker:
        return path

    marker = "/" + marker.strip("/")
    start = 0
    while True:
        index = path.find(marker, start)
        if index == -1:
            return path
        end = index + len(marker)
        if end == len(path) or path[end] == "/":
            return path[index:]
        start = index + 1


def _split_absolute(url: str):
    """Split an absolute URL, or return None when it cannot be parsed as one."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return None
    if not parts.scheme:
        return None
    return parts


def resource_keys(url: str, marker: str | None = STATIC_MARKER) -> tuple[str, str]:
    """
    Derive the (normalized key, comparison key) pair for a URL.

    The comparison key is the normalized key plus the query string; the
    fragment is always dropped. A URL that does not parse as an absolute URL
    uses its literal text for both keys.

    Args:
        url: Resource URL
        marker: Static-asset marker segment (None disables truncation)

    Returns:
        Tuple of (normalized_key, comparison_key)
    """
    parts = _split_absolute(url)
    if parts is None:
        logger.debug("Unparseable resource URL, matching on raw text: %s", url)
        return url, url

    path = truncate_at_marker(parts.path or "/", marker)
    with_query = f"{path}?{parts.query}" if parts.query else path
    return path, with_query


def normalized_key(url: str, marker: str | None = STATIC_MARKER) -> str:
    return resource_keys(url, marker)[0]


def comparison_key(url: str, marker: str | None = STATIC_MARKER) -> str:
    return resource_keys(url, marker)[1]


def extract_path_info(url: str) -> tuple[str, str]:
    """
    Split a URL into its folder path and file name.

    Args:
        url: Absolute resource URL

    Returns:
        Tuple of (path, file_name); the host stands in for the file name
        when the URL has no path segments
    """
    parts = _split_absolute(url)
    if parts is None:
        return "/", url

    segments = [segment for segment in parts.path.split("/") if segment]
    file_name = segments[-1] if segments else parts.hostname or url
    return "/" + "/".join(segments[:-1]), file_name


def classify_resource(url: str, initiator: str | None = None) -> str:
    """Guess a resource type from its URL and the initiator that loaded it."""
    lowered = url.lower()

    if initiator == "script" or ".js" in lowered:
        return "script"
    if initiator == "link" or ".css" in lowered:
        return "stylesheet"
    if initiator == "img" or IMAGE_EXTENSIONS.search(lowered):
        return "image"
    if FONT_EXTENSIONS.search(lowered):
        return "font"
    if MEDIA_EXTENSIONS.search(lowered):
        return "media"
    if "document" in lowered or initiator == "navigation":
        return "document"
    return "other"


def classify_mime(content_type: str) -> str:
    """Map a Content-Type header value to a resource type."""
    content_type = content_type.lower()

    if "javascript" in content_type:
        return "script"
    if "css" in content_type:
        return "stylesheet"
    if "image" in content_type:
        return "image"
    if "font" in content_type:
        return "font"
    if "video" in content_type or "audio" in content_type:
        return "media"
    if "html" in content_type:
        return "document"
    return "other"


def build_inventory(resources: Iterable[StaticResource]) -> ResourceInventory:
    """
    Group one environment's resources by category.

    Resources are de-duplicated by exact URL (first occurrence wins). Unknown
    sizes count as zero towards the total.
    """
    unique: dict[str, StaticResource] = {}
    for resource in resources:
        unique.setdefault(resource.url, resource)

    by_category: dict[str, list[StaticResource]] = {category: [] for category in RESOURCE_CATEGORIES}
    for resource in unique.values():
        by_category[resource.category].append(resource)

    all_resources = list(unique.values())
    return ResourceInventory(
        all=all_resources,
        by_category=by_category,
        total_size=sum(resource.size or 0 for resource in all_resources),
        total_requests=len(all_resources),
    )


def reconcile_category(
    resources_a: Sequence[StaticResource],
    resources_b: Sequence[StaticResource],
    category: str,
    marker: str | None = STATIC_MARKER,
) -> CategoryReconciliation:
    """
    Partition one category's resources into only-A, only-B and common.

    When a normalized key repeats within one side, the first occurrence is
    the one that pairs; later occurrences land in that side's ``only`` list.

    Args:
        resources_a: Resources of this category from the first environment
        resources_b: Resources of this category from the second environment
        category: Category name carried on the result
        marker: Static-asset marker segment

    Returns:
        CategoryReconciliation with input order preserved
    """
    keyed_a = [(resource, resource_keys(resource.url, marker)) for resource in resources_a]
    keyed_b = [(resource, resource_keys(resource.url, marker)) for resource in resources_b]

    first_b: dict[str, tuple[StaticResource, str]] = {}
    for resource, (key, cmp_key) in keyed_b:
        first_b.setdefault(key, (resource, cmp_key))

    only_a: list[StaticResource] = []
    common: list[ResourceMatch] = []
    seen_a: set[str] = set()

    for resource, (key, cmp_key) in keyed_a:
        if key in seen_a:
            only_a.append(resource)
            continue
        seen_a.add(key)

        match = first_b.get(key)
        if match is None:
            only_a.append(resource)
            continue

        other, other_cmp_key = match
        common.append(
            ResourceMatch(
                key=key,
                a=resource,
                b=other,
                size_diff=(
                    resource.size is not None and other.size is not None and resource.size != other.size
                ),
                url_diff=cmp_key != other_cmp_key,
            )
        )

    only_b: list[StaticResource] = []
    seen_b: set[str] = set()
    for resource, (key, _) in keyed_b:
        if key in seen_b:
            only_b.append(resource)
            continue
        seen_b.add(key)
        if key not in seen_a:
            only_b.append(resource)

    return CategoryReconciliation(
        category=category,
        only_a=tuple(only_a),
        only_b=tuple(only_b),
        common=tuple(common),
    )


def reconcile_resources(
    resources_a: Iterable[StaticResource],
    resources_b: Iterable[StaticResource],
    marker: str | None = STATIC_MARKER,
) -> ResourceReconciliation:
    """
    Reconcile two flat resource lists, independently within each category.

    Args:
        resources_a: Every resource discovered for the first environment
        resources_b: Every resource discovered for the second environment
        marker: Static-asset marker segment

    Returns:
        ResourceReconciliation keyed by category
    """
    grouped_a = _group(resources_a)
    grouped_b = _group(resources_b)

    return ResourceReconciliation(
        categories={
            category: reconcile_category(grouped_a[category], grouped_b[category], category, marker)
            for category in RESOURCE_CATEGORIES
        }
    )


def _group(resources: Iterable[StaticResource]) -> dict[str, list[StaticResource]]:
    grouped: dict[str, list[StaticResource]] = {category: [] for category in RESOURCE_CATEGORIES}
    for resource in resources:
        grouped[resource.category].append(resource)
    return grouped
