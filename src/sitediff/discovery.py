"""
Static resource discovery from rendered HTML.

Scans markup (and, when available, fetched stylesheet text) for scripts,
stylesheets, raster images, lazy-loaded images and fonts. No network access:
resources come back with ``content`` unset for a loader to fill in.
"""

import re
from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import urljoin

from .extractor import attr, is_stylesheet_link, parse_html
from .logger import get_logger
from .models import StaticResource
from .resources import classify_mime, classify_resource, extract_path_info

logger = get_logger(__name__)

RASTER_IMAGE_PATTERN = re.compile(r"\.(jpg|jpeg|png|gif|webp|bmp|ico)(?:[?#]|$)", re.IGNORECASE)
BACKGROUND_URL_PATTERN = re.compile(
    r"background(?:-image)?:\s*url\(['\"]?([^'\"()]+)['\"]?\)", re.IGNORECASE
)
FONT_URL_PATTERN = re.compile(r"url\(['\"]?([^'\"()]+\.(?:woff2?|ttf|eot|otf))['\"]?\)", re.IGNORECASE)

LAZY_ATTRIBUTES = (
    "data-src",
    "data-lazy",
    "data-original",
    "data-lazy-src",
    "data-bg",
    "data-background",
    "data-background-image",
    "data-bgset",
)


def is_raster_image(url: str) -> bool:
    """True for bitmap image URLs; SVG is excluded."""
    lowered = url.lower()
    if ".svg" in lowered or "image/svg" in lowered:
        return False
    return bool(RASTER_IMAGE_PATTERN.search(url)) or "image/" in lowered


def extract_background_images(css: str) -> list[str]:
    """
    Pull raster background-image URLs out of CSS text.

    Data URIs and fragment references are skipped.
    """
    urls = []
    for match in BACKGROUND_URL_PATTERN.finditer(css):
        url = match.group(1).strip()
        if url.startswith(("data:", "#")):
            continue
        if is_raster_image(url):
            urls.append(url)
    return urls


def _resource(url: str, resource_type: str, mime_type: str) -> StaticResource:
    path, file_name = extract_path_info(url)
    return StaticResource(
        url=url,
        type=resource_type,  # type: ignore[arg-type]
        mime_type=mime_type,
        path=path,
        file_name=file_name,
    )


def _resolve(url: str, base_url: str) -> str | None:
    try:
        return urljoin(base_url, url.strip())
    except ValueError:
        logger.debug("Could not resolve %s against %s", url, base_url)
        return None


def discover_resources(html: str, base_url: str) -> list[StaticResource]:
    """
    Find the static resources referenced by a page.

    Args:
        html: Rendered HTML
        base_url: URL the page was loaded from, for resolving relative URLs

    Returns:
        Resources in discovery order, de-duplicated by absolute URL
    """
    soup = parse_html(html)
    found: list[StaticResource] = []

    def add(raw_url: str | None, resource_type: str, mime_type: str, base: str = base_url) -> None:
        if not raw_url:
            return
        url = _resolve(raw_url, base)
        if url is None:
            return
        if resource_type == "image" and not is_raster_image(url):
            return
        found.append(_resource(url, resource_type, mime_type))

    for script in soup.find_all("script", src=True):
        add(attr(script, "src"), "script", "text/javascript")

    for link in soup.find_all(is_stylesheet_link):
        add(attr(link, "href"), "stylesheet", "text/css")

    for img in soup.find_all("img", src=True):
        add(attr(img, "src"), "image", "image/*")

    for element in soup.find_all(lambda tag: any(tag.has_attr(name) for name in LAZY_ATTRIBUTES)):
        lazy_url = next(
            (attr(element, name) for name in LAZY_ATTRIBUTES if attr(element, name)), None
        )
        if lazy_url:
            # Sets list several candidates; the first URL is enough
            first = lazy_url.split(",")[0].strip().split(" ")[0]
            add(first, "image", "image/*")

    for element in soup.find_all(style=True):
        style = attr(element, "style") or ""
        if "background" in style:
            for url in extract_background_images(style):
                add(url, "image", "image/*")

    for style in soup.find_all("style"):
        css = style.get_text()
        for url in extract_background_images(css):
            add(url, "image", "image/*")
        for match in FONT_URL_PATTERN.finditer(css):
            add(match.group(1), "font", "font/*")

    return dedupe_by_url(found)


def discover_css_images(stylesheets: Iterable[StaticResource]) -> list[StaticResource]:
    """
    Find background images inside fetched stylesheet content.

    URLs are resolved relative to the stylesheet itself. Stylesheets whose
    content was not fetched contribute nothing.
    """
    found = []
    for sheet in stylesheets:
        if sheet.type != "stylesheet" or not sheet.content:
            continue
        for url in extract_background_images(sheet.content):
            resolved = _resolve(url, sheet.url)
            if resolved:
                found.append(_resource(resolved, "image", "image/*"))
    return found


def resource_from_entry(entry: Mapping[str, Any]) -> StaticResource:
    """
    Build a resource from a collector entry (e.g. a performance-timing record).

    Entries without a ``type`` are classified from their ``mimeType`` when
    one is given, otherwise from the URL and ``initiatorType``. Missing path
    information is derived from the URL.

    Raises:
        TypeError: If the entry is not a mapping with a string ``url``
        ValueError: If the entry names an unknown resource type
    """
    if not isinstance(entry, Mapping):
        raise TypeError(f"Resource entry must be an object, got {type(entry).__name__}")

    data = dict(entry)
    url = data.get("url")
    if not isinstance(url, str):
        raise TypeError(f"Resource entry needs a string url: {entry!r}")

    if "type" not in data:
        mime_type = data.get("mimeType") or data.get("mime_type")
        initiator = data.get("initiatorType") or data.get("initiator")
        data["type"] = classify_mime(mime_type) if mime_type else classify_resource(url, initiator)
        data.setdefault("initiator", initiator)

    if not data.get("path") and not data.get("fileName") and not data.get("file_name"):
        data["path"], data["file_name"] = extract_path_info(url)

    return StaticResource.from_dict(data)


def dedupe_by_url(resources: Iterable[StaticResource]) -> list[StaticResource]:
    unique: dict[str, StaticResource] = {}
    for resource in resources:
        unique.setdefault(resource.url, resource)
    return list(unique.values())
