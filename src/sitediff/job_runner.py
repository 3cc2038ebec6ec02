"""
Comparison runner orchestrating the full dev/prod pipeline.

The comparison itself is pure and synchronous. The async entry point only
coordinates collaborator-supplied loaders: dev and prod are loaded in
parallel, then resource contents are filled in through a bounded window.
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import replace

from .alerts import DEFAULT_VISUAL_THRESHOLD, AlertSystem
from .analyzer import analyze_page
from .config import CONTENT_FETCH_CONCURRENCY, STATIC_MARKER, TREE_DENYLIST
from .differ import align_segments, diff_lines, summarize_segments, to_diff_lines
from .discovery import discover_resources
from .extractor import DOMFactExtractor
from .logger import get_logger
from .models import (
    ComparisonExtras,
    ComparisonResult,
    ComparisonThresholds,
    PageInput,
    StaticResource,
    URLInput,
)
from .resources import reconcile_resources
from .tags import compare_snapshots
from .tree import build_tree, compare_trees

logger = get_logger(__name__)

HTMLLoader = Callable[[str], Awaitable[str]]
ResourceLoader = Callable[[str, str], Awaitable[Sequence[StaticResource]]]
ContentLoader = Callable[[StaticResource], Awaitable[str | None]]


async def discover_page_resources(url: str, html: str) -> list[StaticResource]:
    """Default resource loader: scan the page markup itself."""
    return discover_resources(html, url)


async def populate_content(
    resources: Sequence[StaticResource],
    load_content: ContentLoader,
    max_concurrency: int = CONTENT_FETCH_CONCURRENCY,
) -> tuple[list[StaticResource], list[str]]:
    """
    Fill in ``content`` for text resources with a bounded number of loads in flight.

    Resources that already carry content, and non-text resources, are
    passed through. A failed load leaves ``content`` as None.

    Args:
        resources: Resources of one environment
        load_content: Async callable returning the text (or None)
        max_concurrency: Maximum loads running at once

    Returns:
        Tuple of (resources in input order, error messages)
    """
    semaphore = asyncio.Semaphore(max_concurrency)
    errors: list[str] = []

    async def fill(resource: StaticResource) -> StaticResource:
        if not resource.is_text or resource.content is not None:
            return resource
        async with semaphore:
            try:
                content = await load_content(resource)
            except Exception as e:
                errors.append(f"Content load failed for {resource.url}: {e}")
                return resource
        if content is None:
            return resource
        return replace(resource, content=content)

    filled = await asyncio.gather(*(fill(resource) for resource in resources))
    return list(filled), errors


class PageComparator:
    """
    Compares a development page against its production counterpart.

    Holds only configuration; every call takes both pages explicitly and
    returns a fresh result.
    """

    def __init__(
        self,
        thresholds: ComparisonThresholds | None = None,
        static_marker: str | None = STATIC_MARKER,
        tree_denylist: Iterable[str] = TREE_DENYLIST,
        max_concurrency: int = CONTENT_FETCH_CONCURRENCY,
        visual_threshold: float = DEFAULT_VISUAL_THRESHOLD,
        extractor: DOMFactExtractor | None = None,
    ):
        """
        Initialize the comparator.

        Args:
            thresholds: Alert thresholds (all rules disabled if omitted)
            static_marker: Static-asset marker segment for resource keys
            tree_denylist: Path segments excluded from folder trees
            max_concurrency: Concurrent content loads per environment
            visual_threshold: Pixel-difference percentage for the visual rule
            extractor: DOM fact extractor to use
        """
        self.thresholds = thresholds or ComparisonThresholds()
        self.static_marker = static_marker
        self.tree_denylist = tuple(tree_denylist)
        self.max_concurrency = max_concurrency
        self.visual_threshold = visual_threshold
        self.extractor = extractor or DOMFactExtractor()

    def compare(
        self,
        dev: PageInput,
        prod: PageInput,
        extras: ComparisonExtras | None = None,
        errors: list[str] | None = None,
    ) -> ComparisonResult:
        """
        Compare two pages.

        Args:
            dev: Development page
            prod: Production page
            extras: Optional collaborator scores for the alert rules
            errors: Collaborator errors to carry on the result

        Returns:
            ComparisonResult with every diff, reconciliation and alert
        """
        segments = diff_lines(dev.html, prod.html)
        dev_analysis = analyze_page(dev.html, self.extractor)
        prod_analysis = analyze_page(prod.html, self.extractor)

        resources = None
        trees = None
        if dev.resources is not None and prod.resources is not None:
            resources = reconcile_resources(dev.resources, prod.resources, self.static_marker)
            trees = compare_trees(
                self._text_tree(dev.resources),
                self._text_tree(prod.resources),
            )

        alert_system = AlertSystem(self.thresholds)
        alerts = alert_system.evaluate(dev_analysis, prod_analysis, extras, self.visual_threshold)

        result = ComparisonResult(
            dev_url=dev.url,
            prod_url=prod.url,
            segments=segments,
            diff_lines=to_diff_lines(segments),
            aligned_rows=align_segments(segments),
            summary=summarize_segments(segments),
            dev=dev_analysis,
            prod=prod_analysis,
            tags=compare_snapshots(dev_analysis.dom, prod_analysis.dom),
            resources=resources,
            trees=trees,
            alerts=list(alerts),
            errors=list(errors or []),
        )

        logger.info(
            "Compared %s with %s: +%d/-%d lines, %d alert(s)",
            dev.url,
            prod.url,
            len(result.summary.added),
            len(result.summary.removed),
            len(result.alerts),
        )
        return result

    def _text_tree(self, resources: Sequence[StaticResource]):
        # Folder trees cover scripts and stylesheets, the resources with content
        return build_tree(
            (resource for resource in resources if resource.is_text),
            denylist=self.tree_denylist,
            marker=self.static_marker,
        )

    async def compare_async(
        self,
        dev_url: str,
        prod_url: str,
        load_html: HTMLLoader,
        load_resources: ResourceLoader | None = discover_page_resources,
        load_content: ContentLoader | None = None,
        extras: ComparisonExtras | None = None,
    ) -> ComparisonResult:
        """
        Load both environments in parallel, then compare them.

        Loader failures are recorded on the result instead of raised; a side
        whose HTML failed to load is compared as an empty document.

        Args:
            dev_url: Development page URL
            prod_url: Production page URL
            load_html: Async callable returning a page's HTML
            load_resources: Async callable (url, html) returning discovered resources;
                defaults to scanning the HTML, None skips resource comparison
            load_content: Async callable returning a resource's text content
            extras: Optional collaborator scores for the alert rules

        Returns:
            ComparisonResult
        """
        URLInput(dev_url)
        URLInput(prod_url)

        errors: list[str] = []

        dev_html, prod_html = await asyncio.gather(
            load_html(dev_url), load_html(prod_url), return_exceptions=True
        )
        dev_html = self._unwrap(dev_html, "", f"Dev HTML load failed ({dev_url})", errors)
        prod_html = self._unwrap(prod_html, "", f"Prod HTML load failed ({prod_url})", errors)

        dev_resources = prod_resources = None
        if load_resources is not None:
            dev_found, prod_found = await asyncio.gather(
                load_resources(dev_url, dev_html),
                load_resources(prod_url, prod_html),
                return_exceptions=True,
            )
            dev_resources = list(
                self._unwrap(dev_found, [], f"Dev resource discovery failed ({dev_url})", errors)
            )
            prod_resources = list(
                self._unwrap(prod_found, [], f"Prod resource discovery failed ({prod_url})", errors)
            )

            if load_content is not None:
                (dev_resources, dev_errors), (prod_resources, prod_errors) = await asyncio.gather(
                    populate_content(dev_resources, load_content, self.max_concurrency),
                    populate_content(prod_resources, load_content, self.max_concurrency),
                )
                errors.extend(dev_errors)
                errors.extend(prod_errors)

        return self.compare(
            PageInput(
                dev_url, dev_html, tuple(dev_resources) if dev_resources is not None else None
            ),
            PageInput(
                prod_url, prod_html, tuple(prod_resources) if prod_resources is not None else None
            ),
            extras=extras,
            errors=errors,
        )

    def compare_sync(self, *args, **kwargs) -> ComparisonResult:
        """
        Run compare_async synchronously.

        Convenience method that wraps compare_async.
        """
        return asyncio.run(self.compare_async(*args, **kwargs))

    @staticmethod
    def _unwrap(value, fallback, message: str, errors: list[str]):
        if isinstance(value, BaseException):
            logger.warning("%s: %s", message, value)
            errors.append(f"{message}: {value}")
            return fallback
        return value
