"""
Integration tests for the comparison runner.

Loaders are in-memory fakes standing in for browser and HTTP collaborators.
"""

import asyncio

import pytest

from sitediff.discovery import discover_resources
from sitediff.job_runner import PageComparator, populate_content
from sitediff.models import (
    ComparisonExtras,
    ComparisonThresholds,
    PageInput,
    StaticResource,
)

DEV_URL = "https://dev.site/app/"
PROD_URL = "https://www.site/"

DEV_HTML = """<html>
<head>
<title>Shop</title>
<meta name="description" content="Best shop">
<script src="/app/static/js/app.js?v=1"></script>
<link rel="stylesheet" href="/app/static/css/site.css">
</head>
<body>
<h1>Welcome</h1>
<img src="/app/static/img/hero.png" alt="Hero">
</body>
</html>"""

PROD_HTML = """<html>
<head>
<title>Shop</title>
<script src="https://cdn.site/static/js/app.js?v=2"></script>
<link rel="stylesheet" href="/static/css/site.css">
</head>
<body>
<h1>Welcome!</h1>
<img src="/static/img/hero.png" alt="Hero">
</body>
</html>"""

CONTENTS = {
    "https://dev.site/app/static/js/app.js?v=1": "console.log('dev')",
    "https://cdn.site/static/js/app.js?v=2": "console.log('prod')",
    "https://dev.site/app/static/css/site.css": "body{}",
    "https://www.site/static/css/site.css": "body{}",
}


async def load_html(url):
    await asyncio.sleep(0)
    return {DEV_URL: DEV_HTML, PROD_URL: PROD_HTML}[url]


async def load_resources(url, html):
    return discover_resources(html, url)


async def load_content(resource):
    await asyncio.sleep(0)
    return CONTENTS.get(resource.url)


class TestPageComparator:
    """Tests for the synchronous comparison."""

    def test_compare_without_resources(self):
        """Test that resources and trees are skipped without resource lists."""
        result = PageComparator().compare(
            PageInput("https://dev", "a\nb\nc"), PageInput("https://prod", "a\nx\nc")
        )

        assert result.summary.added == ["x"]
        assert result.summary.removed == ["b"]
        assert len(result.aligned_rows) == 4
        assert result.resources is None
        assert result.trees is None
        assert result.has_differences is True
        assert result.success is True

    def test_identical_pages(self):
        """Test that identical pages have no differences and no alerts."""
        comparator = PageComparator(thresholds=ComparisonThresholds(html_size_diff=0, script_count_diff=0))
        result = comparator.compare(PageInput("https://dev", DEV_HTML), PageInput("https://prod", DEV_HTML))

        assert result.has_differences is False
        assert result.alerts == []
        assert all(comparison.diff.is_identical for comparison in result.tags.values())

    def test_empty_documents(self):
        """Test comparing two empty documents."""
        result = PageComparator().compare(PageInput("https://dev", ""), PageInput("https://prod", ""))

        assert result.segments == []
        assert result.aligned_rows == []
        assert result.dev.dom.total_elements == 0

    def test_trees_only_cover_text_resources(self):
        """Test that images are reconciled but kept out of folder trees."""
        resources = (
            StaticResource(url="https://dev/static/js/a.js", type="script"),
            StaticResource(url="https://dev/static/img/a.png", type="image"),
        )
        result = PageComparator().compare(
            PageInput("https://dev", "", resources), PageInput("https://prod", "", ())
        )

        assert result.trees.only_a_files == ["static/js/a.js"]
        assert len(result.resources["image"].only_a) == 1

    def test_to_dict(self):
        """Test the serializable form of a result."""
        result = PageComparator().compare(PageInput("https://dev", DEV_HTML), PageInput("https://prod", PROD_HTML))
        data = result.to_dict()

        assert data["dev_url"] == "https://dev"
        assert data["resources"] is None
        assert data["tags"]["heading"]["only_a"][0]["text"] == "Welcome"
        assert data["alerts"][0]["message"] == 'Critical meta tag "description" missing in production'


class TestCompareAsync:
    """Tests for the async pipeline with collaborator loaders."""

    @pytest.mark.asyncio
    async def test_full_pipeline(self):
        """Test loading, discovery, content fill and comparison end to end."""
        comparator = PageComparator(thresholds=ComparisonThresholds(script_count_diff=0))

        result = await comparator.compare_async(
            DEV_URL,
            PROD_URL,
            load_html,
            load_resources=load_resources,
            load_content=load_content,
            extras=ComparisonExtras(broken_links=0),
        )

        assert result.success is True
        scripts = result.resources["script"]
        assert len(scripts.common) == 1
        assert scripts.common[0].key == "/static/js/app.js"
        assert scripts.common[0].url_diff is True
        assert len(result.resources["stylesheet"].common) == 1
        assert len(result.resources["image"].common) == 1

        assert result.trees.different_files == ["static/js/app.js"]
        assert "static/css/site.css" in result.trees.same_files

        assert "<h1>Welcome!</h1>" in result.summary.added
        assert result.has_errors is True

    @pytest.mark.asyncio
    async def test_invalid_url_rejected(self):
        """Test that URLs are validated before any loading."""
        with pytest.raises(ValueError, match="must start with http"):
            await PageComparator().compare_async("dev.site", PROD_URL, load_html)

    @pytest.mark.asyncio
    async def test_html_load_failure_recorded(self):
        """Test that a failed page load is recorded and compared as empty."""

        async def flaky_html(url):
            if url == PROD_URL:
                raise ConnectionError("connection refused")
            return DEV_HTML

        result = await PageComparator().compare_async(DEV_URL, PROD_URL, flaky_html)

        assert result.success is False
        assert result.errors == [f"Prod HTML load failed ({PROD_URL}): connection refused"]
        assert result.prod.dom.total_elements == 0
        assert len(result.resources["script"].only_a) == 1
        assert not result.resources["script"].only_b

    @pytest.mark.asyncio
    async def test_resources_discovered_by_default(self):
        """Test that resources are found in the HTML when no resource loader is given."""
        result = await PageComparator().compare_async(DEV_URL, PROD_URL, load_html)

        assert result.resources is not None
        scripts = result.resources["script"]
        assert len(scripts.common) == 1
        assert scripts.common[0].url_diff is True
        assert len(result.resources["stylesheet"].common) == 1
        assert result.trees is not None

    @pytest.mark.asyncio
    async def test_resource_comparison_skipped(self):
        """Test that passing no resource loader skips resource comparison."""
        result = await PageComparator().compare_async(DEV_URL, PROD_URL, load_html, load_resources=None)

        assert result.resources is None
        assert result.trees is None

    @pytest.mark.asyncio
    async def test_resource_discovery_failure_recorded(self):
        """Test that a failed discovery leaves that side with no resources."""

        async def failing_resources(url, html):
            if url == DEV_URL:
                raise RuntimeError("browser crashed")
            return discover_resources(html, url)

        result = await PageComparator().compare_async(
            DEV_URL, PROD_URL, load_html, load_resources=failing_resources
        )

        assert len(result.errors) == 1
        assert "Dev resource discovery failed" in result.errors[0]
        assert result.resources["script"].only_b

    def test_compare_sync(self):
        """Test the synchronous wrapper."""
        result = PageComparator().compare_sync(DEV_URL, PROD_URL, load_html)
        assert result.dev_url == DEV_URL


class TestPopulateContent:
    """Tests for populate_content."""

    @pytest.mark.asyncio
    async def test_bounded_concurrency(self):
        """Test that no more than the limit of loads run at once."""
        in_flight = 0
        peak = 0

        async def slow_load(resource):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return resource.url

        resources = [StaticResource(url=f"https://a.com/{i}.js", type="script") for i in range(12)]
        filled, errors = await populate_content(resources, slow_load, max_concurrency=3)

        assert peak == 3
        assert errors == []
        assert [r.content for r in filled] == [r.url for r in resources]

    @pytest.mark.asyncio
    async def test_skips_non_text_and_prefilled(self):
        """Test that images and resources with content are not loaded."""
        calls = []

        async def record_load(resource):
            calls.append(resource.url)
            return "loaded"

        resources = [
            StaticResource(url="https://a.com/a.png", type="image"),
            StaticResource(url="https://a.com/a.js", type="script", content=""),
            StaticResource(url="https://a.com/b.css", type="stylesheet"),
        ]
        filled, _ = await populate_content(resources, record_load)

        assert calls == ["https://a.com/b.css"]
        assert filled[0].content is None
        assert filled[1].content == ""
        assert filled[2].content == "loaded"

    @pytest.mark.asyncio
    async def test_failed_load_leaves_content_unset(self):
        """Test that a failing load is reported and leaves content as None."""

        async def failing_load(resource):
            if "bad" in resource.url:
                raise TimeoutError("timed out")
            return "ok"

        resources = [
            StaticResource(url="https://a.com/bad.js", type="script"),
            StaticResource(url="https://a.com/good.js", type="script"),
        ]
        filled, errors = await populate_content(resources, failing_load)

        assert filled[0].content is None
        assert filled[1].content == "ok"
        assert errors == ["Content load failed for https://a.com/bad.js: timed out"]
