"""
Unit tests for SEO and performance analysis.
"""

from sitediff.analyzer import analyze_page, analyze_performance, analyze_seo
from sitediff.extractor import DOMFactExtractor


SEO_PAGE = """
<html>
<head>
    <title>A reasonably descriptive page title here</title>
    <meta name="description" content="Short description">
    <meta name="viewport" content="width=device-width">
    <meta property="og:title" content="OG Title">
    <link rel="canonical" href="https://example.com/page">
    <script type="application/ld+json">{"@type": "Organization"}</script>
    <script type="application/ld+json">{not json</script>
</head>
<body><h1>Heading</h1></body>
</html>
"""


class TestSEOAnalysis:
    """Tests for analyze_seo."""

    def test_fields(self):
        """Test extraction of SEO fields."""
        seo = analyze_seo(SEO_PAGE)

        assert seo.title == "A reasonably descriptive page title here"
        assert seo.description == "Short description"
        assert seo.og_title == "OG Title"
        assert seo.og_description == ""
        assert seo.canonical == "https://example.com/page"
        assert seo.h1_count == 1
        assert seo.h1_texts == ["Heading"]

    def test_invalid_json_ld_skipped(self):
        """Test that unparseable structured data is left out."""
        seo = analyze_seo(SEO_PAGE)
        assert seo.structured_data == [{"@type": "Organization"}]

    def test_recommendations(self):
        """Test that recommendations reflect missing and present tags."""
        recommendations = analyze_seo(SEO_PAGE).recommendations

        assert any("Description too short" in r for r in recommendations)
        assert "Missing Open Graph description (og:description)" in recommendations
        assert "Canonical URL present" in recommendations
        assert "Viewport meta tag present" in recommendations

    def test_empty_page(self):
        """Test recommendations for a page with nothing on it."""
        seo = analyze_seo("")

        assert seo.title == ""
        assert seo.canonical is None
        assert "CRITICAL: Missing page title - add a <title> tag" in seo.recommendations
        assert "CRITICAL: No H1 tag found - add one H1 per page" in seo.recommendations

    def test_meta_values(self):
        """Test the meta value mapping used by the alert rules."""
        values = analyze_seo(SEO_PAGE).meta_values()
        assert values["description"] == "Short description"
        assert values["og:title"] == "OG Title"


class TestPerformanceAnalysis:
    """Tests for analyze_performance."""

    def test_small_page_scores_full(self):
        """Test that a small page with few resources scores 100."""
        html = "<html><body><p>hi</p></body></html>"
        performance = analyze_performance(html, DOMFactExtractor().extract(html))

        assert performance.score == 100
        assert performance.html_size == len(html)

    def test_html_size_is_utf8_bytes(self):
        """Test that HTML size counts encoded bytes, not characters."""
        html = "<p>é</p>"
        performance = analyze_performance(html, DOMFactExtractor().extract(html))
        assert performance.html_size == len(html) + 1

    def test_many_scripts_penalized(self):
        """Test script count and resource count penalties."""
        html = "".join(f'<script src="/{i}.js"></script>' for i in range(35))
        performance = analyze_performance(html, DOMFactExtractor().extract(html))

        # -5 for more than 30 resources, -10 for more than 20 scripts
        assert performance.score == 85
        assert performance.total_resources == 35
        assert any("Too many scripts" in r for r in performance.recommendations)


class TestAnalyzePage:
    """Tests for analyze_page."""

    def test_combines_all_analyses(self):
        """Test that one call returns DOM, SEO and performance data."""
        analysis = analyze_page(SEO_PAGE)

        assert analysis.dom.scripts == 2
        assert analysis.seo.h1_count == 1
        assert analysis.performance.scripts == 2
