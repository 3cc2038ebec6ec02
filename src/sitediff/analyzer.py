"""
Page analyzer combining the DOM fact sheet with SEO and performance checks.

The SEO and performance figures are heuristics computed from markup alone;
real lab scores (Lighthouse) are supplied by collaborators when available.
"""

import json

from bs4 import BeautifulSoup

from .extractor import DOMFactExtractor, attr, parse_html
from .models import DOMSnapshot, PageAnalysis, PerformanceData, SEOData

TITLE_LENGTH_RANGE = (30, 60)
DESCRIPTION_LENGTH_RANGE = (120, 160)


def analyze_page(html: str, extractor: DOMFactExtractor | None = None) -> PageAnalysis:
    """
    Run every markup analysis over one document.

    Args:
        html: HTML string to analyze
        extractor: Extractor to use (default settings if omitted)

    Returns:
        PageAnalysis with DOM, SEO and performance data
    """
    soup = parse_html(html)
    dom = (extractor or DOMFactExtractor()).extract_from_soup(soup)
    return PageAnalysis(
        dom=dom,
        seo=_analyze_seo(soup),
        performance=analyze_performance(html, dom),
    )


def analyze_seo(html: str) -> SEOData:
    return _analyze_seo(parse_html(html))


def _meta_content(soup: BeautifulSoup, name: str) -> str:
    """Content of the first meta tag whose name or property equals ``name``."""
    for meta in soup.find_all("meta"):
        if attr(meta, "name") == name or attr(meta, "property") == name:
            return attr(meta, "content") or ""
    return ""


def _analyze_seo(soup: BeautifulSoup) -> SEOData:
    title_tag = soup.find("title")
    title = title_tag.get_text() if title_tag else ""
    description = _meta_content(soup, "description")
    og_title = _meta_content(soup, "og:title")
    og_description = _meta_content(soup, "og:description")
    og_image = _meta_content(soup, "og:image")

    h1_texts = [h.get_text().strip() for h in soup.find_all("h1")]

    canonical = None
    for link in soup.find_all("link"):
        rel = (attr(link, "rel") or "").lower().split()
        if "canonical" in rel:
            canonical = attr(link, "href")
            break

    structured_data = []
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        try:
            structured_data.append(json.loads(script.get_text()))
        except ValueError:
            # Invalid JSON-LD is reported by its absence
            continue

    recommendations: list[str] = []

    if not title:
        recommendations.append("CRITICAL: Missing page title - add a <title> tag")
    elif len(title) < TITLE_LENGTH_RANGE[0]:
        recommendations.append(f"Title too short ({len(title)} chars). Recommended: 30-60 chars")
    elif len(title) > TITLE_LENGTH_RANGE[1]:
        recommendations.append(f"Title too long ({len(title)} chars). Recommended: 30-60 chars")
    else:
        recommendations.append(f"Title length optimal ({len(title)} chars)")

    if not description:
        recommendations.append('CRITICAL: Missing meta description - add <meta name="description">')
    elif len(description) < DESCRIPTION_LENGTH_RANGE[0]:
        recommendations.append(
            f"Description too short ({len(description)} chars). Recommended: 120-160 chars"
        )
    elif len(description) > DESCRIPTION_LENGTH_RANGE[1]:
        recommendations.append(
            f"Description too long ({len(description)} chars). Recommended: 120-160 chars"
        )
    else:
        recommendations.append(f"Description length optimal ({len(description)} chars)")

    if not h1_texts:
        recommendations.append("CRITICAL: No H1 tag found - add one H1 per page")
    elif len(h1_texts) > 1:
        recommendations.append(f"Multiple H1 tags found ({len(h1_texts)}). Use only one H1 per page")
    else:
        recommendations.append("Single H1 tag")

    if not og_title and not og_description and not og_image:
        recommendations.append("No Open Graph tags - add them for social media sharing")
    else:
        if not og_title:
            recommendations.append("Missing Open Graph title (og:title)")
        if not og_description:
            recommendations.append("Missing Open Graph description (og:description)")
        if not og_image:
            recommendations.append("Missing Open Graph image (og:image)")
        if og_title and og_description and og_image:
            recommendations.append("Complete Open Graph tags")

    if not canonical:
        recommendations.append('Missing canonical URL - add <link rel="canonical">')
    else:
        recommendations.append("Canonical URL present")

    if not structured_data:
        recommendations.append("Add structured data (JSON-LD) for rich snippets")
    else:
        recommendations.append(f"{len(structured_data)} structured data item(s) found")

    if not _has_meta(soup, "viewport"):
        recommendations.append("Missing viewport meta tag for mobile optimization")
    else:
        recommendations.append("Viewport meta tag present")

    robots = _meta_content(soup, "robots")
    if "noindex" in robots or "nofollow" in robots:
        recommendations.append(f"Robots meta: {robots} - page may not be indexed")

    return SEOData(
        title=title,
        description=description,
        keywords=_meta_content(soup, "keywords"),
        og_title=og_title,
        og_description=og_description,
        og_image=og_image,
        og_url=_meta_content(soup, "og:url"),
        canonical=canonical,
        h1_count=len(h1_texts),
        h1_texts=h1_texts,
        structured_data=structured_data,
        recommendations=recommendations,
    )


def _has_meta(soup: BeautifulSoup, name: str) -> bool:
    return any(attr(meta, "name") == name for meta in soup.find_all("meta"))


def analyze_performance(html: str, dom: DOMSnapshot) -> PerformanceData:
    """
    Score a page from 0 to 100 using markup size and resource counts.

    Args:
        html: Raw HTML (its UTF-8 byte length is the HTML size)
        dom: Fact sheet of the same document

    Returns:
        PerformanceData with score and recommendations
    """
    html_size = len(html.encode("utf-8"))
    total_resources = dom.scripts + dom.styles + dom.images

    score = 100

    if html_size > 500_000:
        score -= 20
    elif html_size > 200_000:
        score -= 10
    elif html_size > 100_000:
        score -= 5

    if total_resources > 100:
        score -= 20
    elif total_resources > 50:
        score -= 10
    elif total_resources > 30:
        score -= 5

    if dom.scripts > 20:
        score -= 10
    elif dom.scripts > 10:
        score -= 5

    score = max(0, score)

    size_kb = html_size / 1024
    recommendations: list[str] = []

    if html_size > 500_000:
        recommendations.append(f"CRITICAL: Very large HTML ({size_kb:.2f} KB). Minify HTML and remove unused code.")
    elif html_size > 200_000:
        recommendations.append(f"Large HTML size ({size_kb:.2f} KB). Consider minification.")
    elif html_size > 100_000:
        recommendations.append(f"HTML size ({size_kb:.2f} KB) is acceptable but could be optimized.")
    else:
        recommendations.append(f"Good HTML size ({size_kb:.2f} KB)")

    if dom.scripts > 20:
        recommendations.append(f"Too many scripts ({dom.scripts}). Bundle and minify JavaScript.")
    elif dom.scripts > 10:
        recommendations.append(f"Many scripts ({dom.scripts}). Consider bundling and async/defer loading.")
    elif dom.scripts > 5:
        recommendations.append(f"{dom.scripts} scripts. Ensure they use async/defer attributes.")
    else:
        recommendations.append(f"Good number of scripts ({dom.scripts})")

    if dom.images > 50:
        recommendations.append(f"Too many images ({dom.images}). Lazy load and use modern formats.")
    elif dom.images > 20:
        recommendations.append(f"Many images ({dom.images}). Use lazy loading and responsive images.")
    elif dom.images > 10:
        recommendations.append(f"{dom.images} images. Consider lazy loading below-fold images.")
    else:
        recommendations.append(f"Good number of images ({dom.images})")

    if dom.styles > 10:
        recommendations.append(f"Too many stylesheets ({dom.styles}). Combine and minify CSS.")
    elif dom.styles > 5:
        recommendations.append(f"Multiple stylesheets ({dom.styles}). Consider combining CSS.")
    elif dom.styles > 2:
        recommendations.append(f"{dom.styles} stylesheets. Inline critical CSS for faster rendering.")
    else:
        recommendations.append(f"Good number of stylesheets ({dom.styles})")

    if score < 80:
        recommendations.append("Enable compression, use a CDN and browser caching.")
    if total_resources > 50:
        recommendations.append("Consider HTTP/2 or reduce the total resource count.")

    return PerformanceData(
        html_size=html_size,
        scripts=dom.scripts,
        styles=dom.styles,
        images=dom.images,
        score=score,
        recommendations=recommendations,
    )
