"""
DOM fact extractor for parsing HTML into a structural fact sheet.

Counts elements and records per-element details for scripts, styles, images,
links, meta tags and headings. Malformed markup is never an error: lxml
recovers what it can and the extractor reports whatever survives.
"""

from bs4 import BeautifulSoup
from bs4.element import Tag

from .config import LINK_TEXT_LIMIT, SCRIPT_TEXT_LIMIT, STYLE_TEXT_LIMIT
from .models import (
    DOMSnapshot,
    HeadingFact,
    ImageFact,
    LinkFact,
    MetaFact,
    ScriptFact,
    StyleFact,
)


def parse_html(html: str) -> BeautifulSoup:
    """Parse markup with lxml's forgiving HTML parser."""
    if html is None:
        raise TypeError("html must be a string, got None")
    return BeautifulSoup(html, "lxml")


def attr(tag: Tag, name: str) -> str | None:
    """
    Read an attribute as a string.

    Multi-valued attributes (class, rel) are joined with a space. A missing
    attribute is None, which stays distinct from a present-but-empty one.
    """
    value = tag.get(name)
    if value is None:
        return None
    if isinstance(value, list):
        return " ".join(value)
    return str(value)


def is_stylesheet_link(tag: Tag) -> bool:
    rel = tag.get("rel") or []
    if isinstance(rel, str):
        rel = rel.split()
    return tag.name == "link" and "stylesheet" in (r.lower() for r in rel)


class DOMFactExtractor:
    """
    Extracts a DOMSnapshot from HTML.

    Text captured from elements is truncated; facts are for display and
    matching, never for reconstructing the original text.
    """

    HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]

    def __init__(
        self,
        script_text_limit: int = SCRIPT_TEXT_LIMIT,
        style_text_limit: int = STYLE_TEXT_LIMIT,
        link_text_limit: int = LINK_TEXT_LIMIT,
    ):
        """
        Initialize the extractor.

        Args:
            script_text_limit: Characters kept from inline script bodies
            style_text_limit: Characters kept from inline style bodies
            link_text_limit: Characters kept from anchor text
        """
        self.script_text_limit = script_text_limit
        self.style_text_limit = style_text_limit
        self.link_text_limit = link_text_limit

    def extract(self, html: str) -> DOMSnapshot:
        """
        Extract the fact sheet from HTML.

        Args:
            html: HTML string to parse

        Returns:
            DOMSnapshot with counts and detail records
        """
        return self.extract_from_soup(parse_html(html))

    def extract_from_soup(self, soup: BeautifulSoup) -> DOMSnapshot:
        scripts = self._extract_scripts(soup)
        styles = self._extract_styles(soup)
        images = self._extract_images(soup)
        links = self._extract_links(soup)
        metas = self._extract_metas(soup)
        headings = self._extract_headings(soup)

        heading_counts = {tag: 0 for tag in self.HEADING_TAGS}
        for heading in headings:
            heading_counts[f"h{heading.level}"] += 1

        h1_texts = tuple(h.get_text().strip() for h in soup.find_all("h1"))

        return DOMSnapshot(
            total_elements=len(soup.find_all(True)),
            scripts=len(scripts),
            styles=len(styles),
            images=len(images),
            links=len(links),
            forms=len(soup.find_all("form")),
            headings=heading_counts,
            h1_texts=h1_texts,
            detailed_scripts=scripts,
            detailed_styles=styles,
            detailed_images=images,
            detailed_links=links,
            detailed_metas=metas,
            detailed_headings=headings,
        )

    def _extract_scripts(self, soup: BeautifulSoup) -> tuple[ScriptFact, ...]:
        facts = []
        for script in soup.find_all("script"):
            src = attr(script, "src")
            facts.append(
                ScriptFact(
                    src=src,
                    # Inline body only; external scripts carry their src instead
                    content=None if src is not None else self._truncate(script.get_text(), self.script_text_limit),
                    is_async=script.has_attr("async"),
                    defer=script.has_attr("defer"),
                    type=attr(script, "type") or "text/javascript",
                )
            )
        return tuple(facts)

    def _extract_styles(self, soup: BeautifulSoup) -> tuple[StyleFact, ...]:
        """
        Extract <style> blocks and stylesheet links in document order.

        Args:
            soup: BeautifulSoup object

        Returns:
            Style facts
        """
        facts = []
        for tag in soup.find_all(lambda t: t.name == "style" or is_stylesheet_link(t)):
            is_inline = tag.name == "style"
            facts.append(
                StyleFact(
                    href=attr(tag, "href"),
                    content=self._truncate(tag.get_text(), self.style_text_limit) if is_inline else None,
                    rel=attr(tag, "rel") or "",
                    media=attr(tag, "media") or "all",
                )
            )
        return tuple(facts)

    def _extract_images(self, soup: BeautifulSoup) -> tuple[ImageFact, ...]:
        return tuple(
            ImageFact(
                src=attr(img, "src"),
                alt=attr(img, "alt"),
                width=attr(img, "width"),
                height=attr(img, "height"),
                loading=attr(img, "loading") or "eager",
            )
            for img in soup.find_all("img")
        )

    def _extract_links(self, soup: BeautifulSoup) -> tuple[LinkFact, ...]:
        return tuple(
            LinkFact(
                href=attr(link, "href"),
                text=self._truncate(link.get_text().strip(), self.link_text_limit),
                target=attr(link, "target") or "_self",
                rel=attr(link, "rel") or "",
            )
            for link in soup.find_all("a")
        )

    def _extract_metas(self, soup: BeautifulSoup) -> tuple[MetaFact, ...]:
        return tuple(
            MetaFact(
                name=attr(meta, "name") or attr(meta, "property"),
                content=attr(meta, "content"),
                charset=attr(meta, "charset"),
            )
            for meta in soup.find_all("meta")
        )

    def _extract_headings(self, soup: BeautifulSoup) -> tuple[HeadingFact, ...]:
        """
        Extract H1-H6 headings in document order across all levels.

        Args:
            soup: BeautifulSoup object

        Returns:
            Heading facts annotated with their level
        """
        return tuple(
            HeadingFact(
                level=int(heading.name[1]),
                text=heading.get_text().strip(),
                id=attr(heading, "id"),
                class_name=attr(heading, "class"),
            )
            for heading in soup.find_all(self.HEADING_TAGS)
        )

    @staticmethod
    def _truncate(text: str, limit: int) -> str:
        return text[:limit]
