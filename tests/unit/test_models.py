"""
Unit tests for core data models.
"""

from datetime import datetime, timezone

import pytest

from sitediff.models import (
    AlertRecord,
    HeadingFact,
    HistoryEntry,
    PageInput,
    ScriptFact,
    StaticResource,
    TagDiff,
    TagPair,
    URLInput,
)


class TestURLInput:
    """Tests for URLInput model."""

    def test_valid_http_url(self):
        """Test that valid HTTP URL is accepted."""
        url_input = URLInput("http://example.com")
        assert url_input.url == "http://example.com"

    def test_valid_https_url(self):
        """Test that valid HTTPS URL is accepted."""
        url_input = URLInput("https://example.com/path")
        assert url_input.url == "https://example.com/path"

    def test_invalid_url_no_scheme(self):
        """Test that URL without http/https scheme is rejected."""
        with pytest.raises(ValueError, match="must start with http:// or https://"):
            URLInput("example.com")

    def test_invalid_url_empty(self):
        """Test that empty URL is rejected."""
        with pytest.raises(ValueError, match="non-empty string"):
            URLInput("")


class TestFactKeys:
    """Tests for exact-match keys on fact records."""

    def test_identical_facts_share_key(self):
        """Test that records with equal fields produce the same key."""
        a = ScriptFact(src="/a.js", content=None, is_async=True, defer=False, type="module")
        b = ScriptFact(src="/a.js", content=None, is_async=True, defer=False, type="module")
        assert a.key() == b.key()

    def test_any_field_change_changes_key(self):
        """Test that a single differing attribute changes the key."""
        a = ScriptFact(src="/a.js", content=None, is_async=True, defer=False, type="module")
        b = ScriptFact(src="/a.js", content=None, is_async=False, defer=False, type="module")
        assert a.key() != b.key()

    def test_key_includes_category(self):
        """Test that the category is part of the serialized key."""
        heading = HeadingFact(level=1, text="Hello")
        assert '"category": "heading"' in heading.key()

    def test_heading_level_validated(self):
        """Test that heading levels outside 1-6 are rejected."""
        with pytest.raises(ValueError, match="1-6"):
            HeadingFact(level=7, text="Too deep")


class TestTagModels:
    """Tests for TagDiff and TagPair."""

    def test_tag_diff_identical_and_shared(self):
        """Test identical flag and shared count."""
        fact = HeadingFact(level=2, text="A")
        diff = TagDiff(category="heading", only_a=(), only_b=(), total_a=3, total_b=3)
        assert diff.is_identical is True
        assert diff.shared_a == 3

        diff = TagDiff(category="heading", only_a=(fact,), only_b=(), total_a=3, total_b=2)
        assert diff.is_identical is False
        assert diff.shared_a == 2

    def test_tag_pair_matches(self):
        """Test that a pair matches only when keys are equal."""
        a = HeadingFact(level=2, text="A")
        assert TagPair(0, a, HeadingFact(level=2, text="A")).matches is True
        assert TagPair(0, a, HeadingFact(level=2, text="B")).matches is False


class TestStaticResource:
    """Tests for StaticResource model."""

    def test_unknown_type_rejected(self):
        """Test that an unknown resource type raises."""
        with pytest.raises(ValueError, match="Unknown resource type"):
            StaticResource(url="https://a.com/x", type="banana")

    def test_document_category_is_other(self):
        """Test that documents are reconciled in the other bucket."""
        resource = StaticResource(url="https://a.com/", type="document")
        assert resource.category == "other"

    def test_is_text(self):
        """Test that only scripts and stylesheets are text resources."""
        assert StaticResource(url="https://a.com/a.js", type="script").is_text is True
        assert StaticResource(url="https://a.com/a.css", type="stylesheet").is_text is True
        assert StaticResource(url="https://a.com/a.png", type="image").is_text is False

    def test_empty_content_distinct_from_unfetched(self):
        """Test that empty content is kept apart from missing content."""
        fetched = StaticResource(url="https://a.com/a.js", type="script", content="")
        unfetched = StaticResource(url="https://a.com/a.js", type="script")
        assert fetched.content == ""
        assert unfetched.content is None

    def test_from_dict_accepts_camel_case(self):
        """Test that collector-style camelCase keys are mapped."""
        resource = StaticResource.from_dict(
            {
                "url": "https://a.com/static/app.js",
                "type": "script",
                "size": 120,
                "fileName": "app.js",
                "mimeType": "text/javascript",
                "unknown": "ignored",
            }
        )
        assert resource.file_name == "app.js"
        assert resource.mime_type == "text/javascript"
        assert resource.size == 120

    def test_from_dict_defaults_type(self):
        """Test that a missing type defaults to other."""
        resource = StaticResource.from_dict({"url": "https://a.com/x"})
        assert resource.type == "other"

    def test_to_dict_drops_none(self):
        """Test that unset fields are left out of the dictionary."""
        data = StaticResource(url="https://a.com/a.js", type="script").to_dict()
        assert data == {"url": "https://a.com/a.js", "type": "script"}


class TestPageInput:
    """Tests for PageInput model."""

    def test_html_must_be_string(self):
        """Test that a missing document is rejected."""
        with pytest.raises(TypeError, match="must be a string"):
            PageInput("https://a.com", None)

    def test_empty_html_allowed(self):
        """Test that an empty document is a valid input."""
        page = PageInput("https://a.com", "")
        assert page.html == ""
        assert page.resources is None


class TestHistoryEntry:
    """Tests for HistoryEntry serialization."""

    def test_round_trip_preserves_timestamp(self):
        """Test that timestamps survive ISO serialization."""
        entry = HistoryEntry(
            id="abc",
            timestamp=datetime(2026, 1, 6, 5, 32, tzinfo=timezone.utc),
            dev_url="https://dev.site",
            prod_url="https://prod.site",
            results={"lines": {"added": 1, "removed": 0}},
            alerts=[AlertRecord("error", "SEO", "missing").to_dict()],
        )

        restored = HistoryEntry.from_dict(entry.to_dict())

        assert restored == entry
        assert restored.count_alerts("error") == 1
        assert restored.count_alerts("warning") == 0
