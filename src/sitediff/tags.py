"""
Tag-detail reconciliation between two fact sheets.

Two separate questions are answered here:

* which records exist on only one side (exact match on every field), and
* which records to show opposite each other in a side-by-side card view.

The second is positional only: index i of one list faces
index i of the other. It never feeds the added/removed counts.
"""

from collections.abc import Sequence

from .models import FACT_CATEGORIES, DOMSnapshot, ElementFact, TagComparison, TagDiff, TagPair


def reconcile_tags(
    facts_a: Sequence[ElementFact], facts_b: Sequence[ElementFact], category: str = ""
) -> TagDiff:
    """
    Partition two fact lists by exact-match keys.

    Args:
        facts_a: Records from the first document, in order
        facts_b: Records from the second document, in order
        category: Label carried on the result

    Returns:
        TagDiff whose ``only_a``/``only_b`` keep input order
    """
    keys_a = {fact.key() for fact in facts_a}
    keys_b = {fact.key() for fact in facts_b}

    return TagDiff(
        category=category,
        only_a=tuple(fact for fact in facts_a if fact.key() not in keys_b),
        only_b=tuple(fact for fact in facts_b if fact.key() not in keys_a),
        total_a=len(facts_a),
        total_b=len(facts_b),
    )


def pair_by_position(
    facts_a: Sequence[ElementFact], facts_b: Sequence[ElementFact]
) -> tuple[TagPair, ...]:
    """Zip two fact lists up to the shorter length."""
    return tuple(TagPair(index, a, b) for index, (a, b) in enumerate(zip(facts_a, facts_b)))


def compare_tags(
    facts_a: Sequence[ElementFact], facts_b: Sequence[ElementFact], category: str = ""
) -> TagComparison:
    return TagComparison(
        diff=reconcile_tags(facts_a, facts_b, category),
        pairs=pair_by_position(facts_a, facts_b),
    )


def compare_snapshots(dom_a: DOMSnapshot, dom_b: DOMSnapshot) -> dict[str, TagComparison]:
    """Compare every fact category of two snapshots."""
    return {
        category: compare_tags(dom_a.facts(category), dom_b.facts(category), category)
        for category in FACT_CATEGORIES
    }
