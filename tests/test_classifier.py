"""
Tests for ordered category matching.

Run tests:
    pytest tests/test_classifier.py -v
"""

from shipnotes.config import Category, merge_configuration
from shipnotes.releasenote.classifier import (
    UNCATEGORIZED,
    categorize,
    category_matches,
    classify,
)

from .fakes import make_pr


BUG = Category(title="Bugs", labels=["bug"])
FEATURE = Category(title="Features", labels=["feature"])


class TestClassify:

    def test_first_match_wins(self):
        """An item with both labels lands in the first declared category."""
        item = make_pr(1, merged_day=1, labels=["feature", "bug"])
        assert classify(item, [BUG, FEATURE]) == "Bugs"
        assert classify(item, [FEATURE, BUG]) == "Features"

    def test_no_match_is_uncategorized(self):
        item = make_pr(1, merged_day=1, labels=["chore"])
        assert classify(item, [BUG, FEATURE]) == UNCATEGORIZED

    def test_labels_match_case_insensitively(self):
        item = make_pr(1, merged_day=1, labels=["Bug"])
        assert classify(item, [BUG]) == "Bugs"

    def test_title_pattern(self):
        docs = Category(title="Docs", title_pattern=r"^docs(\(.+\))?:")
        assert classify(make_pr(1, merged_day=1, title="docs(api): add examples"), [docs]) == "Docs"
        assert classify(make_pr(2, merged_day=1, title="fix: docs link"), [docs]) == UNCATEGORIZED

    def test_author(self):
        deps = Category(title="Dependencies", authors=["dependabot[bot]"])
        item = make_pr(1, merged_day=1, author="dependabot[bot]")
        assert classify(item, [BUG, deps]) == "Dependencies"

    def test_exclude_labels_veto(self):
        category = Category(title="Features", labels=["feature"], exclude_labels=["internal"])
        item = make_pr(1, merged_day=1, labels=["feature", "internal"])
        assert not category_matches(category, item)

    def test_category_without_rules_never_matches(self):
        assert not category_matches(Category(title="Empty"), make_pr(1, merged_day=1, labels=["bug"]))


class TestCategorize:

    def test_buckets_keep_order(self):
        config = merge_configuration({"categories": [
            {"title": "Bugs", "labels": ["bug"]},
            {"title": "Features", "labels": ["feature"]},
        ]})
        items = [
            make_pr(1, merged_day=1, labels=["feature"]),
            make_pr(2, merged_day=2, labels=["bug"]),
            make_pr(3, merged_day=3, labels=["feature"]),
            make_pr(4, merged_day=4),
        ]

        result = categorize(items, config)

        assert list(result.categories) == ["Bugs", "Features"]
        assert [pr.number for pr in result.categories["Features"]] == [1, 3]
        assert [pr.number for pr in result.categories["Bugs"]] == [2]
        assert [pr.number for pr in result.uncategorized] == [4]
        assert result.categorized_count == 3

    def test_ignored_and_open_buckets(self, default_config):
        items = [
            make_pr(1, merged_day=1, labels=["feature", "ignore"]),
            make_pr(2, merged_day=2, open_=True),
            make_pr(3, merged_day=3, labels=["fix"]),
        ]

        result = categorize(items, default_config)

        assert [pr.number for pr in result.ignored] == [1]
        assert [pr.number for pr in result.open] == [2]
        assert [pr.number for pr in result.categories["## Fixes"]] == [3]
        assert result.uncategorized == []

    def test_item_is_never_in_two_categories(self, default_config):
        items = [make_pr(1, merged_day=1, labels=["feature", "fix", "test"])]
        result = categorize(items, default_config)
        assert result.categorized_count == 1
        assert [pr.number for pr in result.categories["## Features"]] == [1]

    def test_category_titled_like_the_fallback_bucket(self):
        """A user category may be called "uncategorized" without swallowing its items."""
        config = merge_configuration({"categories": [
            {"title": UNCATEGORIZED, "labels": ["triage"]},
        ]})
        items = [make_pr(1, merged_day=1, labels=["triage"]), make_pr(2, merged_day=2)]

        result = categorize(items, config)

        assert [pr.number for pr in result.categories[UNCATEGORIZED]] == [1]
        assert [pr.number for pr in result.uncategorized] == [2]
