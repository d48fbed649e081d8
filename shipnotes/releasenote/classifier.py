"""Ordered, first-match-wins assignment of items to categories."""

import re
from collections import OrderedDict
from typing import Dict, List, NamedTuple, Optional

from ..config import Category, Configuration
from ..models import PullRequestInfo


UNCATEGORIZED = "uncategorized"


class CategorizedItems(NamedTuple):
    """Items bucketed by category title, in category declaration order."""

    categories: Dict[str, List[PullRequestInfo]]
    uncategorized: List[PullRequestInfo]
    ignored: List[PullRequestInfo]
    open: List[PullRequestInfo]

    @property
    def categorized_count(self) -> int:
        return sum(len(items) for items in self.categories.values())


def _lower(values: List[str]) -> set:
    return {v.lower() for v in values}


def category_matches(category: Category, item: PullRequestInfo) -> bool:
    """Check a single category rule against an item.

    Excluded labels veto the match. Otherwise any configured predicate
    (label, title pattern, author) is enough. A category with no predicate
    never matches.
    """
    labels = _lower(item.labels)
    if labels & _lower(category.exclude_labels):
        return False

    if category.labels and labels & _lower(category.labels):
        return True
    if category.title_pattern and re.search(category.title_pattern, item.title):
        return True
    if category.authors and item.author in category.authors:
        return True
    return False


def first_match(item: PullRequestInfo, categories: List[Category]) -> Optional[Category]:
    for category in categories:
        if category_matches(category, item):
            return category
    return None


def classify(item: PullRequestInfo, categories: List[Category]) -> str:
    """Return the title of the first matching category, or UNCATEGORIZED."""
    category = first_match(item, categories)
    return category.title if category else UNCATEGORIZED


def is_ignored(item: PullRequestInfo, ignore_labels: List[str]) -> bool:
    return bool(_lower(item.labels) & _lower(ignore_labels))


def categorize(items: List[PullRequestInfo], config: Configuration) -> CategorizedItems:
    """Bucket items by category, keeping their order inside every bucket.

    Open pull requests get their own bucket and are not classified.
    """
    buckets: Dict[str, List[PullRequestInfo]] = OrderedDict(
        (category.title, []) for category in config.categories
    )
    uncategorized: List[PullRequestInfo] = []
    ignored: List[PullRequestInfo] = []
    open_items: List[PullRequestInfo] = []

    for item in items:
        if is_ignored(item, config.ignore_labels):
            ignored.append(item)
            continue
        if item.is_open:
            open_items.append(item)
            continue

        category = first_match(item, config.categories)
        if category is None:
            uncategorized.append(item)
        else:
            buckets[category.title].append(item)

    return CategorizedItems(buckets, uncategorized, ignored, open_items)
