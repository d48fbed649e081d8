"""Release note generation module."""

from .fetcher import fetch_pull_requests_between, sort_pull_requests
from .reconciler import (
    reconcile_commits_to_prs,
    pr_num_for_commit_from_summary,
    mr_num_for_commit_from_message,
)
from .classifier import UNCATEGORIZED, classify, categorize
from .renderer import render, render_release_notes, fill_placeholders
from .tags import resolve_tags, sort_tags

__all__ = [
    "fetch_pull_requests_between",
    "sort_pull_requests",
    "reconcile_commits_to_prs",
    "pr_num_for_commit_from_summary",
    "mr_num_for_commit_from_message",
    "UNCATEGORIZED",
    "classify",
    "categorize",
    "render",
    "render_release_notes",
    "fill_placeholders",
    "resolve_tags",
    "sort_tags",
]
