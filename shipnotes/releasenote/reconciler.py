"""Match merge commits to the pull requests that produced them."""

import re
from typing import Callable, List, Optional

from ..models import CommitInfo


# Summary written by the platform when a pull request is merged
MERGE_PULL_REQUEST_RE = re.compile(r'Merge pull request #(\d+)')

# GitLab adds "See merge request group/project!N" to merge commits
SEE_MERGE_REQUEST_RE = re.compile(r'\n\nSee merge request .+!(\d+)$')


def pr_num_for_commit_from_summary(summary: str) -> Optional[int]:
    """Extract the pull request number from a merge commit summary.
    
    Args:
        summary: First line of the commit message
        
    Returns:
        Pull request number or None if the commit is not a PR merge
    """
    match = MERGE_PULL_REQUEST_RE.search(summary)
    if not match:
        return None
    return int(match.group(1))


def mr_num_for_commit_from_message(commit_message: str) -> Optional[int]:
    """Extract merge request IID from a full GitLab commit message.
    
    Args:
        commit_message: Git commit message
        
    Returns:
        MR IID or None if not found
    """
    match = SEE_MERGE_REQUEST_RE.search(commit_message.rstrip())
    if not match:
        return None
    return int(match.group(1))


def matches_exclude_branch(summary: str, exclude_merge_branches: List[str]) -> bool:
    """Check if a commit summary mentions an excluded branch."""
    return any(branch in summary for branch in exclude_merge_branches or [])


def reconcile_commits_to_prs(commits: List[CommitInfo], exclude_merge_branches: List[str],
                             extract: Optional[Callable[[CommitInfo], Optional[int]]] = None) -> List[CommitInfo]:
    """Keep merge commits and attach their pull request number.

    Commits mentioning an excluded branch are dropped before matching, so
    exclusion always wins. Commits that are not pull request merges are
    dropped too. The input commits are left untouched.

    Args:
        commits: Commits between two references
        exclude_merge_branches: Substrings marking merges to skip
        extract: Pulls the PR number out of a commit, defaults to the
            ``Merge pull request #N`` summary

    Returns:
        Copies of the matching commits with ``pr_number`` set
    """
    if extract is None:
        extract = lambda commit: pr_num_for_commit_from_summary(commit.summary)

    reconciled = []
    for commit in commits:
        if matches_exclude_branch(commit.summary, exclude_merge_branches):
            continue

        number = extract(commit)
        if number is None:
            continue
        reconciled.append(commit.model_copy(update={'pr_number': number}))

    return reconciled
