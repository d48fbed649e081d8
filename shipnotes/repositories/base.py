"""Hosting platform capability interface."""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Iterator, List, Optional

from ..errors import RepositoryError
from ..models import CommitInfo, PullRequestInfo, ReleaseInfo, ReviewInfo, TagInfo
from ..releasenote.fetcher import fetch_pull_requests_between
from ..releasenote.reconciler import pr_num_for_commit_from_summary


class BaseRepository(ABC):
    """Uniform access to one repository on a hosting platform.

    Implementations are selected once per run from ``SUPPORTED_PLATFORMS``
    and never inspected by type afterwards.
    """

    default_base_url = ""

    def __init__(self, token: Optional[str], owner: str, repo: str,
                 base_url: Optional[str] = None,
                 logger: Optional[logging.Logger] = None):
        self.token = token
        self.owner = owner
        self.repo = repo
        self.base_url = (base_url or self.default_base_url).rstrip('/')
        self.logger = logger or logging.getLogger(__name__)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @abstractmethod
    def get_tags(self, max_tags: int) -> List[TagInfo]:
        """List tags, newest first as returned by the platform."""

    @abstractmethod
    def get_tag(self, name: str) -> TagInfo:
        """Get a tag together with the date of its commit."""

    @abstractmethod
    def get_commits(self, from_ref: str, to_ref: str) -> List[CommitInfo]:
        """List commits reachable from ``to_ref`` but not from ``from_ref``."""

    @abstractmethod
    def iter_pull_request_pages(self, state: str = "closed") -> Iterator[List[PullRequestInfo]]:
        """Yield pull request pages sorted by last update, newest first."""

    @abstractmethod
    def get_pull_request(self, number: int) -> Optional[PullRequestInfo]:
        """Get a single pull request, or None when it does not exist."""

    @abstractmethod
    def get_reviews(self, number: int) -> List[ReviewInfo]:
        """Reviews (GitLab: approvals) of a pull request, oldest first."""

    @abstractmethod
    def get_release_info(self, tag: str) -> Optional[ReleaseInfo]:
        """Get the release attached to ``tag``, or None when there is none."""

    @abstractmethod
    def compare_url(self, from_ref: str, to_ref: str) -> str:
        """Web URL showing the diff between two references."""

    def get_pull_requests(self, from_date: datetime, to_date: datetime,
                          max_count: int,
                          on_error: Optional[Callable[[RepositoryError], None]] = None
                          ) -> List[PullRequestInfo]:
        """Merged pull requests around the given window, oldest first."""
        return fetch_pull_requests_between(self, from_date, to_date, max_count,
                                           logger=self.logger, on_error=on_error)

    def get_open(self, max_count: int) -> List[PullRequestInfo]:
        """Open pull requests, most recently updated first."""
        result: List[PullRequestInfo] = []
        for page in self.iter_pull_request_pages(state="open"):
            result.extend(page)
            if len(result) >= max_count:
                break
        return result[:max_count]

    def pr_number_from_commit(self, commit: CommitInfo) -> Optional[int]:
        """Pull request number encoded in a merge commit summary."""
        return pr_num_for_commit_from_summary(commit.summary)
