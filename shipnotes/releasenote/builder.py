"""Release notes pipeline: tags -> history -> reconcile -> classify -> render."""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from ..config import Configuration
from ..errors import RepositoryError, ShipnotesError
from ..models import PullRequestInfo, TagInfo
from .classifier import categorize
from .fetcher import sort_pull_requests
from .reconciler import reconcile_commits_to_prs
from .renderer import render_release_notes
from .tags import resolve_tags


class BuildResult(NamedTuple):
    """Outcome of one run."""

    changelog: str
    failed: bool = False
    message: str = ""


def unique_by_number(pull_requests: List[PullRequestInfo]) -> List[PullRequestInfo]:
    """Drop repeated pull requests, keeping the first occurrence."""
    seen = set()
    result = []
    for pr in pull_requests:
        if pr.number in seen:
            continue
        seen.add(pr.number)
        result.append(pr)
    return result


def in_window(pr: PullRequestInfo, from_date: datetime, to_date: datetime) -> bool:
    return pr.merged_at is not None and from_date <= pr.merged_at <= to_date


class ReleaseNotesBuilder:
    """Build the release notes for one repository and tag range."""

    def __init__(self, repository, configuration: Configuration,
                 from_tag: Optional[str] = None,
                 to_tag: Optional[str] = None,
                 include_open: bool = False,
                 fail_on_error: bool = False,
                 ignore_pre_releases: bool = False,
                 fetch_via_commits: bool = False,
                 fetch_release_information: bool = False,
                 commit_mode: bool = False,
                 fetch_reviewers: bool = False,
                 logger: Optional[logging.Logger] = None):
        self.repository = repository
        self.config = configuration
        self.from_tag = from_tag or None
        self.to_tag = to_tag or None
        self.include_open = include_open
        self.fail_on_error = fail_on_error
        self.ignore_pre_releases = ignore_pre_releases
        self.fetch_via_commits = fetch_via_commits
        self.fetch_release_information = fetch_release_information
        self.commit_mode = commit_mode
        self.fetch_reviewers = fetch_reviewers
        self.logger = logger or logging.getLogger(__name__)
        self.errors: List[str] = []

    def build(self) -> BuildResult:
        """Run the pipeline.

        Repository failures abort the run when ``fail_on_error`` is set.
        Otherwise the release notes are rendered from what was collected and
        the result is flagged as failed.

        Raises:
            RepositoryError: On API failure with ``fail_on_error``
            ShipnotesError: When no release range can be determined
        """
        self.errors = []
        try:
            changelog = self._build()
        except RepositoryError as e:
            if self.fail_on_error:
                raise
            self.logger.error(f"Error generating release notes: {e}")
            return BuildResult("", True, str(e))

        if self.errors:
            return BuildResult(changelog, True, "; ".join(self.errors))
        return BuildResult(changelog)

    def _record(self, description: str, error: RepositoryError) -> None:
        """Re-raise ``error`` when fail_on_error is set, otherwise keep it for the result."""
        if self.fail_on_error:
            raise error
        self.logger.error(f"{description} failed: {error}")
        self.errors.append(str(error))

    def _soft(self, description: str, func: Callable, *args, default: Any = None) -> Any:
        """Run a fetch step, recording its failure unless fail_on_error is set."""
        try:
            return func(*args)
        except RepositoryError as e:
            self._record(description, e)
            return default

    def _build(self) -> str:
        from_tag, to_tag = self.from_tag, self.to_tag
        if not from_tag or not to_tag:
            tags = self.repository.get_tags(self.config.max_tags_to_fetch)
            from_tag, to_tag = resolve_tags(tags, from_tag, to_tag, self.ignore_pre_releases)
        if not to_tag:
            raise ShipnotesError(f"No tags found in {self.repository.full_name}")

        self.logger.info(f"Building release notes for {self.repository.full_name} "
                         f"from {from_tag or '(start)'} to {to_tag}")

        to_info = self.repository.get_tag(to_tag)
        from_info = self.repository.get_tag(from_tag) if from_tag else None
        to_date = to_info.date or datetime.now(timezone.utc)
        from_date = self._from_date(from_info, to_date)

        items = self._fetch(from_tag, to_tag, from_date, to_date)
        self.logger.info(f"Found {len(items)} items between {from_date.isoformat()} and {to_date.isoformat()}")

        if self.include_open:
            open_items = self._soft("Fetching open pull requests", self.repository.get_open,
                                    self.config.max_pull_requests, default=[])
            items.extend(pr for pr in open_items if pr.is_open)

        if self.fetch_reviewers and not self.commit_mode:
            items = [self._with_reviews(pr) for pr in items]

        items = sort_pull_requests(items, self.config.ascending)
        categorized = categorize(items, self.config)
        stats = self._stats(from_tag, to_tag, from_info, to_info, from_date, to_date)
        return render_release_notes(categorized, stats, self.config)

    def _from_date(self, from_info: Optional[TagInfo], to_date: datetime) -> datetime:
        """Start of the window, never further back than max_back_track_time_days."""
        back_track = to_date - timedelta(days=self.config.max_back_track_time_days)
        if from_info is None or from_info.date is None:
            return back_track
        if from_info.date < back_track:
            self.logger.info(f"Limiting history to {self.config.max_back_track_time_days} days")
            return back_track
        return from_info.date

    def _fetch(self, from_tag: Optional[str], to_tag: str,
               from_date: datetime, to_date: datetime) -> List[PullRequestInfo]:
        if self.commit_mode or self.fetch_via_commits:
            if not from_tag:
                raise ShipnotesError(f"No tag found before {to_tag} to compare commits with")
            commits = self._soft(f"Fetching commits {from_tag}...{to_tag}",
                                 self.repository.get_commits, from_tag, to_tag, default=[])

            if self.commit_mode:
                items = [PullRequestInfo.from_commit(commit, self.repository.full_name)
                         for commit in commits]
            else:
                reconciled = reconcile_commits_to_prs(
                    commits,
                    self.config.exclude_merge_branches,
                    extract=self.repository.pr_number_from_commit,
                )
                items = self._pull_requests_for_numbers([c.pr_number for c in reconciled])
        else:
            items = self.repository.get_pull_requests(
                from_date, to_date, self.config.max_pull_requests,
                on_error=lambda e: self._record("Fetching pull requests", e),
            )

        if not self.commit_mode:
            items = unique_by_number(items)
        return [item for item in items if in_window(item, from_date, to_date)]

    def _pull_requests_for_numbers(self, numbers: List[int]) -> List[PullRequestInfo]:
        """Fetch the pull requests referenced by merge commits.

        Requests go through a pool of ``max_workers`` (one by default, so
        they run one after another) and are merged here in commit order.
        """
        numbers = list(dict.fromkeys(numbers))
        if not numbers:
            return []

        found: Dict[int, PullRequestInfo] = {}
        max_workers = max(1, min(self.config.max_workers, len(numbers)))

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_number = {
                executor.submit(self.repository.get_pull_request, number): number
                for number in numbers
            }

            try:
                for future in as_completed(future_to_number):
                    number = future_to_number[future]
                    pr = self._soft(f"Fetching PR #{number}", future.result)
                    if pr:
                        found[number] = pr
            except RepositoryError:
                for pending in future_to_number:
                    pending.cancel()
                raise

        return [found[number] for number in numbers if number in found]

    def _with_reviews(self, pr: PullRequestInfo) -> PullRequestInfo:
        reviews = self._soft(f"Fetching reviews of PR #{pr.number}",
                             self.repository.get_reviews, pr.number, default=[])
        return pr.model_copy(update={'reviews': reviews}) if reviews else pr

    def _stats(self, from_tag: Optional[str], to_tag: str,
               from_info: Optional[TagInfo], to_info: TagInfo,
               from_date: datetime, to_date: datetime) -> Dict[str, str]:
        stats = {
            'OWNER': self.repository.owner,
            'REPO': self.repository.repo,
            'FROM_TAG': from_tag or '',
            'TO_TAG': to_tag,
            'FROM_TAG_DATE': from_info.date.isoformat() if from_info and from_info.date else '',
            'TO_TAG_DATE': to_info.date.isoformat() if to_info.date else '',
            'DAYS_SINCE': str((to_date - from_date).days),
            'RELEASE_DIFF': self.repository.compare_url(from_tag, to_tag) if from_tag else '',
        }

        if self.fetch_release_information:
            release = self._soft(f"Fetching release {to_tag}", self.repository.get_release_info, to_tag)
            if release:
                stats['RELEASE_NAME'] = release.name
                stats['RELEASE_BODY'] = release.body
        return stats
