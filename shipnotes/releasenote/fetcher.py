"""Bounded scan of merged pull request history."""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from ..errors import RepositoryError
from ..models import PullRequestInfo


_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def sort_pull_requests(pull_requests: List[PullRequestInfo], ascending: bool = True) -> List[PullRequestInfo]:
    """Sort pull requests by merge time (creation time for open ones).

    The sort is stable, so items sharing a timestamp keep their input order.
    """
    return sorted(pull_requests, key=lambda pr: pr.sort_date or _OLDEST, reverse=not ascending)


def fetch_pull_requests_between(repository, from_date: datetime, to_date: datetime,
                                max_pull_requests: int,
                                logger: Optional[logging.Logger] = None,
                                on_error: Optional[Callable[[RepositoryError], None]] = None
                                ) -> List[PullRequestInfo]:
    """Collect merged pull requests, walking history backwards page by page.

    Pages come sorted by last update, newest first. Paging stops once the
    last entry of a page was merged before ``from_date`` or once
    ``max_pull_requests`` merged entries were collected. Update order is not
    merge order, so this may read one page too many; callers filter the
    result by the release window again. ``to_date`` is applied by that
    filter, not here.

    Args:
        repository: Repository client providing ``iter_pull_request_pages``
        from_date: Start of the release window
        to_date: End of the release window
        max_pull_requests: Upper bound of returned pull requests
        on_error: Called with a failed page request; the scan then stops and
            the pull requests collected so far are returned. Without it the
            error propagates.

    Returns:
        Merged pull requests, oldest merge first
    """
    logger = logger or logging.getLogger(__name__)
    merged: List[PullRequestInfo] = []
    pages = iter(repository.iter_pull_request_pages(state="closed"))

    while True:
        try:
            page = next(pages, None)
        except RepositoryError as e:
            if on_error is None:
                raise
            on_error(e)
            break
        if not page:
            break
        merged.extend(pr for pr in page if pr.merged_at)

        if len(merged) >= max_pull_requests:
            logger.info(f"Reached 'max_pull_requests' count {max_pull_requests}")
            break

        last = page[-1]
        if last.merged_at and last.merged_at < from_date:
            # everything further back was updated even earlier
            logger.debug(f"Stopped paging at PR #{last.number} merged {last.merged_at.isoformat()}")
            break

    return sort_pull_requests(merged[:max_pull_requests], ascending=True)
