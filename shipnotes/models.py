"""Data records passed between the release notes pipeline stages."""

from datetime import datetime
from typing import List, Optional

from dateutil import parser as date_parser
from pydantic import BaseModel, ConfigDict


STATUS_MERGED = "merged"
STATUS_OPEN = "open"
REVIEW_APPROVED = "APPROVED"


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp as returned by the platform APIs.

    Args:
        value: Timestamp string, e.g. ``2024-01-31T10:00:00Z``

    Returns:
        Timezone aware datetime or None when value is empty
    """
    if not value:
        return None
    return date_parser.isoparse(value)


class CommitInfo(BaseModel):
    """A commit between two references."""

    model_config = ConfigDict(frozen=True)

    sha: str
    summary: str
    message: str = ""
    author: str = ""
    date: Optional[datetime] = None
    html_url: str = ""
    pr_number: Optional[int] = None


class ReviewInfo(BaseModel):
    """A review left on a pull request, or a merge request approval."""

    model_config = ConfigDict(frozen=True)

    author: str
    state: str = ""
    submitted_at: Optional[datetime] = None


class PullRequestInfo(BaseModel):
    """A pull request (or merge request) as used by the release notes."""

    model_config = ConfigDict(frozen=True)

    number: int
    title: str
    html_url: str = ""
    merged_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    author: str = ""
    repo_name: str = ""
    labels: List[str] = []
    body: str = ""
    status: str = STATUS_MERGED
    reviews: List[ReviewInfo] = []

    @property
    def is_open(self) -> bool:
        return self.status == STATUS_OPEN

    @property
    def reviewers(self) -> List[str]:
        return list(dict.fromkeys(review.author for review in self.reviews))

    @property
    def approvers(self) -> List[str]:
        return list(dict.fromkeys(
            review.author for review in self.reviews if review.state == REVIEW_APPROVED
        ))

    @property
    def sort_date(self) -> Optional[datetime]:
        return self.merged_at or self.created_at

    @classmethod
    def from_commit(cls, commit: CommitInfo, repo_name: str = "") -> "PullRequestInfo":
        """Synthesize a release note item from a raw commit (commit mode)."""
        return cls(
            number=commit.pr_number or 0,
            title=commit.summary,
            html_url=commit.html_url,
            merged_at=commit.date,
            created_at=commit.date,
            author=commit.author,
            repo_name=repo_name,
            labels=[],
            body=commit.message,
        )


class TagInfo(BaseModel):
    """A repository tag and the date of the commit it points at."""

    model_config = ConfigDict(frozen=True)

    name: str
    sha: str = ""
    date: Optional[datetime] = None


class ReleaseInfo(BaseModel):
    """Release metadata attached to a tag."""

    model_config = ConfigDict(frozen=True)

    tag_name: str
    name: str = ""
    body: str = ""
    prerelease: bool = False
    created_at: Optional[datetime] = None
