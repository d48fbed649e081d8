"""GitLab client wrapper using python-gitlab library."""

import logging
from itertools import islice
from typing import Any, Callable, Dict, Iterator, List, Optional

import gitlab
import requests
from gitlab.v4.objects import Project

from ..errors import RepositoryError
from ..models import (
    CommitInfo, PullRequestInfo, ReleaseInfo, ReviewInfo, TagInfo,
    REVIEW_APPROVED, STATUS_MERGED, STATUS_OPEN, parse_timestamp,
)
from ..releasenote.reconciler import mr_num_for_commit_from_message
from .base import BaseRepository


GITLAB_URL = "https://gitlab.com"
PER_PAGE = 100

# GitLab names the merge request states differently
MR_STATES = {
    "closed": "merged",
    "open": "opened",
}


class GitlabRepository(BaseRepository):
    """Repository client for gitlab.com and self-hosted GitLab."""

    default_base_url = GITLAB_URL

    def __init__(self, token: Optional[str], owner: str, repo: str,
                 base_url: Optional[str] = None,
                 logger: Optional[logging.Logger] = None,
                 gl: Optional[gitlab.Gitlab] = None):
        super().__init__(token, owner, repo, base_url, logger)

        self.gl = gl or gitlab.Gitlab(
            url=self.base_url,
            private_token=token,
            timeout=300
        )

        # Cache for project instance
        self._project: Optional[Project] = None

    def _get_project(self) -> Project:
        """Get project instance with caching."""
        if self._project is None:
            self._project = self._call(self.full_name, self.gl.projects.get, self.full_name)
        return self._project

    def _call(self, identifier: str, func: Callable, *args, **kwargs) -> Any:
        """Run an API call and turn its failure into RepositoryError."""
        try:
            return func(*args, **kwargs)
        except gitlab.GitlabError as e:
            raise RepositoryError(identifier, str(e), e.response_code)
        except requests.RequestException as e:
            raise RepositoryError(identifier, f"Request failed: {e}")

    def _to_pull_request(self, mr) -> PullRequestInfo:
        author = mr.author or {}
        return PullRequestInfo(
            number=mr.iid,
            title=mr.title,
            html_url=mr.web_url,
            merged_at=parse_timestamp(mr.merged_at),
            created_at=parse_timestamp(mr.created_at),
            author=author.get('username', ''),
            repo_name=self.full_name,
            labels=list(mr.labels or []),
            body=mr.description or '',
            status=STATUS_OPEN if mr.state == 'opened' else STATUS_MERGED,
        )

    def _to_commit(self, data: Dict[str, Any]) -> CommitInfo:
        message = data.get('message') or ''
        return CommitInfo(
            sha=data['id'],
            summary=data.get('title') or message.split('\n', 1)[0],
            message=message,
            author=data.get('author_name', ''),
            date=parse_timestamp(data.get('committed_date') or data.get('created_at')),
            html_url=data.get('web_url', ''),
        )

    def get_tags(self, max_tags: int) -> List[TagInfo]:
        proj = self._get_project()
        tags = self._call("tags", proj.tags.list, iterator=True, per_page=PER_PAGE)
        result = []
        for tag in islice(tags, max_tags):
            result.append(TagInfo(
                name=tag.name,
                sha=tag.commit['id'],
                date=parse_timestamp(tag.commit.get('committed_date') or tag.commit.get('created_at')),
            ))
        return result

    def get_tag(self, name: str) -> TagInfo:
        proj = self._get_project()
        tag = self._call(name, proj.tags.get, name)
        return TagInfo(
            name=tag.name,
            sha=tag.commit['id'],
            date=parse_timestamp(tag.commit.get('committed_date') or tag.commit.get('created_at')),
        )

    def get_commits(self, from_ref: str, to_ref: str) -> List[CommitInfo]:
        proj = self._get_project()
        compare = self._call(f"{from_ref}...{to_ref}", proj.repository_compare, from_ref, to_ref)
        commits = [self._to_commit(data) for data in compare.get('commits', [])]
        self.logger.info(f"Found {len(commits)} commits between {from_ref} and {to_ref}")
        return commits

    def iter_pull_request_pages(self, state: str = "closed") -> Iterator[List[PullRequestInfo]]:
        proj = self._get_project()
        page = 1
        while True:
            mrs = self._call("merge_requests", proj.mergerequests.list,
                             state=MR_STATES.get(state, state),
                             order_by='updated_at',
                             sort='desc',
                             per_page=PER_PAGE,
                             page=page,
                             get_all=False)
            if not mrs:
                return
            yield [self._to_pull_request(mr) for mr in mrs]
            if len(mrs) < PER_PAGE:
                return
            page += 1

    def get_pull_request(self, number: int) -> Optional[PullRequestInfo]:
        proj = self._get_project()
        try:
            mr = self._call(f"!{number}", proj.mergerequests.get, number)
        except RepositoryError as e:
            if not e.not_found:
                raise
            self.logger.warning(f"Cannot find MR {self.full_name}!{number} - {e}")
            return None
        return self._to_pull_request(mr)

    def get_reviews(self, number: int) -> List[ReviewInfo]:
        """Approvals of a merge request; GitLab keeps no review states."""
        proj = self._get_project()
        mr = proj.mergerequests.get(number, lazy=True)
        approvals = self._call(f"!{number} approvals", mr.approvals.get)
        return [
            ReviewInfo(author=(entry.get('user') or {}).get('username', ''), state=REVIEW_APPROVED)
            for entry in approvals.approved_by or []
        ]

    def get_release_info(self, tag: str) -> Optional[ReleaseInfo]:
        proj = self._get_project()
        try:
            release = self._call(tag, proj.releases.get, tag)
        except RepositoryError as e:
            if not e.not_found:
                raise
            self.logger.warning(f"No release found for tag {tag}")
            return None
        return ReleaseInfo(
            tag_name=release.tag_name,
            name=release.name or '',
            body=release.description or '',
            prerelease=bool(getattr(release, 'upcoming_release', False)),
            created_at=parse_timestamp(release.created_at),
        )

    def compare_url(self, from_ref: str, to_ref: str) -> str:
        return f"{self.base_url}/{self.owner}/{self.repo}/-/compare/{from_ref}...{to_ref}"

    def pr_number_from_commit(self, commit: CommitInfo) -> Optional[int]:
        return mr_num_for_commit_from_message(commit.message)
