"""GitHub client using the REST API over requests."""

import logging
from typing import Any, Dict, Iterator, List, Optional
from urllib.parse import quote

import requests

from ..errors import RepositoryError
from ..models import (
    CommitInfo, PullRequestInfo, ReleaseInfo, ReviewInfo, TagInfo,
    STATUS_MERGED, STATUS_OPEN, parse_timestamp,
)
from .base import BaseRepository


GITHUB_API_URL = "https://api.github.com"
GITHUB_WEB_URL = "https://github.com"
PER_PAGE = 100
REQUEST_TIMEOUT = 30


class GithubRepository(BaseRepository):
    """Repository client for github.com and GitHub Enterprise."""

    default_base_url = GITHUB_API_URL

    def __init__(self, token: Optional[str], owner: str, repo: str,
                 base_url: Optional[str] = None,
                 logger: Optional[logging.Logger] = None,
                 session: Optional[requests.Session] = None):
        super().__init__(token, owner, repo, base_url, logger)
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        })
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    @property
    def web_url(self) -> str:
        if self.base_url == GITHUB_API_URL:
            return GITHUB_WEB_URL
        # GitHub Enterprise serves the API under /api/v3
        return self.base_url[:-len("/api/v3")] if self.base_url.endswith("/api/v3") else self.base_url

    def _url(self, path: str) -> str:
        return f"{self.base_url}/repos/{self.owner}/{self.repo}{path}"

    def _get(self, url: str, identifier: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """Issue a GET request and turn transport or HTTP failures into RepositoryError."""
        try:
            response = self.session.get(url, params=params, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise RepositoryError(identifier, f"Request failed: {e}")

        if response.status_code >= 400:
            try:
                reason = response.json().get("message", response.reason)
            except ValueError:
                reason = response.reason
            raise RepositoryError(identifier, f"HTTP {response.status_code}: {reason}", response.status_code)
        return response

    def _pages(self, url: str, identifier: str, params: Optional[Dict[str, Any]] = None) -> Iterator[requests.Response]:
        """Follow the ``Link: rel=next`` chain."""
        response = self._get(url, identifier, params)
        yield response
        while "next" in response.links:
            response = self._get(response.links["next"]["url"], identifier)
            yield response

    def _to_pull_request(self, data: Dict[str, Any]) -> PullRequestInfo:
        base_repo = (data.get("base") or {}).get("repo") or {}
        return PullRequestInfo(
            number=data["number"],
            title=data.get("title") or "",
            html_url=data.get("html_url") or "",
            merged_at=parse_timestamp(data.get("merged_at")),
            created_at=parse_timestamp(data.get("created_at")),
            author=(data.get("user") or {}).get("login", ""),
            repo_name=base_repo.get("full_name", self.full_name),
            labels=[label["name"] for label in data.get("labels") or []],
            body=data.get("body") or "",
            status=STATUS_OPEN if data.get("state") == "open" else STATUS_MERGED,
        )

    def _to_commit(self, data: Dict[str, Any]) -> CommitInfo:
        commit = data.get("commit") or {}
        message = commit.get("message") or ""
        author = (data.get("author") or {}).get("login") or (commit.get("author") or {}).get("name", "")
        return CommitInfo(
            sha=data["sha"],
            summary=message.split("\n", 1)[0],
            message=message,
            author=author,
            date=parse_timestamp((commit.get("committer") or {}).get("date")),
            html_url=data.get("html_url") or "",
        )

    def get_tags(self, max_tags: int) -> List[TagInfo]:
        tags: List[TagInfo] = []
        for response in self._pages(self._url("/tags"), "tags", {"per_page": PER_PAGE}):
            for data in response.json():
                tags.append(TagInfo(name=data["name"], sha=(data.get("commit") or {}).get("sha", "")))
            if len(tags) >= max_tags:
                break
        self.logger.debug(f"Fetched {len(tags)} tags from {self.full_name}")
        return tags[:max_tags]

    def get_tag(self, name: str) -> TagInfo:
        data = self._get(self._url(f"/commits/{quote(name, safe='')}"), name).json()
        commit = self._to_commit(data)
        return TagInfo(name=name, sha=commit.sha, date=commit.date)

    def get_commits(self, from_ref: str, to_ref: str) -> List[CommitInfo]:
        identifier = f"{from_ref}...{to_ref}"
        url = self._url(f"/compare/{quote(from_ref, safe='')}...{quote(to_ref, safe='')}")
        commits: List[CommitInfo] = []
        for response in self._pages(url, identifier, {"per_page": PER_PAGE}):
            commits.extend(self._to_commit(data) for data in response.json().get("commits", []))
        self.logger.info(f"Found {len(commits)} commits between {from_ref} and {to_ref}")
        return commits

    def iter_pull_request_pages(self, state: str = "closed") -> Iterator[List[PullRequestInfo]]:
        params = {"state": state, "sort": "updated", "direction": "desc", "per_page": PER_PAGE}
        for response in self._pages(self._url("/pulls"), "pulls", params):
            yield [self._to_pull_request(data) for data in response.json()]

    def get_pull_request(self, number: int) -> Optional[PullRequestInfo]:
        try:
            data = self._get(self._url(f"/pulls/{number}"), f"#{number}").json()
        except RepositoryError as e:
            if not e.not_found:
                raise
            self.logger.warning(f"Cannot find PR {self.full_name}#{number} - {e}")
            return None
        return self._to_pull_request(data)

    def get_reviews(self, number: int) -> List[ReviewInfo]:
        reviews: List[ReviewInfo] = []
        url = self._url(f"/pulls/{number}/reviews")
        for response in self._pages(url, f"#{number} reviews", {"per_page": PER_PAGE}):
            for data in response.json():
                user = data.get("user")
                if not user:
                    # deleted accounts come back as null
                    continue
                reviews.append(ReviewInfo(
                    author=user.get("login", ""),
                    state=data.get("state") or "",
                    submitted_at=parse_timestamp(data.get("submitted_at")),
                ))
        return reviews

    def get_release_info(self, tag: str) -> Optional[ReleaseInfo]:
        try:
            data = self._get(self._url(f"/releases/tags/{quote(tag, safe='')}"), tag).json()
        except RepositoryError as e:
            if not e.not_found:
                raise
            self.logger.warning(f"No release found for tag {tag}")
            return None
        return ReleaseInfo(
            tag_name=data.get("tag_name", tag),
            name=data.get("name") or "",
            body=data.get("body") or "",
            prerelease=bool(data.get("prerelease")),
            created_at=parse_timestamp(data.get("created_at")),
        )

    def compare_url(self, from_ref: str, to_ref: str) -> str:
        return f"{self.web_url}/{self.owner}/{self.repo}/compare/{from_ref}...{to_ref}"
