"""Hosting platform clients."""

import logging
from typing import Dict, Optional, Type

from ..errors import UnsupportedPlatformError
from .base import BaseRepository
from .github import GithubRepository
from .gitlab import GitlabRepository


SUPPORTED_PLATFORMS: Dict[str, Type[BaseRepository]] = {
    "github": GithubRepository,
    "gitlab": GitlabRepository,
}


def create_repository(platform: str, token: Optional[str], owner: str, repo: str,
                      base_url: Optional[str] = None,
                      logger: Optional[logging.Logger] = None) -> BaseRepository:
    """Create the client for ``platform``.

    Raises:
        UnsupportedPlatformError: If no client exists for the platform
    """
    if platform not in SUPPORTED_PLATFORMS:
        raise UnsupportedPlatformError(platform)
    return SUPPORTED_PLATFORMS[platform](token, owner, repo, base_url=base_url, logger=logger)


__all__ = [
    "BaseRepository",
    "GithubRepository",
    "GitlabRepository",
    "SUPPORTED_PLATFORMS",
    "create_repository",
]
