"""Pick the tags delimiting a release."""

import logging
from typing import List, Optional, Tuple

from packaging.version import InvalidVersion, Version

from ..models import TagInfo


logger = logging.getLogger(__name__)


def tag_version(name: str) -> Optional[Version]:
    """Parse a tag name such as ``v1.2.3`` as a version, None if it is not one."""
    try:
        return Version(name)
    except InvalidVersion:
        return None


def is_prerelease(name: str) -> bool:
    version = tag_version(name)
    return bool(version and (version.is_prerelease or version.is_devrelease))


def sort_tags(tags: List[TagInfo]) -> List[TagInfo]:
    """Order tags newest first.

    When every tag is a version they are sorted by version, otherwise the
    platform order is kept.
    """
    versions = [tag_version(tag.name) for tag in tags]
    if tags and all(versions):
        order = sorted(range(len(tags)), key=lambda i: versions[i], reverse=True)
        return [tags[i] for i in order]
    return list(tags)


def resolve_tags(tags: List[TagInfo], from_tag: Optional[str], to_tag: Optional[str],
                 ignore_pre_releases: bool = False) -> Tuple[Optional[str], Optional[str]]:
    """Fill in missing ``from_tag``/``to_tag`` values from the tag list.

    An empty ``to_tag`` becomes the newest tag. An empty ``from_tag`` becomes
    the tag right before ``to_tag``, skipping pre-releases if requested.

    Returns:
        Tuple of (from_tag, to_tag), from_tag is None when no earlier tag exists
    """
    ordered = sort_tags(tags)

    if not to_tag:
        if not ordered:
            return from_tag or None, None
        to_tag = ordered[0].name
        logger.info(f"Resolved 'to_tag' to newest tag {to_tag}")

    if from_tag:
        return from_tag, to_tag

    names = [tag.name for tag in ordered]
    candidates = ordered[names.index(to_tag) + 1:] if to_tag in names else ordered
    for tag in candidates:
        if ignore_pre_releases and is_prerelease(tag.name):
            logger.debug(f"Skipping pre-release tag {tag.name}")
            continue
        logger.info(f"Resolved 'from_tag' to previous tag {tag.name}")
        return tag.name, to_tag

    logger.warning(f"No tag found before {to_tag}")
    return None, to_tag
