"""
Pytest configuration for the Shipnotes tests.
"""

import pytest

from shipnotes.config import merge_configuration
from shipnotes.models import TagInfo

from .fakes import day


@pytest.fixture
def default_config():
    return merge_configuration()


@pytest.fixture
def release_tags():
    """v1.0.0 on day 0, v1.1.0 on day 10, newest first."""
    return [
        TagInfo(name="v1.1.0", sha="b" * 40, date=day(10)),
        TagInfo(name="v1.0.0", sha="a" * 40, date=day(0)),
    ]
