"""Configuration management for Shipnotes."""

import json
import logging
import re
from pathlib import Path
from typing import Optional, Any, Dict, List

from pydantic import BaseModel, ConfigDict, validator
from pydantic_settings import BaseSettings

from ..errors import ConfigurationError


logger = logging.getLogger(__name__)

SORT_ASC = "ASC"
SORT_DESC = "DESC"

DEFAULT_TEMPLATE = "${{CHANGELOG}}${{UNCATEGORIZED_SECTION}}"
DEFAULT_UNCATEGORIZED_TEMPLATE = (
    "\n\n<details>\n<summary>Uncategorized</summary>\n\n${{UNCATEGORIZED}}\n</details>"
)
DEFAULT_PR_TEMPLATE = "- ${{TITLE}}\n   - PR: #${{NUMBER}}"
DEFAULT_EMPTY_TEMPLATE = "- no changes"

DEFAULT_CONFIGURATION: Dict[str, Any] = {
    "categories": [
        {"title": "## Features", "labels": ["feature"]},
        {"title": "## Fixes", "labels": ["fix"]},
        {"title": "## Tests", "labels": ["test"]},
    ],
    "ignore_labels": ["ignore"],
    "sort": SORT_ASC,
    "template": DEFAULT_TEMPLATE,
    "uncategorized_template": DEFAULT_UNCATEGORIZED_TEMPLATE,
    "pr_template": DEFAULT_PR_TEMPLATE,
    "open_template": None,
    "empty_template": DEFAULT_EMPTY_TEMPLATE,
    "category_template": "${{CATEGORY}}",
    "separator": "\n",
    "max_pull_requests": 200,
    "max_back_track_time_days": 365,
    "max_tags_to_fetch": 200,
    "max_workers": 1,
    "exclude_merge_branches": [],
    "transformers": [],
}

# Files looked up when no configuration path is given
SEARCH_PATHS = [
    "shipnotes.json",
    ".shipnotes.json",
    ".github/shipnotes.json",
]


def check_regex(pattern: str) -> str:
    """Reject patterns the re module cannot compile."""
    try:
        re.compile(pattern)
    except re.error as e:
        raise ValueError(f"invalid regular expression {pattern!r}: {e}")
    return pattern


class Settings(BaseSettings):
    """Connection settings, read from SHIPNOTES_* environment variables."""

    platform: str = "github"
    token: Optional[str] = None
    base_url: Optional[str] = None
    owner: Optional[str] = None
    repo: Optional[str] = None
    configuration: Optional[str] = None

    @validator('base_url')
    def normalize_base_url(cls, v):
        """Ensure the API base URL has a protocol."""
        if v and not v.startswith(('http://', 'https://')):
            return f"https://{v}"
        return v.rstrip('/') if v else v

    class Config:
        env_prefix = "SHIPNOTES_"
        case_sensitive = False


class Category(BaseModel):
    """An ordered release notes section and the rules selecting its items."""

    model_config = ConfigDict(frozen=True)

    title: str
    labels: List[str] = []
    exclude_labels: List[str] = []
    title_pattern: Optional[str] = None
    authors: List[str] = []
    empty_content: Optional[str] = None

    @validator('title_pattern')
    def check_title_pattern(cls, v):
        return check_regex(v) if v else v


class Transformer(BaseModel):
    """Regex rewrite applied to every rendered item."""

    model_config = ConfigDict(frozen=True)

    pattern: str
    target: str = ""
    flags: str = ""

    @validator('pattern')
    def check_pattern(cls, v):
        return check_regex(v)


class Configuration(BaseModel):
    """Release notes behaviour. Unknown keys are ignored."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    categories: List[Category] = []
    ignore_labels: List[str] = []
    sort: str = SORT_ASC
    template: str = DEFAULT_TEMPLATE
    uncategorized_template: str = DEFAULT_UNCATEGORIZED_TEMPLATE
    pr_template: str = DEFAULT_PR_TEMPLATE
    open_template: Optional[str] = None
    empty_template: str = DEFAULT_EMPTY_TEMPLATE
    category_template: str = "${{CATEGORY}}"
    separator: str = "\n"
    max_pull_requests: int = 200
    max_back_track_time_days: int = 365
    max_tags_to_fetch: int = 200
    max_workers: int = 1
    exclude_merge_branches: List[str] = []
    transformers: List[Transformer] = []

    @validator('sort')
    def normalize_sort(cls, v):
        """Accept asc/desc in any case."""
        v = (v or SORT_ASC).upper()
        if v not in (SORT_ASC, SORT_DESC):
            raise ValueError(f"sort must be {SORT_ASC} or {SORT_DESC}, got {v}")
        return v

    @property
    def ascending(self) -> bool:
        return self.sort == SORT_ASC


def parse_configuration(text: str) -> Dict[str, Any]:
    """Parse an inline JSON configuration.

    Args:
        text: JSON document

    Returns:
        Configuration dictionary

    Raises:
        ConfigurationError: If the text is not a JSON object
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON configuration: {e}")
    if not isinstance(data, dict):
        raise ConfigurationError("JSON configuration must be an object")
    return data


def load_json_config(config_path: str) -> Dict[str, Any]:
    """Load configuration from JSON file.
    
    Args:
        config_path: Path to JSON configuration file
        
    Returns:
        Configuration dictionary
    """
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            return parse_configuration(f.read())
    except OSError as e:
        raise ConfigurationError(f"Error loading config file {config_path}: {e}")
    except ConfigurationError as e:
        raise ConfigurationError(f"Error loading config file {config_path}: {e}")


def find_config_file(base_dir: str = ".") -> Optional[str]:
    """Find configuration file in common locations.
    
    Returns:
        Path to config file or None if not found
    """
    for path_str in SEARCH_PATHS:
        path = Path(base_dir, path_str).expanduser()
        if path.exists() and path.is_file():
            return str(path)
    
    return None


def resolve_configuration(config_path: Optional[str] = None,
                          base_dir: str = ".") -> Optional[Dict[str, Any]]:
    """Read the configuration file, if one is given or can be found.

    A given path that does not exist is reported and ignored.
    """
    path = config_path
    if path and not Path(path).is_absolute():
        path = str(Path(base_dir, path))
    if path and not Path(path).is_file():
        logger.warning(f"Configuration file {path} not found, using defaults")
        return None
    path = path or find_config_file(base_dir)
    if not path:
        return None
    logger.info(f"Using configuration file {path}")
    return load_json_config(path)


def merge_configuration(json_config: Optional[Dict[str, Any]] = None,
                        file_config: Optional[Dict[str, Any]] = None) -> Configuration:
    """Build the run configuration from inline JSON, file and defaults.

    The merge is shallow per key: the inline JSON value wins over the file
    value, which wins over the built-in default.
    """
    json_config = json_config or {}
    file_config = file_config or {}

    merged = {}
    for key, default in DEFAULT_CONFIGURATION.items():
        if json_config.get(key) is not None:
            merged[key] = json_config[key]
        elif file_config.get(key) is not None:
            merged[key] = file_config[key]
        elif default is not None:
            merged[key] = default

    try:
        return Configuration(**merged)
    except ValueError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")


def get_settings(**overrides: Any) -> Settings:
    """Load settings from environment variables, overridden by CLI values.
    
    Args:
        overrides: Values given on the command line, None values are dropped
        
    Returns:
        Settings object
    """
    return Settings(**{k: v for k, v in overrides.items() if v is not None})


def create_sample_config(path: str = "shipnotes.json") -> None:
    """Create a sample configuration file.
    
    Args:
        path: Path where to create the sample config file
    """
    sample_config = {k: v for k, v in DEFAULT_CONFIGURATION.items() if v is not None}

    with open(path, 'w', encoding='utf-8') as f:
        json.dump(sample_config, f, indent=2)
    
    print(f"Sample configuration file created at: {path}")
    print("Edit the categories and templates to match your labels.")
