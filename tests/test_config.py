"""
Tests for settings and release notes configuration loading.

Run tests:
    pytest tests/test_config.py -v
"""

import json

import pytest

from shipnotes.config import (
    DEFAULT_CONFIGURATION,
    create_sample_config,
    find_config_file,
    get_settings,
    load_json_config,
    merge_configuration,
    parse_configuration,
    resolve_configuration,
)
from shipnotes.errors import ConfigurationError


class TestParseConfiguration:

    def test_object(self):
        assert parse_configuration('{"max_pull_requests": 5}') == {"max_pull_requests": 5}

    def test_malformed_json(self):
        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            parse_configuration('{"categories": [}')

    def test_non_object(self):
        with pytest.raises(ConfigurationError):
            parse_configuration('[1, 2]')


class TestMergeConfiguration:

    def test_defaults(self):
        config = merge_configuration()
        assert [c.title for c in config.categories] == ["## Features", "## Fixes", "## Tests"]
        assert config.max_pull_requests == 200
        assert config.ignore_labels == ["ignore"]
        assert config.ascending

    def test_json_wins_over_file(self):
        config = merge_configuration({"max_pull_requests": 5}, {"max_pull_requests": 50, "sort": "desc"})
        assert config.max_pull_requests == 5
        assert config.sort == "DESC"

    def test_merge_is_shallow_per_key(self):
        """A JSON category list replaces the default list as a whole."""
        config = merge_configuration({"categories": [{"title": "Only", "labels": ["x"]}]})
        assert [c.title for c in config.categories] == ["Only"]

    def test_unknown_keys_ignored(self):
        config = merge_configuration({"not_a_key": 1})
        assert not hasattr(config, "not_a_key")

    def test_invalid_value(self):
        with pytest.raises(ConfigurationError):
            merge_configuration({"sort": "sideways"})

    def test_invalid_title_pattern(self):
        with pytest.raises(ConfigurationError, match="invalid regular expression"):
            merge_configuration({"categories": [{"title": "Docs", "title_pattern": "docs("}]})

    def test_invalid_transformer_pattern(self):
        with pytest.raises(ConfigurationError, match="invalid regular expression"):
            merge_configuration({"transformers": [{"pattern": "[JIRA-", "target": ""}]})

    def test_default_template_wraps_uncategorized(self):
        config = merge_configuration()
        assert config.template == "${{CHANGELOG}}${{UNCATEGORIZED_SECTION}}"
        assert "${{UNCATEGORIZED}}" in config.uncategorized_template

    def test_configuration_is_immutable(self):
        config = merge_configuration()
        with pytest.raises(Exception):
            config.max_pull_requests = 1


class TestConfigFiles:

    def test_load_json_config(self, tmp_path):
        path = tmp_path / "shipnotes.json"
        path.write_text(json.dumps({"template": "x"}), encoding="utf-8")
        assert load_json_config(str(path)) == {"template": "x"}

    def test_load_malformed_file(self, tmp_path):
        path = tmp_path / "shipnotes.json"
        path.write_text("{nope", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Error loading config file"):
            load_json_config(str(path))

    def test_find_config_file(self, tmp_path):
        (tmp_path / ".github").mkdir()
        (tmp_path / ".github" / "shipnotes.json").write_text("{}", encoding="utf-8")
        assert find_config_file(str(tmp_path)).endswith("shipnotes.json")

    def test_resolve_missing_path_returns_none(self, tmp_path):
        assert resolve_configuration("missing.json", base_dir=str(tmp_path)) is None

    def test_resolve_discovered_file(self, tmp_path):
        (tmp_path / "shipnotes.json").write_text('{"sort": "DESC"}', encoding="utf-8")
        assert resolve_configuration(None, base_dir=str(tmp_path)) == {"sort": "DESC"}

    def test_create_sample_config(self, tmp_path):
        path = tmp_path / "sample.json"
        create_sample_config(str(path))
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["categories"] == DEFAULT_CONFIGURATION["categories"]
        assert "open_template" not in data


class TestSettings:

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("SHIPNOTES_TOKEN", "secret")
        monkeypatch.setenv("SHIPNOTES_OWNER", "org")
        settings = get_settings()
        assert settings.token == "secret"
        assert settings.owner == "org"
        assert settings.platform == "github"

    def test_overrides_beat_environment(self, monkeypatch):
        monkeypatch.setenv("SHIPNOTES_REPO", "from-env")
        assert get_settings(repo="from-cli", owner=None).repo == "from-cli"

    def test_base_url_gets_protocol(self):
        assert get_settings(base_url="gitlab.example.com").base_url == "https://gitlab.example.com"
