"""Tests for configuration loading."""

from __future__ import annotations

import json

import pytest
import yaml

from sealcommit.config import (
    EntropyConfig,
    add_allowlist_entry,
    SealConfig,
    create_default_config_template,
    find_config_file,
    load_config,
    normalize_keys,
)
from sealcommit.errors import ConfigurationError, ErrorCode


class TestSealConfig:
    """Tests for the configuration model."""

    def test_defaults(self):
        config = SealConfig()

        assert config.patterns.custom == []
        assert config.entropy.threshold == 4.0
        assert config.entropy.min_length == 20
        assert config.entropy.max_length == 100
        assert "node_modules" in config.ignore.directories
        assert "*.min.js" in config.ignore.files
        assert ".log" in config.ignore.extensions
        assert config.allowlist == []
        assert config.max_concurrency == 10
        assert config.redaction.backup_suffix == ".seal-backup"
        assert config.redaction.redaction_mask == "[REDACTED]"
        assert config.redaction.create_backups is True

    def test_from_dict_camel_case(self):
        config = SealConfig.from_dict(
            {
                "entropy": {"minLength": 12, "maxLength": 64},
                "maxConcurrency": 4,
                "redaction": {"redactionMask": "***", "createBackups": False},
            }
        )

        assert config.entropy.min_length == 12
        assert config.entropy.max_length == 64
        assert config.max_concurrency == 4
        assert config.redaction.redaction_mask == "***"
        assert config.redaction.create_backups is False

    @pytest.mark.parametrize(
        "data",
        [
            {"entropy": {"threshold": 8}},
            {"entropy": {"minLength": 0}},
            {"entropy": {"minLength": 50, "maxLength": 10}},
            {"maxConcurrency": 0},
            {"redaction": {"redactionMask": ""}},
        ],
    )
    def test_invalid_values(self, data):
        with pytest.raises(ConfigurationError) as exc_info:
            SealConfig.from_dict(data, config_path="custom.yaml")

        assert exc_info.value.code is ErrorCode.CONFIG_INVALID
        assert exc_info.value.config_path == "custom.yaml"
        assert exc_info.value.details["errors"]

    def test_unknown_keys_ignored(self):
        assert SealConfig.from_dict({"outputFormat": "json"}).max_concurrency == 10

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("SEAL_COMMIT_ENTROPY__THRESHOLD", "4.5")
        monkeypatch.setenv("SEAL_COMMIT_MAX_CONCURRENCY", "3")

        config = SealConfig()

        assert config.entropy.threshold == 4.5
        assert config.max_concurrency == 3

    def test_entropy_window_validator(self):
        with pytest.raises(ValueError):
            EntropyConfig(min_length=30, max_length=20)


class TestNormalizeKeys:
    def test_nested(self):
        data = {"maxConcurrency": 1, "entropy": {"minLength": 5}, "allowlist": ["keepMe"]}
        assert normalize_keys(data) == {"max_concurrency": 1, "entropy": {"min_length": 5}, "allowlist": ["keepMe"]}

    def test_snake_case_unchanged(self):
        assert normalize_keys({"min_length": 3}) == {"min_length": 3}


class TestLoadConfig:
    """Tests for file discovery and parsing."""

    def test_no_file_gives_defaults(self, tmp_path):
        assert load_config(search_dir=tmp_path) == SealConfig()

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(tmp_path / "nope.yaml")
        assert exc_info.value.code is ErrorCode.CONFIG_NOT_FOUND

    def test_yaml_rc(self, tmp_path):
        (tmp_path / ".sealcommitrc").write_text("entropy:\n  threshold: 4.5\nallowlist:\n  - /^sk_test_/\n")

        config = load_config(search_dir=tmp_path)

        assert config.entropy.threshold == 4.5
        assert config.allowlist == ["/^sk_test_/"]

    def test_json_rc(self, tmp_path):
        (tmp_path / ".sealcommitrc.json").write_text(json.dumps({"maxConcurrency": 2}))
        assert load_config(search_dir=tmp_path).max_concurrency == 2

    def test_toml_file(self, tmp_path):
        (tmp_path / "sealcommit.toml").write_text('allowlist = ["safe"]\n\n[entropy]\nminLength = 30\n')

        config = load_config(search_dir=tmp_path)

        assert config.allowlist == ["safe"]
        assert config.entropy.min_length == 30

    def test_pyproject_table(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "x"\n\n[tool.sealcommit]\nmaxConcurrency = 6\n')
        assert load_config(search_dir=tmp_path).max_concurrency == 6

    def test_pyproject_without_table_ignored(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "x"\n')
        assert find_config_file(tmp_path) is None

    def test_rc_takes_precedence(self, tmp_path):
        (tmp_path / "sealcommit.toml").write_text("maxConcurrency = 1\n")
        (tmp_path / ".sealcommitrc.yml").write_text("maxConcurrency: 2\n")

        assert find_config_file(tmp_path).name == ".sealcommitrc.yml"
        assert load_config(search_dir=tmp_path).max_concurrency == 2

    def test_empty_file_gives_defaults(self, tmp_path):
        (tmp_path / ".sealcommitrc").write_text("")
        assert load_config(search_dir=tmp_path) == SealConfig()

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / ".sealcommitrc"
        path.write_text("entropy: [unclosed\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(path)
        assert str(path) in str(exc_info.value)

    def test_non_mapping(self, tmp_path):
        path = tmp_path / ".sealcommitrc"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ConfigurationError):
            load_config(path)


class TestTemplate:
    def test_template_loads_as_defaults(self):
        data = yaml.safe_load(create_default_config_template())
        assert SealConfig.from_dict(data) == SealConfig()


class TestAddAllowlistEntry:
    """Tests for editing the allowlist in place."""

    def test_round_trips_through_loader(self, tmp_path):
        path, added = add_allowlist_entry("token-1", search_dir=tmp_path)

        assert added
        assert path == tmp_path / ".sealcommitrc"
        assert load_config(search_dir=tmp_path).allowlist == ["token-1"]

    def test_empty_value_rejected(self, tmp_path):
        with pytest.raises(ConfigurationError):
            add_allowlist_entry("", search_dir=tmp_path)
        assert not (tmp_path / ".sealcommitrc").exists()

    def test_allowlist_must_be_list(self, tmp_path):
        config = tmp_path / ".sealcommitrc"
        config.write_text("allowlist: token-1\n")

        with pytest.raises(ConfigurationError, match="must be a list"):
            add_allowlist_entry("token-2", search_dir=tmp_path)

    def test_pyproject_refused(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text("[tool.sealcommit]\nallowlist = []\n")

        with pytest.raises(ConfigurationError, match="TOML"):
            add_allowlist_entry("token-1", search_dir=tmp_path)
