"""Configuration model and loader for seal-commit.

Configuration is read from the first file found in the search directory:

    .sealcommitrc / .sealcommitrc.yaml / .sealcommitrc.yml   (YAML)
    .sealcommitrc.json                                      (JSON)
    sealcommit.toml                                         (TOML)
    pyproject.toml                                          ([tool.sealcommit])

Keys may be written in camelCase (``minLength``) or snake_case
(``min_length``). Any value can be overridden from the environment with the
``SEAL_COMMIT_`` prefix, using ``__`` between nested sections, e.g.
``SEAL_COMMIT_ENTROPY__THRESHOLD=4.5``.
"""

from __future__ import annotations

import json
import logging
import re
import tomllib
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sealcommit.errors import ConfigurationError, ErrorCode

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = (
    ".sealcommitrc",
    ".sealcommitrc.yaml",
    ".sealcommitrc.yml",
    ".sealcommitrc.json",
    "sealcommit.toml",
)
PYPROJECT_TABLE = "sealcommit"

DEFAULT_MAX_CONCURRENCY = 10

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


class PatternsConfig(BaseModel):
    """Signature settings."""

    model_config = ConfigDict(extra="ignore")

    custom: list[str] = Field(default_factory=list)
    disabled: list[str] = Field(default_factory=list)


class EntropyConfig(BaseModel):
    """Entropy engine settings."""

    model_config = ConfigDict(extra="ignore")

    threshold: float = Field(default=4.0, ge=0.0, lt=8.0)
    min_length: int = Field(default=20, ge=1, le=1000)
    max_length: int = Field(default=100, ge=1, le=10000)
    min_alphanumeric_ratio: float = Field(default=0.5, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_length_window(self) -> EntropyConfig:
        if self.max_length < self.min_length:
            raise ValueError(
                f"max_length ({self.max_length}) must be >= min_length ({self.min_length})"
            )
        return self


class IgnoreConfig(BaseModel):
    """Files skipped before any I/O."""

    model_config = ConfigDict(extra="ignore")

    files: list[str] = Field(
        default_factory=lambda: [
            "*.min.js",
            "*.map",
            "package-lock.json",
            "yarn.lock",
            "pnpm-lock.yaml",
            "poetry.lock",
        ]
    )
    directories: list[str] = Field(
        default_factory=lambda: [
            "node_modules",
            ".git",
            "dist",
            "build",
            "coverage",
            "__pycache__",
            ".venv",
        ]
    )
    extensions: list[str] = Field(default_factory=lambda: [".min.js", ".lock", ".map", ".log"])
    match_whole_directories: bool = False


class RedactionConfig(BaseModel):
    """Redaction defaults."""

    model_config = ConfigDict(extra="ignore")

    backup_suffix: str = ".seal-backup"
    redaction_mask: str = "[REDACTED]"
    create_backups: bool = True
    dry_run: bool = False

    @field_validator("backup_suffix", "redaction_mask")
    @classmethod
    def _not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("must not be empty")
        return value


class SealConfig(BaseSettings):
    """Resolved configuration consumed by the scanner and redactor."""

    model_config = SettingsConfigDict(
        env_prefix="SEAL_COMMIT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    patterns: PatternsConfig = Field(default_factory=PatternsConfig)
    entropy: EntropyConfig = Field(default_factory=EntropyConfig)
    ignore: IgnoreConfig = Field(default_factory=IgnoreConfig)
    allowlist: list[str] = Field(default_factory=list)
    max_concurrency: int = Field(default=DEFAULT_MAX_CONCURRENCY, ge=1)
    redaction: RedactionConfig = Field(default_factory=RedactionConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any], config_path: str | None = None) -> SealConfig:
        """Validate a raw mapping (camelCase or snake_case keys).

        Raises:
            ConfigurationError: If the mapping does not validate.
        """
        try:
            return cls(**normalize_keys(data))
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration: {e}",
                config_path=config_path,
                details={"errors": e.errors(include_url=False)},
            ) from e


def normalize_keys(data: Any) -> Any:
    """Recursively convert mapping keys from camelCase to snake_case."""
    if isinstance(data, dict):
        return {
            (_CAMEL_BOUNDARY.sub("_", k).lower() if isinstance(k, str) else k): normalize_keys(v)
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [normalize_keys(item) for item in data]
    return data


def _read_config_file(path: Path) -> dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".toml":
        data = tomllib.loads(text)
        if path.name == "pyproject.toml":
            data = data.get("tool", {}).get(PYPROJECT_TABLE, {})
    elif path.suffix == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("Config must be a mapping")
    return data


def find_config_file(search_dir: Path | str = ".") -> Path | None:
    """Return the first config file in ``search_dir``, or None."""
    directory = Path(search_dir)
    for name in CONFIG_FILENAMES:
        candidate = directory / name
        if candidate.is_file():
            return candidate

    pyproject = directory / "pyproject.toml"
    if pyproject.is_file():
        try:
            data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError):
            return None
        if PYPROJECT_TABLE in data.get("tool", {}):
            return pyproject
    return None


def load_config(config_path: Path | str | None = None, search_dir: Path | str = ".") -> SealConfig:
    """Load configuration.

    Args:
        config_path: Explicit file to load. Must exist.
        search_dir: Directory searched when no explicit path is given.

    Returns:
        Validated SealConfig (defaults when no file is found).

    Raises:
        ConfigurationError: If the explicit file is missing, or any file is
            malformed or fails validation.
    """
    if config_path is not None:
        path = Path(config_path)
        if not path.is_file():
            raise ConfigurationError(
                f"Specified config file not found: {path}",
                config_path=str(path),
                code=ErrorCode.CONFIG_NOT_FOUND,
            )
    else:
        path = find_config_file(search_dir)
        if path is None:
            logger.debug("No config file found in %s, using defaults", search_dir)
            return SealConfig()

    try:
        data = _read_config_file(path)
    except (OSError, ValueError, yaml.YAMLError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(f"Failed to parse config file: {e}", config_path=str(path)) from e

    logger.info("Loaded config: %s", path)
    return SealConfig.from_dict(data, config_path=str(path))


def create_default_config_template() -> str:
    """Return a starter ``.sealcommitrc`` with commented examples."""
    return """# seal-commit configuration

patterns:
  # Extra regular expressions to treat as secrets
  custom: []
  # Built-in signatures to turn off, by name
  disabled: []
  #   - "stripe-test-publishable-key"

entropy:
  threshold: 4.0
  minLength: 20
  maxLength: 100

ignore:
  files:
    - "*.min.js"
    - "*.map"
    - "package-lock.json"
    - "yarn.lock"
    - "pnpm-lock.yaml"
    - "poetry.lock"
  directories:
    - "node_modules"
    - ".git"
    - "dist"
    - "build"
    - "coverage"
    - "__pycache__"
    - ".venv"
  # Directory entries match anywhere in the path; set true to require
  # whole directory names instead
  matchWholeDirectories: false
  extensions:
    - ".min.js"
    - ".lock"
    - ".map"
    - ".log"

# Literal strings, or /regex/, that are never reported
allowlist: []

maxConcurrency: 10

redaction:
  backupSuffix: ".seal-backup"
  redactionMask: "[REDACTED]"
  createBackups: true
"""


def add_allowlist_entry(
    value: str,
    config_path: Path | str | None = None,
    search_dir: Path | str = ".",
) -> tuple[Path, bool]:
    """Append ``value`` to the ``allowlist`` of a YAML or JSON config file.

    The discovered config file is updated; when there is none, a
    ``.sealcommitrc`` holding just the allowlist is created in ``search_dir``.

    Returns:
        The file written and whether the entry was new.

    Raises:
        ConfigurationError: If the file is TOML, cannot be parsed, or its
            allowlist is not a list.
    """
    if not value:
        raise ConfigurationError("Allowlist entry must not be empty")

    path = Path(config_path) if config_path is not None else find_config_file(search_dir)
    if path is None:
        path = Path(search_dir) / CONFIG_FILENAMES[0]

    if path.suffix == ".toml":
        raise ConfigurationError(
            "TOML config files are not edited automatically; add the entry to 'allowlist' by hand",
            config_path=str(path),
        )

    if path.exists():
        try:
            data = _read_config_file(path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to parse config file: {e}", config_path=str(path)) from e
    else:
        data = {}

    allowlist = data.setdefault("allowlist", [])
    if not isinstance(allowlist, list):
        raise ConfigurationError("'allowlist' must be a list", config_path=str(path))
    if value in allowlist:
        return path, False

    allowlist.append(value)
    if path.suffix == ".json":
        text = json.dumps(data, indent=2) + "\n"
    else:
        text = yaml.dump(data, default_flow_style=False, sort_keys=False)
    path.write_text(text, encoding="utf-8")
    logger.info("Added allowlist entry to %s", path)
    return path, True
