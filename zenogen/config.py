# File: zenogen/config.py
"""
Zeno Generator - Project Configuration
=======================================
Pydantic V2 models for ``zeno.config.{yaml,yml,json}`` plus the helpers that
discover, load, validate and merge a configuration file onto the defaults.

Resolution order used by the CLI (``resolve_config``):

    1. explicit ``--config`` path
    2. first config file found walking up from the working directory
    3. ``DEFAULT_CONFIG``

Keys may be written camelCase (``schemaDir``) or snake_case (``schema_dir``);
unknown keys are rejected.  Every failure raises ``ConfigurationError``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from zenogen.errors import ConfigurationError
from zenogen.utils import to_camel_case
from zenogen.validators import ValidationResult

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zenogen.config")

CONFIG_FILE_NAMES: Tuple[str, ...] = (
    "zeno.config.yaml",
    "zeno.config.yml",
    "zeno.config.json",
)

_CONFIG_MODEL: ConfigDict = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="forbid",
    validate_default=True,
)


# ---------------------------------------------------------------------------
# Configuration models
# ---------------------------------------------------------------------------


class MigrationsConfig(BaseModel):
    model_config = _CONFIG_MODEL

    dir: str = "./drizzle"
    auto: bool = False


class DatabaseConfig(BaseModel):
    model_config = _CONFIG_MODEL

    provider: Literal["postgresql"] = "postgresql"
    connection: str = Field(
        default="postgresql://localhost:5432/zeno", min_length=1
    )
    migrations: MigrationsConfig = Field(default_factory=MigrationsConfig)


class EmailAuthConfig(BaseModel):
    model_config = _CONFIG_MODEL

    user: str = Field(default="user@example.com", min_length=1)
    password: str = Field(default="password", min_length=1, alias="pass")


class EmailConfig(BaseModel):
    model_config = _CONFIG_MODEL

    host: str = Field(default="localhost", min_length=1)
    port: int = Field(default=587, ge=1, le=65535)
    auth: EmailAuthConfig = Field(default_factory=EmailAuthConfig)


class GenerateConfig(BaseModel):
    """Per-concern switches for the built-in generator families."""

    model_config = _CONFIG_MODEL

    models: bool = True
    components: bool = True
    pages: bool = True
    api: bool = True
    navigation: bool = True

    def enabled(self) -> List[str]:
        return [name for name, on in self.model_dump().items() if on]


class DevConfig(BaseModel):
    model_config = _CONFIG_MODEL

    watch: bool = False
    verbose: bool = False
    debounce_ms: int = Field(default=300, ge=0, description="Watcher debounce window.")


class ZenoConfig(BaseModel):
    """
    Root configuration object.

    ``as_context()`` is the opaque mapping handed to the generation pipeline
    (and from there to every generator).
    """

    model_config = _CONFIG_MODEL

    schema_dir: str = "./zeno"
    output_dir: str = "./src"
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    email: EmailConfig = Field(default_factory=EmailConfig)
    generate: GenerateConfig = Field(default_factory=GenerateConfig)
    dev: DevConfig = Field(default_factory=DevConfig)

    def as_context(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


DEFAULT_CONFIG: ZenoConfig = ZenoConfig()


# ---------------------------------------------------------------------------
# Merge & validation
# ---------------------------------------------------------------------------


def _normalise_keys(value: Any) -> Any:
    """Recursively rewrite dict keys to camelCase so both spellings merge."""
    if isinstance(value, dict):
        return {
            (to_camel_case(k) if isinstance(k, str) else k): _normalise_keys(v)
            for k, v in value.items()
        }
    return value


def deep_merge(base: Any, override: Any) -> Any:
    """
    Merge *override* onto *base*.

    Nested dicts merge key by key, ``None`` in the override keeps the base
    value, and every other value (lists included) replaces it.
    """
    if not isinstance(base, dict) or not isinstance(override, dict):
        return base if override is None else override

    merged: Dict[str, Any] = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        current: Any = merged.get(key)
        if isinstance(value, dict) and isinstance(current, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def validate_config(data: Any) -> ValidationResult:
    """Validate a (possibly partial) configuration mapping without raising."""
    result: ValidationResult = ValidationResult()
    if not isinstance(data, dict):
        result.add_error("CONFIG_NOT_A_MAPPING", "Configuration must be a mapping")
        return result

    merged: Any = deep_merge(DEFAULT_CONFIG.as_context(), _normalise_keys(data))
    try:
        ZenoConfig.model_validate(merged)
    except PydanticValidationError as exc:
        for issue in exc.errors():
            loc: str = ".".join(str(p) for p in issue.get("loc", ()))
            result.add_error(
                "CONFIG_INVALID",
                str(issue.get("msg", "Invalid value")),
                loc,
                context={"type": issue.get("type")},
            )
    return result


def merge_config(partial: Optional[Dict[str, Any]] = None) -> ZenoConfig:
    """Apply *partial* onto ``DEFAULT_CONFIG`` and return the validated result."""
    merged: Any = deep_merge(DEFAULT_CONFIG.as_context(), _normalise_keys(partial or {}))
    try:
        return ZenoConfig.model_validate(merged)
    except PydanticValidationError as exc:
        first: Dict[str, Any] = dict(exc.errors()[0])
        prop: str = ".".join(str(p) for p in first.get("loc", ()))
        raise ConfigurationError(
            f"Invalid configuration: {prop}: {first.get('msg')}",
            property_name=prop or None,
        ) from exc


# ---------------------------------------------------------------------------
# File discovery & loading
# ---------------------------------------------------------------------------


def find_config_file(start_dir: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """Walk up from *start_dir* (default: cwd) looking for a config file."""
    current: Path = Path(start_dir or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        for file_name in CONFIG_FILE_NAMES:
            candidate: Path = directory / file_name
            if candidate.is_file():
                logger.debug("Found configuration file %s", candidate)
                return candidate
    return None


def load_config(config_path: Union[str, Path]) -> ZenoConfig:
    """
    Load, validate and merge a YAML or JSON configuration file.

    Raises:
        ConfigurationError: if the file is missing, unreadable, not a
            mapping, or fails validation.
    """
    path: Path = Path(config_path)
    try:
        raw: str = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(
            f"Failed to load configuration: {exc}", str(path)
        ) from exc

    try:
        if path.suffix in (".yaml", ".yml"):
            data: Any = yaml.safe_load(raw)
        elif path.suffix == ".json":
            data = json.loads(raw)
        else:
            raise ConfigurationError(
                f"Unsupported configuration format: {path.suffix or path.name}",
                str(path),
            )
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigurationError(
            f"Failed to parse configuration: {exc}", str(path)
        ) from exc

    data = data or {}
    validation: ValidationResult = validate_config(data)
    if not validation.is_valid:
        details: str = "\n".join(
            f"{e.path}: {e.message}" if e.path else e.message for e in validation.errors
        )
        raise ConfigurationError(
            f"Configuration validation failed:\n{details}",
            str(path),
            validation.errors[0].path or None,
        )

    config: ZenoConfig = merge_config(data)
    logger.info("Loaded configuration from %s", path)
    return config


def resolve_config(config_path: Optional[Union[str, Path]] = None) -> ZenoConfig:
    """Explicit path, then a discovered file, then the defaults."""
    if config_path:
        return load_config(config_path)
    found: Optional[Path] = find_config_file()
    if found is not None:
        return load_config(found)
    logger.debug("No configuration file found, using defaults.")
    return DEFAULT_CONFIG


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "CONFIG_FILE_NAMES",
    "MigrationsConfig",
    "DatabaseConfig",
    "EmailAuthConfig",
    "EmailConfig",
    "GenerateConfig",
    "DevConfig",
    "ZenoConfig",
    "DEFAULT_CONFIG",
    "deep_merge",
    "validate_config",
    "merge_config",
    "find_config_file",
    "load_config",
    "resolve_config",
]
