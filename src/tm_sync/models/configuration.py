"""Configuration models for tm-sync.

Keys are camelCase on disk (``tm-sync.config.yaml``, ``package.json``'s
``tmSync`` block) and snake_case in Python; both spellings are accepted on
input.
"""

from __future__ import annotations

import copy
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

LogLevel = Literal["debug", "info", "warn", "error"]

DEFAULT_PROJECT_KEY = "MM"

DEFAULT_EXCLUDE = [
    "node_modules/**",
    "dist/**",
    "build/**",
    "results/**",
    "logs/**",
    "storage_state/**",
    "playwright-report/**",
    "test-results/**",
    "*.tsbuildinfo",
]


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class TmsConfig(_CamelModel):
    type: Literal["zephyr-scale"] = Field(default="zephyr-scale", description="Test management system flavour")
    base_url: str = Field(
        default="https://api.zephyrscale.smartbear.com/v2",
        alias="baseUrl",
        description="REST API root of the test management system",
    )
    api_token: str = Field(default="", alias="apiToken", description="API token (ZEPHYR_API_TOKEN)")
    project_key: str = Field(default=DEFAULT_PROJECT_KEY, alias="projectKey", description="Project key")
    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")
    retry_attempts: int = Field(default=3, ge=1, alias="retryAttempts", description="Attempts per request")
    retry_delay: float = Field(default=1.0, ge=0, alias="retryDelay", description="Initial backoff in seconds")


class FileSelectionConfig(_CamelModel):
    patterns: list[str] = Field(default_factory=lambda: ["**/*.spec.ts"], description="Glob patterns for test files")
    exclude: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDE), description="Excluded paths or globs")


class MappingsConfig(_CamelModel):
    file_name: str = Field(
        default="{testFilePath}.mapping.json",
        alias="fileName",
        description="Mapping file location; {testFilePath} is replaced by the test file path",
    )


class ValidationConfig(_CamelModel):
    required_tags: list[str] = Field(default_factory=lambda: ["@objective"], alias="requiredTags")
    optional_tags: list[str] = Field(
        default_factory=lambda: ["@precondition", "@known_issue"],
        alias="optionalTags",
    )
    enforce_action_comments: bool = Field(default=True, alias="enforceActionComments")
    enforce_verification_comments: bool = Field(default=True, alias="enforceVerificationComments")
    project_key: str = Field(default=DEFAULT_PROJECT_KEY, alias="projectKey")

    def requires_tag(self, name: str) -> bool:
        """True when ``name`` is required, spelled with or without the ``@``."""
        bare = name.lstrip("@")
        return any(tag.lstrip("@") == bare for tag in self.required_tags)


class LoggingConfig(_CamelModel):
    level: LogLevel = "info"
    file: Optional[str] = None
    console: bool = True

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            lowered = value.strip().lower()
            return "warn" if lowered == "warning" else lowered
        return value


class TmSyncConfig(_CamelModel):
    """Fully resolved configuration."""

    tms: TmsConfig = Field(default_factory=TmsConfig)
    test_files: FileSelectionConfig = Field(default_factory=FileSelectionConfig, alias="testFiles")
    mappings: MappingsConfig = Field(default_factory=MappingsConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def default_config() -> TmSyncConfig:
    return TmSyncConfig()


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``; lists are replaced."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def merge_config(partial: dict[str, Any] | None = None, base: TmSyncConfig | None = None) -> TmSyncConfig:
    """Deep-merge a partial camelCase mapping over ``base`` (defaults when omitted)."""
    start = (base or default_config()).to_dict()
    return TmSyncConfig.model_validate(deep_merge(start, partial or {}))


def validate_config(config: TmSyncConfig, require_tms: bool = False) -> list[str]:
    """Return human-readable problems with ``config``; empty when usable."""
    errors: list[str] = []
    if not config.validation.project_key.strip():
        errors.append("validation.projectKey is required")
    if not config.tms.project_key.strip():
        errors.append("tms.projectKey is required")
    if not [pattern for pattern in config.test_files.patterns if pattern.strip()]:
        errors.append("testFiles.patterns must contain at least one pattern")
    if require_tms:
        if not config.tms.api_token:
            errors.append("tms.apiToken is required (set ZEPHYR_API_TOKEN)")
        if not config.tms.base_url:
            errors.append("tms.baseUrl is required")
    return errors
