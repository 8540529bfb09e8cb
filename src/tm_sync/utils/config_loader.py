"""Locate, read and resolve tm-sync configuration.

Resolution order, lowest to highest precedence:

1. built-in defaults
2. the first configuration file found walking up from the start directory
3. explicit overrides passed by the caller (e.g. CLI flags)
4. environment variables
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from tm_sync.models.configuration import TmSyncConfig, deep_merge, merge_config, validate_config
from tm_sync.utils.errors import ConfigError
from tm_sync.utils.file_utils import write_file

logger = logging.getLogger(__name__)

SEARCH_PLACES = (
    "tm-sync.config.yaml",
    "tm-sync.config.yml",
    "tm-sync.config.json",
    ".tm-sync.json",
    ".tm-syncrc",
    ".tm-syncrc.json",
    "package.json",
)

PACKAGE_PROP = "tmSync"

CONFIG_TEMPLATE_NAME = "tm-sync.config.yaml"

_LOG_LEVELS = ("debug", "info", "warn", "error")


def find_config_file(start: Path | str | None = None) -> Optional[Path]:
    """Walk up from ``start`` and return the first configuration file found.

    ``package.json`` only counts when it carries a ``tmSync`` block.
    """
    directory = Path(start or Path.cwd()).resolve()
    for candidate_dir in (directory, *directory.parents):
        for name in SEARCH_PLACES:
            candidate = candidate_dir / name
            if not candidate.is_file():
                continue
            if name == "package.json" and not _package_json_has_config(candidate):
                continue
            return candidate
    return None


def _package_json_has_config(path: Path) -> bool:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return False
    return isinstance(payload, dict) and isinstance(payload.get(PACKAGE_PROP), dict)


def read_config_file(path: Path | str) -> dict[str, Any]:
    """Read one configuration file into a plain dict.

    ``.json`` files and ``package.json`` are decoded as JSON; everything else
    (``.yaml``, ``.yml``, extension-less rc files) goes through ruamel.yaml,
    which also accepts JSON.
    """
    config_path = Path(path)
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read configuration: {exc}", str(config_path)) from exc

    try:
        if config_path.suffix == ".json":
            payload = json.loads(text) if text.strip() else {}
        else:
            payload = YAML(typ="safe").load(text) or {}
    except (ValueError, YAMLError) as exc:
        raise ConfigError(f"Failed to parse {config_path}: {exc}", str(config_path)) from exc

    if config_path.name == "package.json":
        payload = payload.get(PACKAGE_PROP, {}) if isinstance(payload, dict) else {}

    if not isinstance(payload, dict):
        raise ConfigError(f"Configuration in {config_path} must be a mapping", str(config_path))
    return payload


def environment_overrides(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Translate supported environment variables into a partial configuration."""
    env = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}
    tms: dict[str, Any] = {}

    if env.get("ZEPHYR_API_TOKEN"):
        tms["apiToken"] = env["ZEPHYR_API_TOKEN"]
    if env.get("ZEPHYR_PROJECT_KEY"):
        tms["projectKey"] = env["ZEPHYR_PROJECT_KEY"]
    if env.get("ZEPHYR_BASE_URL"):
        tms["baseUrl"] = env["ZEPHYR_BASE_URL"]
    if tms:
        overrides["tms"] = tms

    level = env.get("TM_SYNC_LOG_LEVEL", "").strip().lower()
    if level in _LOG_LEVELS:
        overrides["logging"] = {"level": level}
    elif level:
        logger.warning("Ignoring TM_SYNC_LOG_LEVEL=%r; expected one of %s", level, ", ".join(_LOG_LEVELS))

    return overrides


def load_config(
    config_path: Path | str | None = None,
    search_from: Path | str | None = None,
    overrides: dict[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    require_tms: bool = False,
) -> TmSyncConfig:
    """Resolve the effective configuration.

    Args:
        config_path: Explicit configuration file; skips the search when given
        search_from: Directory the search starts from (defaults to cwd)
        overrides: camelCase partial configuration from the caller
        environ: Environment mapping (defaults to ``os.environ``)
        require_tms: Also require TMS credentials

    Raises:
        ConfigError: the file is unreadable or invalid, or the resolved
            configuration fails validation
    """
    if config_path is not None:
        source: Optional[Path] = Path(config_path)
        if not source.is_file():
            raise ConfigError(f"Configuration file not found: {source}", str(source))
    else:
        source = find_config_file(search_from)

    partial: dict[str, Any] = read_config_file(source) if source is not None else {}
    if source is not None:
        logger.debug("Loaded configuration from %s", source)

    if overrides:
        partial = deep_merge(partial, overrides)

    env_partial = environment_overrides(environ)
    project_key = env_partial.get("tms", {}).get("projectKey")
    if project_key and "projectKey" not in partial.get("validation", {}):
        env_partial.setdefault("validation", {})["projectKey"] = project_key
    partial = deep_merge(partial, env_partial)

    try:
        config = merge_config(partial)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}", str(source) if source else None) from exc

    errors = validate_config(config, require_tms=require_tms)
    if errors:
        raise ConfigError(
            "Configuration validation failed:\n" + "\n".join(errors),
            str(source) if source else None,
        )
    return config


def create_config_template() -> str:
    """Return a starter ``tm-sync.config.yaml``."""
    return """\
# tm-sync configuration
tms:
  type: zephyr-scale
  projectKey: MM
  # apiToken is read from ZEPHYR_API_TOKEN

testFiles:
  patterns:
    - "e2e-tests/playwright/**/*.spec.ts"
  exclude:
    - "node_modules/**"
    - "*.skip.ts"

mappings:
  fileName: "{testFilePath}.mapping.json"

validation:
  requiredTags:
    - "@objective"
  enforceActionComments: true
  enforceVerificationComments: true
  projectKey: MM

logging:
  level: info
  console: true
"""


def write_config_template(directory: Path | str, force: bool = False) -> Path:
    """Write the starter configuration into ``directory``."""
    target = Path(directory) / CONFIG_TEMPLATE_NAME
    if target.exists() and not force:
        raise ConfigError(f"{target} already exists (use --force to overwrite)", str(target))
    write_file(target, create_config_template())
    return target
