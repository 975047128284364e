"""
contentsync Configuration Loader

Loads configuration from YAML files with environment variable interpolation.

Environment Variable Interpolation:
- ${VAR_NAME} - Required variable, raises error if not set
- ${VAR_NAME:-default} - Optional variable with default value

Example:
```yaml
supabase:
  url: "${SUPABASE_URL}"
  key: "${SUPABASE_KEY}"
logging:
  level: "${CONTENTSYNC_LOG_LEVEL:-INFO}"
```
"""

import dataclasses
import os
import re
from pathlib import Path
from typing import Any, Optional, Union
import logging

import yaml

from .schema import SyncConfig, SupabaseConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "contentsync.yaml"

# Pattern for environment variable substitution: ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r'\$\{([^}:]+)(?::-([^}]*))?\}')

# Top-level keys SyncConfig.from_dict understands
KNOWN_SECTIONS = {f.name for f in dataclasses.fields(SyncConfig)}


def interpolate_env_vars(value: Any, key: str = "") -> Any:
    """
    Substitute ${VAR} / ${VAR:-default} references inside a parsed config.

    `key` is the dotted path of `value` in the config (e.g. "supabase.url");
    a missing required variable raises KeyError naming both the variable
    and the setting that needs it.
    """
    if isinstance(value, dict):
        return {k: interpolate_env_vars(v, f"{key}.{k}" if key else str(k)) for k, v in value.items()}
    if isinstance(value, list):
        return [interpolate_env_vars(item, f"{key}[{i}]") for i, item in enumerate(value)]
    if not isinstance(value, str):
        return value

    def resolve(match: "re.Match[str]") -> str:
        name, default = match.group(1), match.group(2)
        if name in os.environ:
            return os.environ[name]
        if default is None:
            raise KeyError(f"{key or 'config'} needs environment variable {name}, which is not set")
        return default

    return ENV_VAR_PATTERN.sub(resolve, value)


def load_config_from_file(config_path: Union[str, Path]) -> SyncConfig:
    """
    Read a contentsync.yaml file into a SyncConfig.

    Top-level sections SyncConfig does not know are ignored with a
    warning. `working_dir` defaults to the file's directory.
    """
    config_path = Path(config_path)
    if not config_path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    logger.info(f"Loading configuration from {config_path}")
    raw = yaml.safe_load(config_path.read_text()) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{config_path} must contain a mapping of settings, got {type(raw).__name__}")

    for section in sorted(set(raw) - KNOWN_SECTIONS):
        logger.warning(f"Ignoring unknown section '{section}' in {config_path}")

    try:
        data = interpolate_env_vars(raw)
    except KeyError as e:
        logger.error(f"Configuration error in {config_path}: {e}")
        raise

    data.setdefault("working_dir", str(config_path.parent.absolute()))
    return SyncConfig.from_dict(data)


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    working_dir: Optional[Union[str, Path]] = None,
) -> SyncConfig:
    """
    Load configuration with sensible defaults.

    Search order:
    1. Explicit config_path if provided
    2. contentsync.yaml (or config/contentsync.yaml) in working_dir
    3. Same in the current directory
    4. Defaults, with Supabase settings from SUPABASE_URL / SUPABASE_KEY
    """
    if config_path:
        return load_config_from_file(config_path)

    search_paths = []
    if working_dir:
        working_dir = Path(working_dir)
        search_paths.append(working_dir / CONFIG_FILENAME)
        search_paths.append(working_dir / "config" / CONFIG_FILENAME)

    cwd = Path.cwd()
    search_paths.append(cwd / CONFIG_FILENAME)
    search_paths.append(cwd / "config" / CONFIG_FILENAME)

    for path in search_paths:
        if path.exists():
            logger.info(f"Found configuration at {path}")
            return load_config_from_file(path)

    logger.info(f"No {CONFIG_FILENAME} found, using default configuration")
    return SyncConfig(
        supabase=SupabaseConfig(
            url=os.environ.get("SUPABASE_URL"),
            key=os.environ.get("SUPABASE_KEY"),
        ),
        working_dir=Path(working_dir) if working_dir else cwd,
    )


def create_default_config(output_path: Optional[Union[str, Path]] = None) -> Path:
    """
    Create a default contentsync.yaml configuration file.

    Returns the path written.
    """
    output_path = Path(output_path) if output_path else Path.cwd() / CONFIG_FILENAME

    default_config = """# contentsync configuration

# Hosted backend
supabase:
  url: "${SUPABASE_URL}"
  key: "${SUPABASE_KEY}"

# Where actor roles are read from
profiles:
  table: "user_profiles"
  role_column: "role"
  display_name_column: "full_name"
  default_role: "membre"

# list() ordering fallback chain: primary desc -> fallback desc -> unordered
ordering:
  primary: "id"
  fallback: "created_at"

logging:
  level: "${CONTENTSYNC_LOG_LEVEL:-INFO}"

# Grant overrides merged over the built-in capability matrix
# capabilities:
#   faq:
#     chef_projet: {create: true, edit: true, delete: false}
"""

    with open(output_path, 'w') as f:
        f.write(default_config)

    logger.info(f"Created default configuration at {output_path}")
    return output_path
