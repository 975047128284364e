"""
contentsync Configuration Schema

Defines the configuration structure for the synchronizer.
All configuration can be specified via contentsync.yaml or environment variables.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from pathlib import Path


@dataclass
class SupabaseConfig:
    """Connection to the hosted backend"""
    url: Optional[str] = None
    key: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.key)


@dataclass
class ProfileConfig:
    """Where actor roles are read from"""
    table: str = "user_profiles"
    role_column: str = "role"
    display_name_column: str = "full_name"
    default_role: str = "membre"  # Lowest privilege, used when a profile is missing


@dataclass
class OrderingConfig:
    """Columns list() orders by, in fallback order"""
    primary: str = "id"
    fallback: str = "created_at"


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class SyncConfig:
    """
    Central configuration for contentsync.

    This configuration can be loaded from:
    - contentsync.yaml (primary)
    - Environment variables (interpolated into the YAML)
    - Programmatic defaults

    Example contentsync.yaml:
    ```yaml
    supabase:
      url: "${SUPABASE_URL}"
      key: "${SUPABASE_KEY}"

    profiles:
      table: user_profiles
      default_role: membre

    ordering:
      primary: id
      fallback: created_at

    logging:
      level: INFO

    # Optional grant overrides, merged over the built-in matrix
    capabilities:
      faq:
        chef_projet: {create: true, edit: true, delete: false}
    ```
    """
    supabase: SupabaseConfig = field(default_factory=SupabaseConfig)
    profiles: ProfileConfig = field(default_factory=ProfileConfig)
    ordering: OrderingConfig = field(default_factory=OrderingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # resource -> role -> {create, edit, delete}
    capabilities: Dict[str, Dict[str, Dict[str, bool]]] = field(default_factory=dict)

    # Working directory (defaults to current directory)
    working_dir: Path = field(default_factory=Path.cwd)

    # Additional metadata
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SyncConfig":
        """Create SyncConfig from dictionary (e.g., parsed YAML)"""
        supabase_data = data.get("supabase") or {}
        supabase_config = SupabaseConfig(
            url=supabase_data.get("url") or None,
            key=supabase_data.get("key") or None,
        )

        profiles_data = data.get("profiles") or {}
        profiles_config = ProfileConfig(
            table=profiles_data.get("table", "user_profiles"),
            role_column=profiles_data.get("role_column", "role"),
            display_name_column=profiles_data.get("display_name_column", "full_name"),
            default_role=profiles_data.get("default_role", "membre"),
        )

        ordering_data = data.get("ordering") or {}
        ordering_config = OrderingConfig(
            primary=ordering_data.get("primary", "id"),
            fallback=ordering_data.get("fallback", "created_at"),
        )

        logging_data = data.get("logging") or {}
        logging_config = LoggingConfig(
            level=str(logging_data.get("level", "INFO")).upper(),
            format=logging_data.get("format", LoggingConfig.format),
        )

        return cls(
            supabase=supabase_config,
            profiles=profiles_config,
            ordering=ordering_config,
            logging=logging_config,
            capabilities=data.get("capabilities") or {},
            working_dir=Path(data.get("working_dir", ".")),
            metadata=data.get("metadata", {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary (for serialization)"""
        return {
            "supabase": {
                "url": self.supabase.url,
                "key": self.supabase.key,
            },
            "profiles": {
                "table": self.profiles.table,
                "role_column": self.profiles.role_column,
                "display_name_column": self.profiles.display_name_column,
                "default_role": self.profiles.default_role,
            },
            "ordering": {
                "primary": self.ordering.primary,
                "fallback": self.ordering.fallback,
            },
            "logging": {
                "level": self.logging.level,
                "format": self.logging.format,
            },
            "capabilities": self.capabilities,
            "working_dir": str(self.working_dir),
            "metadata": self.metadata,
        }
