"""
contentsync Configuration Module

Provides centralized configuration management for the synchronizer.
"""

from .schema import SyncConfig, SupabaseConfig, ProfileConfig, OrderingConfig, LoggingConfig
from .loader import load_config, load_config_from_file, create_default_config

__all__ = [
    "SyncConfig",
    "SupabaseConfig",
    "ProfileConfig",
    "OrderingConfig",
    "LoggingConfig",
    "load_config",
    "load_config_from_file",
    "create_default_config",
]
