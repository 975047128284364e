"""
Bootstrap

Wires the synchronizer together from a SyncConfig:
- capability matrix (built-in grants + configured overrides)
- resource registry over Supabase, or over in-memory collections
  when no backend is configured
- profile repository and session role resolver
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from config.schema import SyncConfig

from .core.capability_matrix import CapabilityMatrix
from .core.roles import DEFAULT_ROLE, parse_role
from .core.session import LocalSessionProvider, SessionProvider, SessionRoleResolver
from .data.repos.base import InMemoryCollection, RemoteCollection
from .data.repos.profiles import ProfileRepository
from .data.repos.store import Ordering, ResourceRegistry

logger = logging.getLogger(__name__)


@dataclass
class SyncContext:
    """Everything a UI surface needs to gate and synchronize resources"""
    config: SyncConfig
    matrix: CapabilityMatrix
    registry: ResourceRegistry
    profiles: ProfileRepository
    provider: SessionProvider
    resolver: SessionRoleResolver


def build_matrix(config: SyncConfig) -> CapabilityMatrix:
    matrix = CapabilityMatrix()
    if config.capabilities:
        matrix = matrix.with_overrides(config.capabilities)
        logger.info(f"Applied capability overrides for: {', '.join(sorted(config.capabilities))}")
    return matrix


def build_context(
    config: SyncConfig,
    client: Any = None,
    provider: Optional[SessionProvider] = None,
) -> SyncContext:
    """
    Build a SyncContext.

    Uses Supabase when a client is passed or the config carries a URL and
    key; otherwise every collection is in-memory and sessions are local.
    """
    collection_factory: Callable[[str], RemoteCollection]

    if client is not None or config.supabase.is_configured:
        from .data.repos.supabase_backend import (
            SupabaseCollection,
            SupabaseSessionProvider,
            get_supabase_client,
        )

        if client is None:
            client = get_supabase_client(config.supabase.url, config.supabase.key)
        collection_factory = lambda table: SupabaseCollection(table, client)  # noqa: E731
        provider = provider or SupabaseSessionProvider(client)
    else:
        logger.warning("No Supabase settings found, using in-memory collections")
        memory: Dict[str, InMemoryCollection] = {}

        def collection_factory(table: str) -> RemoteCollection:
            if table not in memory:
                memory[table] = InMemoryCollection(table)
            return memory[table]

        provider = provider or LocalSessionProvider()

    default_role = parse_role(config.profiles.default_role)
    if default_role is None:
        logger.warning(
            f"Unknown default role '{config.profiles.default_role}', using '{DEFAULT_ROLE.value}'"
        )
        default_role = DEFAULT_ROLE

    matrix = build_matrix(config)
    registry = ResourceRegistry(
        collection_factory,
        ordering=Ordering(primary=config.ordering.primary, fallback=config.ordering.fallback),
    )
    profiles = ProfileRepository(
        collection_factory(config.profiles.table),
        role_column=config.profiles.role_column,
        display_name_column=config.profiles.display_name_column,
        default_role=default_role,
    )
    resolver = SessionRoleResolver(provider, profiles, matrix=matrix, default_role=default_role)

    return SyncContext(
        config=config,
        matrix=matrix,
        registry=registry,
        profiles=profiles,
        provider=provider,
        resolver=resolver,
    )
