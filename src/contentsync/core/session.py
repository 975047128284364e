"""
Session Role Resolution

Tracks who the current actor is and which role they hold, reacting to
session-change notifications from an external session provider.

States:
- UNAUTHENTICATED: no session, role is None
- RESOLVING_PROFILE: session known, profile lookup in flight, role is None
- AUTHENTICATED: role is a known Role value

Profile lookup fails open to least privilege: a missing profile resolves
to the default role silently, any other lookup error resolves to the
default role and records the error for display. The UI is never blocked.
This is separate from the matrix's default-deny rule for unknown grants.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, TYPE_CHECKING

from .capability_matrix import Action, CapabilityMatrix, default_matrix
from .errors import RemoteError, RemoteErrorKind, StoreError
from .roles import DEFAULT_ROLE, Role

if TYPE_CHECKING:
    from ..data.repos.profiles import ProfileRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthSession:
    """Opaque session handle owned by the session provider"""
    access_token: str
    actor_id: str


SessionChangeCallback = Callable[[str, Optional[AuthSession]], None]


class SessionProvider(ABC):
    """External session/authentication service"""

    @abstractmethod
    async def get_session(self) -> Optional[AuthSession]:
        """Current session, or None when signed out."""

    @abstractmethod
    def on_session_change(self, callback: SessionChangeCallback) -> Callable[[], None]:
        """Register `callback(event, session)`; returns an unsubscribe function."""

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> Optional[AuthSession]:
        """Authenticate with credentials."""

    @abstractmethod
    async def sign_up(self, email: str, password: str, role: Role) -> Optional[AuthSession]:
        """Create an account, attaching the requested role as metadata."""

    @abstractmethod
    async def sign_out(self) -> None:
        """End the current session."""


@dataclass
class LocalAccount:
    actor_id: str
    email: str
    password: str
    role: Role = DEFAULT_ROLE


class LocalSessionProvider(SessionProvider):
    """
    In-process session provider.

    Keeps accounts in memory and emits SIGNED_IN / SIGNED_OUT events
    synchronously, like the hosted provider's auth listener.
    """

    def __init__(self):
        self.accounts: Dict[str, LocalAccount] = {}
        self._session: Optional[AuthSession] = None
        self._listeners: List[SessionChangeCallback] = []
        self._ids = itertools.count(1)
        self._tokens = itertools.count(1)

    async def get_session(self) -> Optional[AuthSession]:
        return self._session

    def on_session_change(self, callback: SessionChangeCallback) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def emit(self, event: str, session: Optional[AuthSession]) -> None:
        """Set the current session and notify listeners"""
        self._session = session
        for listener in list(self._listeners):
            listener(event, session)

    def _open_session(self, account: LocalAccount) -> AuthSession:
        session = AuthSession(access_token=f"local-token-{next(self._tokens)}", actor_id=account.actor_id)
        self.emit("SIGNED_IN", session)
        return session

    async def sign_in(self, email: str, password: str) -> Optional[AuthSession]:
        account = self.accounts.get(email.lower())
        if account is None or account.password != password:
            raise RemoteError(RemoteErrorKind.PERMISSION_DENIED, "Invalid login credentials")
        return self._open_session(account)

    async def sign_up(self, email: str, password: str, role: Role) -> Optional[AuthSession]:
        key = email.lower()
        if key in self.accounts:
            raise RemoteError(RemoteErrorKind.UNIQUE_CONFLICT, "User already registered")
        account = LocalAccount(actor_id=f"local-{next(self._ids)}", email=key, password=password, role=role)
        self.accounts[key] = account
        return self._open_session(account)

    async def sign_out(self) -> None:
        self.emit("SIGNED_OUT", None)


class ResolverState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    RESOLVING_PROFILE = "resolving_profile"
    AUTHENTICATED = "authenticated"


class SessionRoleResolver:
    """
    Reactive holder of the current actor's identity and role.

    Consumers read `role` / `actor_id` through the resolver and may
    `subscribe()` to be told when they change. Permission checks are
    thin wrappers over `CapabilityMatrix.permit()`.
    """

    def __init__(
        self,
        provider: SessionProvider,
        profiles: "ProfileRepository",
        matrix: Optional[CapabilityMatrix] = None,
        default_role: Role = DEFAULT_ROLE,
    ):
        self.provider = provider
        self.profiles = profiles
        self.matrix = matrix or default_matrix
        self.default_role = default_role

        self._state = ResolverState.UNAUTHENTICATED
        self._role: Optional[Role] = None
        self._actor_id: Optional[str] = None
        self._display_name: Optional[str] = None
        self._is_loading = True
        self._last_error: Optional[str] = None

        # Bumped on every session change; stale lookups compare against it
        self._generation = 0
        self._task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._listeners: List[Callable[["SessionRoleResolver"], None]] = []

    # -------------------------------------------------------------------------
    # Read accessors
    # -------------------------------------------------------------------------

    @property
    def state(self) -> ResolverState:
        return self._state

    @property
    def role(self) -> Optional[Role]:
        return self._role

    @property
    def actor_id(self) -> Optional[str]:
        return self._actor_id

    @property
    def display_name(self) -> Optional[str]:
        return self._display_name

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    def subscribe(self, listener: Callable[["SessionRoleResolver"], None]) -> Callable[[], None]:
        """Call `listener(resolver)` after every state change"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.error(f"Resolver listener failed: {e}")

    # -------------------------------------------------------------------------
    # Permission checks
    # -------------------------------------------------------------------------

    def can(self, action: Action | str, resource: str) -> bool:
        return self.matrix.permit(self._role, resource, action)

    def can_create(self, resource: str) -> bool:
        return self.can(Action.CREATE, resource)

    def can_edit(self, resource: str) -> bool:
        return self.can(Action.EDIT, resource)

    def can_delete(self, resource: str) -> bool:
        return self.can(Action.DELETE, resource)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Subscribe to session changes and resolve the current session"""
        self._loop = asyncio.get_running_loop()
        if self._unsubscribe is None:
            self._unsubscribe = self.provider.on_session_change(self._on_session_change)
        await self.refresh()

    async def refresh(self) -> None:
        """Re-read the provider's current session and resolve it"""
        try:
            session = await self.provider.get_session()
        except Exception as e:
            logger.error(f"Could not read current session: {e}")
            self._generation += 1
            self._set_unauthenticated(error=_describe(e))
            return
        self._handle_change(session)
        await self.settle()

    async def settle(self) -> None:
        """Wait until any in-flight profile lookup has been applied"""
        await asyncio.sleep(0)
        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})

    def close(self) -> None:
        """Stop reacting to session changes and drop in-flight lookups"""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._generation += 1
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def _on_session_change(self, event: str, session: Optional[AuthSession]) -> None:
        logger.debug(f"Session change: {event}")
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if self._loop is None or running is self._loop:
            self._handle_change(session)
        else:
            # Provider notified from another thread
            self._loop.call_soon_threadsafe(self._handle_change, session)

    def _handle_change(self, session: Optional[AuthSession]) -> None:
        self._generation += 1
        if session is None:
            self._set_unauthenticated()
            return

        generation = self._generation
        self._state = ResolverState.RESOLVING_PROFILE
        self._actor_id = session.actor_id
        # No capabilities until this actor's profile resolves
        self._role = None
        self._display_name = None
        self._is_loading = True
        self._last_error = None
        self._notify()

        loop = self._loop or asyncio.get_running_loop()
        self._task = loop.create_task(self._resolve_profile(session.actor_id, generation))

    def _set_unauthenticated(self, error: Optional[str] = None) -> None:
        self._state = ResolverState.UNAUTHENTICATED
        self._role = None
        self._actor_id = None
        self._display_name = None
        self._is_loading = False
        self._last_error = error
        logger.info("Resolver: unauthenticated")
        self._notify()

    async def _resolve_profile(self, actor_id: str, generation: int) -> None:
        error: Optional[str] = None
        display_name: Optional[str] = None
        try:
            profile = await self.profiles.fetch(actor_id)
        except Exception as e:
            # Fail open to least privilege, keep the error for display
            logger.warning(f"Profile lookup for {actor_id} failed, using '{self.default_role.value}': {e}")
            role = self.default_role
            error = _describe(e)
        else:
            if profile is None:
                logger.info(f"No profile for {actor_id}, using '{self.default_role.value}'")
                role = self.default_role
            else:
                role = profile.role
                display_name = profile.display_name

        if generation != self._generation:
            logger.debug(f"Discarding stale profile lookup for {actor_id}")
            return

        self._state = ResolverState.AUTHENTICATED
        self._role = role
        self._display_name = display_name
        self._last_error = error
        self._is_loading = False
        logger.info(f"Resolver: {actor_id} authenticated as {role.value}")
        self._notify()


def _describe(exc: BaseException) -> str:
    if isinstance(exc, (StoreError, RemoteError)) and str(exc):
        return str(exc)
    return "Could not determine the current role"
