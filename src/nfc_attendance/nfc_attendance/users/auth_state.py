from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from ..core.enums import AuthState
from .model import UserProfile

logger = logging.getLogger(__name__)

ProfileLookup = Callable[[str], Optional[UserProfile]]
Listener = Callable[["AuthSnapshot"], None]


@dataclass(frozen=True)
class AuthSnapshot:
    state: AuthState
    email: Optional[str] = None
    profile: Optional[UserProfile] = None


class AuthStateMachine:
    """Current sign-in state, driven by auth changes and profile changes.

    A missing or failing profile lookup never signs the user out; it lands in
    AUTHENTICATED_NO_PROFILE.
    """

    def __init__(self, lookup_profile: ProfileLookup):
        self._lookup = lookup_profile
        self._snapshot = AuthSnapshot(state=AuthState.UNAUTHENTICATED)
        self._listeners: List[Listener] = []

    @property
    def snapshot(self) -> AuthSnapshot:
        return self._snapshot

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _set(self, snapshot: AuthSnapshot) -> AuthSnapshot:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            listener(snapshot)
        return snapshot

    def on_auth_changed(self, email: Optional[str]) -> AuthSnapshot:
        if not email:
            return self._set(AuthSnapshot(state=AuthState.UNAUTHENTICATED))

        self._set(AuthSnapshot(state=AuthState.LOADING, email=email))
        try:
            profile = self._lookup(email)
        except Exception as e:
            logger.warning("Profile lookup failed for %s: %s", email, e)
            profile = None

        if profile is None:
            logger.info("No user document for %s", email)
            return self._set(AuthSnapshot(state=AuthState.AUTHENTICATED_NO_PROFILE, email=email))
        return self._set(AuthSnapshot(state=AuthState.AUTHENTICATED, email=email, profile=profile))

    def on_profile_changed(self, profile: Optional[UserProfile]) -> AuthSnapshot:
        current = self._snapshot
        if current.state in (AuthState.UNAUTHENTICATED, AuthState.LOADING):
            return current
        if profile is None:
            return self._set(AuthSnapshot(state=AuthState.AUTHENTICATED_NO_PROFILE, email=current.email))
        if profile.email != current.email:
            # Update for some other account.
            return current
        return self._set(AuthSnapshot(state=AuthState.AUTHENTICATED, email=current.email, profile=profile))
