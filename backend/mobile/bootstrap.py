"""
Session bootstrap.

The startup sequence, run once per process:

1. local preferences (no network), so the loading screen is themed
2. auth check of the stored token against the server
3. server preferences, only when authenticated
4. mark ready, whatever happened in 2 and 3

Stage failures are logged and never stop the sequence; the store's
session.is_ready flips to True exactly once.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from .auth import ClientAuthService
from .models import PreferenceSnapshot, UserInfo
from .store import BootstrapFinished, BootstrapStage, BootstrapStageChanged, Store
from .sync import PreferenceSyncEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BootstrapResult:
    is_authenticated: bool
    user: Optional[UserInfo] = None
    preferences: Optional[PreferenceSnapshot] = None


class SessionBootstrap:
    """Runs the startup sequence once and remembers the outcome."""

    def __init__(self, store: Store, sync: PreferenceSyncEngine, auth: ClientAuthService):
        self._store = store
        self._sync = sync
        self._auth = auth
        self._lock = asyncio.Lock()
        self._result: Optional[BootstrapResult] = None

    @property
    def result(self) -> Optional[BootstrapResult]:
        return self._result

    async def run(self) -> BootstrapResult:
        """
        Run the sequence, or return the outcome of the run that already happened.

        Concurrent callers wait for the same run.
        """
        async with self._lock:
            if self._result is None:
                self._result = await self._run()
            return self._result

    async def _run(self) -> BootstrapResult:
        user: Optional[UserInfo] = None
        preferences: Optional[PreferenceSnapshot] = None

        try:
            self._store.dispatch(BootstrapStageChanged(BootstrapStage.LOCAL_PREFERENCES))
            try:
                preferences = await self._sync.load_local()
            except Exception:
                logger.exception("Bootstrap: loading local preferences failed")

            self._store.dispatch(BootstrapStageChanged(BootstrapStage.AUTH_CHECK))
            try:
                user = await self._auth.check_auth()
            except Exception:
                logger.exception("Bootstrap: auth check failed")
                user = None
            logger.info(f"Bootstrap: authenticated={user is not None}")

            if user is not None:
                self._store.dispatch(BootstrapStageChanged(BootstrapStage.SERVER_PREFERENCES))
                try:
                    preferences = await self._sync.load_preferences()
                except Exception:
                    logger.exception("Bootstrap: loading server preferences failed")
        finally:
            self._store.dispatch(BootstrapFinished())
            logger.info("Bootstrap complete")

        return BootstrapResult(is_authenticated=user is not None, user=user, preferences=preferences)

    async def refresh(self) -> Optional[PreferenceSnapshot]:
        """
        Reload server preferences when the app returns to the foreground.

        Does nothing while signed out; local preferences stay as they are.
        """
        if not self._store.state.auth.is_authenticated:
            return None
        return await self._sync.load_preferences()
