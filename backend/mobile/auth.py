"""
Client authentication flow.

Keeps the stored session token and the auth part of the store in step.
After a successful login or first verification the user's server
preferences are loaded straight away.
"""

import logging
from typing import Optional

from .api_client import ApiClient
from .exceptions import ApiError, NetworkError
from .models import UserInfo
from .storage import PreferenceCache, TokenStore
from .store import NotAuthenticated, Authenticated, AuthStarted, SignedOut, Store
from .sync import PreferenceSyncEngine

logger = logging.getLogger(__name__)


class ClientAuthService:
    """
    Register, verify, log in, log out and check a stored session.

    register/login/verify_email record failures in the store and then
    re-raise, so the calling screen can react to the specific error.
    """

    def __init__(
        self,
        store: Store,
        api: ApiClient,
        tokens: TokenStore,
        sync: Optional[PreferenceSyncEngine] = None,
        cache: Optional[PreferenceCache] = None,
    ):
        self._store = store
        self._api = api
        self._tokens = tokens
        self._sync = sync
        self._cache = cache

    async def register(self, email: str, password: str, name: str) -> UserInfo:
        """The account starts unverified, so this never signs in."""
        self._store.dispatch(AuthStarted())
        try:
            user = await self._api.register(email, password, name)
        except (ApiError, NetworkError) as e:
            self._store.dispatch(NotAuthenticated(e.message or "Registration failed"))
            raise
        self._store.dispatch(NotAuthenticated(None))
        logger.info("Registration accepted, waiting for email verification")
        return user

    async def login(self, email: str, password: str) -> UserInfo:
        self._store.dispatch(AuthStarted())
        try:
            user, token = await self._api.login(email, password)
        except (ApiError, NetworkError) as e:
            self._store.dispatch(NotAuthenticated(e.message or "Login failed"))
            raise
        await self._sign_in(user, token)
        logger.info("Login successful")
        return user

    async def verify_email(self, verification_token: str) -> UserInfo:
        """
        Verify an email address.

        The first verification signs the user in. Repeating it succeeds but
        leaves the auth state unchanged, since the server sends no token.
        """
        self._store.dispatch(AuthStarted())
        try:
            user, session_token = await self._api.verify_email(verification_token)
        except (ApiError, NetworkError) as e:
            self._store.dispatch(NotAuthenticated(e.message or "Email verification failed"))
            raise

        if session_token:
            await self._sign_in(user, session_token)
            logger.info("Email verified, signed in")
        else:
            self._store.dispatch(NotAuthenticated(None))
            logger.info("Email was already verified")
        return user

    async def logout(self) -> None:
        """
        Forget the token and the cached preferences of this account.

        Tokens are stateless, so the server is not told.
        """
        await self._tokens.clear()
        if self._cache is not None:
            await self._cache.clear()
        self._store.dispatch(SignedOut())
        logger.info("Logged out")

    async def check_auth(self) -> Optional[UserInfo]:
        """
        Decide whether the stored token still identifies a verified user.

        Returns the user, or None when there is no usable session. A 401
        discards the token (done by the client); a network failure keeps it
        for the next start.
        """
        token = await self._tokens.get()
        if not token:
            self._store.dispatch(NotAuthenticated(None))
            return None

        self._store.dispatch(AuthStarted())
        try:
            user = await self._api.get_profile()
        except ApiError as e:
            logger.info(f"Stored session rejected: {e.message}")
            self._store.dispatch(NotAuthenticated(None))
            return None
        except NetworkError as e:
            logger.info(f"Could not check stored session: {e.message}")
            self._store.dispatch(NotAuthenticated(None))
            return None

        self._store.dispatch(Authenticated(user))
        return user

    async def _sign_in(self, user: UserInfo, token: str) -> None:
        await self._tokens.save(token)
        self._store.dispatch(Authenticated(user))
        if self._sync is not None:
            await self._sync.load_preferences()
