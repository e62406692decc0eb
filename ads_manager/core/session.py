"""
Session / identity provider

The session mapping is the signed cookie managed by Starlette's
SessionMiddleware. It only holds advisory state (token, user summary,
connect marker, draft pointer, flash messages); the API server decides
whether the token is still valid.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, MutableMapping, Optional

import jwt

from ads_manager.core.config import settings
from ads_manager.schemas.auth import AuthResult, User

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"
EXPIRY_KEY = "token_expiry"
CONNECT_PENDING_KEY = "meta_connect_pending"
DRAFT_KEY = "campaign_draft_id"
FLASH_KEY = "flash"


def get_token_expiration(token: str) -> Optional[datetime]:
    """Read the `exp` claim without verifying the signature"""
    try:
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError:
        return None

    exp = payload.get("exp")
    if exp is None:
        return None
    try:
        return datetime.fromtimestamp(int(exp), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        return None


def is_token_expired(
    token: Optional[str],
    buffer_seconds: Optional[int] = None,
    now: Optional[datetime] = None,
) -> bool:
    """
    Tokens without a readable expiry are treated as expired, and so are
    tokens expiring within the buffer window.
    """
    if not token:
        return True
    expiration = get_token_expiration(token)
    if expiration is None:
        return True
    if buffer_seconds is None:
        buffer_seconds = settings.TOKEN_EXPIRY_BUFFER_SECONDS
    now = now or datetime.now(timezone.utc)
    return now >= expiration - timedelta(seconds=buffer_seconds)


class SessionContext:
    """
    Explicit per-request view over the session store.

    Created by a dependency for every request and handed to whatever needs
    the current user; torn down with `clear()` on logout or on a 401.
    """

    def __init__(self, store: MutableMapping[str, Any]):
        self._store = store

    # ========================================
    # Identity
    # ========================================

    @property
    def token(self) -> Optional[str]:
        return self._store.get(TOKEN_KEY)

    @property
    def user(self) -> Optional[User]:
        data = self._store.get(USER_KEY)
        if not data:
            return None
        return User.model_validate(data)

    @property
    def user_id(self) -> Optional[str]:
        data = self._store.get(USER_KEY) or {}
        return data.get("id")

    @property
    def expiry(self) -> Optional[datetime]:
        value = self._store.get(EXPIRY_KEY)
        return datetime.fromisoformat(value) if value else None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token) and self.user_id is not None and not is_token_expired(self.token)

    def start(self, auth: AuthResult) -> None:
        """Begin a session after login/register"""
        expiration = get_token_expiration(auth.token)
        self._store[TOKEN_KEY] = auth.token
        self._store[USER_KEY] = auth.user.model_dump(mode="json")
        self._store[EXPIRY_KEY] = expiration.isoformat() if expiration else None
        logger.info(f"Session started for user {auth.user.id}")

    def update_user(self, user: User) -> None:
        self._store[USER_KEY] = user.model_dump(mode="json")

    def clear(self) -> bool:
        """Drop identity and transient markers. Returns False if there was nothing to clear."""
        had_identity = TOKEN_KEY in self._store or USER_KEY in self._store
        for key in (TOKEN_KEY, USER_KEY, EXPIRY_KEY, CONNECT_PENDING_KEY, DRAFT_KEY):
            self._store.pop(key, None)
        if had_identity:
            logger.info("Session cleared")
        return had_identity

    # ========================================
    # Meta connect marker
    # ========================================

    @property
    def connect_pending(self) -> bool:
        return bool(self._store.get(CONNECT_PENDING_KEY))

    def mark_connect_pending(self) -> None:
        self._store[CONNECT_PENDING_KEY] = True

    def consume_connect_pending(self) -> bool:
        """Clear the marker, reporting whether it was set"""
        return bool(self._store.pop(CONNECT_PENDING_KEY, False))

    # ========================================
    # Campaign draft pointer
    # ========================================

    @property
    def draft_id(self) -> Optional[str]:
        return self._store.get(DRAFT_KEY)

    @draft_id.setter
    def draft_id(self, value: Optional[str]) -> None:
        if value is None:
            self._store.pop(DRAFT_KEY, None)
        else:
            self._store[DRAFT_KEY] = value

    # ========================================
    # Flash notifications
    # ========================================

    def flash(self, message: str, category: str = "info") -> None:
        messages = list(self._store.get(FLASH_KEY) or [])
        messages.append({"message": message, "category": category})
        self._store[FLASH_KEY] = messages

    def pop_flashes(self) -> List[Dict[str, str]]:
        return list(self._store.pop(FLASH_KEY, None) or [])
