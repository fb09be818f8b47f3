from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from supabase import Client, create_client

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class UserInfo:
    id: str
    email: str | None


def supabase_disabled() -> bool:
    return os.getenv("SUPABASE_DISABLED", "0") == "1"


class SupabaseAuthAdapter:
    """Validates bearer tokens against Supabase Auth.

    With SUPABASE_DISABLED=1 every non-empty token maps to a stable fake user,
    so each token gets its own editing session during local development.
    """

    def __init__(self, client: Client | None = None) -> None:
        self.disabled = supabase_disabled()
        self._client = client if client is not None else get_supabase_client()

    def validate_token(self, token: str) -> UserInfo:
        if not token:
            raise ValueError("Missing access token")
        if self.disabled or self._client is None:
            fake_id = f"fake-{abs(hash(token)) % (10**10)}"
            return UserInfo(id=fake_id, email=None)
        try:
            res = self._client.auth.get_user(token)
        except Exception as exc:  # pragma: no cover - network path
            logger.info("Token validation failed: %s", exc)
            raise ValueError(f"Invalid access token: {exc}") from exc
        user = res.user if res else None
        if not user:
            raise ValueError("Invalid access token")
        return UserInfo(id=user.id, email=user.email)


_CLIENT_SINGLETON: Client | None = None


def get_supabase_client() -> Client | None:
    """Shared client for repositories; None when Supabase is disabled or unconfigured."""
    global _CLIENT_SINGLETON
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_ANON_KEY")
    if supabase_disabled() or not url or not key:
        return None
    if _CLIENT_SINGLETON is None:
        logger.info("Creating Supabase client for %s", url)
        _CLIENT_SINGLETON = create_client(url, key)
    return _CLIENT_SINGLETON
