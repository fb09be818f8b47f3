from __future__ import annotations

import base64
import os
from datetime import UTC, datetime
from typing import Any

from supabase import Client

from src.domain.entities.editor_state import PersistedImage, PersistedSession

# module-level in-memory store for disabled mode
_MEM_SESSIONS: dict[str, dict[str, Any]] = {}


class SessionRepository:
    """One saved editing session per key (the user id)."""

    def __init__(self, client: Client | None) -> None:
        self.client = client
        self.disabled = os.getenv("SUPABASE_DISABLED", "0") == "1"
        self.table = os.getenv("SUPABASE_SESSIONS_TABLE", "editor_sessions")

    @staticmethod
    def _to_payload(session: PersistedSession) -> dict[str, Any]:
        return {
            "images": [
                {"name": img.name, "data": base64.b64encode(img.data).decode("ascii")}
                for img in session.images
            ],
            "cursor_index": session.cursor_index,
            "saved_at": session.saved_at.isoformat(),
        }

    @staticmethod
    def _from_payload(payload: dict[str, Any]) -> PersistedSession:
        saved_at = payload.get("saved_at")
        if isinstance(saved_at, str):
            saved_at = datetime.fromisoformat(saved_at)
        return PersistedSession(
            images=[
                PersistedImage(name=img["name"], data=base64.b64decode(img["data"]))
                for img in payload.get("images", [])
            ],
            cursor_index=int(payload.get("cursor_index", 0)),
            saved_at=saved_at or datetime.now(UTC),
        )

    def save(self, key: str, session: PersistedSession) -> None:
        payload = self._to_payload(session)

        # In-memory mode
        if self.disabled or self.client is None:
            _MEM_SESSIONS[key] = payload
            return

        # Supabase mode
        try:  # pragma: no cover - network
            self.client.table(self.table).upsert(
                {"key": key, "payload": payload, "saved_at": payload["saved_at"]},
                on_conflict="key",
            ).execute()
        except Exception as exc:
            raise RuntimeError(f"DB save session failed: {exc}") from exc

    def get(self, key: str) -> PersistedSession | None:
        if self.disabled or self.client is None:
            payload = _MEM_SESSIONS.get(key)
            return self._from_payload(payload) if payload else None

        try:  # pragma: no cover - network
            res = self.client.table(self.table).select("payload").eq("key", key).execute()
            rows = res.data or []
            return self._from_payload(rows[0]["payload"]) if rows else None
        except Exception as exc:
            raise RuntimeError(f"DB load session failed: {exc}") from exc

    def delete(self, key: str) -> bool:
        if self.disabled or self.client is None:
            return _MEM_SESSIONS.pop(key, None) is not None

        try:  # pragma: no cover - network
            self.client.table(self.table).delete().eq("key", key).execute()
            return True
        except Exception as exc:
            raise RuntimeError(f"DB delete session failed: {exc}") from exc
