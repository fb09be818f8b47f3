from __future__ import annotations

import os

from supabase import Client

from src.domain.entities.editor_state import PromptCategory

# module-level in-memory store for disabled mode
_MEM_PROMPTS: dict[str, list[str]] = {}


class PromptHistoryRepository:
    """Prompt lists, each stored under its own key: ``<user>:prompt_history:<category>``."""

    def __init__(self, client: Client | None) -> None:
        self.client = client
        self.disabled = os.getenv("SUPABASE_DISABLED", "0") == "1"
        self.table = os.getenv("SUPABASE_PROMPTS_TABLE", "prompt_histories")

    @staticmethod
    def key(user_id: str, category: PromptCategory) -> str:
        return f"{user_id}:prompt_history:{category.value}"

    def load(self, user_id: str, category: PromptCategory) -> list[str]:
        key = self.key(user_id, category)
        if self.disabled or self.client is None:
            return list(_MEM_PROMPTS.get(key, []))

        try:  # pragma: no cover - network
            res = self.client.table(self.table).select("prompts").eq("key", key).execute()
            rows = res.data or []
            return list(rows[0].get("prompts") or []) if rows else []
        except Exception as exc:
            raise RuntimeError(f"DB load prompt history failed: {exc}") from exc

    def save(self, user_id: str, category: PromptCategory, prompts: list[str]) -> None:
        key = self.key(user_id, category)
        if self.disabled or self.client is None:
            _MEM_PROMPTS[key] = list(prompts)
            return

        try:  # pragma: no cover - network
            self.client.table(self.table).upsert(
                {"key": key, "prompts": list(prompts)}, on_conflict="key"
            ).execute()
        except Exception as exc:
            raise RuntimeError(f"DB save prompt history failed: {exc}") from exc

    def clear(self, user_id: str, category: PromptCategory) -> None:
        key = self.key(user_id, category)
        if self.disabled or self.client is None:
            _MEM_PROMPTS.pop(key, None)
            return

        try:  # pragma: no cover - network
            self.client.table(self.table).delete().eq("key", key).execute()
        except Exception as exc:
            raise RuntimeError(f"DB clear prompt history failed: {exc}") from exc
