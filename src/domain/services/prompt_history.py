from __future__ import annotations

from collections.abc import Iterable

MAX_PROMPTS = 20


class PromptHistory:
    """Most-recently-used prompts, newest first, unique ignoring case."""

    def __init__(self, items: Iterable[str] = (), limit: int = MAX_PROMPTS) -> None:
        self.limit = limit
        self._items: list[str] = []
        for prompt in reversed(list(items)):
            self.add(prompt)

    @property
    def items(self) -> list[str]:
        return list(self._items)

    def add(self, prompt: str) -> bool:
        text = prompt.strip()
        if not text:
            return False
        key = text.casefold()
        rest = [p for p in self._items if p.casefold() != key]
        self._items = [text, *rest][: self.limit]
        return True

    def clear(self) -> None:
        self._items = []
