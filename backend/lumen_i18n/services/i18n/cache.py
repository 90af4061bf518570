from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class TranslationCache:
    """Process-lifetime map of ``(language_code, translation_key) -> text``.

    Entries never expire; ``clear`` runs after bulk admin edits and
    ``clear_key`` after an editor saves a single key.
    """

    entries: dict[tuple[str, str], str] = field(default_factory=dict)
    hits: int = 0
    misses: int = 0

    def get(self, language_code: str, translation_key: str) -> str | None:
        value = self.entries.get((language_code, translation_key))
        if value is None:
            self.misses += 1
        else:
            self.hits += 1
        return value

    def put(self, language_code: str, translation_key: str, value: str) -> None:
        self.entries[(language_code, translation_key)] = value

    def put_many(self, language_code: str, values: dict[str, str]) -> None:
        for translation_key, value in values.items():
            self.entries[(language_code, translation_key)] = value

    def clear(self) -> None:
        self.entries.clear()

    def clear_key(self, translation_key: str) -> int:
        stale = [entry for entry in self.entries if entry[1] == translation_key]
        for entry in stale:
            del self.entries[entry]
        return len(stale)

    def __len__(self) -> int:
        return len(self.entries)
