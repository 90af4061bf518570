from __future__ import annotations

import asyncio
import os
import re
import sys
from typing import Iterable, Sequence

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
BACKEND_ROOT = os.path.join(ROOT, "backend")
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from lumen_i18n.infrastructure.database.models.translation import TranslationModel  # noqa: E402
from lumen_i18n.services.i18n.errors import ProviderError, StoreError  # noqa: E402
from lumen_i18n.services.i18n.resolver import TranslationResolver  # noqa: E402


def _like_to_regex(pattern: str) -> re.Pattern[str]:
    return re.compile("^" + re.escape(pattern).replace("%", ".*").replace("_", ".") + "$")


class FakeStore:
    """Dict-backed translation store keyed like the real unique constraint."""

    def __init__(self, rows: dict[tuple[str, str], str] | None = None) -> None:
        self.rows: dict[tuple[str, str], str] = dict(rows or {})
        self.meta: dict[tuple[str, str], dict] = {}
        self.upsert_calls: list[tuple[str, str, str]] = []
        self.upsert_many_calls: list[list[TranslationModel]] = []
        self.fail_reads = False
        self.fail_writes = False

    def _check_read(self) -> None:
        if self.fail_reads:
            raise StoreError("connection refused")

    def _check_write(self) -> None:
        if self.fail_writes:
            raise StoreError("connection refused")

    async def get(self, language_code: str, translation_key: str) -> str | None:
        self._check_read()
        return self.rows.get((language_code, translation_key))

    async def get_many(self, language_code: str, translation_keys: Iterable[str]) -> dict[str, str]:
        self._check_read()
        return {
            key: self.rows[(language_code, key)]
            for key in translation_keys
            if (language_code, key) in self.rows
        }

    async def upsert(
        self,
        language_code: str,
        translation_key: str,
        translation_value: str,
        *,
        context: str | None = None,
        source_text: str | None = None,
        auto_translated: bool = False,
    ) -> None:
        self._check_write()
        self.upsert_calls.append((language_code, translation_key, translation_value))
        self.rows[(language_code, translation_key)] = translation_value
        self.meta[(language_code, translation_key)] = {
            "context": context,
            "source_text": source_text,
            "auto_translated": auto_translated,
        }

    async def upsert_many(self, records: Sequence[TranslationModel]) -> None:
        self._check_write()
        self.upsert_many_calls.append(list(records))
        for record in records:
            self.rows[(record.language_code, record.translation_key)] = record.translation_value

    async def delete_key(self, translation_key: str) -> int:
        self._check_write()
        stale = [entry for entry in self.rows if entry[1] == translation_key]
        for entry in stale:
            del self.rows[entry]
        return len(stale)

    async def list_language(self, language_code: str) -> dict[str, str]:
        self._check_read()
        return {key: value for (lang, key), value in self.rows.items() if lang == language_code}

    async def search_values(
        self,
        language_code: str,
        term: str,
        *,
        key_pattern: str = "%",
        limit: int = 30,
    ) -> list[TranslationModel]:
        self._check_read()
        key_re = _like_to_regex(key_pattern)
        found = [
            TranslationModel(language_code=lang, translation_key=key, translation_value=value)
            for (lang, key), value in sorted(self.rows.items())
            if lang == language_code and key_re.match(key) and term.lower() in value.lower()
        ]
        return found[:limit]


class FakeProvider:
    """Records every call; translates through a lookup table or a suffix."""

    name = "fake"

    def __init__(
        self,
        table: dict[str | tuple[str, str], str] | None = None,
        *,
        fail: bool = False,
        delay: float = 0.0,
        fail_on_calls: Iterable[int] = (),
    ) -> None:
        # Keys are a source text, or a (source text, target language) pair.
        self.table = dict(table or {})
        self.fail = fail
        self.delay = delay
        self.fail_on_calls = set(fail_on_calls)
        self.calls: list[tuple[list[str], str, str]] = []

    async def translate(
        self, texts: Sequence[str], source_language: str, target_language: str
    ) -> list[str]:
        self.calls.append((list(texts), source_language, target_language))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail or len(self.calls) in self.fail_on_calls:
            raise ProviderError("provider unavailable", failure_kind="http_error", status_code=503)
        return [
            self.table.get((text, target_language), self.table.get(text, f"{text} [{target_language}]"))
            for text in texts
        ]


class RecordingSleeper:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def sleeper() -> RecordingSleeper:
    return RecordingSleeper()


@pytest.fixture
def make_resolver(sleeper: RecordingSleeper):
    def _make(store: FakeStore, provider: FakeProvider, **kwargs) -> TranslationResolver:
        kwargs.setdefault("sleeper", sleeper)
        return TranslationResolver(store, provider, source_language="tr", **kwargs)

    return _make
