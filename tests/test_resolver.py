import asyncio

import pytest

from conftest import FakeProvider, FakeStore
from lumen_i18n.services.i18n.rate_limiter import TokenBucket

GREETING = "greeting"


@pytest.mark.asyncio
async def test_resolve_source_language_is_passthrough(make_resolver) -> None:
    store = FakeStore({("tr", GREETING): "Merhaba"})
    provider = FakeProvider()
    resolver = make_resolver(store, provider)

    assert await resolver.resolve(GREETING, "tr") == "Merhaba"
    assert provider.calls == []


@pytest.mark.asyncio
async def test_resolve_translates_once_and_writes_through(make_resolver) -> None:
    store = FakeStore({("tr", GREETING): "Merhaba"})
    provider = FakeProvider({"Merhaba": "Hello"})
    resolver = make_resolver(store, provider)

    assert await resolver.resolve(GREETING, "en") == "Hello"
    assert store.rows[("en", GREETING)] == "Hello"
    assert store.meta[("en", GREETING)]["auto_translated"] is True
    assert store.meta[("en", GREETING)]["context"] == "dynamic_content"
    assert resolver.cache.get("en", GREETING) == "Hello"

    assert await resolver.resolve(GREETING, "en") == "Hello"
    assert len(provider.calls) == 1
    assert provider.calls[0] == (["Merhaba"], "tr", "en")


@pytest.mark.asyncio
async def test_resolve_prefers_stored_value(make_resolver) -> None:
    store = FakeStore({("tr", GREETING): "Merhaba", ("en", GREETING): "Hi there"})
    provider = FakeProvider()
    resolver = make_resolver(store, provider)

    assert await resolver.resolve(GREETING, "en") == "Hi there"
    assert provider.calls == []
    assert store.upsert_calls == []


@pytest.mark.asyncio
async def test_resolve_provider_failure_serves_source_without_writing(make_resolver) -> None:
    store = FakeStore({("tr", GREETING): "Merhaba"})
    provider = FakeProvider(fail=True)
    resolver = make_resolver(store, provider)

    assert await resolver.resolve(GREETING, "en") == "Merhaba"
    assert ("en", GREETING) not in store.rows
    assert resolver.cache.get("en", GREETING) is None

    # Nothing was cached, so the next call tries the provider again.
    assert await resolver.resolve(GREETING, "en") == "Merhaba"
    assert len(provider.calls) == 2


@pytest.mark.asyncio
async def test_resolve_timeout_counts_as_provider_failure(make_resolver) -> None:
    store = FakeStore({("tr", GREETING): "Merhaba"})
    provider = FakeProvider({"Merhaba": "Hello"}, delay=1.0)
    resolver = make_resolver(store, provider, provider_timeout_seconds=0.05)

    assert await resolver.resolve(GREETING, "en") == "Merhaba"
    assert ("en", GREETING) not in store.rows


@pytest.mark.asyncio
async def test_resolve_without_source_text_returns_key(make_resolver) -> None:
    store = FakeStore()
    provider = FakeProvider()
    resolver = make_resolver(store, provider)

    assert await resolver.resolve("ui.unknown.key", "en") == "ui.unknown.key"
    assert await resolver.resolve("ui.unknown.key", "tr") == "ui.unknown.key"
    assert provider.calls == []


@pytest.mark.asyncio
async def test_resolve_store_down_returns_key(make_resolver) -> None:
    store = FakeStore({("tr", GREETING): "Merhaba"})
    store.fail_reads = True
    resolver = make_resolver(store, FakeProvider())

    assert await resolver.resolve(GREETING, "en") == GREETING


@pytest.mark.asyncio
async def test_resolve_write_failure_still_returns_translation(make_resolver) -> None:
    store = FakeStore({("tr", GREETING): "Merhaba"})
    store.fail_writes = True
    resolver = make_resolver(store, FakeProvider({"Merhaba": "Hello"}))

    assert await resolver.resolve(GREETING, "en") == "Hello"
    assert resolver.cache.get("en", GREETING) is None


@pytest.mark.asyncio
async def test_resolve_empty_translation_falls_back_to_source(make_resolver) -> None:
    store = FakeStore({("tr", GREETING): "Merhaba"})
    resolver = make_resolver(store, FakeProvider({"Merhaba": "  "}))

    assert await resolver.resolve(GREETING, "en") == "Merhaba"
    assert ("en", GREETING) not in store.rows


@pytest.mark.asyncio
async def test_concurrent_resolves_share_one_provider_call(make_resolver) -> None:
    store = FakeStore({("tr", GREETING): "Merhaba"})
    provider = FakeProvider({"Merhaba": "Hello"}, delay=0.02)
    resolver = make_resolver(store, provider)

    results = await asyncio.gather(*(resolver.resolve(GREETING, "en") for _ in range(5)))

    assert results == ["Hello"] * 5
    assert len(provider.calls) == 1
    assert len(store.upsert_calls) == 1


@pytest.mark.asyncio
async def test_translate_text_uses_given_source(make_resolver) -> None:
    store = FakeStore()
    provider = FakeProvider({"Kırmızı": "Red"})
    resolver = make_resolver(store, provider)

    assert await resolver.translate_text("Kırmızı", "product.p1.color", "en") == "Red"
    assert store.rows[("en", "product.p1.color")] == "Red"
    assert store.meta[("en", "product.p1.color")]["source_text"] == "Kırmızı"
    assert await resolver.translate_text("", "product.p1.color", "en") == ""
    assert await resolver.translate_text("Kırmızı", "product.p1.color", "tr") == "Kırmızı"
    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_translate_text_store_down_returns_text(make_resolver) -> None:
    store = FakeStore()
    store.fail_reads = True
    resolver = make_resolver(store, FakeProvider())

    assert await resolver.translate_text("Kırmızı", "product.p1.color", "en") == "Kırmızı"


@pytest.mark.asyncio
async def test_provider_calls_pass_through_rate_limiter(make_resolver) -> None:
    class _CountingBucket(TokenBucket):
        def __init__(self) -> None:
            super().__init__(rate_per_second=100.0, burst=10)
            self.acquired = 0

        async def acquire(self) -> None:
            self.acquired += 1
            await super().acquire()

    bucket = _CountingBucket()
    store = FakeStore({("tr", "a"): "Bir", ("tr", "b"): "İki"})
    resolver = make_resolver(store, FakeProvider(), rate_limiter=bucket)

    await resolver.resolve("a", "en")
    await resolver.resolve("b", "de")
    assert bucket.acquired == 2


@pytest.mark.asyncio
async def test_save_and_translate_refreshes_targets(make_resolver, sleeper) -> None:
    store = FakeStore({("en", "ui.cta"): "Old"})
    provider = FakeProvider({("Satın al", "en"): "Buy"})
    resolver = make_resolver(store, provider)
    resolver.cache.put("en", "ui.cta", "Old")

    result = await resolver.save_and_translate(
        "ui.cta", "Satın al", context="ui", target_languages=["en", "tr", "de", "en"]
    )

    assert result == {"tr": "Satın al", "en": "Buy", "de": "Satın al [de]"}
    assert store.rows[("tr", "ui.cta")] == "Satın al"
    assert store.meta[("tr", "ui.cta")]["auto_translated"] is False
    assert store.rows[("en", "ui.cta")] == "Buy"
    assert resolver.cache.get("en", "ui.cta") == "Buy"
    assert [call[2] for call in provider.calls] == ["en", "de"]
    assert sleeper.delays == [resolver.chunk_delay_seconds]


@pytest.mark.asyncio
async def test_save_and_translate_keeps_source_when_provider_fails(make_resolver) -> None:
    store = FakeStore()
    resolver = make_resolver(store, FakeProvider(fail=True))

    result = await resolver.save_and_translate("ui.cta", "Satın al", target_languages=["en"])

    assert result == {"tr": "Satın al", "en": "Satın al"}
    assert ("en", "ui.cta") not in store.rows


@pytest.mark.asyncio
async def test_delete_key_clears_store_and_cache(make_resolver) -> None:
    store = FakeStore({("tr", "ui.cta"): "Satın al", ("en", "ui.cta"): "Buy"})
    resolver = make_resolver(store, FakeProvider())
    resolver.cache.put("en", "ui.cta", "Buy")

    assert await resolver.delete_key("ui.cta") == 2
    assert store.rows == {}
    assert len(resolver.cache) == 0


@pytest.mark.asyncio
async def test_warm_cache_and_clear(make_resolver) -> None:
    store = FakeStore({("en", "a"): "One", ("en", "b"): "Two", ("de", "a"): "Eins"})
    resolver = make_resolver(store, FakeProvider())

    assert await resolver.warm_cache("en") == {"a": "One", "b": "Two"}
    assert resolver.cache.get("en", "b") == "Two"
    assert resolver.cache.get("de", "a") is None

    resolver.clear_cache()
    assert len(resolver.cache) == 0


@pytest.mark.asyncio
async def test_resolve_with_explicit_source_language(make_resolver) -> None:
    store = FakeStore({("en", "ui.cta"): "Buy"})
    provider = FakeProvider({"Buy": "Kaufen"})
    resolver = make_resolver(store, provider)

    assert await resolver.resolve("ui.cta", "en", source_language="en") == "Buy"
    assert await resolver.resolve("ui.cta", "de", source_language="en") == "Kaufen"
    assert provider.calls == [(["Buy"], "en", "de")]


@pytest.mark.asyncio
async def test_cancelled_caller_leaves_shared_translation_running(make_resolver) -> None:
    store = FakeStore({("tr", GREETING): "Merhaba"})
    provider = FakeProvider({"Merhaba": "Hello"}, delay=0.05)
    resolver = make_resolver(store, provider)

    leader = asyncio.create_task(resolver.resolve(GREETING, "en"))
    await asyncio.sleep(0.01)
    joiner = asyncio.create_task(resolver.resolve(GREETING, "en"))
    await asyncio.sleep(0)
    leader.cancel()

    assert await asyncio.gather(joiner, return_exceptions=True) == ["Hello"]
    assert leader.cancelled()
    assert store.rows[("en", GREETING)] == "Hello"
    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_save_and_translate_skips_empty_provider_output(make_resolver) -> None:
    store = FakeStore()
    resolver = make_resolver(store, FakeProvider({"Satın al": "  "}))

    result = await resolver.save_and_translate("ui.cta", "Satın al", target_languages=["en"])

    assert result == {"tr": "Satın al", "en": "Satın al"}
    assert ("en", "ui.cta") not in store.rows
    assert resolver.cache.get("en", "ui.cta") is None


@pytest.mark.asyncio
async def test_concurrent_resolves_from_different_sources_stay_separate(make_resolver) -> None:
    store = FakeStore({("tr", "ui.cta"): "Satın al", ("en", "ui.cta"): "Buy"})
    provider = FakeProvider(
        {("Satın al", "de"): "Kaufen (tr)", ("Buy", "de"): "Kaufen (en)"}, delay=0.01
    )
    resolver = make_resolver(store, provider)

    results = await asyncio.gather(
        resolver.resolve("ui.cta", "de"),
        resolver.resolve("ui.cta", "de", source_language="en"),
    )

    assert results == ["Kaufen (tr)", "Kaufen (en)"]
    assert len(provider.calls) == 2
