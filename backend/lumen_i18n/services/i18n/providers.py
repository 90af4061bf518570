from __future__ import annotations

import json
import logging
import re
from typing import Any, Protocol, Sequence

import httpx
from openai import AsyncOpenAI

from lumen_i18n.config import Settings
from lumen_i18n.services.i18n.errors import ProviderError, ProviderTimeout

logger = logging.getLogger(__name__)

GOOGLE_TRANSLATE_URL = "https://translation.googleapis.com/language/translate/v2"
_PLACEHOLDER_RE = re.compile(r"\{[A-Za-z0-9_]+\}")
_MAX_ERROR_BODY_CHARS = 300


class MachineTranslationProvider(Protocol):
    """Text-in/text-out batch translation.

    Returns a list of the same length as ``texts`` with matching indexes. Any
    failure is reported as one ProviderError for the whole call.
    """

    name: str

    async def translate(
        self, texts: Sequence[str], source_language: str, target_language: str
    ) -> list[str]: ...


def _extract_provider_error_code(body_text: str) -> str | None:
    if not body_text:
        return None
    try:
        data = json.loads(body_text)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    err = data.get("error")
    if isinstance(err, dict):
        code = err.get("code") or err.get("status")
        if not code:
            return None
        return str(code).strip() or None
    if isinstance(err, str):
        return err.strip() or None
    return None


def _short(text: str) -> str:
    compact = " ".join((text or "").split())
    if len(compact) <= _MAX_ERROR_BODY_CHARS:
        return compact
    return compact[: _MAX_ERROR_BODY_CHARS - 3] + "..."


def _require_length(name: str, translated: list[str], expected: int) -> list[str]:
    if len(translated) != expected:
        raise ProviderError(
            f"{name} returned {len(translated)} translations for {expected} texts",
            failure_kind="malformed",
        )
    return translated


class _HttpTranslationProvider:
    name = "http"

    def __init__(
        self,
        *,
        timeout_seconds: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def _post_json(
        self,
        url: str,
        *,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        try:
            response = await self.client.post(
                url,
                json=payload,
                headers=headers,
                params=params,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ProviderTimeout(self.timeout_seconds) from exc
        except httpx.HTTPStatusError as exc:
            body_text = exc.response.text or ""
            error_code = _extract_provider_error_code(body_text)
            raise ProviderError(
                f"{self.name} returned HTTP {exc.response.status_code}"
                f" ({error_code or '-'}): {_short(body_text)}",
                failure_kind="http_error",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(
                f"{self.name} transport error: {exc!r}", failure_kind="transport"
            ) from exc
        logger.debug("%s answered HTTP %s", self.name, response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(
                f"{self.name} returned invalid JSON", failure_kind="malformed"
            ) from exc


class EdgeFunctionProvider(_HttpTranslationProvider):
    """Storefront ``translate-text`` endpoint.

    Request: ``{text: str | list[str], sourceLanguage, targetLanguage}``.
    Response: ``{success, translations: {translatedText} | [{translatedText}]}``.
    A list is always sent; both response shapes are accepted.
    """

    name = "edge"

    def __init__(
        self,
        url: str,
        api_key: str | None = None,
        *,
        timeout_seconds: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(timeout_seconds=timeout_seconds, client=client)
        self.url = url
        self.api_key = api_key

    def _headers(self) -> dict[str, str]:
        if not self.api_key:
            return {}
        return {"Authorization": f"Bearer {self.api_key}", "apikey": self.api_key}

    async def translate(
        self, texts: Sequence[str], source_language: str, target_language: str
    ) -> list[str]:
        if not texts:
            return []
        data = await self._post_json(
            self.url,
            payload={
                "text": list(texts),
                "sourceLanguage": source_language,
                "targetLanguage": target_language,
            },
            headers=self._headers(),
        )
        return _require_length(self.name, self.parse_response(data), len(texts))

    @staticmethod
    def parse_response(data: Any) -> list[str]:
        if not isinstance(data, dict) or not data.get("success"):
            detail = data.get("error") if isinstance(data, dict) else None
            raise ProviderError(
                f"edge reported failure: {detail or 'success flag missing'}",
                failure_kind="unsuccessful",
            )
        raw = data.get("translations")
        items = raw if isinstance(raw, list) else [raw]
        translated: list[str] = []
        for item in items:
            text = item.get("translatedText") if isinstance(item, dict) else None
            if not isinstance(text, str):
                raise ProviderError(
                    "edge response item is missing translatedText", failure_kind="malformed"
                )
            translated.append(text)
        return translated


class GoogleTranslateProvider(_HttpTranslationProvider):
    """Google Cloud Translation v2, called directly."""

    name = "google"

    def __init__(
        self,
        api_key: str,
        *,
        url: str = GOOGLE_TRANSLATE_URL,
        timeout_seconds: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(timeout_seconds=timeout_seconds, client=client)
        self.api_key = api_key
        self.url = url

    async def translate(
        self, texts: Sequence[str], source_language: str, target_language: str
    ) -> list[str]:
        if not texts:
            return []
        payload: dict[str, Any] = {
            "q": list(texts),
            "target": target_language,
            "format": "text",
        }
        if source_language and source_language != "auto":
            payload["source"] = source_language
        data = await self._post_json(self.url, payload=payload, params={"key": self.api_key})
        try:
            items = data["data"]["translations"]
            translated = [str(item["translatedText"]) for item in items]
        except (KeyError, TypeError) as exc:
            raise ProviderError(
                "google response is missing data.translations", failure_kind="malformed"
            ) from exc
        return _require_length(self.name, translated, len(texts))


class OpenAIProvider:
    """LLM-backed translation through an OpenAI-compatible chat endpoint.

    Texts travel as a JSON array and must come back as a JSON array of the same
    length. ``{placeholder}`` tokens are preserved verbatim.
    """

    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str,
        *,
        base_url: str | None = None,
        timeout_seconds: float = 30.0,
        client: Any = None,
    ) -> None:
        if client is None:
            client = AsyncOpenAI(base_url=base_url, api_key=api_key, timeout=timeout_seconds)
        self.client = client
        self.model = model

    @staticmethod
    def _system_prompt() -> str:
        return (
            "You are a precise translator for an industrial lighting catalog. "
            "Strict rules: 1) Keep placeholders like {name} exactly unchanged. "
            "2) Keep product codes, SKUs and units unchanged. "
            "3) Answer with a JSON array of strings only, one translation per input item, same order."
        )

    @staticmethod
    def _user_prompt(texts: Sequence[str], source_language: str, target_language: str) -> str:
        placeholders = sorted({match for text in texts for match in _PLACEHOLDER_RE.findall(text)})
        extra = f"Placeholders to preserve: {', '.join(placeholders)}. " if placeholders else ""
        return (
            f"Source language: {source_language}. Target language: {target_language}. {extra}"
            f"Items to translate ({len(texts)}):\n{json.dumps(list(texts), ensure_ascii=False)}"
        )

    @staticmethod
    def parse_content(content: str) -> list[str]:
        cleaned = re.sub(r"<think>.*?</think>", "", content or "", flags=re.DOTALL).strip()
        fenced = re.match(r"^```(?:json)?\s*(.*?)\s*```$", cleaned, flags=re.DOTALL)
        if fenced:
            cleaned = fenced.group(1)
        try:
            parsed = json.loads(cleaned)
        except ValueError as exc:
            raise ProviderError("openai answer is not JSON", failure_kind="malformed") from exc
        if not isinstance(parsed, list) or not all(isinstance(item, str) for item in parsed):
            raise ProviderError(
                "openai answer is not a JSON array of strings", failure_kind="malformed"
            )
        return [item.strip() for item in parsed]

    async def translate(
        self, texts: Sequence[str], source_language: str, target_language: str
    ) -> list[str]:
        if not texts:
            return []
        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": self._system_prompt()},
                    {
                        "role": "user",
                        "content": self._user_prompt(texts, source_language, target_language),
                    },
                ],
                temperature=0.2,
            )
        except Exception as exc:
            raise ProviderError(f"openai request failed: {exc!r}", failure_kind="transport") from exc
        try:
            content = resp.choices[0].message.content or ""
        except (AttributeError, IndexError, TypeError) as exc:
            raise ProviderError(
                "openai answer has no message content", failure_kind="malformed"
            ) from exc
        return _require_length(self.name, self.parse_content(content), len(texts))


def create_provider(
    settings: Settings, *, client: httpx.AsyncClient | None = None
) -> MachineTranslationProvider:
    kind = settings.provider
    if kind == "edge":
        if not settings.provider_url:
            raise RuntimeError("LUMEN_PROVIDER_URL (or SUPABASE_URL) must be set for the edge provider")
        return EdgeFunctionProvider(
            settings.provider_url,
            settings.provider_api_key,
            timeout_seconds=settings.provider_timeout_seconds,
            client=client,
        )
    if kind == "google":
        if not settings.provider_api_key:
            raise RuntimeError("LUMEN_PROVIDER_API_KEY must be set for the google provider")
        return GoogleTranslateProvider(
            settings.provider_api_key,
            url=settings.provider_url or GOOGLE_TRANSLATE_URL,
            timeout_seconds=settings.provider_timeout_seconds,
            client=client,
        )
    if kind == "openai":
        if not settings.provider_api_key:
            raise RuntimeError("LUMEN_PROVIDER_API_KEY must be set for the openai provider")
        return OpenAIProvider(
            settings.provider_api_key,
            settings.provider_model,
            base_url=settings.provider_base_url,
            timeout_seconds=settings.provider_timeout_seconds,
        )
    raise RuntimeError(f"Unknown translation provider {kind!r}")
