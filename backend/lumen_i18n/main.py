import logging
import re
from typing import Dict, List, Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from lumen_i18n.config import normalize_language_code, settings
from lumen_i18n.services.i18n.bootstrap import create_localization, preload_languages
from lumen_i18n.services.i18n.errors import StoreError
from lumen_i18n.services.i18n.resolver import BatchItem, TranslationResolver
from lumen_i18n.services.search.entity_index import EntitySearchIndex

logging.basicConfig(level=settings.log_level, format=settings.log_format)
logger = logging.getLogger(__name__)

LANGUAGE_CODE_RE = re.compile(r"^[a-z]{2,3}(-[a-z0-9]{2,4})?$")
MAX_BATCH_ITEMS = 1000

app = FastAPI(title="Lumen catalog localization")


class TranslationOut(BaseModel):
    key: str
    language: str
    value: str


class BatchItemIn(BaseModel):
    key: str = Field(..., min_length=1)
    text: str = ""


class BatchIn(BaseModel):
    items: List[BatchItemIn] = Field(default_factory=list, max_length=MAX_BATCH_ITEMS)
    context: Optional[str] = None


class BatchOut(BaseModel):
    language: str
    translations: Dict[str, str]


class LanguageOut(BaseModel):
    language: str
    count: int
    translations: Dict[str, str]


class SaveTranslationIn(BaseModel):
    text: str = Field(..., min_length=1)
    context: Optional[str] = None
    target_languages: Optional[List[str]] = None


class SaveTranslationOut(BaseModel):
    key: str
    translations: Dict[str, str]


class DeleteTranslationOut(BaseModel):
    key: str
    deleted: int


class SearchResultOut(BaseModel):
    type: str
    id: str
    name: str
    translation_key: Optional[str] = None
    sku: Optional[str] = None
    slug: Optional[str] = None
    category_id: Optional[str] = None


def _normalize_code(value: str) -> str:
    code = normalize_language_code(value)
    if not LANGUAGE_CODE_RE.match(code):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid language code: {value!r}",
        )
    return code


def get_resolver(request: Request) -> TranslationResolver:
    localization = getattr(request.app.state, "localization", None)
    if localization is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Not ready")
    return localization.resolver


def get_search_index(request: Request) -> EntitySearchIndex:
    localization = getattr(request.app.state, "localization", None)
    if localization is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Not ready")
    return localization.search_index


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error("Store unavailable for %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Translation store is unavailable"},
    )


@app.on_event("startup")
async def on_startup() -> None:
    app.state.localization = await create_localization(settings)
    await preload_languages(
        app.state.localization.resolver,
        [settings.source_language, *settings.target_languages],
    )


@app.on_event("shutdown")
async def on_shutdown() -> None:
    localization = getattr(app.state, "localization", None)
    if localization is not None:
        await localization.aclose()


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/translations/{language}", response_model=LanguageOut)
async def get_language(
    language: str,
    resolver: TranslationResolver = Depends(get_resolver),
) -> LanguageOut:
    code = _normalize_code(language)
    mapping = await resolver.warm_cache(code)
    return LanguageOut(language=code, count=len(mapping), translations=mapping)


@app.get("/translations/{language}/{key}", response_model=TranslationOut)
async def get_translation(
    language: str,
    key: str,
    resolver: TranslationResolver = Depends(get_resolver),
) -> TranslationOut:
    code = _normalize_code(language)
    value = await resolver.resolve(key, code)
    return TranslationOut(key=key, language=code, value=value)


@app.post("/translations/{language}/batch", response_model=BatchOut)
async def translate_batch(
    language: str,
    payload: BatchIn,
    resolver: TranslationResolver = Depends(get_resolver),
) -> BatchOut:
    code = _normalize_code(language)
    items = [BatchItem(key=item.key, source_text=item.text) for item in payload.items]
    if payload.context:
        translations = await resolver.resolve_batch(items, code, context=payload.context)
    else:
        translations = await resolver.resolve_batch(items, code)
    return BatchOut(language=code, translations=translations)


@app.put("/admin/translations/{key}", response_model=SaveTranslationOut)
async def save_translation(
    key: str,
    payload: SaveTranslationIn,
    resolver: TranslationResolver = Depends(get_resolver),
) -> SaveTranslationOut:
    targets = payload.target_languages
    if targets is None:
        targets = list(settings.target_languages)
    codes = [_normalize_code(code) for code in targets]
    kwargs = {"target_languages": codes}
    if payload.context:
        kwargs["context"] = payload.context
    translations = await resolver.save_and_translate(key, payload.text, **kwargs)
    logger.info("Saved %s and refreshed %s language(s)", key, len(translations) - 1)
    return SaveTranslationOut(key=key, translations=translations)


@app.delete("/admin/translations/{key}", response_model=DeleteTranslationOut)
async def delete_translation(
    key: str,
    resolver: TranslationResolver = Depends(get_resolver),
) -> DeleteTranslationOut:
    deleted = await resolver.delete_key(key)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Key not found.")
    return DeleteTranslationOut(key=key, deleted=deleted)


@app.post("/admin/translations/cache/clear")
async def clear_translation_cache(
    resolver: TranslationResolver = Depends(get_resolver),
) -> dict[str, str]:
    resolver.clear_cache()
    return {"status": "cleared"}


@app.get("/search", response_model=List[SearchResultOut])
async def search(
    q: str = Query(..., description="Search text"),
    language: str = Query(settings.source_language),
    limit: int = Query(settings.search_result_limit, ge=1, le=50),
    search_index: EntitySearchIndex = Depends(get_search_index),
) -> List[SearchResultOut]:
    code = _normalize_code(language)
    results = await search_index.search(q, code, limit=limit)
    return [
        SearchResultOut(
            type=result.entity_type,
            id=result.entity_id,
            name=result.name,
            translation_key=result.translation_key,
            sku=result.sku,
            slug=result.slug,
            category_id=result.category_id,
        )
        for result in results
    ]


def run() -> None:
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_config=None)
