from datetime import datetime

from pydantic import BaseModel, Field


class TranslationModel(BaseModel):
    id: int | None = Field(None, description="Surrogate primary key of the row")
    language_code: str = Field(..., description="Short language code (e.g. 'tr', 'en')")
    translation_key: str = Field(
        ..., description="Dot-delimited key, e.g. 'product.<uuid>.name' or 'header.catalog'"
    )
    translation_value: str = Field(..., description="Display text for the language/key pair")
    context: str | None = Field(None, description="Advisory provenance tag, not used for lookup")
    source_text: str | None = Field(None, description="Source-language text the value derives from")
    auto_translated: bool = Field(False, description="Written by machine translation")
    updated_at: datetime | None = Field(None, description="Last write timestamp")

    class Config:
        from_attributes = True
        frozen = True
        extra = "ignore"
