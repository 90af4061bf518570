from pydantic import BaseModel, Field


class ProductModel(BaseModel):
    id: str = Field(..., description="Stable product UUID")
    sku: str = Field(..., description="Stock keeping unit")
    slug: str | None = Field(None, description="URL slug, falls back to SKU")
    category_id: str | None = Field(None, description="Owning category UUID")

    class Config:
        from_attributes = True
        frozen = True
        extra = "ignore"


class CategoryModel(BaseModel):
    id: str = Field(..., description="Stable category UUID")
    slug: str = Field(..., description="Human slug used by legacy translation keys")

    class Config:
        from_attributes = True
        frozen = True
        extra = "ignore"
