"""
Database Schemas

The catalog keeps a single MongoDB collection, "product". Each Product document
embeds its Variant sub-documents; variants have no collection of their own.

Stored field names are camelCase (basePrice, priceModifier, isActive, ...).
Python attributes are snake_case and map to them through aliases.
"""
from datetime import datetime
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, computed_field
from pydantic.alias_generators import to_camel

# ---------- Field types ----------

Text = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Tag = Annotated[str, StringConstraints(strip_whitespace=True)]


class Category(str, Enum):
    electronics = "Electronics"
    clothing = "Clothing"
    books = "Books"
    home_kitchen = "Home & Kitchen"
    sports = "Sports"
    beauty = "Beauty"
    toys = "Toys"


CATEGORIES = [c.value for c in Category]


class CatalogModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


# ---------- Write side ----------

class Variant(CatalogModel):
    color: Text
    size: Text
    stock: int = Field(..., ge=0)
    sku: Text
    price_modifier: float = Field(0, ge=-1000, le=1000)
    images: List[Tag] = Field(default_factory=list)


class Rating(CatalogModel):
    average: float = Field(0, ge=0, le=5)
    count: int = Field(0, ge=0)


class Product(CatalogModel):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
    description: Annotated[str, StringConstraints(min_length=1, max_length=1000)]
    base_price: float = Field(..., ge=0)
    category: Category
    brand: Text
    tags: List[Tag] = Field(default_factory=list)
    variants: List[Variant] = Field(default_factory=list)
    is_active: bool = True
    rating: Rating = Field(default_factory=Rating)


# ---------- Derived values ----------
# Computed on read from the variant list, never stored.

def total_stock(variants) -> int:
    return sum(v.stock for v in variants)


def has_stock(variants) -> bool:
    return any(v.stock > 0 for v in variants)


def effective_price(base_price: float, variant) -> float:
    return base_price + variant.price_modifier


# ---------- Read side ----------

class VariantRecord(Variant):
    id: str = Field(..., alias="_id")


class ProductRecord(Product):
    id: str = Field(..., alias="_id")
    variants: List[VariantRecord] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field(alias="totalStock")
    @property
    def total_stock(self) -> int:
        return total_stock(self.variants)

    @computed_field(alias="hasStock")
    @property
    def has_stock(self) -> bool:
        return has_stock(self.variants)

    def effective_price(self, sku: str) -> float:
        """Price of the variant with this SKU: base price plus its modifier."""
        for variant in self.variants:
            if variant.sku == sku:
                return effective_price(self.base_price, variant)
        raise KeyError(sku)


class CategoryPriceStats(CatalogModel):
    category: str = Field(..., alias="_id")
    avg_price: float
    product_count: int


class StockSummary(CatalogModel):
    """A product with its total stock and only the variants that are in stock."""
    id: str = Field(..., alias="_id")
    name: str
    category: str
    total_stock: int
    variants: List[VariantRecord] = Field(default_factory=list)


class StockUpdate(BaseModel):
    stock: int
