"""
Catalog store: the product collection and the canonical queries over it.

A CatalogStore is an explicit handle around one MongoClient. Build it once
(`CatalogStore.connect()` or with an existing client), share it, and close it.
Filtering, grouping and stock totals run in MongoDB; record totalStock/hasStock
are derived on read.
"""
import logging
import re
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import ValidationError as SchemaValidationError
from pymongo import ASCENDING, MongoClient
from pymongo.errors import BulkWriteError, ConnectionFailure, ExecutionTimeout

from config import DatabaseSettings
from database import create_client
from errors import NotFoundError, StorageUnavailableError, ValidationError
from schemas import (
    CATEGORIES,
    Category,
    CategoryPriceStats,
    Product,
    ProductRecord,
    StockSummary,
)

logger = logging.getLogger(__name__)

COLLECTION = "product"

# Server error codes reported in BulkWriteError.details["writeErrors"]
DUPLICATE_KEY = 11000
DOCUMENT_VALIDATION_FAILURE = 121

ProductInput = Union[Product, Mapping[str, Any]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@contextmanager
def _storage_errors(operation: str):
    try:
        yield
    except (ConnectionFailure, ExecutionTimeout) as e:
        logger.error("Database unavailable during %s: %s", operation, e)
        raise StorageUnavailableError(f"Database unavailable during {operation}") from e


# ---------- Helpers ----------

def _object_id(product_id: str) -> ObjectId:
    try:
        return ObjectId(product_id)
    except (InvalidId, TypeError):
        raise ValidationError("id", f"{product_id!r} is not a valid product id")


def _schema_error(exc: SchemaValidationError, record: Optional[int] = None) -> ValidationError:
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first["loc"]) or "record"
    return ValidationError(field, first["msg"], record=record)


def _write_error(exc: BulkWriteError) -> Optional[ValidationError]:
    """Translate the first rejected document of a bulk insert; None if it is not a data error."""
    errors = exc.details.get("writeErrors") or [{}]
    first = errors[0]
    if first.get("code") == DUPLICATE_KEY:
        return ValidationError("variants.sku", "SKU already exists", record=first.get("index"))
    if first.get("code") == DOCUMENT_VALIDATION_FAILURE:
        return ValidationError("record", first.get("errmsg", "document failed validation"),
                               record=first.get("index"))
    return None


def _stringify_ids(doc: Dict[str, Any]) -> Dict[str, Any]:
    doc = dict(doc)
    doc["_id"] = str(doc["_id"])
    if "variants" in doc:
        doc["variants"] = [dict(v, _id=str(v["_id"])) for v in doc["variants"]]
    return doc


def _record(doc: Dict[str, Any]) -> ProductRecord:
    return ProductRecord.model_validate(_stringify_ids(doc))


class CatalogStore:
    def __init__(
        self,
        client: MongoClient,
        database_name: str,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._client = client
        self._collection = client[database_name][COLLECTION]
        self._clock = clock

    @classmethod
    def connect(cls, settings: Optional[DatabaseSettings] = None) -> "CatalogStore":
        settings = settings or DatabaseSettings()
        logger.info("Connecting to MongoDB database %s", settings.name)
        return cls(create_client(settings), settings.name)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "CatalogStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def ensure_indexes(self) -> None:
        with _storage_errors("ensure_indexes"):
            self._collection.create_index([("category", ASCENDING), ("brand", ASCENDING)])
            self._collection.create_index("variants.stock")
            self._collection.create_index("tags")
            # Products without variants carry no SKU, hence sparse
            self._collection.create_index("variants.sku", unique=True, sparse=True)

    # ---------- Writes ----------

    def _validate(self, products: Iterable[ProductInput]) -> List[Product]:
        validated = []
        for index, raw in enumerate(products):
            data = raw.model_dump(by_alias=True) if isinstance(raw, Product) else raw
            try:
                validated.append(Product.model_validate(data))
            except SchemaValidationError as e:
                raise _schema_error(e, record=index) from e
        return validated

    @staticmethod
    def _batch_skus(products: List[Product]) -> Dict[str, int]:
        """Map every SKU in the batch to its record index; duplicates are rejected."""
        seen: Dict[str, int] = {}
        for index, product in enumerate(products):
            for variant in product.variants:
                if variant.sku in seen:
                    raise ValidationError(
                        "variants.sku", f"duplicate SKU {variant.sku!r}", record=index
                    )
                seen[variant.sku] = index
        return seen

    def _check_stored_skus(self, skus: Dict[str, int]) -> None:
        if not skus:
            return
        existing = self._collection.find_one({"variants.sku": {"$in": list(skus)}}, {"variants": 1})
        if existing is None:
            return
        taken = sorted({v["sku"] for v in existing["variants"]} & skus.keys())
        raise ValidationError("variants.sku", f"SKU {taken[0]!r} already exists", record=skus[taken[0]])

    def _to_document(self, product: Product, now: datetime) -> Dict[str, Any]:
        doc = product.model_dump(by_alias=True)
        doc["_id"] = ObjectId()
        for variant in doc["variants"]:
            variant["_id"] = ObjectId()
        doc["createdAt"] = now
        doc["updatedAt"] = now
        return doc

    def insert(self, products: Iterable[ProductInput]) -> List[ProductRecord]:
        """
        Validate and store a batch of products.

        The first invalid record aborts the whole batch; nothing is written.
        """
        validated = self._validate(products)
        skus = self._batch_skus(validated)
        if not validated:
            return []

        with _storage_errors("insert"):
            self._check_stored_skus(skus)
            now = self._clock()
            documents = [self._to_document(p, now) for p in validated]
            try:
                self._collection.insert_many(documents, ordered=True)
            except BulkWriteError as e:
                # Undo the part of the batch that got written
                self._collection.delete_many({"_id": {"$in": [d["_id"] for d in documents]}})
                error = _write_error(e)
                if error is None:
                    raise
                raise error from e

        logger.info("Inserted %d products", len(documents))
        return [_record(d) for d in documents]

    def replace_all(self, products: Iterable[ProductInput]) -> List[ProductRecord]:
        """Delete every product, then insert the batch."""
        validated = self._validate(products)
        self._batch_skus(validated)
        with _storage_errors("replace_all"):
            deleted = self._collection.delete_many({}).deleted_count
        logger.info("Cleared %d products", deleted)
        return self.insert(validated)

    def update_variant_stock(self, sku: str, new_stock: int) -> ProductRecord:
        """Set one variant's stock in place, addressed by SKU; siblings are untouched."""
        if isinstance(new_stock, bool) or not isinstance(new_stock, int):
            raise ValidationError("stock", "Stock must be an integer")
        if new_stock < 0:
            raise ValidationError("stock", "Stock cannot be negative")

        with _storage_errors("update_variant_stock"):
            result = self._collection.update_one(
                {"variants.sku": sku},
                {"$set": {"variants.$.stock": new_stock, "updatedAt": self._clock()}},
            )
            if result.matched_count == 0:
                raise NotFoundError(f"No variant with SKU {sku}", resource="Variant")
            doc = self._collection.find_one({"variants.sku": sku})

        if doc is None:
            raise NotFoundError(f"No variant with SKU {sku}", resource="Variant")
        logger.info("Stock for %s set to %d", sku, new_stock)
        return _record(doc)

    def delete(self, product_id: str) -> None:
        oid = _object_id(product_id)
        with _storage_errors("delete"):
            result = self._collection.delete_one({"_id": oid})
        if result.deleted_count == 0:
            raise NotFoundError(f"Product {product_id} not found")
        logger.info("Deleted product %s", product_id)

    # ---------- Reads ----------

    def _find(self, query: Dict[str, Any]) -> Iterator[ProductRecord]:
        with _storage_errors("find"):
            for doc in self._collection.find(query):
                yield _record(doc)

    def find_all(self) -> Iterator[ProductRecord]:
        return self._find({})

    def find_by_id(self, product_id: str) -> ProductRecord:
        oid = _object_id(product_id)
        with _storage_errors("find_by_id"):
            doc = self._collection.find_one({"_id": oid})
        if doc is None:
            raise NotFoundError(f"Product {product_id} not found")
        return _record(doc)

    def find_by_category(self, category: str, active_only: bool = True) -> List[ProductRecord]:
        if category not in CATEGORIES:
            raise ValidationError("category", f"{category} is not a valid category")
        query: Dict[str, Any] = {"category": Category(category).value}
        if active_only:
            query["isActive"] = True
        return list(self._find(query))

    def count(self) -> int:
        with _storage_errors("count"):
            return self._collection.count_documents({})

    def find_low_stock(self, threshold: float = 5) -> List[ProductRecord]:
        # Any single variant at or below the threshold qualifies the product
        return list(self._find({"variants.stock": {"$lte": threshold}, "isActive": True}))

    def find_by_sku_prefix(self, prefix: str) -> List[ProductRecord]:
        return list(self._find({
            "variants.sku": {"$regex": "^" + re.escape(prefix)},
            "isActive": True,
        }))

    def find_by_variant_color(self, color: str, in_stock: bool = True) -> List[ProductRecord]:
        """Active products with a variant whose color contains `color`, ignoring case."""
        match: Dict[str, Any] = {"color": {"$regex": re.escape(color), "$options": "i"}}
        if in_stock:
            match["stock"] = {"$gt": 0}
        return list(self._find({"variants": {"$elemMatch": match}, "isActive": True}))

    # ---------- Aggregates ----------

    def aggregate_average_price_by_category(self) -> List[CategoryPriceStats]:
        pipeline = [
            {"$group": {
                "_id": "$category",
                "avgPrice": {"$avg": "$basePrice"},
                "productCount": {"$sum": 1},
            }},
            {"$sort": {"avgPrice": -1}},
        ]
        with _storage_errors("aggregate_average_price_by_category"):
            return [CategoryPriceStats.model_validate(row) for row in self._collection.aggregate(pipeline)]

    def aggregate_high_total_stock(self, min_total: int = 50) -> List[StockSummary]:
        """Products whose stock summed over all variants exceeds `min_total`."""
        pipeline = [
            {"$addFields": {"totalStock": {"$sum": "$variants.stock"}}},
            {"$match": {"totalStock": {"$gt": min_total}}},
            {"$project": {
                "name": 1,
                "category": 1,
                "totalStock": 1,
                # Only the variants that are in stock
                "variants": {"$filter": {
                    "input": "$variants",
                    "as": "variant",
                    "cond": {"$gt": ["$$variant.stock", 0]},
                }},
            }},
        ]
        with _storage_errors("aggregate_high_total_stock"):
            return [
                StockSummary.model_validate(_stringify_ids(row))
                for row in self._collection.aggregate(pipeline)
            ]
