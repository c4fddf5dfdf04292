import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from catalog import CatalogStore
from config import ServiceSettings
from errors import CatalogError, NotFoundError, StorageUnavailableError, ValidationError
from schemas import StockUpdate
from seed import seed_catalog

settings = ServiceSettings()

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = CatalogStore.connect()
    try:
        try:
            store.ensure_indexes()
        except StorageUnavailableError:
            logger.warning("Could not ensure indexes, database unreachable at startup")
        app.state.store = store
        yield
    finally:
        store.close()


app = FastAPI(title="E-commerce Catalog API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------- Helpers ----------

def get_store(request: Request) -> CatalogStore:
    return request.app.state.store


def dump(item: Any) -> Any:
    if isinstance(item, BaseModel):
        return item.model_dump(by_alias=True, mode="json")
    return item


def envelope(data: Any, **extra: Any) -> dict:
    body = {"success": True}
    if isinstance(data, list):
        body["count"] = len(data)
        data = [dump(it) for it in data]
    else:
        data = dump(data)
    body.update(extra)
    body["data"] = data
    return body

# ---------- Errors ----------

ERROR_STATUS = {
    ValidationError: (400, "Invalid request"),
    NotFoundError: (404, "Not found"),
    StorageUnavailableError: (503, "Database unavailable"),
}


def error_response(status_code: int, message: str, error: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "error": error},
    )


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    status_code, message = ERROR_STATUS.get(type(exc), (500, "Catalog error"))
    if isinstance(exc, NotFoundError):
        message = f"{exc.resource} not found"
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return error_response(status_code, message, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first["loc"] if part not in ("query", "path", "body"))
    return error_response(400, "Invalid request", f"{field or 'request'}: {first['msg']}")

# ---------- Index ----------

@app.get("/")
def root():
    return {
        "message": "E-commerce Catalog API",
        "endpoints": {
            "GET /api/products": "Get all products",
            "GET /api/products/category/{category}": "Get products by category",
            "GET /api/products/{product_id}": "Get product by ID",
            "GET /api/products/alert/low-stock": "Get low stock products",
            "GET /api/products/search/color": "Get products with in-stock variants of a color",
            "GET /api/products/search/sku": "Get products by SKU prefix",
            "GET /api/products/stats/category-prices": "Average price per category",
            "GET /api/products/stats/high-stock": "Products with high total stock",
            "PATCH /api/variants/{sku}/stock": "Set stock for one variant",
            "POST /api/seed": "Load the sample catalog",
        },
        "features": "Nested document structure with variants, stock management, and advanced queries",
    }

# ---------- Products ----------

@app.get("/api/products")
def list_products(store: CatalogStore = Depends(get_store)):
    return envelope(list(store.find_all()))


@app.get("/api/products/category/{category}")
def products_by_category(category: str, store: CatalogStore = Depends(get_store)):
    return envelope(store.find_by_category(category))


@app.get("/api/products/alert/low-stock")
def low_stock_products(
    threshold: int = 10,
    store: CatalogStore = Depends(get_store),
):
    return envelope(store.find_low_stock(threshold), threshold=threshold)


@app.get("/api/products/search/color")
def products_by_color(
    color: str = Query(..., min_length=1),
    in_stock: bool = True,
    store: CatalogStore = Depends(get_store),
):
    return envelope(store.find_by_variant_color(color, in_stock=in_stock))


@app.get("/api/products/search/sku")
def products_by_sku_prefix(
    prefix: str = Query(..., min_length=1),
    store: CatalogStore = Depends(get_store),
):
    return envelope(store.find_by_sku_prefix(prefix))


@app.get("/api/products/stats/category-prices")
def category_prices(store: CatalogStore = Depends(get_store)):
    return envelope(store.aggregate_average_price_by_category())


@app.get("/api/products/stats/high-stock")
def high_stock_products(
    min_total: int = 50,
    store: CatalogStore = Depends(get_store),
):
    return envelope(store.aggregate_high_total_stock(min_total), minTotal=min_total)


@app.get("/api/products/{product_id}")
def get_product(product_id: str, store: CatalogStore = Depends(get_store)):
    return envelope(store.find_by_id(product_id))

# ---------- Variants ----------

@app.patch("/api/variants/{sku}/stock")
def update_stock(sku: str, payload: StockUpdate, store: CatalogStore = Depends(get_store)):
    return envelope(store.update_variant_stock(sku, payload.stock))

# ---------- Seed Data ----------

class SeedRequest(BaseModel):
    force: bool = False


@app.post("/api/seed")
def seed(req: SeedRequest, store: CatalogStore = Depends(get_store)):
    # Only seed if empty or force=True
    if not req.force and store.count() > 0:
        return {"success": True, "message": "Already seeded"}
    return {"success": True, "seeded": seed_catalog(store)}


if __name__ == "__main__":
    import uvicorn
    port = settings.PORT
    uvicorn.run(app, host="0.0.0.0", port=port)
