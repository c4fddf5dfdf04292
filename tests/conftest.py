from datetime import datetime, timedelta

import mongomock
import pytest

from catalog import CatalogStore
from seed import SAMPLE_PRODUCTS


class TickingClock:
    """Each call is one minute after the previous one."""

    def __init__(self):
        self.now = datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self):
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def store(clock):
    catalog = CatalogStore(mongomock.MongoClient(), "ecommerce_test", clock=clock)
    yield catalog
    catalog.close()


@pytest.fixture
def seeded_store(store):
    store.replace_all(SAMPLE_PRODUCTS)
    return store


@pytest.fixture
def product_data():
    return {
        "name": "Yoga Mat",
        "description": "Non-slip mat",
        "basePrice": 35,
        "category": "Sports",
        "brand": "Zen",
        "variants": [
            {"color": "Purple", "size": "6mm", "stock": 3, "sku": "YOGA-PUR-6"},
        ],
    }
