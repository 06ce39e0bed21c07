"""The product catalog: the only writer-owned record set."""

from __future__ import annotations

import logging
import threading
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from pydantic import TypeAdapter, ValidationError

from warranty_tracker.errors import ProductNotFoundError
from warranty_tracker.models import Product

if TYPE_CHECKING:
    from collections.abc import Iterable

    from warranty_tracker.models import (
        ExtractedInvoiceDetails,
        IngestionResult,
        WarrantyStatus,
    )
    from warranty_tracker.store import KeyValueStore

logger = logging.getLogger(__name__)

CATALOG_KEY = "warranty_products"

_PRODUCTS = TypeAdapter(list[Product])


class ProductCatalog:
    """Append-only set of products, persisted on every add.

    Use ProductCatalog.open() to load from a store at startup and
    close() to flush on shutdown.
    """

    def __init__(self, store: KeyValueStore, products: Iterable[Product] = ()) -> None:
        self.store = store
        self._products: list[Product] = list(products)
        self._lock = threading.Lock()

    @classmethod
    def open(cls, store: KeyValueStore) -> ProductCatalog:
        """Load the catalog from store, starting empty if the stored value is unusable."""
        return cls(store, _load_products(store))

    def add(
        self,
        details: ExtractedInvoiceDetails,
        status: WarrantyStatus,
        *,
        asset_ids: Iterable[str] = (),
    ) -> Product:
        """Create a product with a fresh identity and persist it before returning."""
        product = Product(
            id=uuid4(),
            invoice_details=details,
            warranty_status=status,
            asset_ids=tuple(asset_ids),
            created_at=datetime.now(tz=UTC),
        )
        with self._lock:
            self._flush([*self._products, product])
            self._products.append(product)
        logger.info(
            "Added product %s (%s %s)",
            product.id,
            details.brand,
            details.product_name,
        )
        return product

    def add_result(self, result: IngestionResult) -> Product:
        """Commit a completed ingestion result."""
        return self.add(result.details, result.status, asset_ids=result.asset_ids)

    def list(self) -> tuple[Product, ...]:
        """Return every product in insertion order."""
        with self._lock:
            return tuple(self._products)

    def find(self, product_id: UUID | str) -> Product:
        """Return the product with the given id or raise ProductNotFoundError."""
        try:
            wanted = product_id if isinstance(product_id, UUID) else UUID(str(product_id))
        except ValueError:
            raise ProductNotFoundError(product_id) from None
        with self._lock:
            for product in self._products:
                if product.id == wanted:
                    return product
        raise ProductNotFoundError(product_id)

    def close(self) -> None:
        """Flush the catalog to its store."""
        with self._lock:
            self._flush(self._products)

    def __len__(self) -> int:
        with self._lock:
            return len(self._products)

    def _flush(self, products: list[Product]) -> None:
        self.store.save(CATALOG_KEY, _PRODUCTS.dump_json(products).decode("utf-8"))


def _load_products(store: KeyValueStore) -> list[Product]:
    try:
        raw = store.load(CATALOG_KEY)
    except Exception:
        logger.warning("Could not read stored products; starting empty", exc_info=True)
        return []
    if not raw:
        return []
    try:
        return _PRODUCTS.validate_json(raw)
    except ValidationError:
        logger.warning("Stored products are corrupt; starting empty", exc_info=True)
        return []
