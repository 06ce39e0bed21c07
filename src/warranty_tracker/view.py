"""Sorted, filtered projections of the catalog for presentation."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from warranty_tracker.classifier import classify
from warranty_tracker.models import WarrantyState

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date

    from warranty_tracker.config import AlertPreferences
    from warranty_tracker.models import Product, WarrantyStatus


class CatalogFilter(str, Enum):
    ALL = "all"
    EXPIRING_SOON = "expiring_soon"
    EXPIRED = "expired"
    MANUAL = "manual"


_FILTER_STATES = {
    CatalogFilter.EXPIRING_SOON: WarrantyState.EXPIRING_SOON,
    CatalogFilter.EXPIRED: WarrantyState.EXPIRED,
    CatalogFilter.MANUAL: WarrantyState.UNKNOWN,
}


def filter_products(
    products: Iterable[Product], catalog_filter: CatalogFilter
) -> list[Product]:
    """Keep the products matching a filter tab, preserving order."""
    wanted = _FILTER_STATES.get(catalog_filter)
    if wanted is None:
        return list(products)
    return [p for p in products if p.warranty_status.state is wanted]


def sort_products(products: Iterable[Product]) -> list[Product]:
    """Order by urgency, then by days remaining.

    Python's sort is stable, so ties keep catalog insertion order.
    """
    return sorted(
        products,
        key=lambda p: (
            p.warranty_status.state.severity,
            p.warranty_status.days_until_expiry,
        ),
    )


def refresh_status(
    product: Product,
    reference_date: date,
    preferences: AlertPreferences | None = None,
) -> Product:
    """Return a copy of product with its status recomputed for reference_date."""
    details = product.invoice_details
    status = classify(
        details.purchase_date,
        details.warranty_period,
        reference_date,
        preferences=preferences,
    )
    return product.model_copy(update={"warranty_status": status})


def catalog_view(
    products: Iterable[Product],
    catalog_filter: CatalogFilter = CatalogFilter.ALL,
    *,
    reference_date: date | None = None,
    preferences: AlertPreferences | None = None,
) -> list[Product]:
    """Project the catalog for display.

    With a reference_date, statuses are recomputed from each product's
    purchase date and warranty period instead of trusting the snapshot
    taken at ingestion.
    """
    items = list(products)
    if reference_date is not None:
        items = [refresh_status(p, reference_date, preferences) for p in items]
    return sort_products(filter_products(items, catalog_filter))


def describe_days(status: WarrantyStatus) -> str:
    """Human-readable time left on a warranty."""
    if status.state is WarrantyState.UNKNOWN:
        return "No warranty information"
    days = status.days_until_expiry
    if days > 0:
        return f"{days} days remaining"
    if days == 0:
        return "Expires today"
    return f"Expired {abs(days)} days ago"
