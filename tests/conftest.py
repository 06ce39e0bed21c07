"""Shared test fixtures."""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from warranty_tracker.models import (
    Confidence,
    ExtractedInvoiceDetails,
    FieldConfidence,
    InvoiceDocument,
    Product,
    WarrantyState,
    WarrantyStatus,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


@pytest.fixture
def data_root(tmp_path: Path) -> Path:
    """Provide a temporary directory as the data root."""
    root = tmp_path / "data"
    root.mkdir()
    return root


@pytest.fixture
def sample_document() -> InvoiceDocument:
    """Provide a small, acceptable PDF invoice."""
    return InvoiceDocument(
        filename="Samsung TV Invoice.pdf",
        media_type="application/pdf",
        data=b"%PDF-1.4 fake invoice",
    )


@pytest.fixture
def sample_details() -> ExtractedInvoiceDetails:
    """Provide extracted details for a product with a 12 month warranty."""
    return ExtractedInvoiceDetails(
        brand="Samsung",
        product_name="QLED 55",
        purchase_date=date(2024, 1, 1),
        invoice_id="INV-1001",
        retailer="Best Buy",
        warranty_period="12 months",
        confidence_scores=FieldConfidence(
            brand=Confidence.HIGH,
            product_name=Confidence.HIGH,
            purchase_date=Confidence.HIGH,
            invoice_id=Confidence.MEDIUM,
            retailer=Confidence.HIGH,
            warranty_period=Confidence.LOW,
        ),
    )


@pytest.fixture
def make_product() -> Callable[..., Product]:
    """Factory for catalog products with a given status."""

    def _make(
        state: WarrantyState,
        days_until_expiry: int = 0,
        *,
        brand: str = "Acme",
        purchase_date: date | None = date(2024, 1, 1),
        warranty_period: str | None = "12 months",
    ) -> Product:
        return Product(
            id=uuid4(),
            invoice_details=ExtractedInvoiceDetails(
                brand=brand,
                product_name="Widget",
                purchase_date=purchase_date,
                invoice_id="INV-1",
                retailer="Shop",
                warranty_period=warranty_period,
            ),
            warranty_status=WarrantyStatus(
                state=state, days_until_expiry=days_until_expiry
            ),
            created_at=datetime(2024, 1, 2, tzinfo=UTC),
        )

    return _make
