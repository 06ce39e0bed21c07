"""Domain and extraction models for warranty tracking."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


@dataclass
class InvoiceDocument:
    """A purchase invoice submitted for ingestion."""

    filename: str
    media_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class Confidence(str, Enum):
    """How sure the extractor is about a single field."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class FieldConfidence(BaseModel):
    """Per-field confidence levels reported alongside extracted details."""

    model_config = ConfigDict(frozen=True)

    brand: Confidence = Confidence.MEDIUM
    product_name: Confidence = Confidence.MEDIUM
    purchase_date: Confidence = Confidence.MEDIUM
    invoice_id: Confidence = Confidence.MEDIUM
    retailer: Confidence = Confidence.MEDIUM
    warranty_period: Confidence = Confidence.MEDIUM


class ExtractedInvoiceDetails(BaseModel):
    """Structured purchase data extracted from an invoice by the LLM."""

    model_config = ConfigDict(frozen=True)

    brand: str = ""
    product_name: str = ""
    purchase_date: date | None = None
    invoice_id: str = ""
    retailer: str = ""
    warranty_period: str | None = Field(
        default=None,
        description='Warranty duration as written, e.g. "12 months" or "2 years"',
    )
    confidence_scores: FieldConfidence = Field(default_factory=FieldConfidence)


class WarrantyState(str, Enum):
    """Classification of a warranty relative to a reference date."""

    ACTIVE = "ACTIVE"
    EXPIRING_SOON = "EXPIRING_SOON"
    EXPIRED = "EXPIRED"
    UNKNOWN = "UNKNOWN"

    @property
    def color(self) -> str:
        return _STATE_COLORS[self]

    @property
    def label(self) -> str:
        return _STATE_LABELS[self]

    @property
    def severity(self) -> int:
        """Sort rank: most urgent first."""
        return _STATE_SEVERITY[self]


_STATE_COLORS = {
    WarrantyState.ACTIVE: "green",
    WarrantyState.EXPIRING_SOON: "yellow",
    WarrantyState.EXPIRED: "red",
    WarrantyState.UNKNOWN: "grey",
}

_STATE_LABELS = {
    WarrantyState.ACTIVE: "Active",
    WarrantyState.EXPIRING_SOON: "Expiring Soon",
    WarrantyState.EXPIRED: "Expired",
    WarrantyState.UNKNOWN: "No Warranty",
}

_STATE_SEVERITY = {
    WarrantyState.EXPIRED: 0,
    WarrantyState.EXPIRING_SOON: 1,
    WarrantyState.ACTIVE: 2,
    WarrantyState.UNKNOWN: 3,
}


class WarrantyStatus(BaseModel):
    """Point-in-time warranty classification for one product."""

    model_config = ConfigDict(frozen=True)

    state: WarrantyState
    days_until_expiry: int = 0
    expiry_date: date | None = None
    alert_schedule: tuple[date, ...] = ()

    @property
    def is_claimable(self) -> bool:
        """Whether a warranty claim can be drafted for this status."""
        return self.state in (WarrantyState.EXPIRING_SOON, WarrantyState.EXPIRED)


class Product(BaseModel):
    """Full product record as stored in the catalog."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    invoice_details: ExtractedInvoiceDetails
    warranty_status: WarrantyStatus
    asset_ids: tuple[str, ...] = ()
    created_at: datetime


class IngestionResult(BaseModel):
    """Output of a completed pipeline run, not yet committed to the catalog."""

    model_config = ConfigDict(frozen=True)

    details: ExtractedInvoiceDetails
    status: WarrantyStatus
    asset_ids: tuple[str, ...] = ()


class ClaimRequest(BaseModel):
    """Product and issue summary sent to the claim-drafting capability."""

    brand: str
    product_name: str
    purchase_date: date | None
    invoice_id: str
    retailer: str
    issue_description: str = ""

    @classmethod
    def for_product(cls, product: Product, issue_description: str = "") -> ClaimRequest:
        details = product.invoice_details
        return cls(
            brand=details.brand,
            product_name=details.product_name,
            purchase_date=details.purchase_date,
            invoice_id=details.invoice_id,
            retailer=details.retailer,
            issue_description=issue_description,
        )


class ClaimProductDetails(BaseModel):
    """Product facts echoed back in a claim draft."""

    brand: str = ""
    product_name: str = ""
    invoice_id: str = ""
    issue_description: str = ""


class ClaimDraft(BaseModel):
    """A proposed warranty-claim email, editable before it is sent or saved."""

    recipient_email: str = ""
    subject_line: str = ""
    email_body: str = ""
    attachments_required: list[str] = Field(default_factory=list)
    product_details: ClaimProductDetails = Field(default_factory=ClaimProductDetails)
