"""Protocols for the external extraction and drafting capabilities."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from warranty_tracker.models import (
        ClaimDraft,
        ClaimRequest,
        ExtractedInvoiceDetails,
        InvoiceDocument,
    )


@runtime_checkable
class ExtractionGateway(Protocol):
    """Protocol for document-intelligence backends.

    Both calls signal failure by raising; any exception is treated as a
    failed stage by the ingestion pipeline.
    """

    async def upload(self, document: InvoiceDocument) -> list[str]: ...

    async def extract(self, asset_ids: list[str]) -> ExtractedInvoiceDetails: ...


@runtime_checkable
class ClaimDraftGateway(Protocol):
    """Protocol for claim-email drafting backends."""

    async def draft(self, request: ClaimRequest) -> ClaimDraft: ...
