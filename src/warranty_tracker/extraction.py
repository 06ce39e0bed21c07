"""LLM-based invoice extraction using pydantic-ai."""

from __future__ import annotations

import asyncio
import logging
import mimetypes
from datetime import date
from typing import TYPE_CHECKING, Any

from pydantic_ai import Agent, BinaryContent

from warranty_tracker.config import get_anthropic_api_key, get_llm_model
from warranty_tracker.models import ExtractedInvoiceDetails

if TYPE_CHECKING:
    from collections.abc import Callable

    from warranty_tracker.models import InvoiceDocument
    from warranty_tracker.store import DocumentStore

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = """\
You are an invoice parser for a product warranty tracker. Given one or more \
images or PDFs of a purchase invoice, extract the following fields:

- brand: The manufacturer brand of the purchased product (e.g. "Samsung")
- product_name: The product model or name, without the brand
- purchase_date: The purchase/invoice date (YYYY-MM-DD). Leave empty if absent.
- invoice_id: The invoice or order number as printed
- retailer: The store or seller that issued the invoice
- warranty_period: The manufacturer warranty duration as written, e.g. \
"12 months" or "2 years". Leave empty if the invoice does not state one.
- confidence_scores: HIGH, MEDIUM or LOW for each of the six fields above. \
Use LOW for any field you had to guess.

If the document contains several products, describe the most expensive one. \
Never invent a warranty period that is not printed on the invoice.\
"""


def create_extraction_agent() -> Agent[None, ExtractedInvoiceDetails]:
    """Create a pydantic-ai Agent configured for invoice extraction."""
    # Ensure API key is available (fail fast)
    get_anthropic_api_key()

    model_name = get_llm_model()
    return Agent(
        f"anthropic:{model_name}",
        output_type=ExtractedInvoiceDetails,
        system_prompt=_SYSTEM_PROMPT,
    )


class PydanticAIExtractionGateway:
    """ExtractionGateway that stores documents locally and parses them with an LLM.

    Accepts an optional agent for dependency injection in tests.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        agent: Agent[None, ExtractedInvoiceDetails] | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.store = store
        self._agent = agent
        self._today = today

    async def upload(self, document: InvoiceDocument) -> list[str]:
        """Persist the document and return its asset id."""
        asset_id = await asyncio.to_thread(self.store.save, document, self._today())
        logger.info("Stored %s as %s", document.filename, asset_id)
        return [asset_id]

    async def extract(self, asset_ids: list[str]) -> ExtractedInvoiceDetails:
        """Run the extraction agent over the stored documents."""
        if not asset_ids:
            msg = "No uploaded documents to parse"
            raise ValueError(msg)

        if self._agent is None:
            self._agent = create_extraction_agent()

        content: list[Any] = [_build_prompt(asset_ids)]
        for asset_id in asset_ids:
            data = await asyncio.to_thread(self.store.read, asset_id)
            content.append(BinaryContent(data=data, media_type=_media_type_for(asset_id)))

        result: Any = await self._agent.run(content)
        details: ExtractedInvoiceDetails = result.output
        if not _has_product_identity(details):
            msg = "No product details found in the invoice"
            raise ValueError(msg)
        return details


def _build_prompt(asset_ids: list[str]) -> str:
    """Build the user prompt that accompanies the document content."""
    names = ", ".join(asset_ids)
    return f"Extract invoice details from the uploaded file(s): {names}"


def _media_type_for(asset_id: str) -> str:
    return mimetypes.guess_type(asset_id)[0] or "application/pdf"


def _has_product_identity(details: ExtractedInvoiceDetails) -> bool:
    return bool(details.brand or details.product_name or details.invoice_id)
