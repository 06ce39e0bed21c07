"""Three-stage invoice ingestion pipeline.

A run moves IDLE -> UPLOADING -> PARSING -> CLASSIFYING -> COMPLETE, or
to ERROR from any active stage. Only one document is in flight per
pipeline; a retry always starts again from UPLOADING.
"""

from __future__ import annotations

import logging
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING

from warranty_tracker.classifier import classify
from warranty_tracker.errors import (
    ClassifyFailed,
    ParseFailed,
    PipelineBusyError,
    PipelineError,
    UploadFailed,
)
from warranty_tracker.intake import ensure_acceptable
from warranty_tracker.models import IngestionResult

if TYPE_CHECKING:
    from collections.abc import Callable

    from warranty_tracker.config import AlertPreferences
    from warranty_tracker.gateways.base import ExtractionGateway
    from warranty_tracker.models import (
        ExtractedInvoiceDetails,
        InvoiceDocument,
        WarrantyStatus,
    )

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    PARSING = "parsing"
    CLASSIFYING = "classifying"
    COMPLETE = "complete"
    ERROR = "error"


_STAGE_MESSAGES = {
    PipelineStage.IDLE: "",
    PipelineStage.UPLOADING: "Uploading invoice...",
    PipelineStage.PARSING: "Parsing invoice details...",
    PipelineStage.CLASSIFYING: "Calculating warranty status...",
    PipelineStage.COMPLETE: "Invoice processed successfully!",
}


class IngestionPipeline:
    """Turn an invoice document into extracted details plus a warranty status.

    The pipeline never writes to the catalog; committing a COMPLETE result
    is up to the caller.
    """

    def __init__(
        self,
        gateway: ExtractionGateway,
        *,
        today: Callable[[], date] = date.today,
        preferences: AlertPreferences | None = None,
    ) -> None:
        self.gateway = gateway
        self._today = today
        self._preferences = preferences
        self.state = PipelineStage.IDLE
        self.message = ""
        self.document: InvoiceDocument | None = None
        self.result: IngestionResult | None = None
        self.error: PipelineError | None = None

    async def run(self, document: InvoiceDocument) -> IngestionResult:
        """Process a document through every stage.

        Raises IntakeRejected before any state change if the document is
        unacceptable, PipelineBusyError if a run is already under way or
        unfinished, and a PipelineError subclass if a stage fails.
        """
        if self.state is not PipelineStage.IDLE:
            msg = f"Pipeline is {self.state.value}; reset it before submitting another document"
            raise PipelineBusyError(msg)
        ensure_acceptable(document)

        self.document = document
        self.result = None
        self.error = None

        self._enter(PipelineStage.UPLOADING)
        try:
            asset_ids = await self.gateway.upload(document)
        except Exception as exc:
            raise self._fail(UploadFailed(_describe(exc, "Upload failed"))) from exc

        self._enter(PipelineStage.PARSING)
        try:
            details = await self.gateway.extract(asset_ids)
        except Exception as exc:
            raise self._fail(ParseFailed(_describe(exc, "Failed to parse invoice"))) from exc

        self._enter(PipelineStage.CLASSIFYING)
        try:
            status = self._classify(details)
        except Exception as exc:
            cause = _describe(exc, "Failed to calculate warranty status")
            raise self._fail(ClassifyFailed(cause)) from exc

        self.result = IngestionResult(details=details, status=status, asset_ids=asset_ids)
        self._enter(PipelineStage.COMPLETE)
        return self.result

    async def retry(self) -> IngestionResult:
        """Restart a failed run from the first stage with the same document."""
        if self.state is not PipelineStage.ERROR or self.document is None:
            msg = f"Nothing to retry; pipeline is {self.state.value}"
            raise PipelineBusyError(msg)
        document = self.document
        logger.info("Retrying ingestion of %s from the first stage", document.filename)
        self.reset()
        return await self.run(document)

    def reset(self) -> None:
        """Return to IDLE, discarding the document, result and error."""
        self.document = None
        self.result = None
        self.error = None
        self._enter(PipelineStage.IDLE)

    def _classify(self, details: ExtractedInvoiceDetails) -> WarrantyStatus:
        return classify(
            details.purchase_date,
            details.warranty_period,
            self._today(),
            preferences=self._preferences,
        )

    def _enter(self, stage: PipelineStage) -> None:
        self.state = stage
        self.message = _STAGE_MESSAGES.get(stage, "")
        if stage is not PipelineStage.IDLE:
            logger.info("Ingestion stage: %s", stage.value)

    def _fail(self, error: PipelineError) -> PipelineError:
        logger.warning("Ingestion %s", error, exc_info=True)
        self.error = error
        self.state = PipelineStage.ERROR
        self.message = error.cause
        return error


def _describe(exc: BaseException, fallback: str) -> str:
    return str(exc) or fallback
