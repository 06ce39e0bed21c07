"""Exception hierarchy for warranty tracking."""

from __future__ import annotations


class WarrantyTrackerError(Exception):
    """Base class for all domain errors."""


class IntakeRejected(WarrantyTrackerError):
    """A document failed type or size validation before ingestion."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class PipelineError(WarrantyTrackerError):
    """A pipeline stage failed; the run is terminal until retried."""

    stage = "pipeline"

    def __init__(self, cause: str) -> None:
        super().__init__(cause)
        self.cause = cause

    def __str__(self) -> str:
        return f"{self.stage} failed: {self.cause}"


class UploadFailed(PipelineError):
    stage = "upload"


class ParseFailed(PipelineError):
    stage = "parse"


class ClassifyFailed(PipelineError):
    stage = "classify"


class PipelineBusyError(WarrantyTrackerError):
    """A document was submitted while another run is not yet finished."""


class DraftGenerationFailed(WarrantyTrackerError):
    """The claim-drafting capability did not produce a draft."""


class ClaimDraftInvalid(WarrantyTrackerError):
    """An edited claim draft is not ready to be sent or saved."""


class StorageUnavailable(WarrantyTrackerError):
    """The configured catalog store could not be reached."""


class ProductNotFoundError(WarrantyTrackerError, KeyError):
    """No product with the given identity exists in the catalog."""

    def __init__(self, product_id: object) -> None:
        super().__init__(f"No product with id {product_id}")
        self.product_id = product_id

    def __str__(self) -> str:
        return str(self.args[0])
