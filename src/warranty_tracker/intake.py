"""Document intake validation."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from typing import TYPE_CHECKING

from warranty_tracker.errors import IntakeRejected
from warranty_tracker.models import InvoiceDocument

if TYPE_CHECKING:
    from pathlib import Path

MAX_DOCUMENT_BYTES = 10 * 1024 * 1024

ACCEPTED_MEDIA_TYPES = frozenset(
    {
        "application/pdf",
        "image/jpeg",
        "image/png",
        # Some browsers and OSes still report this non-standard alias
        "image/jpg",
    }
)

UNSUPPORTED_TYPE_REASON = "Please upload a PDF, JPG, or PNG file"
TOO_LARGE_REASON = "File size must be less than 10MB"


@dataclass(frozen=True)
class IntakeDecision:
    """Outcome of validating a candidate document."""

    accepted: bool
    reason: str | None = None


def validate_document(media_type: str, size: int) -> IntakeDecision:
    """Accept or reject a document by declared media type and byte length.

    The size limit is inclusive: exactly MAX_DOCUMENT_BYTES is accepted.
    """
    if media_type.strip().lower() not in ACCEPTED_MEDIA_TYPES:
        return IntakeDecision(accepted=False, reason=UNSUPPORTED_TYPE_REASON)
    if size > MAX_DOCUMENT_BYTES:
        return IntakeDecision(accepted=False, reason=TOO_LARGE_REASON)
    return IntakeDecision(accepted=True)


def ensure_acceptable(document: InvoiceDocument) -> None:
    """Raise IntakeRejected if the document may not enter the pipeline."""
    decision = validate_document(document.media_type, document.size)
    if not decision.accepted:
        raise IntakeRejected(decision.reason or UNSUPPORTED_TYPE_REASON)


def load_document(path: Path) -> InvoiceDocument:
    """Read a file from disk into an InvoiceDocument.

    The media type is guessed from the file extension; unknown
    extensions get application/octet-stream and are rejected at intake.
    """
    media_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return InvoiceDocument(
        filename=path.name,
        media_type=media_type,
        data=path.read_bytes(),
    )
