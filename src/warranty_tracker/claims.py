"""Warranty claim drafting: LLM drafter and the editable claim session."""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic_ai import Agent

from warranty_tracker.config import get_anthropic_api_key, get_llm_model
from warranty_tracker.errors import ClaimDraftInvalid, DraftGenerationFailed
from warranty_tracker.models import ClaimDraft, ClaimRequest

if TYPE_CHECKING:
    from warranty_tracker.gateways.base import ClaimDraftGateway
    from warranty_tracker.models import Product

logger = logging.getLogger(__name__)

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

_SYSTEM_PROMPT = """\
You draft warranty claim emails on behalf of a consumer. Given the product, \
purchase and issue details, produce:

- recipient_email: The manufacturer's warranty or support address if you \
know it, otherwise leave it empty
- subject_line: A short subject naming the product and invoice id
- email_body: A polite, complete claim email in plain text, signed \
"[Your Name]"
- attachments_required: Documents the consumer should attach, always \
including the original invoice
- product_details: Echo brand, product_name, invoice_id and the issue \
description

Do not promise outcomes or cite legal terms you are unsure of.\
"""


def create_drafting_agent() -> Agent[None, ClaimDraft]:
    """Create a pydantic-ai Agent configured for claim drafting."""
    get_anthropic_api_key()

    model_name = get_llm_model()
    return Agent(
        f"anthropic:{model_name}",
        output_type=ClaimDraft,
        system_prompt=_SYSTEM_PROMPT,
    )


class PydanticAIClaimDrafter:
    """ClaimDraftGateway backed by a pydantic-ai agent."""

    def __init__(self, *, agent: Agent[None, ClaimDraft] | None = None) -> None:
        self._agent = agent

    async def draft(self, request: ClaimRequest) -> ClaimDraft:
        if self._agent is None:
            self._agent = create_drafting_agent()
        result: Any = await self._agent.run(_build_prompt(request))
        return result.output  # type: ignore[no-any-return]


def _build_prompt(request: ClaimRequest) -> str:
    """Build the user prompt from a claim request."""
    purchased = (
        request.purchase_date.isoformat() if request.purchase_date else "an unknown date"
    )
    parts = [
        f"Draft a warranty claim email for a {request.brand} {request.product_name} "
        f"purchased on {purchased} with invoice ID {request.invoice_id} "
        f"from {request.retailer}.",
    ]
    if request.issue_description.strip():
        parts.append(f"Issue: {request.issue_description.strip()}")
    else:
        parts.append("The product needs warranty service.")
    return "\n".join(parts)


class ClaimSessionState(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    READY = "ready"
    FAILED = "failed"
    CLOSED = "closed"


class ClaimSession:
    """One open claim flow: generate a draft once, let the user edit it.

    The draft belongs to the session and is discarded on close(),
    independent of the product it was derived from.
    """

    def __init__(self, gateway: ClaimDraftGateway) -> None:
        self.gateway = gateway
        self.state = ClaimSessionState.IDLE
        self.product: Product | None = None
        self.draft: ClaimDraft | None = None
        self.error: str | None = None

    async def open(self, product: Product, issue_description: str = "") -> ClaimDraft:
        """Request a draft for product. Failures are not retried."""
        if self.state is ClaimSessionState.GENERATING:
            msg = "A claim draft is already being generated"
            raise DraftGenerationFailed(msg)

        self.product = product
        self.draft = None
        self.error = None
        self.state = ClaimSessionState.GENERATING

        request = ClaimRequest.for_product(product, issue_description)
        try:
            draft = await self.gateway.draft(request)
        except Exception as exc:
            self.error = str(exc) or "Failed to generate claim draft"
            self.state = ClaimSessionState.FAILED
            logger.warning("Claim draft for %s failed", product.id, exc_info=True)
            raise DraftGenerationFailed(self.error) from exc

        self.draft = draft
        self.state = ClaimSessionState.READY
        return draft

    def edit(
        self,
        *,
        recipient_email: str | None = None,
        subject_line: str | None = None,
        email_body: str | None = None,
    ) -> ClaimDraft:
        """Apply user edits to the current draft."""
        draft = self._require_draft()
        changes: dict[str, str] = {}
        if recipient_email is not None:
            changes["recipient_email"] = recipient_email.strip()
        if subject_line is not None:
            changes["subject_line"] = subject_line
        if email_body is not None:
            changes["email_body"] = email_body
        self.draft = draft.model_copy(update=changes)
        return self.draft

    def finalize(self) -> ClaimDraft:
        """Return the edited draft once it is ready to be sent or saved."""
        draft = self._require_draft()
        problems = []
        if not _EMAIL_PATTERN.match(draft.recipient_email):
            problems.append("recipient must be an email address")
        if not draft.subject_line.strip():
            problems.append("subject must not be empty")
        if not draft.email_body.strip():
            problems.append("body must not be empty")
        if problems:
            raise ClaimDraftInvalid("; ".join(problems))
        return draft

    def close(self) -> None:
        """Discard the draft and end the session."""
        self.product = None
        self.draft = None
        self.error = None
        self.state = ClaimSessionState.CLOSED

    def _require_draft(self) -> ClaimDraft:
        if self.state is not ClaimSessionState.READY or self.draft is None:
            msg = f"No editable draft; claim session is {self.state.value}"
            raise ClaimDraftInvalid(msg)
        return self.draft
