"""Claim-draft-to-PDF rendering."""

from __future__ import annotations

import html
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from warranty_tracker.models import ClaimDraft

logger = logging.getLogger(__name__)

CLAIM_TEMPLATE = """\
<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<style>
  body {{ font-family: sans-serif; font-size: 12px; margin: 2em; }}
  .header {{ border-bottom: 1px solid #ccc; padding-bottom: 1em; margin-bottom: 1em; }}
  .header p {{ margin: 0.2em 0; }}
  pre {{ white-space: pre-wrap; word-wrap: break-word; font-family: inherit; }}
  .attachments {{ border-top: 1px solid #ccc; margin-top: 1em; padding-top: 1em; }}
</style>
</head>
<body>
<div class="header">
  <p><strong>To:</strong> {recipient}</p>
  <p><strong>Subject:</strong> {subject}</p>
  <p><strong>Product:</strong> {product}</p>
  <p><strong>Invoice:</strong> {invoice_id}</p>
</div>
<pre>{body}</pre>
<div class="attachments">
  <p><strong>Attachments required:</strong></p>
  <ul>
{attachments}
  </ul>
</div>
</body>
</html>
"""


def render_claim_pdf(draft: ClaimDraft) -> bytes:
    """Render a claim draft to PDF bytes."""
    return _html_to_pdf_bytes(render_claim_html(draft))


def render_claim_html(draft: ClaimDraft) -> str:
    """Fill the claim template with escaped draft content."""
    details = draft.product_details
    product = " ".join(p for p in (details.brand, details.product_name) if p)
    attachments = "\n".join(
        f"    <li>{html.escape(item)}</li>" for item in draft.attachments_required
    ) or "    <li>(none)</li>"
    return CLAIM_TEMPLATE.format(
        recipient=html.escape(draft.recipient_email or "(no recipient)"),
        subject=html.escape(draft.subject_line),
        product=html.escape(product or "(unknown product)"),
        invoice_id=html.escape(details.invoice_id or "(unknown)"),
        body=html.escape(draft.email_body or "(no body content)"),
        attachments=attachments,
    )


def _html_to_pdf_bytes(html_content: str) -> bytes:
    """Convert HTML string to PDF bytes via weasyprint."""
    import weasyprint

    logger.debug("Rendering %d characters of HTML to PDF", len(html_content))
    doc = weasyprint.HTML(string=html_content)
    return doc.write_pdf()  # type: ignore[no-any-return]
