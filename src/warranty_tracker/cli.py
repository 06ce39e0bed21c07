"""CLI entry point for warranty-tracker."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime
from pathlib import Path
from typing import TYPE_CHECKING

import click

from warranty_tracker.catalog import ProductCatalog
from warranty_tracker.claims import ClaimSession, PydanticAIClaimDrafter
from warranty_tracker.classifier import classify
from warranty_tracker.config import get_alert_preferences, get_document_store_path
from warranty_tracker.db import open_key_value_store
from warranty_tracker.errors import (
    ClaimDraftInvalid,
    IntakeRejected,
    PipelineError,
    WarrantyTrackerError,
)
from warranty_tracker.extraction import PydanticAIExtractionGateway
from warranty_tracker.intake import load_document
from warranty_tracker.pipeline import IngestionPipeline
from warranty_tracker.renderer import render_claim_pdf
from warranty_tracker.store import LocalDocumentStore
from warranty_tracker.view import CatalogFilter, catalog_view, describe_days

if TYPE_CHECKING:
    from warranty_tracker.models import (
        ClaimDraft,
        ExtractedInvoiceDetails,
        IngestionResult,
        Product,
        WarrantyStatus,
    )

_STATE_COLORS = {"green": "green", "yellow": "yellow", "red": "red", "grey": "white"}

_ISO_DATE = click.DateTime(formats=["%Y-%m-%d"])


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """Warranty Tracker: never miss a warranty deadline."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-y", "--yes", is_flag=True, help="Add to the catalog without asking.")
def ingest(path: Path, yes: bool) -> None:
    """Extract an invoice and add the product to the catalog."""
    document = load_document(path)
    gateway = PydanticAIExtractionGateway(LocalDocumentStore(get_document_store_path()))
    pipeline = IngestionPipeline(gateway, preferences=get_alert_preferences())

    try:
        result = asyncio.run(pipeline.run(document))
    except IntakeRejected as exc:
        raise click.ClickException(exc.reason) from exc
    except PipelineError as exc:
        result = _offer_retry(pipeline, exc)

    _echo_result(result)
    if not yes and not click.confirm("Add to dashboard?", default=True):
        click.echo("Discarded.")
        return

    catalog = _open_catalog()
    try:
        product = catalog.add_result(result)
    finally:
        catalog.close()
    click.echo(f"Added product {product.id}")


@cli.command(name="list")
@click.option(
    "--filter",
    "catalog_filter",
    type=click.Choice([f.value for f in CatalogFilter]),
    default=CatalogFilter.ALL.value,
    show_default=True,
    help="Only show products in this tab.",
)
@click.option("--as-of", type=_ISO_DATE, default=None, help="Reference date (YYYY-MM-DD).")
@click.option("--snapshot", is_flag=True, help="Show statuses as computed at ingestion.")
def list_products(catalog_filter: str, as_of: datetime | None, snapshot: bool) -> None:
    """List products, most urgent first."""
    catalog = _open_catalog()
    reference_date = None if snapshot else _reference_date(as_of)
    products = catalog_view(
        catalog.list(),
        CatalogFilter(catalog_filter),
        reference_date=reference_date,
        preferences=get_alert_preferences(),
    )
    if not products:
        click.echo("No products yet. Upload your first invoice to get started.")
        return
    for product in products:
        _echo_product_line(product)


@cli.command()
@click.argument("product_id")
@click.option("--as-of", type=_ISO_DATE, default=None, help="Reference date (YYYY-MM-DD).")
def show(product_id: str, as_of: datetime | None) -> None:
    """Show details for a specific product."""
    catalog = _open_catalog()
    try:
        stored = catalog.find(product_id)
    except WarrantyTrackerError as exc:
        raise click.ClickException(str(exc)) from exc
    [product] = catalog_view(
        [stored], reference_date=_reference_date(as_of), preferences=get_alert_preferences()
    )
    click.echo(f"Id:        {product.id}")
    click.echo(f"Added:     {product.created_at.isoformat()}")
    _echo_details(product.invoice_details)
    _echo_status(product.warranty_status)


@cli.command(name="classify")
@click.argument("purchase_date", type=_ISO_DATE)
@click.argument("warranty_period")
@click.option("--as-of", type=_ISO_DATE, default=None, help="Reference date (YYYY-MM-DD).")
def classify_command(purchase_date: datetime, warranty_period: str, as_of: datetime | None) -> None:
    """Classify a warranty without touching the catalog."""
    try:
        status = classify(
            purchase_date.date(),
            warranty_period,
            _reference_date(as_of),
            preferences=get_alert_preferences(),
        )
    except (ValueError, OverflowError) as exc:
        msg = f"Warranty period {warranty_period!r} cannot be applied: {exc}"
        raise click.ClickException(msg) from exc
    _echo_status(status)


@cli.command()
@click.argument("product_id")
@click.option("--issue", default="", help="Describe what is wrong with the product.")
@click.option("--to", "recipient", default=None, help="Override the recipient address.")
@click.option("--subject", default=None, help="Override the subject line.")
@click.option(
    "--pdf",
    "pdf_path",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    default=None,
    help="Save the finished draft as a PDF.",
)
def claim(
    product_id: str,
    issue: str,
    recipient: str | None,
    subject: str | None,
    pdf_path: Path | None,
) -> None:
    """Draft a warranty claim email for an expiring or expired product."""
    catalog = _open_catalog()
    try:
        stored = catalog.find(product_id)
    except WarrantyTrackerError as exc:
        raise click.ClickException(str(exc)) from exc

    [product] = catalog_view(
        [stored], reference_date=date.today(), preferences=get_alert_preferences()
    )
    if not product.warranty_status.is_claimable:
        state = product.warranty_status.state.label
        msg = f"Claims can only be drafted for expiring or expired warranties (status: {state})"
        raise click.ClickException(msg)

    session = ClaimSession(PydanticAIClaimDrafter())
    try:
        asyncio.run(session.open(product, issue))
        _echo_draft(session.edit(recipient_email=recipient, subject_line=subject))
        draft = session.finalize()
    except ClaimDraftInvalid as exc:
        raise click.ClickException(
            f"Draft not ready: {exc} (set it with --to or --subject)"
        ) from exc
    except WarrantyTrackerError as exc:
        raise click.ClickException(str(exc)) from exc
    else:
        if pdf_path is not None:
            pdf_path.write_bytes(render_claim_pdf(draft))
            click.echo(f"Saved draft to {pdf_path}")
    finally:
        session.close()


def _offer_retry(pipeline: IngestionPipeline, error: PipelineError) -> IngestionResult:
    """Let the user restart a failed run from the beginning."""
    while True:
        click.secho(str(error), fg="red", err=True)
        if not click.confirm("Try again?", default=False):
            raise click.ClickException(error.cause)
        try:
            return asyncio.run(pipeline.retry())
        except PipelineError as exc:
            error = exc


def _open_catalog() -> ProductCatalog:
    try:
        store = open_key_value_store()
    except WarrantyTrackerError as exc:
        raise click.ClickException(str(exc)) from exc
    return ProductCatalog.open(store)


def _reference_date(as_of: datetime | None) -> date:
    return as_of.date() if as_of is not None else date.today()


def _echo_result(result: IngestionResult) -> None:
    click.secho("Invoice processed successfully!", fg="green")
    _echo_details(result.details)
    _echo_status(result.status)


def _echo_details(details: ExtractedInvoiceDetails) -> None:
    scores = details.confidence_scores
    purchased = details.purchase_date.isoformat() if details.purchase_date else "?"
    click.echo(f"Brand:     {details.brand} [{scores.brand.value}]")
    click.echo(f"Product:   {details.product_name} [{scores.product_name.value}]")
    click.echo(f"Purchased: {purchased} [{scores.purchase_date.value}]")
    click.echo(f"Retailer:  {details.retailer} [{scores.retailer.value}]")
    click.echo(f"Invoice:   {details.invoice_id} [{scores.invoice_id.value}]")
    click.echo(f"Warranty:  {details.warranty_period or '?'} [{scores.warranty_period.value}]")


def _echo_draft(draft: ClaimDraft) -> None:
    click.echo(f"To:      {draft.recipient_email or '(no recipient)'}")
    click.echo(f"Subject: {draft.subject_line}")
    click.echo("")
    click.echo(draft.email_body)
    if draft.attachments_required:
        click.echo("")
        click.echo("Attach: " + ", ".join(draft.attachments_required))


def _echo_status(status: WarrantyStatus) -> None:
    fg = _STATE_COLORS[status.state.color]
    click.secho(f"Status:    {status.state.label}", fg=fg)
    click.echo(f"           {describe_days(status)}")
    if status.expiry_date is not None:
        click.echo(f"Expires:   {status.expiry_date.isoformat()}")
    if status.alert_schedule:
        reminders = ", ".join(d.isoformat() for d in status.alert_schedule)
        click.echo(f"Reminders: {reminders}")


def _echo_product_line(product: Product) -> None:
    details = product.invoice_details
    status = product.warranty_status
    fg = _STATE_COLORS[status.state.color]
    label = click.style(f"{status.state.label:<13}", fg=fg)
    click.echo(
        f"{product.id}  {label}  {details.brand} {details.product_name}"
        f"  ({describe_days(status)})"
    )
