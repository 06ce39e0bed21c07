"""Tests for warranty_tracker.cli."""

from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, MagicMock, patch

import psycopg
import pytest
from click.testing import CliRunner

from warranty_tracker.catalog import ProductCatalog
from warranty_tracker.classifier import classify
from warranty_tracker.cli import cli
from warranty_tracker.models import ClaimDraft, ExtractedInvoiceDetails
from warranty_tracker.store import JsonFileStore

if TYPE_CHECKING:
    from pathlib import Path

    from warranty_tracker.models import Product


@pytest.fixture(autouse=True)
def local_data(data_root: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the CLI at a temporary JSON catalog."""
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("WARRANTY_DATA_PATH", str(data_root))
    for name in ("WARRANTY_ALERT_30_DAY", "WARRANTY_ALERT_7_DAY", "WARRANTY_ALERT_DAY_OF"):
        monkeypatch.delenv(name, raising=False)
    return data_root


def _add_product(
    data_root: Path, purchase_date: date, period: str, brand: str = "Acme"
) -> Product:
    details = ExtractedInvoiceDetails(
        brand=brand,
        product_name="Widget",
        purchase_date=purchase_date,
        invoice_id="INV-9",
        retailer="Shop",
        warranty_period=period,
    )
    catalog = ProductCatalog.open(JsonFileStore(data_root.resolve()))
    return catalog.add(details, classify(purchase_date, period, date.today()))


def _fake_gateway(details: ExtractedInvoiceDetails) -> MagicMock:
    gateway = MagicMock()
    gateway.upload = AsyncMock(return_value=["2025/01/2025-01-01__invoice.pdf"])
    gateway.extract = AsyncMock(return_value=details)
    return gateway


class TestClassifyCommand:
    """Tests for `warranty-tracker classify`."""

    def test_expiring_soon(self) -> None:
        result = CliRunner().invoke(
            cli, ["classify", "2024-01-01", "12 months", "--as-of", "2024-12-20"]
        )

        assert result.exit_code == 0, result.output
        assert "Expiring Soon" in result.output
        assert "12 days remaining" in result.output
        assert "Expires:   2025-01-01" in result.output
        assert "Reminders: 2024-12-25, 2025-01-01" in result.output

    def test_unknown(self) -> None:
        result = CliRunner().invoke(cli, ["classify", "2024-01-01", "lifetime"])

        assert result.exit_code == 0
        assert "No Warranty" in result.output

    def test_fractional_years(self) -> None:
        result = CliRunner().invoke(
            cli, ["classify", "2024-01-01", "1.5 years", "--as-of", "2024-06-01"]
        )

        assert result.exit_code == 0, result.output
        assert "Expires:   2025-07-01" in result.output

    def test_out_of_range_period_is_reported(self) -> None:
        result = CliRunner().invoke(cli, ["classify", "2024-01-01", "9000 years"])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "cannot be applied" in result.output
        assert "out of range" in result.output


class TestListCommand:
    """Tests for `warranty-tracker list`."""

    def test_empty_catalog(self) -> None:
        result = CliRunner().invoke(cli, ["list"])

        assert result.exit_code == 0
        assert "No products yet" in result.output

    def test_most_urgent_first(self, local_data: Path) -> None:
        today = date.today()
        _add_product(local_data, today, "5 years", brand="Fresh")
        _add_product(local_data, today - timedelta(days=800), "1 year", brand="Old")

        result = CliRunner().invoke(cli, ["list"])

        assert result.exit_code == 0
        assert result.output.index("Old") < result.output.index("Fresh")

    def test_unreachable_database_is_reported(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("DATABASE_URL", "postgresql://user@127.0.0.1:1/warranty")

        with patch(
            "warranty_tracker.db.psycopg.connect",
            side_effect=psycopg.OperationalError("connection refused"),
        ):
            result = CliRunner().invoke(cli, ["list"])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Could not open the product database" in result.output
        assert "connection refused" in result.output

    def test_filter(self, local_data: Path) -> None:
        today = date.today()
        _add_product(local_data, today, "5 years", brand="Fresh")
        _add_product(local_data, today - timedelta(days=800), "1 year", brand="Old")

        result = CliRunner().invoke(cli, ["list", "--filter", "expired"])

        assert "Old" in result.output
        assert "Fresh" not in result.output


class TestShowCommand:
    """Tests for `warranty-tracker show`."""

    def test_show_product(self, local_data: Path) -> None:
        product = _add_product(local_data, date(2024, 1, 1), "12 months")

        result = CliRunner().invoke(cli, ["show", str(product.id), "--as-of", "2024-12-20"])

        assert result.exit_code == 0, result.output
        assert "Acme" in result.output
        assert "INV-9" in result.output
        assert "Expiring Soon" in result.output

    def test_missing_product(self) -> None:
        result = CliRunner().invoke(cli, ["show", "not-an-id"])

        assert result.exit_code == 1
        assert "No product with id not-an-id" in result.output


class TestIngestCommand:
    """Tests for `warranty-tracker ingest`."""

    def test_rejects_unsupported_file(self, tmp_path: Path) -> None:
        path = tmp_path / "notes.txt"
        path.write_text("hello")

        result = CliRunner().invoke(cli, ["ingest", str(path), "--yes"])

        assert result.exit_code == 1
        assert "Please upload a PDF, JPG, or PNG file" in result.output

    def test_adds_product(
        self,
        tmp_path: Path,
        local_data: Path,
        sample_details: ExtractedInvoiceDetails,
    ) -> None:
        path = tmp_path / "invoice.pdf"
        path.write_bytes(b"%PDF-1.4")

        with patch(
            "warranty_tracker.cli.PydanticAIExtractionGateway",
            return_value=_fake_gateway(sample_details),
        ):
            result = CliRunner().invoke(cli, ["ingest", str(path), "--yes"])

        assert result.exit_code == 0, result.output
        assert "Invoice processed successfully!" in result.output
        assert "Added product" in result.output
        catalog = ProductCatalog.open(JsonFileStore(local_data.resolve()))
        assert len(catalog) == 1
        assert catalog.list()[0].invoice_details == sample_details

    def test_declined_confirmation_discards(
        self, tmp_path: Path, local_data: Path, sample_details: ExtractedInvoiceDetails
    ) -> None:
        path = tmp_path / "invoice.pdf"
        path.write_bytes(b"%PDF-1.4")

        with patch(
            "warranty_tracker.cli.PydanticAIExtractionGateway",
            return_value=_fake_gateway(sample_details),
        ):
            result = CliRunner().invoke(cli, ["ingest", str(path)], input="n\n")

        assert result.exit_code == 0
        assert "Discarded." in result.output
        assert len(ProductCatalog.open(JsonFileStore(local_data.resolve()))) == 0

    def test_failure_then_retry(
        self, tmp_path: Path, local_data: Path, sample_details: ExtractedInvoiceDetails
    ) -> None:
        path = tmp_path / "invoice.pdf"
        path.write_bytes(b"%PDF-1.4")
        gateway = _fake_gateway(sample_details)
        gateway.extract.side_effect = [RuntimeError("model overloaded"), sample_details]

        with patch("warranty_tracker.cli.PydanticAIExtractionGateway", return_value=gateway):
            result = CliRunner().invoke(cli, ["ingest", str(path), "--yes"], input="y\n")

        assert result.exit_code == 0, result.output
        assert "parse failed: model overloaded" in result.output
        assert gateway.upload.await_count == 2
        assert len(ProductCatalog.open(JsonFileStore(local_data.resolve()))) == 1

    def test_failure_without_retry(
        self, tmp_path: Path, local_data: Path, sample_details: ExtractedInvoiceDetails
    ) -> None:
        path = tmp_path / "invoice.pdf"
        path.write_bytes(b"%PDF-1.4")
        gateway = _fake_gateway(sample_details)
        gateway.upload.side_effect = OSError("disk full")

        with patch("warranty_tracker.cli.PydanticAIExtractionGateway", return_value=gateway):
            result = CliRunner().invoke(cli, ["ingest", str(path), "--yes"], input="n\n")

        assert result.exit_code == 1
        assert "disk full" in result.output
        assert len(ProductCatalog.open(JsonFileStore(local_data.resolve()))) == 0


class TestClaimCommand:
    """Tests for `warranty-tracker claim`."""

    @staticmethod
    def _drafter(draft: ClaimDraft) -> MagicMock:
        drafter = MagicMock()
        drafter.draft = AsyncMock(return_value=draft)
        return drafter

    def test_drafts_and_saves_pdf(self, tmp_path: Path, local_data: Path) -> None:
        product = _add_product(local_data, date.today() - timedelta(days=400), "12 months")
        draft = ClaimDraft(
            recipient_email="",
            subject_line="Warranty claim",
            email_body="Please repair my widget.",
            attachments_required=["Original invoice"],
        )
        pdf_path = tmp_path / "claim.pdf"

        with (
            patch(
                "warranty_tracker.cli.PydanticAIClaimDrafter",
                return_value=self._drafter(draft),
            ),
            patch("warranty_tracker.cli.render_claim_pdf", return_value=b"%PDF-claim"),
        ):
            result = CliRunner().invoke(
                cli,
                [
                    "claim",
                    str(product.id),
                    "--issue",
                    "Stopped charging",
                    "--to",
                    "support@acme.example",
                    "--pdf",
                    str(pdf_path),
                ],
            )

        assert result.exit_code == 0, result.output
        assert "To:      support@acme.example" in result.output
        assert "Please repair my widget." in result.output
        assert "Attach: Original invoice" in result.output
        assert pdf_path.read_bytes() == b"%PDF-claim"

    def test_missing_recipient_still_shows_draft(
        self, tmp_path: Path, local_data: Path
    ) -> None:
        product = _add_product(local_data, date.today() - timedelta(days=400), "12 months")
        draft = ClaimDraft(subject_line="Claim", email_body="My widget stopped working.")
        pdf_path = tmp_path / "claim.pdf"

        with (
            patch(
                "warranty_tracker.cli.PydanticAIClaimDrafter",
                return_value=self._drafter(draft),
            ),
            patch("warranty_tracker.cli.render_claim_pdf") as render,
        ):
            result = CliRunner().invoke(
                cli, ["claim", str(product.id), "--pdf", str(pdf_path)]
            )

        assert result.exit_code == 1
        assert "To:      (no recipient)" in result.output
        assert "My widget stopped working." in result.output
        assert "recipient must be an email address" in result.output
        assert "--to" in result.output
        render.assert_not_called()
        assert not pdf_path.exists()

    def test_active_warranty_refused(self, local_data: Path) -> None:
        product = _add_product(local_data, date.today(), "5 years")
        drafter = self._drafter(ClaimDraft())

        with patch("warranty_tracker.cli.PydanticAIClaimDrafter", return_value=drafter):
            result = CliRunner().invoke(cli, ["claim", str(product.id)])

        assert result.exit_code == 1
        assert "expiring or expired" in result.output
        drafter.draft.assert_not_awaited()

    def test_generation_failure(self, local_data: Path) -> None:
        product = _add_product(local_data, date.today() - timedelta(days=400), "12 months")
        drafter = MagicMock()
        drafter.draft = AsyncMock(side_effect=RuntimeError("service unavailable"))

        with patch("warranty_tracker.cli.PydanticAIClaimDrafter", return_value=drafter):
            result = CliRunner().invoke(cli, ["claim", str(product.id)])

        assert result.exit_code == 1
        assert "service unavailable" in result.output
        drafter.draft.assert_awaited_once()
