import logging
from datetime import datetime
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from freezegun import freeze_time

from billmanager.pdf.errors import CompileError, Diagnostic, PdfGenerationError, Stage
from billmanager.services.bill_service import BillService, creditor_from_settings


def _mock_settings(mock_settings):
    mock_settings.payment_terms_days = 30
    mock_settings.default_iban = "CH9300762011623852957"
    mock_settings.reference_client_offset = 420
    mock_settings.reference_bill_offset = 4200


class TestNewBill:
    @freeze_time("2024-03-01 10:00:00")
    def test_defaults(self):
        with patch("billmanager.services.bill_service.settings") as mock_settings:
            _mock_settings(mock_settings)
            bill = BillService.new_bill(client_id=3)

        assert bill.client_id == 3
        assert bill.date == datetime(2024, 3, 1, 10, 0)
        assert bill.due_date == datetime(2024, 3, 31, 10, 0)
        assert len(bill.items) == 1
        assert bill.items[0].quantity == Decimal("1")
        assert bill.iban == "CH9300762011623852957"
        assert bill.reference == ""
        assert bill.has_pdf is False

    def test_explicit_now(self):
        with patch("billmanager.services.bill_service.settings") as mock_settings:
            _mock_settings(mock_settings)
            mock_settings.payment_terms_days = 10
            bill = BillService.new_bill(now=datetime(2024, 12, 25))

        assert bill.due_date == datetime(2025, 1, 4)


class TestAssignReference:
    def test_reference_for_bill(self, sample_bill):
        with patch("billmanager.services.bill_service.settings") as mock_settings:
            _mock_settings(mock_settings)
            bill = BillService.assign_reference(sample_bill(client_id=1, reference=""))

        assert bill.reference == "RF222024Y421K4207"

    def test_original_is_unchanged(self, sample_bill):
        original = sample_bill(reference="")
        with patch("billmanager.services.bill_service.settings") as mock_settings:
            _mock_settings(mock_settings)
            BillService.assign_reference(original)
        assert original.reference == ""

    def test_uses_bill_year(self, sample_bill):
        with patch("billmanager.services.bill_service.settings") as mock_settings:
            _mock_settings(mock_settings)
            bill = BillService.assign_reference(sample_bill(date=datetime(2025, 1, 15)))

        assert bill.reference[4:8] == "2025"

    def test_provisional_reference_warns(self, sample_bill, caplog):
        with patch("billmanager.services.bill_service.settings") as mock_settings:
            _mock_settings(mock_settings)
            with caplog.at_level(logging.WARNING, logger="billmanager.services.bill_service"):
                bill = BillService.assign_reference(sample_bill(client_id=0))

        assert "provisional" in caplog.text
        assert bill.reference.startswith("RF")


class TestGeneratePdf:
    def setup_method(self):
        self.mock_pdf = MagicMock()
        self.service = BillService(self.mock_pdf)

    @freeze_time("2024-03-02 09:30:00")
    def test_attaches_pdf(self, sample_bill, sample_client, sample_address):
        self.mock_pdf.generate.return_value = b"%PDF-fake"
        bill = sample_bill()

        result = self.service.generate_pdf(bill, sample_client(), sample_address())

        assert result.pdf_data == b"%PDF-fake"
        assert result.pdf_created_at == datetime(2024, 3, 2, 9, 30)
        assert bill.pdf_data is None

    def test_generator_receives_normalized_iban(self, sample_bill, sample_client, sample_address):
        self.mock_pdf.generate.return_value = b"%PDF-fake"
        client = sample_client()
        creditor = sample_address()

        self.service.generate_pdf(sample_bill(iban="ch93 0076 2011 6238 5295 7"), client, creditor)

        passed_bill, passed_client, passed_creditor = self.mock_pdf.generate.call_args.args
        assert passed_bill.iban == "CH9300762011623852957"
        assert passed_client is client
        assert passed_creditor is creditor

    def test_client_mismatch(self, sample_bill, sample_client, sample_address):
        with pytest.raises(ValueError, match="belongs to client"):
            self.service.generate_pdf(sample_bill(client_id=4), sample_client(), sample_address())
        self.mock_pdf.generate.assert_not_called()

    def test_invalid_iban(self, sample_bill, sample_client, sample_address):
        with pytest.raises(ValueError, match="Invalid IBAN"):
            self.service.generate_pdf(
                sample_bill(iban="CH93 0076 2011 6238 5295 8"), sample_client(), sample_address()
            )
        self.mock_pdf.generate.assert_not_called()

    def test_empty_iban(self, sample_bill, sample_client, sample_address):
        with pytest.raises(ValueError):
            self.service.generate_pdf(sample_bill(iban=""), sample_client(), sample_address())

    def test_failure_keeps_previous_pdf(self, sample_bill, sample_client, sample_address):
        bill = sample_bill().with_pdf(b"%PDF-old", datetime(2024, 3, 1, 12, 0))
        error = PdfGenerationError(Stage.COMPILE, CompileError([Diagnostic(message="boom")]))
        self.mock_pdf.generate.side_effect = error

        with pytest.raises(PdfGenerationError) as exc_info:
            self.service.generate_pdf(bill, sample_client(), sample_address())

        assert exc_info.value is error
        assert bill.pdf_data == b"%PDF-old"
        assert bill.pdf_created_at == datetime(2024, 3, 1, 12, 0)


class TestCreditorFromSettings:
    def test_builds_address(self):
        with patch("billmanager.services.bill_service.settings") as mock_settings:
            mock_settings.creditor_name = "Muster AG"
            mock_settings.creditor_street = "Bahnhofstrasse"
            mock_settings.creditor_building_number = ""
            mock_settings.creditor_postal_code = "8001"
            mock_settings.creditor_city = "Zürich"
            mock_settings.creditor_country = "CH"
            creditor = creditor_from_settings()

        assert creditor.name == "Muster AG"
        assert creditor.street == "Bahnhofstrasse"
        assert creditor.building_number is None
        assert creditor.city == "Zürich"
