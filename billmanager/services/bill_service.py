from __future__ import annotations

import logging
from datetime import datetime, timedelta

from billmanager.iban import is_valid_account, normalize_account
from billmanager.models.address import Address
from billmanager.models.bill import Bill, BillItem
from billmanager.models.client import Client
from billmanager.pdf.invoice import InvoicePDF
from billmanager.reference import generate_reference
from billmanager.settings import settings

logger = logging.getLogger(__name__)


class BillService:
    def __init__(self, pdf_generator: InvoicePDF | None = None) -> None:
        self.pdf_generator = pdf_generator or InvoicePDF()

    @staticmethod
    def new_bill(client_id: int = 0, now: datetime | None = None) -> Bill:
        """A draft bill dated now, due after the configured payment terms."""
        now = now or datetime.now()
        return Bill(
            client_id=client_id,
            date=now,
            due_date=now + timedelta(days=settings.payment_terms_days),
            items=[BillItem()],
            iban=settings.default_iban,
        )

    @staticmethod
    def assign_reference(bill: Bill) -> Bill:
        """Return a copy of ``bill`` with a reference for its id, client and year."""
        if bill.client_id == 0:
            logger.warning("Bill %s has no client yet, its reference is provisional", bill.id)
        reference = generate_reference(
            bill.id,
            bill.client_id,
            bill.date.year,
            client_offset=settings.reference_client_offset,
            bill_offset=settings.reference_bill_offset,
        )
        return bill.model_copy(update={"reference": reference})

    def generate_pdf(self, bill: Bill, client: Client, creditor: Address) -> Bill:
        """Render the bill and return a copy carrying the PDF and its timestamp.

        On failure the PdfGenerationError propagates and ``bill`` (including
        any PDF generated earlier) is left as it was.
        """
        if client.id != bill.client_id:
            raise ValueError(f"Bill {bill.id} belongs to client {bill.client_id}, not {client.id}")
        if not is_valid_account(bill.iban):
            raise ValueError(f"Invalid IBAN for bill {bill.id}: {bill.iban!r}")

        pdf_data = self.pdf_generator.generate(
            bill.model_copy(update={"iban": normalize_account(bill.iban)}),
            client,
            creditor,
        )
        updated = bill.with_pdf(pdf_data, datetime.now())
        logger.info("PDF attached to bill %s at %s", bill.id, updated.pdf_created_at)
        return updated


def creditor_from_settings() -> Address:
    return Address(
        name=settings.creditor_name,
        street=settings.creditor_street or None,
        building_number=settings.creditor_building_number or None,
        postal_code=settings.creditor_postal_code,
        city=settings.creditor_city,
        country=settings.creditor_country,
    )
