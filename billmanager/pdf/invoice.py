from __future__ import annotations

import logging
from datetime import date

from billmanager.iban import format_account
from billmanager.models import format_amount
from billmanager.models.address import Address
from billmanager.models.bill import Bill
from billmanager.models.client import Client
from billmanager.pdf.emitter import compile_to_pdf
from billmanager.pdf.errors import (
    CompileError,
    PackageUnavailable,
    PdfGenerationError,
    Stage,
    TemplateError,
)
from billmanager.pdf.fonts import search_fonts
from billmanager.pdf.host import InvoiceHost
from billmanager.pdf.packages import PackageStore
from billmanager.pdf.template import INVOICE_FIELDS, build_line_items, escape_markup, fill, load_template
from billmanager.reference import format_reference
from billmanager.settings import settings
from billmanager.swiss_qr import generate_qr_payload, generate_qr_svg

logger = logging.getLogger(__name__)

DATE_FORMAT = "%d.%m.%Y"


def _address_fields(prefix: str, address: Address) -> dict[str, str]:
    return {
        f"{prefix}-name": escape_markup(address.name),
        f"{prefix}-street": escape_markup(address.street or ""),
        f"{prefix}-building": escape_markup(address.building_number or ""),
        f"{prefix}-postal-code": escape_markup(address.postal_code),
        f"{prefix}-city": escape_markup(address.city),
        f"{prefix}-country": escape_markup(address.country),
    }


def build_fields(
    bill: Bill,
    client: Client,
    creditor: Address,
    *,
    currency: str | None = None,
    reference_type: str | None = None,
) -> dict[str, str]:
    """Template values for a bill. Every key in INVOICE_FIELDS is present."""
    return {
        "account": escape_markup(format_account(bill.iban)),
        **_address_fields("creditor", creditor),
        "amount": format_amount(bill.total),
        "currency": escape_markup(currency or settings.currency),
        **_address_fields("debtor", client.billing_address),
        "reference-type": escape_markup(reference_type or settings.reference_type),
        "reference": escape_markup(format_reference(bill.reference)),
        "additional-info": escape_markup(bill.notes),
        "table-contents": build_line_items(bill.items, bill.total),
        "bill-id": str(bill.id) if bill.id else "",
        "date": bill.date.strftime(DATE_FORMAT),
        "due-date": bill.due_date.strftime(DATE_FORMAT),
    }


class InvoicePDF:
    """Render invoices through the Typst template pipeline.

    All arguments default to the values in ``settings``.
    """

    def __init__(
        self,
        *,
        template_dir: str | None = None,
        template_name: str | None = None,
        packages: PackageStore | None = None,
        font_dirs: list[str] | None = None,
        include_system_fonts: bool | None = None,
        today: date | None = None,
        currency: str | None = None,
    ) -> None:
        self.template_dir = template_dir or settings.template_dir
        self.template_name = template_name or settings.template_name
        self.packages = packages or PackageStore(
            settings.get_package_cache_dir(),
            registry_url=settings.package_registry_url,
            download=settings.package_download,
            timeout=settings.package_download_timeout,
        )
        self.font_dirs = list(settings.font_dirs) if font_dirs is None else font_dirs
        self.include_system_fonts = (
            settings.include_system_fonts if include_system_fonts is None else include_system_fonts
        )
        self.today = today or settings.document_date
        self.currency = currency or settings.currency
        self.reference_type = settings.reference_type

    def _qr_inputs(self, bill: Bill, client: Client, creditor: Address) -> dict[str, str]:
        payload = generate_qr_payload(
            account=bill.iban,
            creditor=creditor,
            amount=bill.total,
            currency=self.currency,
            debtor=client.billing_address,
            reference_type=self.reference_type if bill.reference else "NON",
            reference=bill.reference,
            message=bill.notes,
        )
        return {"qr-code": generate_qr_svg(payload)}

    def generate(self, bill: Bill, client: Client, creditor: Address) -> bytes:
        """Render ``bill`` to PDF bytes.

        Raises:
            PdfGenerationError: tagged with the failing stage, wrapping the
                TemplateError, PackageUnavailable or CompileError behind it.
        """
        fields = build_fields(
            bill, client, creditor, currency=self.currency, reference_type=self.reference_type
        )

        try:
            template = load_template(self.template_dir, self.template_name)
            source = fill(template, fields, known=INVOICE_FIELDS)
        except TemplateError as exc:
            logger.error("Template stage failed for bill %s: %s", bill.id, exc)
            raise PdfGenerationError(Stage.TEMPLATE, exc) from exc

        try:
            host = InvoiceHost(
                source,
                template_dir=self.template_dir,
                packages=self.packages,
                fonts=search_fonts(self.font_dirs, include_system_fonts=self.include_system_fonts),
                today=self.today,
                inputs=self._qr_inputs(bill, client, creditor),
            )
        except (OSError, ValueError) as exc:
            logger.error("Host setup failed for bill %s: %s", bill.id, exc)
            raise PdfGenerationError(Stage.HOST, exc) from exc

        try:
            pdf = compile_to_pdf(host)
        except (PackageUnavailable, CompileError, OSError) as exc:
            logger.error("Compile stage failed for bill %s: %s", bill.id, exc)
            raise PdfGenerationError(Stage.COMPILE, exc) from exc

        logger.info(
            "PDF generated: bill=%s client=%s items=%d size=%d bytes",
            bill.id,
            client.id,
            len(bill.items),
            len(pdf),
        )
        return pdf
