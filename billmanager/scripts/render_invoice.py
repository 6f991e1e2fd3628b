"""Render an invoice described in a JSON file to PDF.

Usage:
    python -m billmanager.scripts.render_invoice bill.json
    python -m billmanager.scripts.render_invoice bill.json -o invoice.pdf

The JSON file holds ``bill`` and ``client`` objects and, optionally, a
``creditor`` address (defaults to the BILLMANAGER_CREDITOR_* settings).
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from billmanager.logging import configure_logging
from billmanager.models import format_amount, format_quantity
from billmanager.models.address import Address
from billmanager.models.bill import Bill
from billmanager.models.client import Client
from billmanager.pdf.errors import CompileError, PackageUnavailable, PdfGenerationError
from billmanager.reference import format_reference
from billmanager.services.bill_service import BillService, creditor_from_settings
from billmanager.settings import settings

console = Console()


def _load(path: Path) -> tuple[Bill, Client, Address]:
    data = json.loads(path.read_text(encoding="utf-8"))
    bill = Bill.model_validate(data["bill"])
    client = Client.model_validate(data["client"])
    creditor = Address.model_validate(data["creditor"]) if "creditor" in data else creditor_from_settings()
    return bill, client, creditor


def _print_bill(bill: Bill, client: Client) -> None:
    table = Table(title=f"Invoice {bill.id or '(new)'} for {client.name}")
    table.add_column("Note", style="dim")
    table.add_column("Description", style="bold")
    table.add_column("Quantity", justify="right")
    table.add_column("Unit price", justify="right")
    table.add_column("Total", justify="right")

    for item in bill.items:
        table.add_row(
            item.note,
            item.description,
            format_quantity(item.quantity),
            format_amount(item.unit_price),
            format_amount(item.total),
        )
    table.add_row("", "", "", "[bold]Total[/bold]", f"[bold]{format_amount(bill.total)}[/bold]")

    console.print(table)
    console.print(f"Reference: [cyan]{format_reference(bill.reference)}[/cyan]")


def _print_failure(exc: PdfGenerationError) -> None:
    console.print(f"[red bold]PDF generation failed ({exc.stage.value})[/red bold]")
    cause = exc.cause
    if isinstance(cause, CompileError):
        for diagnostic in cause.diagnostics:
            console.print(f"  [red]✗[/red] {diagnostic}")
    elif isinstance(cause, PackageUnavailable):
        console.print(str(cause))
    else:
        console.print(f"  {cause}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Render an invoice to PDF.")
    parser.add_argument("input", type=Path, help="JSON file with bill, client and creditor")
    parser.add_argument("-o", "--output", type=Path, help="PDF file to write (default: invoice_<id>.pdf)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output (compiler, packages, fonts)")
    parser.add_argument("--log-json", action="store_true", default=None, help="Log as JSON lines")
    args = parser.parse_args(argv)

    configure_logging("DEBUG" if args.verbose else None, json_output=args.log_json)

    bill, client, creditor = _load(args.input)
    service = BillService()
    if not bill.reference:
        bill = service.assign_reference(bill)

    _print_bill(bill, client)

    try:
        bill = service.generate_pdf(bill, client, creditor)
    except PdfGenerationError as exc:
        _print_failure(exc)
        return 1
    except ValueError as exc:
        console.print(f"[red bold]{exc}[/red bold]")
        return 1

    output = args.output or Path(f"invoice_{bill.id}.pdf")
    output.write_bytes(bill.pdf_data or b"")
    console.print(
        f"\n[green]✓[/green] Wrote {output} ({len(bill.pdf_data or b'')} bytes, "
        f"currency {settings.currency})"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
