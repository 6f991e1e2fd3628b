"""Swiss QR-bill payload generator (Swiss Payment Standards, QR-bill v2.x).

Builds the ``SPC`` payload embedded in the QR code of the payment part and
renders it as an SVG image the invoice template can place directly.
"""

from __future__ import annotations

from decimal import Decimal

import qrcode
from qrcode.image.svg import SvgPathImage

from billmanager.models import format_amount
from billmanager.models.address import Address

SEPARATOR = "\n"
TRAILER = "EPD"


def _address_lines(address: Address | None) -> list[str]:
    """Structured ("S") address block: type, name, street, number, postal code, city, country."""
    if address is None:
        return [""] * 7
    return [
        "S",
        address.name[:70],
        (address.street or "")[:70],
        (address.building_number or "")[:16],
        address.postal_code[:16],
        address.city[:35],
        address.country,
    ]


def generate_qr_payload(
    *,
    account: str,
    creditor: Address,
    amount: Decimal | None,
    currency: str = "CHF",
    debtor: Address | None = None,
    reference_type: str = "NON",
    reference: str = "",
    message: str = "",
) -> str:
    """Generate a Swiss QR-bill payload string.

    Args:
        account: Creditor IBAN, without spaces.
        creditor: Creditor address.
        amount: Amount to pay. None leaves the amount open.
        currency: CHF or EUR.
        debtor: Ultimate debtor address. None leaves the block empty.
        reference_type: QRR, SCOR or NON.
        reference: The reference matching ``reference_type`` (empty for NON).
        message: Unstructured message, at most 140 characters.

    Returns:
        The payload, one field per line, ending with the ``EPD`` trailer.
    """
    lines = [
        "SPC",  # QR type
        "0200",  # Version
        "1",  # Coding type (UTF-8, Latin character set)
        "".join(account.split()).upper(),
        *_address_lines(creditor),
        *([""] * 7),  # Ultimate creditor, reserved
        format_amount(amount) if amount is not None else "",
        currency,
        *_address_lines(debtor),
        reference_type,
        "".join(reference.split()).upper(),
        message[:140],
        TRAILER,
    ]
    return SEPARATOR.join(lines)


def generate_qr_svg(payload: str) -> str:
    """Render a payload as an SVG QR code (error correction level M)."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        border=0,
        image_factory=SvgPathImage,
    )
    qr.add_data(payload)
    qr.make(fit=True)

    img = qr.make_image()
    return img.to_string(encoding="unicode")
