"""Fill ``{{name}}`` placeholders in Typst invoice templates."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from decimal import Decimal
from pathlib import Path

from billmanager.models import format_amount, format_quantity
from billmanager.models.bill import BillItem
from billmanager.pdf.errors import TemplateError

logger = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Za-z0-9_-]+)\s*\}\}")

INVOICE_FIELDS = frozenset(
    {
        "account",
        "creditor-name",
        "creditor-street",
        "creditor-building",
        "creditor-postal-code",
        "creditor-city",
        "creditor-country",
        "amount",
        "currency",
        "debtor-name",
        "debtor-street",
        "debtor-building",
        "debtor-postal-code",
        "debtor-city",
        "debtor-country",
        "reference-type",
        "reference",
        "additional-info",
        "table-contents",
        "bill-id",
        "date",
        "due-date",
    }
)

TOTAL_LABEL = "Total"

# Characters with a meaning in Typst markup.
_MARKUP_SPECIALS = set("\\#[]*_`$<>@~/=+-'\"")


def escape_markup(text: str) -> str:
    """Escape text so Typst renders it literally inside a content block."""
    escaped = "".join(f"\\{char}" if char in _MARKUP_SPECIALS else char for char in text)
    # A blank line would end the enclosing paragraph or table cell. Typst also
    # breaks lines on a bare carriage return.
    return re.sub(r"\s*[\r\n]+\s*", " ", escaped).strip()


def load_template(template_dir: str | Path, name: str) -> str:
    path = Path(template_dir) / name
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise TemplateError(f"Cannot read template {path}: {exc}") from exc
    logger.debug("Loaded template %s (%d chars)", path, len(text))
    return text


def placeholders(template_text: str) -> set[str]:
    return set(PLACEHOLDER_RE.findall(template_text))


def fill(
    template_text: str,
    fields: Mapping[str, str],
    *,
    known: Iterable[str] | None = None,
) -> str:
    """Substitute every placeholder in ``template_text``.

    Args:
        template_text: Template source with ``{{name}}`` placeholders.
        fields: Values by placeholder name, inserted verbatim.
        known: Placeholder names the template may use. Known names without a
            value become empty strings; any other unsupplied name is an error.
            When None, every unsupplied placeholder becomes an empty string.

    Raises:
        TemplateError: The template has no placeholders, or uses a name that is
            neither supplied nor known.
    """
    found = placeholders(template_text)
    if not found:
        raise TemplateError("Template contains no placeholders")

    if known is not None:
        allowed = set(known) | set(fields)
        unknown = sorted(found - allowed)
        if unknown:
            raise TemplateError(f"Template uses unknown placeholders: {', '.join(unknown)}")

    return PLACEHOLDER_RE.sub(lambda m: str(fields.get(m.group(1), "")), template_text)


def build_line_items(items: Iterable[BillItem], total: Decimal) -> str:
    """Render bill items as Typst table cells, five per row, plus a total row."""
    rows = []
    for item in items:
        cells = (
            escape_markup(item.note),
            escape_markup(item.description),
            format_quantity(item.quantity),
            format_amount(item.unit_price),
            format_amount(item.total),
        )
        rows.append(", ".join(f"[{cell}]" for cell in cells) + ",")
    rows.append(f"[], [], [], [{TOTAL_LABEL}], [{format_amount(total)}],")
    return "\n".join(rows)
