from decimal import Decimal

from billmanager.models.address import Address
from billmanager.swiss_qr import generate_qr_payload, generate_qr_svg


def _creditor() -> Address:
    return Address(
        name="Muster AG",
        street="Bahnhofstrasse",
        building_number="12",
        postal_code="8001",
        city="Zürich",
        country="CH",
    )


def _debtor() -> Address:
    return Address(name="Beispiel GmbH", street=None, building_number=None, postal_code="3011", city="Bern")


class TestGenerateQrPayload:
    def _payload(self, **overrides) -> list[str]:
        kwargs = dict(
            account="CH93 0076 2011 6238 5295 7",
            creditor=_creditor(),
            amount=Decimal("250"),
            currency="CHF",
            debtor=_debtor(),
            reference_type="SCOR",
            reference="RF22 2024 Y421 K420 7",
            message="Thank you",
        )
        kwargs.update(overrides)
        return generate_qr_payload(**kwargs).split("\n")

    def test_layout(self):
        lines = self._payload()
        assert len(lines) == 31
        assert lines[:3] == ["SPC", "0200", "1"]
        assert lines[-1] == "EPD"

    def test_account_without_spaces(self):
        assert self._payload()[3] == "CH9300762011623852957"

    def test_creditor_block(self):
        assert self._payload()[4:11] == ["S", "Muster AG", "Bahnhofstrasse", "12", "8001", "Zürich", "CH"]

    def test_ultimate_creditor_is_empty(self):
        assert self._payload()[11:18] == [""] * 7

    def test_amount_and_currency(self):
        lines = self._payload()
        assert lines[18] == "250.00"
        assert lines[19] == "CHF"

    def test_open_amount(self):
        assert self._payload(amount=None)[18] == ""

    def test_debtor_missing_street_is_empty(self):
        lines = self._payload()
        assert lines[20:27] == ["S", "Beispiel GmbH", "", "", "3011", "Bern", "CH"]

    def test_without_debtor(self):
        lines = self._payload(debtor=None)
        assert len(lines) == 31
        assert lines[20:27] == [""] * 7

    def test_reference(self):
        lines = self._payload()
        assert lines[27] == "SCOR"
        assert lines[28] == "RF222024Y421K4207"
        assert lines[29] == "Thank you"

    def test_message_is_truncated(self):
        assert len(self._payload(message="x" * 300)[29]) == 140


class TestGenerateQrSvg:
    def test_returns_svg_markup(self):
        svg = generate_qr_svg("SPC\n0200\n1")
        assert isinstance(svg, str)
        assert "<svg" in svg
        assert "<path" in svg

    def test_deterministic(self):
        assert generate_qr_svg("payload") == generate_qr_svg("payload")
