"""Factory fixtures for addresses, clients and bills."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest

from billmanager.models.address import Address
from billmanager.models.bill import Bill, BillItem
from billmanager.models.client import Client

VALID_IBAN = "CH93 0076 2011 6238 5295 7"


def _sample_address(**overrides) -> Address:
    defaults = dict(
        name="Muster AG",
        street="Bahnhofstrasse",
        building_number="12",
        postal_code="8001",
        city="Zürich",
        country="CH",
    )
    defaults.update(overrides)
    return Address(**defaults)


def _sample_client(**overrides) -> Client:
    defaults = dict(
        id=3,
        name="Beispiel GmbH",
        address=_sample_address(name="Beispiel GmbH", street="Hauptgasse", building_number="5",
                                postal_code="3011", city="Bern"),
        email="billing@beispiel.ch",
        phone="+41 31 000 00 00",
    )
    defaults.update(overrides)
    return Client(**defaults)


def _sample_bill(**overrides) -> Bill:
    defaults = dict(
        id=7,
        client_id=3,
        date=datetime(2024, 3, 1, 10, 0),
        due_date=datetime(2024, 3, 31, 10, 0),
        items=[
            BillItem(item_type="Consulting", quantity=Decimal("2"), unit_price=Decimal("100.00"), note="March"),
            BillItem(item_type="Travel", quantity=Decimal("1"), unit_price=Decimal("50.00")),
        ],
        reference="RF222024Y421K4207",
        iban=VALID_IBAN,
        notes="Thank you for your business",
    )
    defaults.update(overrides)
    return Bill(**defaults)


@pytest.fixture()
def sample_address():
    return _sample_address


@pytest.fixture()
def sample_client():
    return _sample_client


@pytest.fixture()
def sample_bill():
    return _sample_bill
