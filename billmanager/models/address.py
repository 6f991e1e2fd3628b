from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Address(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    street: str | None = None
    building_number: str | None = None
    postal_code: str = ""
    city: str = ""
    country: str = "CH"  # ISO 3166-1 alpha-2
