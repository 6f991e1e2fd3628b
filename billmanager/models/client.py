from __future__ import annotations

from typing import Any

from pydantic import BaseModel, model_validator

from billmanager.models.address import Address


class Client(BaseModel):
    id: int = 0
    name: str = ""
    address: Address = Address()
    billing_address: Address = None  # type: ignore[assignment]
    email: str = ""
    phone: str = ""

    @model_validator(mode="before")
    @classmethod
    def _default_billing_address(cls, data: Any) -> Any:
        # Older records carry no billing address; they are billed at the primary one.
        if isinstance(data, dict) and data.get("billing_address") is None:
            data = {**data, "billing_address": data.get("address") or Address()}
        return data
