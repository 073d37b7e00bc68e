from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
import datetime as dt
from .common import gen_id, PaymentStatus


class TruckHiringNote(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=gen_id)
    number: Optional[int] = None  # séquence simple (compteur), pas de préfixe
    date: dt.date

    client_id: Optional[str] = None  # compte desservi par la location
    truck_owner_name: str = ""
    truck_number: str = ""
    origin: str = ""
    destination: str = ""

    freight_paise: int = 0
    paid_paise: int = 0
    balance_payable_paise: int = 0
    status: PaymentStatus = "UNPAID"
    special_instructions: Optional[str] = None

    @property
    def account_id(self) -> Optional[str]:
        return self.client_id
