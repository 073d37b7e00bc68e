from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from typing import Literal, Optional, Union
import datetime as dt
from .common import gen_id
from .invoice import Invoice
from .truck_hiring_note import TruckHiringNote

PaymentType = Literal["ADVANCE", "RECEIPT"]
PaymentMode = Literal["CASH", "CHEQUE", "NEFT", "RTGS", "UPI"]


class Payment(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=gen_id)
    date: dt.date
    amount_paise: int
    type: PaymentType = "RECEIPT"
    mode: PaymentMode = "CASH"
    reference_no: Optional[str] = None
    notes: Optional[str] = None
    client_id: Optional[str] = None

    # id brut OU document déjà déplié par le collaborateur
    invoice_id: Union[str, Invoice, None] = None
    truck_hiring_note_id: Union[str, TruckHiringNote, None] = None

    def invoice_ref(self) -> Optional[str]:
        ref = self.invoice_id
        return ref.id if isinstance(ref, Invoice) else ref

    def hiring_note_ref(self) -> Optional[str]:
        ref = self.truck_hiring_note_id
        return ref.id if isinstance(ref, TruckHiringNote) else ref
