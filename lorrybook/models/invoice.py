from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
import datetime as dt
from .common import gen_id, PaymentStatus
from .client import Client


class Invoice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=gen_id)
    number: Optional[str] = None
    date: dt.date

    client_id: str
    client: Optional[Client] = None  # copie dépliée, si le collaborateur l'a jointe

    lorry_receipt_ids: List[str] = Field(default_factory=list)

    total_paise: int = 0
    # montants de taxe tels que saisis ; aucun calcul GST ici
    cgst_paise: int = 0
    sgst_paise: int = 0
    igst_paise: int = 0
    grand_total_paise: int = 0

    status: PaymentStatus = "UNPAID"
    remarks: Optional[str] = None

    @property
    def account_id(self) -> str:
        return self.client.id if self.client is not None else self.client_id

    def tax_paise(self) -> int:
        return self.cgst_paise + self.sgst_paise + self.igst_paise
