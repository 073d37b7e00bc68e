from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from typing import Literal, Optional
import datetime as dt
from .common import gen_id

LorryReceiptStatus = Literal["CREATED", "INVOICED", "PAID"]


class LorryReceipt(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=gen_id)
    number: Optional[str] = None  # attribué par NumberingService (type "lr")
    date: dt.date
    consignor_id: str
    consignee_id: str
    vehicle_number: str = ""
    origin: str = ""
    destination: str = ""
    freight_paise: int = 0
    status: LorryReceiptStatus = "CREATED"
