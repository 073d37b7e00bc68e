from __future__ import annotations
import logging
from pathlib import Path
from typing import Iterable, List, Optional

from pydantic import ValidationError

from lorrybook.models.common import payment_status
from lorrybook.models.payment import Payment
from lorrybook.models.truck_hiring_note import TruckHiringNote
from lorrybook.settings import DATA_DIR
from lorrybook.storage.json_repo import JsonRepository
from lorrybook.storage.numbering_store import JsonCounterStore

logger = logging.getLogger(__name__)

HIRING_NOTES_JSON = DATA_DIR / "truck_hiring_notes.json"
COUNTERS_JSON = DATA_DIR / "counters.json"
SEQUENCE = "truckHiringNoteId"


class TruckHiringNoteService:
    def __init__(
        self,
        path: str | Path = HIRING_NOTES_JSON,
        counters: Optional[JsonCounterStore] = None,
    ):
        self.repo = JsonRepository(path, entity_name="truck hiring note", key="id")
        self.counters = counters if counters is not None else JsonCounterStore(COUNTERS_JSON)

    def list_notes(self) -> List[TruckHiringNote]:
        out: List[TruckHiringNote] = []
        for d in self.repo.list_all():
            try:
                out.append(TruckHiringNote(**d))
            except ValidationError:
                continue
        return out

    def get_by_id(self, thn_id: str) -> Optional[TruckHiringNote]:
        d = self.repo.get_by_id(thn_id)
        return TruckHiringNote(**d) if d else None

    def add_note(self, thn: TruckHiringNote) -> TruckHiringNote:
        thn.number = self.counters.next_value(SEQUENCE)
        thn.balance_payable_paise = thn.freight_paise - thn.paid_paise
        thn.status = payment_status(thn.freight_paise, thn.paid_paise)
        self.repo.add(thn)
        logger.info("Truck hiring note %s saved", thn.number)
        return thn

    def update_note(self, thn: TruckHiringNote) -> TruckHiringNote:
        self.repo.update(thn)
        return thn

    def delete_note(self, thn_id: str) -> bool:
        return self.repo.delete(thn_id)

    def refresh_status(self, thn_id: str, payments: Iterable[Payment]) -> Optional[TruckHiringNote]:
        thn = self.get_by_id(thn_id)
        if thn is None:
            logger.info("TruckHiringNote %s not found for status update", thn_id)
            return None
        paid = sum(p.amount_paise for p in payments if p.hiring_note_ref() == thn_id)
        thn.paid_paise = paid
        thn.balance_payable_paise = thn.freight_paise - paid
        thn.status = payment_status(thn.freight_paise, paid)
        self.repo.update(thn)
        return thn
