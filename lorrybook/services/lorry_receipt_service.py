from __future__ import annotations
from typing import Iterable, List, Optional
from pathlib import Path
import logging

from pydantic import ValidationError

from lorrybook.models.lorry_receipt import LorryReceipt, LorryReceiptStatus
from lorrybook.services.numbering_service import NumberingService
from lorrybook.settings import DATA_DIR
from lorrybook.storage.json_repo import JsonRepository

logger = logging.getLogger(__name__)

LORRY_RECEIPTS_JSON = DATA_DIR / "lorry_receipts.json"
DOC_TYPE = "lr"


class LorryReceiptService:
    def __init__(self, numbering: NumberingService, path: str | Path = LORRY_RECEIPTS_JSON):
        self.numbering = numbering
        self.repo = JsonRepository(path, entity_name="lorry receipt", key="id")

    def list_lorry_receipts(self) -> List[LorryReceipt]:
        out: List[LorryReceipt] = []
        for d in self.repo.list_all():
            try:
                out.append(LorryReceipt(**d))
            except ValidationError:
                continue
        return out

    def get_by_id(self, lr_id: str) -> Optional[LorryReceipt]:
        d = self.repo.get_by_id(lr_id)
        return LorryReceipt(**d) if d else None

    def add_lorry_receipt(self, lr: LorryReceipt, manual_number: Optional[str] = None) -> LorryReceipt:
        """
        Numéro manuel : contrôlé sur la plage ET sur les LR existants.
        Sinon : prochain numéro de la séquence "lr".
        """
        if manual_number:
            existing = [x.number for x in self.list_lorry_receipts()]
            lr.number = self.numbering.require_manual_number(DOC_TYPE, manual_number, existing)
        else:
            lr.number = self.numbering.get_next_number(DOC_TYPE)
        self.repo.add(lr)
        logger.info("Lorry receipt %s saved", lr.number)
        return lr

    def update_lorry_receipt(self, lr: LorryReceipt) -> LorryReceipt:
        self.repo.update(lr)
        return lr

    def delete_lorry_receipt(self, lr_id: str) -> bool:
        return self.repo.delete(lr_id)

    def set_status(self, lr_ids: Iterable[str], status: LorryReceiptStatus) -> int:
        changed = 0
        for lr_id in lr_ids:
            lr = self.get_by_id(lr_id)
            if lr is None or lr.status == status:
                continue
            lr.status = status
            self.repo.update(lr)
            changed += 1
        return changed
