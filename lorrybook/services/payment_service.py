from __future__ import annotations
import logging
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from lorrybook.errors import MissingReference
from lorrybook.models.payment import Payment
from lorrybook.services.invoice_service import InvoiceService
from lorrybook.services.truck_hiring_note_service import TruckHiringNoteService
from lorrybook.settings import DATA_DIR
from lorrybook.storage.json_repo import JsonRepository

logger = logging.getLogger(__name__)

PAYMENTS_JSON = DATA_DIR / "payments.json"


class PaymentService:
    """
    Encaissements (factures) et décaissements (locations de camions).
    Côté écriture une référence introuvable est une erreur ; seul le grand
    livre tolère les liens cassés.
    """

    def __init__(
        self,
        invoices: InvoiceService,
        hiring_notes: TruckHiringNoteService,
        path: str | Path = PAYMENTS_JSON,
    ):
        self.invoices = invoices
        self.hiring_notes = hiring_notes
        self.repo = JsonRepository(path, entity_name="payment", key="id")

    def list_payments(self) -> List[Payment]:
        out: List[Payment] = []
        for d in self.repo.list_all():
            try:
                out.append(Payment(**d))
            except ValidationError:
                logger.warning("Skipping invalid payment row %r", d.get("id"))
                continue
        return out

    def record_payment(self, p: Payment) -> Payment:
        if p.amount_paise <= 0:
            raise ValueError("Payment amount must be positive")
        inv_ref, thn_ref = p.invoice_ref(), p.hiring_note_ref()
        if bool(inv_ref) == bool(thn_ref):
            raise ValueError("A payment must settle exactly one invoice or truck hiring note")

        if inv_ref:
            inv = self.invoices.get_by_id(inv_ref)
            if inv is None:
                raise MissingReference("Invoice", inv_ref)
            p.invoice_id = inv_ref  # on persiste l'id brut
            p.client_id = p.client_id or inv.account_id
        else:
            thn = self.hiring_notes.get_by_id(thn_ref)  # type: ignore[arg-type]
            if thn is None:
                raise MissingReference("TruckHiringNote", thn_ref)
            p.truck_hiring_note_id = thn_ref
            p.client_id = p.client_id or thn.account_id

        self.repo.add(p)
        logger.info("Payment %s of %d paise recorded (%s)", p.id, p.amount_paise, p.mode)
        self._refresh_target(p)
        return p

    def delete_payment(self, payment_id: str) -> bool:
        d = self.repo.get_by_id(payment_id)
        if d is None:
            return False
        try:
            p: Optional[Payment] = Payment(**d)
        except ValidationError:
            logger.warning("Deleting invalid payment row %r without status refresh", payment_id)
            p = None
        self.repo.delete(payment_id)
        if p is not None:
            self._refresh_target(p)
        return True

    def _refresh_target(self, p: Payment) -> None:
        payments = self.list_payments()
        if p.invoice_ref():
            self.invoices.refresh_status(p.invoice_ref(), payments)  # type: ignore[arg-type]
        elif p.hiring_note_ref():
            self.hiring_notes.refresh_status(p.hiring_note_ref(), payments)  # type: ignore[arg-type]
