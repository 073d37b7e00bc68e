# lorrybook/services/invoice_service.py
from __future__ import annotations
import logging
from pathlib import Path
from typing import Iterable, List, Optional

from pydantic import ValidationError

from lorrybook.models.common import payment_status
from lorrybook.models.invoice import Invoice
from lorrybook.models.payment import Payment
from lorrybook.services.lorry_receipt_service import LorryReceiptService
from lorrybook.services.numbering_service import NumberingService
from lorrybook.settings import DATA_DIR
from lorrybook.storage.json_repo import JsonRepository

logger = logging.getLogger(__name__)

INVOICES_JSON = DATA_DIR / "invoices.json"
DOC_TYPE = "invoice"


class InvoiceService:
    def __init__(
        self,
        numbering: NumberingService,
        lorry_receipts: Optional[LorryReceiptService] = None,
        path: str | Path = INVOICES_JSON,
    ):
        self.numbering = numbering
        self.lorry_receipts = lorry_receipts
        self.repo = JsonRepository(path, entity_name="invoice", key="id")

    # ----------- CRUD/list -----------
    def list_invoices(self) -> List[Invoice]:
        out: List[Invoice] = []
        for d in self.repo.list_all():
            try:
                out.append(Invoice(**d))
            except ValidationError:
                logger.warning("Skipping invalid invoice row %r", d.get("id"))
                continue
        return out

    def list_by_client(self, client_id: str) -> List[Invoice]:
        return [inv for inv in self.list_invoices() if inv.account_id == client_id]

    def get_by_id(self, invoice_id: str) -> Optional[Invoice]:
        d = self.repo.get_by_id(invoice_id)
        if d is None:
            return None
        try:
            return Invoice(**d)
        except ValidationError:
            return None

    def update_invoice(self, inv: Invoice) -> Invoice:
        self.repo.update(inv)
        return inv

    def delete_invoice(self, invoice_id: str) -> bool:
        return self.repo.delete(invoice_id)

    def add_invoice(self, inv: Invoice, manual_number: Optional[str] = None) -> Invoice:
        # numéro : manuel (plage + unicité) ou automatique
        if manual_number:
            existing = [x.number for x in self.list_invoices()]
            inv.number = self.numbering.require_manual_number(DOC_TYPE, manual_number, existing)
        else:
            inv.number = self.numbering.get_next_number(DOC_TYPE)
        # total TTC = total + taxes saisies, si non fourni
        if not inv.grand_total_paise:
            inv.grand_total_paise = inv.total_paise + inv.tax_paise()
        self.repo.add(inv)
        if self.lorry_receipts is not None and inv.lorry_receipt_ids:
            self.lorry_receipts.set_status(inv.lorry_receipt_ids, "INVOICED")
        logger.info("Invoice %s saved for client %s", inv.number, inv.client_id)
        return inv

    # ----------- statut de paiement -----------
    def refresh_status(self, invoice_id: str, payments: Iterable[Payment]) -> Optional[Invoice]:
        inv = self.get_by_id(invoice_id)
        if inv is None:
            # facture supprimée entre-temps
            logger.info("Invoice %s not found for status update", invoice_id)
            return None
        paid = sum(p.amount_paise for p in payments if p.invoice_ref() == invoice_id)
        status = payment_status(inv.grand_total_paise, paid)
        if status != inv.status:
            inv.status = status
            self.repo.update(inv)
            if status == "PAID" and self.lorry_receipts is not None:
                self.lorry_receipts.set_status(inv.lorry_receipt_ids, "PAID")
        return inv
