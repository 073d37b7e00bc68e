from __future__ import annotations
from pathlib import Path
from typing import Optional, Union

from lorrybook.models.ledger import CompanyLedgerStatement, LedgerFilters, LedgerStatement
from lorrybook.services.client_service import ClientService
from lorrybook.services.invoice_service import InvoiceService
from lorrybook.services.ledger_service import build_client_ledger, build_company_ledger
from lorrybook.services.lorry_receipt_service import LorryReceiptService
from lorrybook.services.numbering_service import NumberingService
from lorrybook.services.payment_service import PaymentService
from lorrybook.services.statement_service import StatementService
from lorrybook.services.truck_hiring_note_service import TruckHiringNoteService
from lorrybook.settings import DATA_DIR, load_settings
from lorrybook.storage.numbering_store import JsonCounterStore, JsonNumberingStore


class WorkflowService:
    """Assemble les services autour d'un même dossier de données."""

    def __init__(self, data_dir: Optional[Union[str, Path]] = None):
        base = Path(data_dir) if data_dir else DATA_DIR
        base.mkdir(parents=True, exist_ok=True)
        settings = load_settings(base / "settings.json")

        self.numbering = NumberingService(JsonNumberingStore(base / "numbering.json"), settings=settings)
        self.clients = ClientService(base / "clients.json")
        self.lorry_receipts = LorryReceiptService(self.numbering, base / "lorry_receipts.json")
        self.invoices = InvoiceService(self.numbering, self.lorry_receipts, base / "invoices.json")
        self.hiring_notes = TruckHiringNoteService(
            base / "truck_hiring_notes.json", JsonCounterStore(base / "counters.json")
        )
        self.payments = PaymentService(self.invoices, self.hiring_notes, base / "payments.json")
        self.statements = StatementService(base / "exports", settings=settings)

    def client_ledger(self, client_id: str, filters: Optional[LedgerFilters] = None) -> LedgerStatement:
        return build_client_ledger(
            client_id,
            self.invoices.list_invoices(),
            self.payments.list_payments(),
            self.hiring_notes.list_notes(),
            filters,
        )

    def company_ledger(self, filters: Optional[LedgerFilters] = None) -> CompanyLedgerStatement:
        return build_company_ledger(
            self.invoices.list_invoices(),
            self.hiring_notes.list_notes(),
            self.clients.list_clients(),
            filters,
        )
