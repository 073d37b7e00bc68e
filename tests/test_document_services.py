"""
test_document_services.py - Lorry receipts, invoices, hiring notes, payments

Exercises the services wired by WorkflowService on a tmp data dir:
numbering on save, manual-number uniqueness, payment status and ledgers
built from persisted documents.
"""

import pytest

from lorrybook.errors import InvalidManualNumber, MissingReference
from lorrybook.models.client import Client
from lorrybook.models.invoice import Invoice
from lorrybook.models.ledger import LedgerFilters
from lorrybook.models.lorry_receipt import LorryReceipt
from lorrybook.models.payment import Payment
from lorrybook.models.truck_hiring_note import TruckHiringNote

from conftest import D


def _lr(**kw):
    return LorryReceipt(date=D(2024, 1, 1), consignor_id="c1", consignee_id="c2", freight_paise=10000, **kw)


@pytest.fixture
def client(workflow):
    return workflow.clients.add_client(Client(id="c1", name="Acme Logistics", state="Maharashtra"))


class TestLorryReceipts:

    def test_auto_numbering(self, workflow):
        a = workflow.lorry_receipts.add_lorry_receipt(_lr())
        b = workflow.lorry_receipts.add_lorry_receipt(_lr())
        assert (a.number, b.number) == ("LR000001", "LR000002")

    def test_manual_number_is_normalized(self, workflow):
        lr = workflow.lorry_receipts.add_lorry_receipt(_lr(), manual_number="LR000500")
        assert lr.number == "LR000500"
        # le curseur automatique n'a pas bougé
        assert workflow.lorry_receipts.add_lorry_receipt(_lr()).number == "LR000001"

    def test_manual_number_clash_rejected(self, workflow):
        workflow.lorry_receipts.add_lorry_receipt(_lr())
        with pytest.raises(InvalidManualNumber) as exc:
            workflow.lorry_receipts.add_lorry_receipt(_lr(), manual_number="1")
        assert "already in use" in exc.value.reason
        assert len(workflow.lorry_receipts.list_lorry_receipts()) == 1


class TestInvoices:

    def test_number_and_grand_total(self, workflow, client):
        inv = workflow.invoices.add_invoice(
            Invoice(date=D(2024, 1, 2), client_id="c1", total_paise=100000, cgst_paise=2500, sgst_paise=2500)
        )
        assert inv.number == "INV000001"
        assert inv.grand_total_paise == 105000
        assert workflow.invoices.get_by_id(inv.id).grand_total_paise == 105000

    def test_linked_lorry_receipts_marked_invoiced(self, workflow, client):
        lr = workflow.lorry_receipts.add_lorry_receipt(_lr())
        workflow.invoices.add_invoice(
            Invoice(date=D(2024, 1, 2), client_id="c1", total_paise=10000, lorry_receipt_ids=[lr.id])
        )
        assert workflow.lorry_receipts.get_by_id(lr.id).status == "INVOICED"

    def test_list_by_client(self, workflow, client):
        workflow.invoices.add_invoice(Invoice(date=D(2024, 1, 2), client_id="c1", total_paise=1))
        workflow.invoices.add_invoice(Invoice(date=D(2024, 1, 2), client_id="c2", total_paise=1))
        assert len(workflow.invoices.list_by_client("c1")) == 1


class TestPayments:

    @pytest.fixture
    def inv(self, workflow, client):
        lr = workflow.lorry_receipts.add_lorry_receipt(_lr())
        return workflow.invoices.add_invoice(
            Invoice(date=D(2024, 1, 2), client_id="c1", total_paise=100000, lorry_receipt_ids=[lr.id])
        )

    def test_partial_then_full_payment(self, workflow, inv):
        workflow.payments.record_payment(Payment(date=D(2024, 1, 3), amount_paise=40000, invoice_id=inv.id))
        assert workflow.invoices.get_by_id(inv.id).status == "PARTIALLY_PAID"
        workflow.payments.record_payment(Payment(date=D(2024, 1, 4), amount_paise=60000, invoice_id=inv.id))
        paid = workflow.invoices.get_by_id(inv.id)
        assert paid.status == "PAID"
        assert workflow.lorry_receipts.get_by_id(paid.lorry_receipt_ids[0]).status == "PAID"

    def test_deleting_payment_reverts_status(self, workflow, inv):
        p = workflow.payments.record_payment(Payment(date=D(2024, 1, 3), amount_paise=100000, invoice_id=inv.id))
        assert workflow.payments.delete_payment(p.id) is True
        assert workflow.invoices.get_by_id(inv.id).status == "UNPAID"

    def test_deleting_invalid_payment_row(self, workflow, inv):
        workflow.payments.repo.add({"id": "bad", "amount_paise": "x", "invoice_id": inv.id})
        assert workflow.payments.delete_payment("bad") is True
        assert workflow.payments.repo.get_by_id("bad") is None
        assert workflow.invoices.get_by_id(inv.id).status == "UNPAID"

    def test_client_id_taken_from_invoice(self, workflow, inv):
        p = workflow.payments.record_payment(Payment(date=D(2024, 1, 3), amount_paise=1, invoice_id=inv.id))
        assert p.client_id == "c1"

    def test_expanded_link_persisted_as_id(self, workflow, inv):
        workflow.payments.record_payment(Payment(date=D(2024, 1, 3), amount_paise=1, invoice_id=inv))
        [stored] = workflow.payments.repo.list_all()
        assert stored["invoice_id"] == inv.id

    def test_unknown_invoice_rejected(self, workflow):
        with pytest.raises(MissingReference):
            workflow.payments.record_payment(Payment(date=D(2024, 1, 3), amount_paise=1, invoice_id="ghost"))

    def test_payment_needs_exactly_one_target(self, workflow):
        with pytest.raises(ValueError):
            workflow.payments.record_payment(Payment(date=D(2024, 1, 3), amount_paise=1))

    def test_non_positive_amount_rejected(self, workflow, inv):
        with pytest.raises(ValueError):
            workflow.payments.record_payment(Payment(date=D(2024, 1, 3), amount_paise=0, invoice_id=inv.id))


class TestHiringNotes:

    def test_numbers_from_counter(self, workflow):
        a = workflow.hiring_notes.add_note(TruckHiringNote(date=D(2024, 1, 1), freight_paise=5000))
        b = workflow.hiring_notes.add_note(TruckHiringNote(date=D(2024, 1, 1), freight_paise=5000))
        assert (a.number, b.number) == (1, 2)
        assert a.balance_payable_paise == 5000
        assert a.status == "UNPAID"

    def test_payment_updates_balance(self, workflow):
        thn = workflow.hiring_notes.add_note(TruckHiringNote(date=D(2024, 1, 1), freight_paise=5000))
        workflow.payments.record_payment(
            Payment(date=D(2024, 1, 2), amount_paise=2000, truck_hiring_note_id=thn.id)
        )
        saved = workflow.hiring_notes.get_by_id(thn.id)
        assert (saved.paid_paise, saved.balance_payable_paise, saved.status) == (2000, 3000, "PARTIALLY_PAID")


class TestLedgersFromStore:

    def test_client_ledger_after_deleting_invoice(self, workflow, client):
        inv = workflow.invoices.add_invoice(Invoice(date=D(2024, 1, 1), client_id="c1", total_paise=100000))
        workflow.payments.record_payment(Payment(date=D(2024, 1, 5), amount_paise=30000, invoice_id=inv.id))
        workflow.invoices.delete_invoice(inv.id)

        stmt = workflow.client_ledger("c1")
        assert stmt.total_credit == 30000
        assert stmt.transactions[0].particulars.startswith("Payment via")

    def test_client_ledger_filtered(self, workflow, client):
        inv = workflow.invoices.add_invoice(Invoice(date=D(2024, 1, 1), client_id="c1", total_paise=100000))
        workflow.payments.record_payment(Payment(date=D(2024, 1, 5), amount_paise=100000, invoice_id=inv.id))
        workflow.invoices.add_invoice(Invoice(date=D(2024, 1, 10), client_id="c1", total_paise=50000))

        stmt = workflow.client_ledger("c1", LedgerFilters(transaction_type="invoice"))
        assert stmt.closing_balance == 50000

    def test_company_ledger(self, workflow, client):
        workflow.invoices.add_invoice(Invoice(date=D(2024, 1, 1), client_id="c1", total_paise=100000))
        workflow.hiring_notes.add_note(
            TruckHiringNote(date=D(2024, 1, 2), truck_owner_name="Singh Carriers", freight_paise=40000)
        )
        stmt = workflow.company_ledger()
        assert stmt.net == 60000
        assert [t.party for t in stmt.transactions] == ["Acme Logistics", "Singh Carriers"]

    def test_exports_live_under_the_data_dir(self, workflow, tmp_path):
        assert workflow.statements.exports_dir == tmp_path / "data" / "exports"
