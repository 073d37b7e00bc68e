# lorrybook/services/ledger_service.py
"""
Grand livre client et grand livre société.

Tout est pur : les documents arrivent déjà chargés par les services CRUD,
rien n'est lu ni écrit ici. Le solde progressif est calculé sur la totalité
des mouvements du compte, triés par date ; les filtres (dates, type) ne
choisissent qu'ensuite les lignes à afficher.
"""
from __future__ import annotations
import datetime as dt
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from lorrybook.errors import MissingReference
from lorrybook.models.client import Client
from lorrybook.models.invoice import Invoice
from lorrybook.models.ledger import (
    CompanyLedgerStatement,
    CompanyTransaction,
    LedgerFilters,
    LedgerStatement,
    LedgerTransaction,
)
from lorrybook.models.payment import Payment
from lorrybook.models.truck_hiring_note import TruckHiringNote

logger = logging.getLogger(__name__)

# à date égale, la facture passe avant le paiement qui la solde
_KIND_ORDER = {"invoice": 0, "payment": 1}

Settled = Union[Invoice, TruckHiringNote]


# ---------- Normalisation des références ---------- #

@dataclass(frozen=True)
class ResolvedPayment:
    payment: Payment
    target: Optional[Settled]  # None si le document lié a disparu

    @property
    def account_id(self) -> Optional[str]:
        if self.target is not None:
            return self.target.account_id
        return self.payment.client_id


def _index(docs: Iterable[Settled]) -> Dict[str, Settled]:
    return {d.id: d for d in docs}


def resolve_target(
    payment: Payment,
    invoices_by_id: Mapping[str, Invoice],
    notes_by_id: Mapping[str, TruckHiringNote],
) -> Settled:
    """
    Renvoie le document réglé par le paiement, qu'il soit stocké comme id brut
    ou déjà déplié. La version de la collection l'emporte sur la copie dépliée.
    Lève MissingReference si le document n'existe plus.
    """
    inv_ref = payment.invoice_ref()
    if inv_ref:
        found = invoices_by_id.get(inv_ref)
        if found is not None:
            return found
        if isinstance(payment.invoice_id, Invoice):
            return payment.invoice_id
        raise MissingReference("Invoice", inv_ref)

    thn_ref = payment.hiring_note_ref()
    if thn_ref:
        found = notes_by_id.get(thn_ref)
        if found is not None:
            return found
        if isinstance(payment.truck_hiring_note_id, TruckHiringNote):
            return payment.truck_hiring_note_id
        raise MissingReference("TruckHiringNote", thn_ref)

    raise MissingReference("Document", None)


def normalize_payment_link(
    payment: Payment,
    invoices_by_id: Mapping[str, Invoice],
    notes_by_id: Mapping[str, TruckHiringNote],
) -> ResolvedPayment:
    try:
        return ResolvedPayment(payment, resolve_target(payment, invoices_by_id, notes_by_id))
    except MissingReference as e:
        logger.debug("Payment %s: %s, using generic description", payment.id, e)
        return ResolvedPayment(payment, None)


# ---------- Libellés ---------- #

def invoice_particulars(inv: Invoice) -> str:
    return f"Invoice No: {inv.number or inv.id}"


def payment_particulars(resolved: ResolvedPayment) -> str:
    p = resolved.payment
    target = resolved.target
    if isinstance(target, Invoice):
        text = f"Payment for INV-{target.number or target.id} via {p.mode}"
    elif isinstance(target, TruckHiringNote):
        text = f"Payment for THN-{target.number if target.number is not None else target.id} via {p.mode}"
    else:
        text = f"Payment via {p.mode}"
    if p.reference_no:
        text += f" ({p.reference_no})"
    return text


# ---------- Tri ---------- #

def _doc_key(number: Union[str, int, None], doc_id: str) -> Tuple[str, str]:
    return (str(number) if number is not None else "", doc_id)


def _sort_key(tx: LedgerTransaction, tiebreak: Tuple[str, str]) -> tuple:
    return (tx.date, _KIND_ORDER.get(tx.type, 9), tiebreak)


# ---------- Grand livre client ---------- #

def build_client_ledger(
    account_id: str,
    invoices: Sequence[Invoice],
    payments: Sequence[Payment],
    hiring_notes: Sequence[TruckHiringNote] = (),
    filters: Optional[LedgerFilters] = None,
) -> LedgerStatement:
    filters = filters or LedgerFilters()
    invoices_by_id: Dict[str, Invoice] = _index(invoices)  # type: ignore[assignment]
    notes_by_id: Dict[str, TruckHiringNote] = _index(hiring_notes)  # type: ignore[assignment]

    keyed: List[Tuple[tuple, LedgerTransaction]] = []

    for inv in invoices:
        if inv.account_id != account_id:
            continue
        tx = LedgerTransaction(
            id=f"inv-{inv.id}",
            type="invoice",
            date=inv.date,
            particulars=invoice_particulars(inv),
            debit=inv.grand_total_paise,
            credit=0,
        )
        keyed.append((_sort_key(tx, _doc_key(inv.number, inv.id)), tx))

    for p in payments:
        resolved = normalize_payment_link(p, invoices_by_id, notes_by_id)
        if resolved.account_id != account_id:
            continue
        tx = LedgerTransaction(
            id=f"pay-{p.id}",
            type="payment",
            date=p.date,
            particulars=payment_particulars(resolved),
            debit=0,
            credit=p.amount_paise,
        )
        keyed.append((_sort_key(tx, _doc_key(p.reference_no, p.id)), tx))

    keyed.sort(key=lambda kt: kt[0])

    # solde progressif sur l'historique complet, avant tout filtrage
    balance = 0
    history: List[LedgerTransaction] = []
    for _, tx in keyed:
        balance += tx.debit - tx.credit
        history.append(tx.model_copy(update={"balance": balance}))

    opening = 0
    closing = 0
    for tx in history:
        if filters.start_date and tx.date < filters.start_date:
            opening = tx.balance
        if filters.end_date is None or tx.date <= filters.end_date:
            closing = tx.balance

    shown = [
        tx for tx in history
        if filters.matches_date(tx.date) and filters.matches_type(tx.type)
    ]
    return LedgerStatement(
        account_id=account_id,
        transactions=shown,
        total_debit=sum(tx.debit for tx in shown),
        total_credit=sum(tx.credit for tx in shown),
        opening_balance=opening,
        closing_balance=closing,
    )


# ---------- Grand livre société ---------- #

def build_company_ledger(
    invoices: Sequence[Invoice],
    hiring_notes: Sequence[TruckHiringNote] = (),
    clients: Sequence[Client] = (),
    filters: Optional[LedgerFilters] = None,
) -> CompanyLedgerStatement:
    """
    Vue tous comptes confondus : factures en produits, locations de camions
    en charges. Pas de solde progressif, seulement des totaux et le net.
    """
    filters = filters or LedgerFilters()
    names = {c.id: c.name for c in clients}

    keyed: List[Tuple[tuple, CompanyTransaction]] = []
    for inv in invoices:
        party = inv.client.name if inv.client is not None else names.get(inv.client_id, "N/A")
        tx = CompanyTransaction(
            id=f"inv-{inv.id}",
            type="income",
            date=inv.date,
            party=party,
            particulars=invoice_particulars(inv),
            amount=inv.grand_total_paise,
        )
        keyed.append(((tx.date, 0, _doc_key(inv.number, inv.id)), tx))

    for thn in hiring_notes:
        tx = CompanyTransaction(
            id=f"thn-{thn.id}",
            type="expense",
            date=thn.date,
            party=thn.truck_owner_name or "N/A",
            particulars=f"Truck Hiring Note No: {thn.number if thn.number is not None else thn.id}",
            amount=thn.freight_paise,
        )
        keyed.append(((tx.date, 1, _doc_key(thn.number, thn.id)), tx))

    keyed.sort(key=lambda kt: kt[0])
    shown = [
        tx for _, tx in keyed
        if filters.matches_date(tx.date) and filters.matches_type(tx.type)
    ]
    income = sum(tx.amount for tx in shown if tx.type == "income")
    expense = sum(tx.amount for tx in shown if tx.type == "expense")
    return CompanyLedgerStatement(
        transactions=shown, total_income=income, total_expense=expense, net=income - expense
    )


# ---------- Présentation ---------- #

def format_inr(paise: int) -> str:
    """1234567 paise -> '12,345.67' (groupement indien)."""
    sign = "-" if paise < 0 else ""
    rupees, frac = divmod(abs(int(paise)), 100)
    digits = str(rupees)
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups) + "," + tail
    return f"{sign}{digits}.{frac:02d}"


def format_balance(paise: int) -> str:
    return f"{format_inr(abs(paise))} {'Dr' if paise >= 0 else 'Cr'}"
