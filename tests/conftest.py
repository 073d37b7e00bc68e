"""
conftest.py - Shared pytest fixtures

- In-memory numbering stores (plain, failing, racing)
- Numbering service on a JSON store in tmp_path
- Factories for invoices, payments and truck hiring notes
"""

import copy
from datetime import date
from typing import Dict, List, Optional

import pytest

from lorrybook.models.invoice import Invoice
from lorrybook.models.numbering import NumberingConfig
from lorrybook.models.payment import Payment
from lorrybook.models.truck_hiring_note import TruckHiringNote
from lorrybook.services.numbering_service import NumberingService
from lorrybook.services.workflow_service import WorkflowService
from lorrybook.storage.numbering_store import JsonNumberingStore, NumberingStore


class MemoryNumberingStore(NumberingStore):
    """Store en mémoire ; compte les écritures du curseur."""

    def __init__(self, configs: Optional[List[NumberingConfig]] = None):
        self.rows: Dict[str, NumberingConfig] = {c.type: c for c in (configs or [])}
        self.cursor_writes = 0

    def get_configs(self):
        return [copy.deepcopy(c) for c in self.rows.values()]

    def save_config(self, config):
        stored = copy.deepcopy(config)
        persisted = self.rows.get(config.type)
        if persisted is not None:
            stored.current_number = max(stored.current_number, persisted.current_number)
        self.rows[config.type] = stored
        return copy.deepcopy(stored)

    def update_current_number(self, doc_type, current_number, expected=None):
        cfg = self.rows.get(doc_type)
        if cfg is None:
            raise KeyError(doc_type)
        if expected is not None and cfg.current_number != expected:
            return None
        cfg.current_number = current_number
        self.cursor_writes += 1
        return copy.deepcopy(cfg)


class FailingCursorStore(MemoryNumberingStore):
    """Lecture OK, écriture du curseur en échec."""

    def update_current_number(self, doc_type, current_number, expected=None):
        raise OSError("store unreachable")


class UnreachableStore(MemoryNumberingStore):
    def get_configs(self):
        raise OSError("store unreachable")

    def save_config(self, config):
        raise OSError("store unreachable")


class RacingStore(MemoryNumberingStore):
    """Une autre session émet `steal` numéros juste avant notre écriture."""

    def __init__(self, configs=None, steal: int = 1):
        super().__init__(configs)
        self.steal = steal

    def update_current_number(self, doc_type, current_number, expected=None):
        if self.steal > 0:
            self.steal -= 1
            self.rows[doc_type].current_number += 1
        return super().update_current_number(doc_type, current_number, expected)


def make_config(doc_type="invoice", prefix="INV", start=1, end=999, current=None, manual=True, outside=False):
    return NumberingConfig(
        type=doc_type,
        prefix=prefix,
        start_number=start,
        end_number=end,
        current_number=start if current is None else current,
        allow_manual_entry=manual,
        allow_outside_range=outside,
    )


@pytest.fixture
def memory_store():
    return MemoryNumberingStore([make_config(), make_config("lr", "LR")])


@pytest.fixture
def numbering(memory_store):
    return NumberingService(memory_store, settings={})


@pytest.fixture
def json_numbering(tmp_path):
    return NumberingService(JsonNumberingStore(tmp_path / "numbering.json"), settings={})


@pytest.fixture
def workflow(tmp_path):
    return WorkflowService(tmp_path / "data")


# ---------- factories ----------

def invoice(inv_id, client_id, day, amount, number=None):
    return Invoice(
        id=inv_id,
        number=number or f"INV{inv_id}",
        date=day,
        client_id=client_id,
        grand_total_paise=amount,
    )


def payment(pay_id, day, amount, invoice_id=None, thn_id=None, mode="NEFT", client_id=None, reference_no=None):
    return Payment(
        id=pay_id,
        date=day,
        amount_paise=amount,
        mode=mode,
        invoice_id=invoice_id,
        truck_hiring_note_id=thn_id,
        client_id=client_id,
        reference_no=reference_no,
    )


def hiring_note(thn_id, day, freight, number=1, client_id=None, owner="Ramesh Transport"):
    return TruckHiringNote(
        id=thn_id,
        number=number,
        date=day,
        client_id=client_id,
        truck_owner_name=owner,
        freight_paise=freight,
    )


D = date
