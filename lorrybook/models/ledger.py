from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Literal, Optional
import datetime as dt

TransactionType = Literal["invoice", "payment", "income", "expense"]
TransactionFilter = Literal["all", "invoice", "payment", "income", "expense"]


class _ContractModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_contract(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class LedgerFilters(BaseModel):
    """Filtres d'affichage ; n'influencent jamais le solde progressif."""
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    transaction_type: TransactionFilter = "all"

    @model_validator(mode="after")
    def _check_dates(self) -> "LedgerFilters":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date")
        return self

    def matches_date(self, d: dt.date) -> bool:
        if self.start_date and d < self.start_date:
            return False
        if self.end_date and d > self.end_date:
            return False
        return True

    def matches_type(self, tx_type: str) -> bool:
        return self.transaction_type == "all" or self.transaction_type == tx_type


class LedgerTransaction(_ContractModel):
    id: str
    type: TransactionType
    date: dt.date
    particulars: str
    debit: int = 0  # paise
    credit: int = 0  # paise
    balance: int = 0  # solde progressif, paise


class LedgerStatement(_ContractModel):
    account_id: str
    transactions: List[LedgerTransaction] = Field(default_factory=list)
    total_debit: int = 0
    total_credit: int = 0
    opening_balance: int = 0
    closing_balance: int = 0


class CompanyTransaction(_ContractModel):
    id: str
    type: Literal["income", "expense"]
    date: dt.date
    party: str
    particulars: str
    amount: int


class CompanyLedgerStatement(_ContractModel):
    transactions: List[CompanyTransaction] = Field(default_factory=list)
    total_income: int = 0
    total_expense: int = 0
    net: int = 0
