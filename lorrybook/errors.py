from __future__ import annotations
from typing import Optional


class LorrybookError(Exception):
    """Base de toutes les erreurs métier."""


# ---------- Numérotation ---------- #

class NumberingError(LorrybookError, ValueError):
    pass


class UnknownDocumentType(NumberingError):
    def __init__(self, doc_type: str):
        super().__init__(f"No numbering configuration found for {doc_type}")
        self.doc_type = doc_type


class RangeExhausted(NumberingError):
    def __init__(self, doc_type: str, current_number: int, end_number: int):
        super().__init__(
            f"Number range exhausted for {doc_type} "
            f"(next {current_number} > end {end_number}). Please update the range in settings."
        )
        self.doc_type = doc_type
        self.current_number = current_number
        self.end_number = end_number


class InvalidManualNumber(NumberingError):
    def __init__(self, doc_type: str, candidate: str, reason: str):
        super().__init__(f"Invalid manual number {candidate!r} for {doc_type}: {reason}")
        self.doc_type = doc_type
        self.candidate = candidate
        self.reason = reason


class PersistenceFailure(LorrybookError, RuntimeError):
    """Écriture du curseur impossible : le curseur en mémoire n'a pas bougé."""

    def __init__(self, message: str, doc_type: Optional[str] = None):
        super().__init__(message)
        self.doc_type = doc_type


# ---------- Ledger ---------- #

class MissingReference(LorrybookError, LookupError):
    def __init__(self, kind: str, ref_id: Optional[str]):
        super().__init__(f"{kind} {ref_id!r} not found")
        self.kind = kind
        self.ref_id = ref_id
