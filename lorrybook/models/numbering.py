from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from typing import Any, Dict, Optional

NUMBER_WIDTH = 6

# Types par défaut (créés à la volée s'ils manquent dans le store)
DEFAULT_CONFIGS: Dict[str, Dict[str, Any]] = {
    "lr": {"prefix": "LR", "start_number": 1, "end_number": 999999},
    "invoice": {"prefix": "INV", "start_number": 1, "end_number": 999999},
}


class _CamelModel(BaseModel):
    # attributs snake_case, forme persistée camelCase ; les deux acceptées en entrée
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_contract(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class NumberingConfigDto(_CamelModel):
    """Ce que l'administrateur envoie depuis l'écran de paramétrage."""
    type: str
    prefix: str
    start_number: int
    end_number: int
    allow_manual_entry: bool = True
    allow_outside_range: bool = False

    @model_validator(mode="after")
    def _check_range(self) -> "NumberingConfigDto":
        if not self.type or not self.prefix:
            raise ValueError("type and prefix are required")
        if self.start_number > self.end_number:
            raise ValueError("Start number must be less than or equal to end number")
        return self


class NumberingConfig(_CamelModel):
    id: Optional[str] = None
    type: str
    prefix: str
    start_number: int = 1
    end_number: int = 999999
    current_number: int = 1  # prochain numéro à émettre
    allow_manual_entry: bool = True
    allow_outside_range: bool = False

    @model_validator(mode="after")
    def _check_cursor(self) -> "NumberingConfig":
        if self.start_number > self.end_number:
            raise ValueError("Start number must be less than or equal to end number")
        if self.current_number < self.start_number:
            raise ValueError(
                f"current number {self.current_number} is below start number {self.start_number}"
            )
        return self

    @classmethod
    def default_for(cls, doc_type: str, overrides: Optional[Dict[str, Any]] = None) -> "NumberingConfig":
        # overrides en snake_case (settings.json -> numbering.defaults.<type>)
        base = dict(DEFAULT_CONFIGS.get(doc_type, {"prefix": doc_type.upper()[:3]}))
        base.update(overrides or {})
        base.setdefault("start_number", 1)
        base["current_number"] = base["start_number"]
        return cls(id=f"{doc_type}-default", type=doc_type, **base)

    @property
    def exhausted(self) -> bool:
        return self.current_number > self.end_number

    def format(self, number: int) -> str:
        return format_number(self.prefix, number)


def format_number(prefix: str, number: int, width: int = NUMBER_WIDTH) -> str:
    return f"{prefix}{number:0{width}d}"


class ManualNumberCheck(BaseModel):
    valid: bool
    message: Optional[str] = None
    number: Optional[int] = None  # valeur numérique extraite, si lisible
