from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from lorrybook.models.numbering import NumberingConfig
from lorrybook.storage.json_repo import JsonRepository

logger = logging.getLogger(__name__)


class NumberingStore:
    """
    Frontière avec le store distant des configurations de numérotation.

    update_current_number() est un compare-and-set : si `expected` est donné
    et ne correspond plus au curseur persisté, rien n'est écrit et la méthode
    renvoie None. Les implémentations doivent faire la comparaison et
    l'écriture en une seule étape indivisible.

    save_config() traite config.current_number comme un plancher : le curseur
    persisté devient max(plancher, curseur actuel), dans la même étape
    indivisible. Le config effectivement stocké est renvoyé.
    """

    def get_configs(self) -> List[NumberingConfig]:
        raise NotImplementedError

    def save_config(self, config: NumberingConfig) -> NumberingConfig:
        raise NotImplementedError

    def update_current_number(
        self, doc_type: str, current_number: int, expected: Optional[int] = None
    ) -> Optional[NumberingConfig]:
        raise NotImplementedError


class JsonNumberingStore(NumberingStore):
    """Configurations dans data/numbering.json, une ligne par type (clé `type`)."""

    def __init__(self, path: Union[str, Path]):
        self.repo: JsonRepository[Dict[str, Any]] = JsonRepository(path, entity_name="numbering config", key="type")

    def get_configs(self) -> List[NumberingConfig]:
        out: List[NumberingConfig] = []
        for row in self.repo.list_all():
            try:
                out.append(NumberingConfig.model_validate(row))
            except ValidationError as e:
                logger.warning("Skipping invalid numbering config %r: %s", row.get("type"), e)
        return out

    def save_config(self, config: NumberingConfig) -> NumberingConfig:
        def _merge(row: Optional[Dict[str, Any]]) -> Dict[str, Any]:
            if row is None:
                return config.to_contract()
            persisted = NumberingConfig.model_validate(row)
            cursor = max(config.current_number, persisted.current_number)
            return config.model_copy(update={"current_number": cursor}).to_contract()

        return NumberingConfig.model_validate(self.repo.mutate(config.type, _merge))

    def update_current_number(
        self, doc_type: str, current_number: int, expected: Optional[int] = None
    ) -> Optional[NumberingConfig]:
        conflict = False

        def _cas(row: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
            nonlocal conflict
            if row is None:
                raise KeyError(f"Configuration not found for {doc_type}")
            cfg = NumberingConfig.model_validate(row)
            if expected is not None and cfg.current_number != expected:
                conflict = True
                return None
            cfg.current_number = current_number
            return cfg.to_contract()

        row = self.repo.mutate(doc_type, _cas)
        if conflict or row is None:
            return None
        return NumberingConfig.model_validate(row)


class JsonCounterStore:
    """Compteurs entiers nommés (find-and-increment), ex. numéros de THN."""

    def __init__(self, path: Union[str, Path]):
        self.repo: JsonRepository[Dict[str, Any]] = JsonRepository(path, entity_name="counter", key="name")

    def next_value(self, name: str) -> int:
        row = self.repo.mutate(name, lambda cur: {"name": name, "seq": int((cur or {}).get("seq", 0)) + 1})
        return int(row["seq"])  # type: ignore[index]

    def peek(self, name: str) -> int:
        row = self.repo.get_by_id(name)
        return int(row.get("seq", 0)) if row else 0
