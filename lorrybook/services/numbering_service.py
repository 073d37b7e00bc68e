# lorrybook/services/numbering_service.py
from __future__ import annotations
import logging
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError

from lorrybook.errors import (
    InvalidManualNumber,
    PersistenceFailure,
    RangeExhausted,
    UnknownDocumentType,
)
from lorrybook.models.numbering import (
    DEFAULT_CONFIGS,
    ManualNumberCheck,
    NumberingConfig,
    NumberingConfigDto,
)
from lorrybook.settings import DATA_DIR, load_settings
from lorrybook.storage.numbering_store import JsonNumberingStore, NumberingStore

logger = logging.getLogger(__name__)

NUMBERING_JSON = DATA_DIR / "numbering.json"

# erreurs "attendues" d'un store (fichier, réseau) ; le reste remonte tel quel
STORE_ERRORS = (OSError, PersistenceFailure)

_DIGITS = re.compile(r"[0-9]+")


class NumberingService:
    """
    Allocateur de numéros de documents (LR, factures...).

    Un cache par type est tenu en mémoire ; l'émission passe toujours par le
    compare-and-set du store, donc deux sessions qui lisent le même curseur
    ne peuvent pas émettre le même numéro : la perdante relit le curseur
    persisté et recommence.
    """

    def __init__(
        self,
        store: Optional[NumberingStore] = None,
        *,
        settings: Optional[Mapping[str, Any]] = None,
        max_attempts: int = 5,
    ) -> None:
        self.store = store if store is not None else JsonNumberingStore(NUMBERING_JSON)
        self.max_attempts = max(1, int(max_attempts))
        s = settings if settings is not None else load_settings()
        numbering = s.get("numbering", {}) if isinstance(s.get("numbering"), dict) else {}
        self._default_overrides: Dict[str, Dict[str, Any]] = numbering.get("defaults") or {}
        self._configs: Dict[str, NumberingConfig] = {}

    # ----------- chargement ----------- #

    def _default(self, doc_type: str) -> NumberingConfig:
        return NumberingConfig.default_for(doc_type, self._default_overrides.get(doc_type))

    def load_configs(self) -> List[NumberingConfig]:
        try:
            configs = self.store.get_configs()
        except STORE_ERRORS as e:
            logger.warning("Numbering store unavailable (%s), using default configs", e)
            self._configs = {t: self._default(t) for t in DEFAULT_CONFIGS}
            return self.all_configs()

        self._configs = {c.type: c for c in configs}
        for doc_type in DEFAULT_CONFIGS:
            if doc_type not in self._configs:
                self._configs[doc_type] = self._persist_default(doc_type)
        return self.all_configs()

    def _persist_default(self, doc_type: str) -> NumberingConfig:
        cfg = self._default(doc_type)
        try:
            cfg = self.store.save_config(cfg)
        except STORE_ERRORS as e:
            # gardé en mémoire ; l'émission échouera proprement tant que le store est absent
            logger.warning("Could not persist default %s numbering config: %s", doc_type, e)
        return cfg

    def load_config(self, doc_type: str) -> NumberingConfig:
        if doc_type not in self._configs:
            self.load_configs()
        if doc_type not in self._configs:
            self._configs[doc_type] = self._persist_default(doc_type)
        return self._configs[doc_type]

    def _refresh(self, doc_type: str) -> NumberingConfig:
        try:
            configs = self.store.get_configs()
        except STORE_ERRORS as e:
            raise PersistenceFailure(f"Could not reload {doc_type} numbering cursor: {e}", doc_type) from e
        for c in configs:
            if c.type == doc_type:
                self._configs[doc_type] = c
                return c
        raise UnknownDocumentType(doc_type)

    def get_config(self, doc_type: str) -> Optional[NumberingConfig]:
        return self._configs.get(doc_type)

    def all_configs(self) -> List[NumberingConfig]:
        return list(self._configs.values())

    # ----------- administration ----------- #

    def save_config(self, dto: Union[NumberingConfigDto, Mapping[str, Any]]) -> NumberingConfig:
        if not isinstance(dto, NumberingConfigDto):
            try:
                dto = NumberingConfigDto.model_validate(dto)
            except ValidationError as e:
                raise ValueError(f"Invalid configuration data: {e}") from e

        previous = self._configs.get(dto.type)
        if previous is None:
            previous = next((c for c in self._safe_configs() if c.type == dto.type), None)

        # plancher du curseur ; le store garde max(plancher, curseur persisté)
        # sous son verrou, donc une modification ne fait jamais reculer la séquence
        cfg = NumberingConfig(
            id=previous.id if previous is not None else f"{dto.type}-config",
            type=dto.type,
            prefix=dto.prefix,
            start_number=dto.start_number,
            end_number=dto.end_number,
            current_number=dto.start_number,
            allow_manual_entry=dto.allow_manual_entry,
            allow_outside_range=dto.allow_outside_range,
        )
        try:
            saved = self.store.save_config(cfg)
        except STORE_ERRORS as e:
            raise PersistenceFailure(f"Error saving {dto.type} numbering config: {e}", dto.type) from e
        self._configs[dto.type] = saved
        logger.info(
            "Numbering config %s saved: %s[%d..%d], next=%d",
            saved.type, saved.prefix, saved.start_number, saved.end_number, saved.current_number,
        )
        return saved

    def _safe_configs(self) -> List[NumberingConfig]:
        try:
            return self.store.get_configs()
        except STORE_ERRORS:
            return []

    # ----------- émission ----------- #

    def get_next_number(self, doc_type: str) -> str:
        cfg = self.load_config(doc_type)
        for attempt in range(1, self.max_attempts + 1):
            if cfg.exhausted and not cfg.allow_outside_range:
                raise RangeExhausted(doc_type, cfg.current_number, cfg.end_number)

            issued = cfg.current_number
            try:
                saved = self.store.update_current_number(doc_type, issued + 1, expected=issued)
            except KeyError as e:
                raise PersistenceFailure(f"Numbering config {doc_type} is not persisted", doc_type) from e
            except STORE_ERRORS as e:
                raise PersistenceFailure(f"Failed to update current number for {doc_type}: {e}", doc_type) from e

            if saved is not None:
                self._configs[doc_type] = saved
                number = saved.format(issued)
                logger.info("Issued %s number %s", doc_type, number)
                return number

            logger.warning(
                "Stale %s cursor %d (attempt %d/%d), reloading", doc_type, issued, attempt, self.max_attempts
            )
            cfg = self._refresh(doc_type)

        raise PersistenceFailure(
            f"Could not reserve a {doc_type} number after {self.max_attempts} attempts", doc_type
        )

    # ----------- saisie manuelle ----------- #

    @staticmethod
    def _parse(cfg: NumberingConfig, candidate: Union[str, int]) -> Optional[int]:
        # entiers strictement positifs uniquement, chiffres ASCII
        if isinstance(candidate, bool):
            return None
        if isinstance(candidate, int):
            return candidate if candidate > 0 else None
        text = str(candidate).strip()
        if cfg.prefix and text.startswith(cfg.prefix):
            text = text[len(cfg.prefix):]
        if not _DIGITS.fullmatch(text):
            return None
        value = int(text)
        return value if value > 0 else None

    def validate_manual_number(
        self,
        doc_type: str,
        candidate: Union[str, int],
        existing: Iterable[Union[str, int, None]] = (),
    ) -> ManualNumberCheck:
        cfg = self.load_config(doc_type)

        if not cfg.allow_manual_entry:
            return ManualNumberCheck(valid=False, message="Manual entry is not allowed for this type")

        value = self._parse(cfg, candidate)
        if value is None:
            return ManualNumberCheck(valid=False, message="Invalid number format")

        if not (cfg.start_number <= value <= cfg.end_number) and not cfg.allow_outside_range:
            return ManualNumberCheck(
                valid=False,
                message=f"Number must be between {cfg.start_number} and {cfg.end_number}",
                number=value,
            )

        for other in existing:
            if other is None:
                continue
            if self._parse(cfg, other) == value:
                return ManualNumberCheck(
                    valid=False, message=f"{cfg.format(value)} is already in use", number=value
                )

        return ManualNumberCheck(valid=True, number=value)

    def require_manual_number(
        self,
        doc_type: str,
        candidate: Union[str, int],
        existing: Iterable[Union[str, int, None]] = (),
    ) -> str:
        """Comme validate_manual_number, mais lève et renvoie le numéro normalisé."""
        check = self.validate_manual_number(doc_type, candidate, existing)
        if not check.valid:
            raise InvalidManualNumber(doc_type, str(candidate), check.message or "invalid")
        return self.load_config(doc_type).format(check.number)  # type: ignore[arg-type]
