from __future__ import annotations

import glob
import json
import logging
import os
import shutil
import tempfile
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Dict, Generic, Iterable, List, Mapping, Optional, TypeVar, Union
from uuid import uuid4

from pydantic import BaseModel

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Union[BaseModel, Mapping[str, Any]])


def _json_default(o: Any) -> Any:
    if isinstance(o, (date, datetime)):
        return o.isoformat()
    return str(o)


class JsonRepository(Generic[T]):
    """
    Repo JSON générique avec clé primaire configurable.
    - Rotation de backups (backup_enabled, backup_keep)
    - N'écrit pas si le contenu ne change pas
    - Écriture atomique (fichier temporaire + os.replace)
    - mutate() : lecture-modification-écriture sous verrou, en une étape
    """

    def __init__(
        self,
        filepath: Union[str, Path],
        entity_name: str = "entity",
        key: str = "id",
        *,
        backup_enabled: bool = False,
        backup_keep: int = 5,
    ) -> None:
        self.filepath = Path(filepath)
        self.entity_name = entity_name
        self.key = key
        # RLock : mutate() réécrit le fichier en tenant déjà le verrou
        self._lock = threading.RLock()
        self.backup_enabled = backup_enabled
        self.backup_keep = max(0, int(backup_keep))

        self.filepath.parent.mkdir(parents=True, exist_ok=True)
        if not self.filepath.exists():
            self._write_raw([])

    # ---------------- I/O bas niveau ---------------- #

    def _read_raw(self) -> List[Dict[str, Any]]:
        try:
            with self.filepath.open("r", encoding="utf-8") as f:
                data = json.load(f)
            return data if isinstance(data, list) else []
        except FileNotFoundError:
            return []
        except json.JSONDecodeError:
            # Fichier corrompu → copie de côté et repart sur liste vide
            backup = self.filepath.with_suffix(".corrupt.json")
            logger.warning("Corrupt %s store %s, moved aside to %s", self.entity_name, self.filepath, backup)
            try:
                shutil.copy2(self.filepath, backup)
            except OSError:
                logger.exception("Could not back up corrupt file %s", self.filepath)
            return []

    def _rotate_backups(self) -> None:
        if not self.backup_enabled or self.backup_keep <= 0:
            return
        pattern = str(self.filepath.with_suffix(".*.bak.json"))
        files = sorted(glob.glob(pattern))
        if len(files) > self.backup_keep:
            for old in files[: len(files) - self.backup_keep]:
                Path(old).unlink(missing_ok=True)

    def _write_raw(self, data: Iterable[Mapping[str, Any]]) -> None:
        with self._lock:
            new_dump = json.dumps(list(data), ensure_ascii=False, indent=2, default=_json_default)

            # contenu identique → rien à faire
            if self.filepath.exists():
                try:
                    if self.filepath.read_text(encoding="utf-8") == new_dump:
                        return
                except OSError:
                    pass

            if self.backup_enabled and self.filepath.exists():
                ts = datetime.now().strftime("%Y%m%d-%H%M%S-%f")
                shutil.copy2(self.filepath, self.filepath.with_suffix(f".{ts}.bak.json"))
                self._rotate_backups()

            fd, tmp = tempfile.mkstemp(dir=str(self.filepath.parent), suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(new_dump)
                os.replace(tmp, self.filepath)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise

    # ---------------- Helpers ---------------- #

    @staticmethod
    def _to_dict(item: T) -> Dict[str, Any]:
        if isinstance(item, BaseModel):
            return item.model_dump(mode="json")
        if isinstance(item, Mapping):
            return dict(item)
        return dict(item.__dict__)  # type: ignore[arg-type]

    def _matches(self, row: Mapping[str, Any], obj_id: Any) -> bool:
        return str(row.get(self.key)) == str(obj_id)

    # ---------------- CRUD ---------------- #

    def list_all(self) -> List[Dict[str, Any]]:
        with self._lock:
            return self._read_raw()

    def get_by_id(self, obj_id: Any) -> Optional[Dict[str, Any]]:
        for it in self.list_all():
            if self._matches(it, obj_id):
                return it
        return None

    def add(self, item: T) -> Dict[str, Any]:
        record = self._to_dict(item)
        k = self.key
        if not record.get(k):
            record[k] = uuid4().hex
        with self._lock:
            data = self._read_raw()
            if any(self._matches(d, record[k]) for d in data):
                raise ValueError(f"{self.entity_name} with {k}={record[k]} already exists")
            data.append(record)
            self._write_raw(data)
        return record

    def update(self, item: T) -> Dict[str, Any]:
        record = self._to_dict(item)
        k = self.key
        obj_id = record.get(k)
        if not obj_id:
            raise ValueError(f"Cannot update {self.entity_name} without '{k}'")
        with self._lock:
            data = self._read_raw()
            for idx, existing in enumerate(data):
                if self._matches(existing, obj_id):
                    merged = {**existing, **record}
                    data[idx] = merged
                    self._write_raw(data)
                    return merged
        raise KeyError(f"{self.entity_name} with {k}={obj_id} not found")

    def upsert(self, item: T) -> Dict[str, Any]:
        with self._lock:
            try:
                return self.update(item)
            except KeyError:
                return self.add(item)

    def delete(self, obj_id: Any) -> bool:
        with self._lock:
            data = self._read_raw()
            new_data = [d for d in data if not self._matches(d, obj_id)]
            changed = len(new_data) != len(data)
            if changed:
                self._write_raw(new_data)
        return changed

    def mutate(
        self,
        obj_id: Any,
        fn: Callable[[Optional[Dict[str, Any]]], Optional[Dict[str, Any]]],
    ) -> Optional[Dict[str, Any]]:
        """
        Applique fn(ligne actuelle ou None) et persiste le résultat, le tout
        sous le verrou du repo. fn renvoie None pour ne rien écrire.
        """
        with self._lock:
            data = self._read_raw()
            idx = next((i for i, d in enumerate(data) if self._matches(d, obj_id)), -1)
            current = dict(data[idx]) if idx >= 0 else None
            new = fn(current)
            if new is None:
                return None
            new = dict(new)
            new.setdefault(self.key, obj_id)
            if idx >= 0:
                data[idx] = new
            else:
                data.append(new)
            self._write_raw(data)
            return new

    # ---------------- Recherches ---------------- #

    def find(self, predicate: Callable[[Dict[str, Any]], bool]) -> List[Dict[str, Any]]:
        return [r for r in self.list_all() if predicate(r)]

    def find_one(self, predicate: Callable[[Dict[str, Any]], bool]) -> Optional[Dict[str, Any]]:
        for r in self.list_all():
            if predicate(r):
                return r
        return None
