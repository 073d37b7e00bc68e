from __future__ import annotations
from typing import List, Optional
from pathlib import Path
import logging

from pydantic import ValidationError

from lorrybook.models.client import Client
from lorrybook.settings import DATA_DIR
from lorrybook.storage.json_repo import JsonRepository

logger = logging.getLogger(__name__)

CLIENTS_JSON = DATA_DIR / "clients.json"


class ClientService:
    def __init__(self, path: str | Path = CLIENTS_JSON):
        self.repo = JsonRepository(path, entity_name="client", key="id")

    def list_clients(self) -> List[Client]:
        out: List[Client] = []
        for d in self.repo.list_all():
            try:
                out.append(Client(**d))
            except ValidationError:
                # entrée invalide ignorée pour ne pas casser les écrans
                logger.warning("Skipping invalid client row %r", d.get("id"))
                continue
        return out

    def add_client(self, client: Client) -> Client:
        self.repo.add(client)
        return client

    def update_client(self, client: Client) -> Client:
        self.repo.update(client)
        return client

    def delete_client(self, client_id: str) -> bool:
        return self.repo.delete(client_id)

    def get_by_id(self, client_id: str) -> Optional[Client]:
        d = self.repo.get_by_id(client_id)
        if d is None:
            return None
        try:
            return Client(**d)
        except ValidationError:
            return None
