"""
test_json_repo.py - JSON repository and counter store
"""

import json
import threading

import pytest

from lorrybook.models.client import Client
from lorrybook.storage.json_repo import JsonRepository
from lorrybook.storage.numbering_store import JsonCounterStore


@pytest.fixture
def repo(tmp_path):
    return JsonRepository(tmp_path / "rows.json", entity_name="row")


class TestCrud:

    def test_file_created_empty(self, tmp_path):
        JsonRepository(tmp_path / "sub" / "x.json")
        assert json.loads((tmp_path / "sub" / "x.json").read_text()) == []

    def test_add_and_get(self, repo):
        rec = repo.add({"name": "a"})
        assert rec["id"]
        assert repo.get_by_id(rec["id"])["name"] == "a"

    def test_add_pydantic_model(self, repo):
        repo.add(Client(id="c1", name="Acme", contact_email="ops@acme.in"))
        assert repo.get_by_id("c1")["contact_email"] == "ops@acme.in"

    def test_duplicate_key_rejected(self, repo):
        repo.add({"id": "1"})
        with pytest.raises(ValueError):
            repo.add({"id": "1"})

    def test_update_merges(self, repo):
        repo.add({"id": "1", "a": 1, "b": 2})
        repo.update({"id": "1", "b": 3})
        assert repo.get_by_id("1") == {"id": "1", "a": 1, "b": 3}

    def test_update_missing_raises(self, repo):
        with pytest.raises(KeyError):
            repo.update({"id": "nope"})

    def test_upsert(self, repo):
        repo.upsert({"id": "1", "v": 1})
        repo.upsert({"id": "1", "v": 2})
        assert repo.list_all() == [{"id": "1", "v": 2}]

    def test_delete(self, repo):
        repo.add({"id": "1"})
        assert repo.delete("1") is True
        assert repo.delete("1") is False

    def test_corrupt_file_reads_as_empty(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        repo = JsonRepository(path)
        assert repo.list_all() == []
        assert (tmp_path / "bad.corrupt.json").exists()

    def test_backups_rotate(self, tmp_path):
        repo = JsonRepository(tmp_path / "r.json", backup_enabled=True, backup_keep=2)
        for i in range(5):
            repo.add({"id": str(i)})
        assert len(list(tmp_path.glob("r.*.bak.json"))) <= 2


class TestMutate:

    def test_mutate_inserts_missing_row(self, repo):
        row = repo.mutate("k", lambda cur: {"value": 1 if cur is None else 2})
        assert row == {"value": 1, "id": "k"}

    def test_mutate_none_writes_nothing(self, repo):
        repo.add({"id": "k", "value": 1})
        assert repo.mutate("k", lambda cur: None) is None
        assert repo.get_by_id("k")["value"] == 1

    def test_mutate_is_atomic_across_threads(self, repo):
        repo.add({"id": "k", "n": 0})

        def bump():
            for _ in range(20):
                repo.mutate("k", lambda cur: {**cur, "n": cur["n"] + 1})

        threads = [threading.Thread(target=bump) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert repo.get_by_id("k")["n"] == 80


class TestCounterStore:

    def test_next_value_increments(self, tmp_path):
        counters = JsonCounterStore(tmp_path / "counters.json")
        assert [counters.next_value("thn") for _ in range(3)] == [1, 2, 3]
        assert counters.peek("thn") == 3
        assert counters.peek("other") == 0
