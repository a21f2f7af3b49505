from __future__ import annotations
import json
import threading
from pathlib import Path

from incident_map.overlay_store import JsonFileStore, OverlayStore

REPORT = {
    "id": 6,
    "crime_type": "Theft",
    "national_id": "123",
    "latitude": 23.2,
    "longitude": 58.1,
    "report_status": "Pending",
    "report_details": "Wallet",
    "report_date_time": "2025-03-01-10-15",
}


def test_load_without_file_is_empty(tmp_path: Path):
    store = OverlayStore(JsonFileStore(tmp_path / "missing.json"))
    assert store.load() == []


def test_append_then_load_round_trip(tmp_path: Path):
    store = OverlayStore(JsonFileStore(tmp_path / "store.json"))
    assert store.append(REPORT) is True
    loaded = store.load()
    assert loaded.count(REPORT) == 1
    assert len(loaded) == 1


def test_append_preserves_existing_entries_and_other_keys(tmp_path: Path):
    path = tmp_path / "store.json"
    kv = JsonFileStore(path)
    kv.set("theme", "dark")
    store = OverlayStore(kv)
    store.append(dict(REPORT, id=1))
    store.append(dict(REPORT, id=2))
    assert [r["id"] for r in store.load()] == [1, 2]
    assert kv.get("theme") == "dark"


def test_corrupt_file_is_treated_as_empty(tmp_path: Path):
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")
    store = OverlayStore(JsonFileStore(path))
    assert store.load() == []
    assert store.append(REPORT) is True
    assert store.load() == [REPORT]


def test_unparsable_value_is_treated_as_empty(tmp_path: Path):
    path = tmp_path / "store.json"
    path.write_text(json.dumps({"newReports": "[{oops"}), encoding="utf-8")
    assert OverlayStore(JsonFileStore(path)).load() == []


def test_failed_persist_returns_false(tmp_path: Path, monkeypatch):
    kv = JsonFileStore(tmp_path / "store.json")

    def boom(key, value):
        raise OSError("disk full")

    monkeypatch.setattr(kv, "set", boom)
    assert OverlayStore(kv).append(REPORT) is False


class UnreadablePath:
    def exists(self):
        raise PermissionError("permission denied")


def test_unreadable_path_is_treated_as_empty(tmp_path: Path):
    kv = JsonFileStore(tmp_path / "store.json")
    kv.path = UnreadablePath()
    assert OverlayStore(kv).load() == []


def test_concurrent_appends_keep_every_report(tmp_path: Path):
    path = tmp_path / "store.json"

    def worker(prefix: int) -> None:
        store = OverlayStore(JsonFileStore(path))
        for n in range(100):
            store.append(dict(REPORT, id=prefix * 1000 + n))

    threads = [threading.Thread(target=worker, args=(i,)) for i in (1, 2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    ids = [r["id"] for r in OverlayStore(JsonFileStore(path)).load()]
    assert len(ids) == 200
    assert len(set(ids)) == 200


def test_write_leaves_no_temp_files(tmp_path: Path):
    store = OverlayStore(JsonFileStore(tmp_path / "store.json"))
    store.append(REPORT)
    store.append(REPORT)
    assert [p.name for p in tmp_path.iterdir()] == ["store.json"]
