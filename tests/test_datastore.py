from __future__ import annotations

import json

import pytest

from nedb_storage.datastore import Datastore
from nedb_storage.errors import DatastoreError, DatastoreLoadError, InvalidFieldError, UniqueConstraintError


def _lines(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


def test_missing_file_loads_empty_and_creates_it(tmp_path):
    path = tmp_path / "nested" / "apps"
    ds = Datastore(path)
    ds.load_database()

    assert ds.loaded
    assert ds.find({}) == []
    assert path.exists()


def test_operations_require_load(tmp_path):
    ds = Datastore(tmp_path / "apps")
    with pytest.raises(DatastoreError):
        ds.find({})


def test_insert_find_and_unique_id(tmp_path):
    ds = Datastore(tmp_path / "apps")
    ds.load_database()

    doc = ds.insert({"_id": "app1", "image": "nginx"})
    assert doc == {"_id": "app1", "image": "nginx"}

    generated = ds.insert({"image": "redis"})
    assert isinstance(generated["_id"], str) and len(generated["_id"]) == 16

    with pytest.raises(UniqueConstraintError):
        ds.insert({"_id": "app1", "image": "other"})

    assert ds.find({"_id": "app1"}) == [{"_id": "app1", "image": "nginx"}]
    assert [d["image"] for d in ds.find({"image": "redis"})] == ["redis"]
    assert ds.count() == 2


def test_find_returns_copies(tmp_path):
    ds = Datastore(tmp_path / "apps")
    ds.load_database()
    ds.insert({"_id": "a", "env": {"X": "1"}})

    found = ds.find({"_id": "a"})[0]
    found["env"]["X"] = "changed"

    assert ds.find({"_id": "a"})[0]["env"] == {"X": "1"}


def test_update_replacement_and_modifiers(tmp_path):
    ds = Datastore(tmp_path / "apps")
    ds.load_database()
    ds.insert({"_id": "a", "image": "nginx", "port": 80})

    assert ds.update({"_id": "a"}, {"image": "httpd"}) == 1
    assert ds.find({"_id": "a"}) == [{"_id": "a", "image": "httpd"}]

    assert ds.update({"_id": "a"}, {"$set": {"port": 8080}}) == 1
    assert ds.update({"_id": "a"}, {"$unset": {"image": True}}) == 1
    assert ds.find({"_id": "a"}) == [{"_id": "a", "port": 8080}]

    assert ds.update({"_id": "missing"}, {"$set": {"port": 1}}) == 0


def test_update_rejects_bad_updates(tmp_path):
    ds = Datastore(tmp_path / "apps")
    ds.load_database()
    ds.insert({"_id": "a", "port": 80})

    with pytest.raises(ValueError):
        ds.update({"_id": "a"}, {"$set": {"port": 1}, "image": "x"})
    with pytest.raises(ValueError):
        ds.update({"_id": "a"}, {"$inc": {"port": 1}})
    with pytest.raises(ValueError):
        ds.update({"_id": "a"}, {"_id": "b", "port": 1})


def test_upsert(tmp_path):
    ds = Datastore(tmp_path / "apps")
    ds.load_database()

    assert ds.update({"_id": "a"}, {"port": 80}, upsert=True) == 1
    assert ds.update({"_id": "b"}, {"$set": {"port": 81}}, upsert=True) == 1

    assert ds.find({"_id": "a"}) == [{"_id": "a", "port": 80}]
    assert ds.find({"_id": "b"}) == [{"_id": "b", "port": 81}]


def test_update_and_remove_multi(tmp_path):
    ds = Datastore(tmp_path / "apps")
    ds.load_database()
    for i in range(3):
        ds.insert({"_id": f"k{i}", "group": "web"})

    assert ds.update({"group": "web"}, {"$set": {"group": "db"}}) == 1
    assert ds.update({"group": "web"}, {"$set": {"group": "db"}}, multi=True) == 2
    assert ds.remove({"group": "db"}) == 1
    assert ds.remove({"group": "db"}, multi=True) == 2
    assert ds.find({}) == []


def test_journal_is_replayed_and_compacted_on_load(tmp_path):
    path = tmp_path / "apps"
    ds = Datastore(path)
    ds.load_database()
    ds.insert({"_id": "a", "port": 80})
    ds.insert({"_id": "b", "port": 81})
    ds.update({"_id": "a"}, {"$set": {"port": 8080}})
    ds.remove({"_id": "b"})

    # insert + insert + update + tombstone
    assert len(_lines(path)) == 4

    reloaded = Datastore(path)
    reloaded.load_database()

    assert reloaded.find({}) == [{"_id": "a", "port": 8080}]
    assert _lines(path) == [{"_id": "a", "port": 8080}]


def test_tolerates_a_few_corrupt_lines(tmp_path):
    path = tmp_path / "apps"
    good = "".join(json.dumps({"_id": f"k{i}", "n": i}) + "\n" for i in range(10))
    path.write_text(good + "{not json\n", encoding="utf-8")

    ds = Datastore(path)
    ds.load_database()

    assert ds.count() == 10


def test_too_many_corrupt_lines_fail_to_load(tmp_path):
    path = tmp_path / "apps"
    path.write_text('{"_id": "a"}\n{broken\n{broken too\n', encoding="utf-8")

    ds = Datastore(path)
    with pytest.raises(DatastoreLoadError):
        ds.load_database()

    assert not ds.loaded
    # the file on disk is left untouched
    assert "broken" in path.read_text(encoding="utf-8")


@pytest.mark.parametrize(
    "doc",
    [
        {"_id": "a", "$$deleted": True, "x": 1},
        {"_id": "a", "$ref": "x"},
        {"_id": "a", "spec": {"$ref": "x"}},
        {"_id": "a", "items": [{"$gt": 1}]},
    ],
)
def test_dollar_field_names_are_rejected_on_insert(tmp_path, doc):
    path = tmp_path / "apps"
    ds = Datastore(path)
    ds.load_database()

    with pytest.raises(InvalidFieldError):
        ds.insert(doc)

    assert ds.find({}) == []
    assert _lines(path) == []


def test_dollar_field_names_are_rejected_on_update(tmp_path):
    ds = Datastore(tmp_path / "apps")
    ds.load_database()
    ds.insert({"_id": "a", "port": 80})

    with pytest.raises(InvalidFieldError):
        ds.update({"_id": "a"}, {"_id": "a", "$ref": "x"}, upsert=True)
    with pytest.raises(InvalidFieldError):
        ds.update({"_id": "a"}, {"$set": {"$$deleted": True}})
    with pytest.raises(InvalidFieldError):
        ds.update({"_id": "b"}, {"$set": {"nested": {"$ref": "x"}}}, upsert=True)

    assert ds.find({}) == [{"_id": "a", "port": 80}]


def test_only_exact_markers_delete_on_load(tmp_path):
    path = tmp_path / "apps"
    path.write_text(
        json.dumps({"_id": "a", "n": 1}) + "\n"
        + json.dumps({"_id": "b", "n": 2}) + "\n"
        # written by an older writer: a document, not a deletion marker
        + json.dumps({"_id": "a", "$$deleted": True, "n": 3}) + "\n"
        + json.dumps({"_id": "b", "$$deleted": True}) + "\n",
        encoding="utf-8",
    )

    ds = Datastore(path)
    ds.load_database()

    assert ds.find({}) == [{"_id": "a", "$$deleted": True, "n": 3}]
