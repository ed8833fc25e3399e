from repositories.memory_store import MemoryStore


def test_create_is_create_if_absent():
    store = MemoryStore()
    assert store.create("profile", "acme", "c1", {"role": "employee"})
    assert not store.create("profile", "acme", "c1", {"role": "admin"})
    assert store.get("profile", "acme", "c1") == {"role": "employee"}


def test_reads_are_copies():
    store = MemoryStore()
    store.set("tenant", "acme", "acme", {"tags": ["a"]})
    doc = store.get("tenant", "acme", "acme")
    doc["tags"].append("b")
    assert store.get("tenant", "acme", "acme") == {"tags": ["a"]}


def test_compare_and_set():
    store = MemoryStore()
    store.create("join_request", "acme", "r1", {"status": "pending"})

    assert store.compare_and_set("join_request", "acme", "r1", "status", "pending", {"status": "approved"})
    assert not store.compare_and_set("join_request", "acme", "r1", "status", "pending", {"status": "rejected"})
    assert not store.compare_and_set("join_request", "acme", "missing", "status", "pending", {})
    assert store.get("join_request", "acme", "r1") == {"status": "approved"}


def test_update_requires_existing_doc():
    store = MemoryStore()
    assert not store.update("profile", "acme", "c1", {"x": 1})
    store.create("profile", "acme", "c1", {"x": 0, "y": 1})
    assert store.update("profile", "acme", "c1", {"x": 1})
    assert store.get("profile", "acme", "c1") == {"x": 1, "y": 1}


def test_queries_are_ordered_and_scoped():
    store = MemoryStore()
    store.create("profile", "zeta", "c1", {"credential_id": "c1"})
    store.create("profile", "acme", "c1", {"credential_id": "c1"})
    store.create("profile", "acme", "c2", {"credential_id": "c2"})
    store.create("tenant", "acme", "acme", {"credential_id": "c1"})

    assert store.query_all("profile", "credential_id", "c1") == [{"credential_id": "c1"}] * 2
    assert store.query("profile", "acme", "credential_id", "c2") == [{"credential_id": "c2"}]
    assert len(store.list_all("profile")) == 3
    assert store.delete("profile", "zeta", "c1")
    assert not store.delete("profile", "zeta", "c1")
