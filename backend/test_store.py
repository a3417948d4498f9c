import pytest

from infradiagram.ir import Graph
from infradiagram.store import InMemoryGraphStore


def test_set_get_delete():
    store = InMemoryGraphStore(capacity=4)
    graph = Graph()
    store.set("d1", graph)

    assert store.get("d1") is graph
    assert "d1" in store
    assert store.delete("d1") is True
    assert store.get("d1") is None
    assert store.delete("d1") is False


def test_least_recently_used_is_evicted():
    store = InMemoryGraphStore(capacity=2)
    store.set("a", Graph())
    store.set("b", Graph())
    store.get("a")
    store.set("c", Graph())

    assert "a" in store
    assert "b" not in store
    assert "c" in store
    assert len(store) == 2


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        InMemoryGraphStore(capacity=0)


def test_eviction_is_reported():
    evicted = []
    store = InMemoryGraphStore(capacity=1, on_evict=evicted.append)
    store.set("a", Graph())
    store.set("a", Graph())
    store.set("b", Graph())

    assert evicted == ["a"]
