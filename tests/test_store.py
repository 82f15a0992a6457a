from dataclasses import dataclass

import pytest

from webporto.store import RecordNotFound, Table


@dataclass
class Item:
    id: object = None
    name: str = ""


def test_insert_assigns_distinct_ids():
    table = Table()
    a = table.insert(Item(name="a"))
    b = table.insert(Item(name="b"))
    assert a.id != b.id
    assert isinstance(a.id, int) and a.id > 0
    assert table.get(a.id) is a
    assert table.get(b.id) is b


def test_string_id_is_kept():
    table = Table()
    item = table.insert(Item(id="abc", name="x"))
    assert item.id == "abc"
    assert table.get("abc").name == "x"


def test_explicit_int_id_does_not_collide():
    table = Table()
    fixed = table.insert(Item(id=5, name="five"))
    auto = table.insert(Item(name="auto"))
    assert auto.id > fixed.id


def test_duplicate_insert_rejected():
    table = Table()
    table.insert(Item(id="abc"))
    with pytest.raises(ValueError):
        table.insert(Item(id="abc"))


def test_get_missing_raises():
    with pytest.raises(RecordNotFound):
        Table().get(42)


def test_save_replaces_existing():
    table = Table()
    item = table.insert(Item(name="old"))
    table.save(Item(id=item.id, name="new"))
    assert table.get(item.id).name == "new"
    assert table.count() == 1


def test_save_inserts_new():
    table = Table()
    item = table.save(Item(name="fresh"))
    assert table.get(item.id).name == "fresh"


def test_select_first_and_count():
    table = Table()
    for name in ["a", "b", "a"]:
        table.insert(Item(name=name))
    matches = table.select(lambda r: r.name == "a")
    assert [m.name for m in matches] == ["a", "a"]
    assert table.count(lambda r: r.name == "a") == len(matches)
    assert table.first(lambda r: r.name == "b").name == "b"
    with pytest.raises(RecordNotFound):
        table.first(lambda r: r.name == "z")


def test_select_keeps_insertion_order():
    table = Table()
    names = ["c", "a", "b"]
    for name in names:
        table.insert(Item(name=name))
    assert [r.name for r in table.select()] == names


def test_delete_and_delete_where():
    table = Table()
    a = table.insert(Item(name="a"))
    table.insert(Item(name="b"))
    table.insert(Item(name="b"))
    assert table.delete(a.id) is True
    assert table.delete(a.id) is False
    with pytest.raises(RecordNotFound):
        table.get(a.id)
    assert table.delete_where(lambda r: r.name == "b") == 2
    assert len(table) == 0