from concurrent.futures import ThreadPoolExecutor

from core.session import SchemaSessionStore
from models.schema import DBType, Schema, Table


def _schema(name):
    return Schema(db_type=DBType.MYSQL, tables=[Table(name=name)])


def test_create_get_delete():
    store = SchemaSessionStore()
    sid = store.create(_schema("a"))
    assert store.get(sid).tables[0].name == "a"
    assert len(store) == 1
    assert store.delete(sid) is True
    assert store.get(sid) is None
    assert store.delete(sid) is False


def test_concurrent_sessions_do_not_interfere():
    store = SchemaSessionStore()
    names = [f"t{i}" for i in range(50)]
    with ThreadPoolExecutor(max_workers=8) as pool:
        ids = list(pool.map(lambda n: store.create(_schema(n)), names))
    assert len(set(ids)) == 50
    assert [store.get(sid).tables[0].name for sid in ids] == names
