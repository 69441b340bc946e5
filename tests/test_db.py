from datetime import date

import pytest

from smb_ledger.db import (
    ENTREPRENEURS,
    TRANSACTIONS,
    DatabaseConfig,
    LedgerStore,
    apply_update,
    delete_entity,
    init_database,
    load_collection,
    load_snapshot,
    overwrite_collection,
    write_entity,
)
from smb_ledger.ledger import (
    Entrepreneur,
    Goal,
    GoalType,
    PaidStatus,
    Transaction,
    TransactionType,
)


def make_tmp_db_cfg(tmp_path) -> DatabaseConfig:
    """Helper to build a DatabaseConfig pointing to a temporary SQLite file."""
    db_path = tmp_path / "data" / "test_db.sqlite"
    return DatabaseConfig(engine="sqlite", path=db_path)


def make_tx(tx_id, amount=100.0, day=date(2024, 3, 1)) -> Transaction:
    return Transaction(
        id=tx_id,
        entrepreneur_id="e1",
        type=TransactionType.INCOME,
        date=day,
        amount=amount,
        paid_status=PaidStatus.FULL,
        customer_name="Ama",
    )


def make_entrepreneur(e_id="e1") -> Entrepreneur:
    return Entrepreneur(
        id=e_id,
        name="Ama",
        business_name="Ama Foods",
        start_date=date(2023, 6, 1),
        goals=(
            Goal(
                id="g1",
                title="Grow",
                type=GoalType.REVENUE_TARGET,
                target_value=1000.0,
                target_date=date(2024, 6, 30),
            ),
        ),
    )


def test_init_database_creates_file_and_schema(tmp_path):
    """init_database should create the SQLite file and its parent directory."""
    cfg = make_tmp_db_cfg(tmp_path)

    assert not cfg.path.exists()
    init_database(cfg)
    assert cfg.path.exists()

    # Idempotent, and a fresh database holds no records.
    init_database(cfg)
    assert load_collection(cfg, TRANSACTIONS) == []
    assert load_collection(cfg, ENTREPRENEURS) == []


def test_write_and_load_keep_insertion_order(tmp_path):
    """Records load in insertion order, even after a rewrite."""
    cfg = make_tmp_db_cfg(tmp_path)
    init_database(cfg)

    write_entity(cfg, TRANSACTIONS, make_tx("t1"))
    write_entity(cfg, TRANSACTIONS, make_tx("t2"))
    # Replacing t1 keeps its position.
    write_entity(cfg, TRANSACTIONS, make_tx("t1", amount=250.0))

    loaded = load_collection(cfg, TRANSACTIONS)
    assert [t.id for t in loaded] == ["t1", "t2"]
    assert loaded[0].amount == pytest.approx(250.0)
    assert loaded[0].paid_status is PaidStatus.FULL


def test_entrepreneur_round_trip_keeps_goals(tmp_path):
    """Entrepreneurs are stored with their goals."""
    cfg = make_tmp_db_cfg(tmp_path)
    init_database(cfg)

    write_entity(cfg, ENTREPRENEURS, make_entrepreneur())

    (loaded,) = load_collection(cfg, ENTREPRENEURS)
    assert loaded == make_entrepreneur()


def test_delete_entity_reports_whether_something_was_removed(tmp_path):
    """delete_entity returns True only when a record existed."""
    cfg = make_tmp_db_cfg(tmp_path)
    init_database(cfg)
    write_entity(cfg, TRANSACTIONS, make_tx("t1"))

    assert delete_entity(cfg, TRANSACTIONS, "t1") is True
    assert delete_entity(cfg, TRANSACTIONS, "t1") is False
    assert load_collection(cfg, TRANSACTIONS) == []


def test_overwrite_collection_replaces_content(tmp_path):
    """Overwriting replaces one collection and leaves the other."""
    cfg = make_tmp_db_cfg(tmp_path)
    init_database(cfg)
    write_entity(cfg, TRANSACTIONS, make_tx("old"))
    write_entity(cfg, ENTREPRENEURS, make_entrepreneur())

    count = overwrite_collection(cfg, TRANSACTIONS, [make_tx("a"), make_tx("b")])

    assert count == 2
    assert [t.id for t in load_collection(cfg, TRANSACTIONS)] == ["a", "b"]
    # Other collections are untouched.
    assert len(load_collection(cfg, ENTREPRENEURS)) == 1


def test_apply_update_writes_and_deletes_across_collections(tmp_path):
    """A multi-path update writes and deletes in one go."""
    cfg = make_tmp_db_cfg(tmp_path)
    init_database(cfg)
    write_entity(cfg, TRANSACTIONS, make_tx("t1"))

    touched = apply_update(
        cfg,
        {
            "transactions/t1": None,
            "transactions/t2": make_tx("t2"),
            "entrepreneurs/e1": make_entrepreneur(),
        },
    )

    assert touched == {TRANSACTIONS, ENTREPRENEURS}
    snapshot = load_snapshot(cfg)
    assert [t.id for t in snapshot.transactions] == ["t2"]
    assert [e.id for e in snapshot.entrepreneurs] == ["e1"]


@pytest.mark.parametrize(
    "path",
    ["transactions", "transactions/", "goals/g1", "transactions/a/b"],
)
def test_apply_update_rejects_bad_paths_without_writing(tmp_path, path):
    """A bad path aborts the whole update."""
    cfg = make_tmp_db_cfg(tmp_path)
    init_database(cfg)

    with pytest.raises(ValueError):
        apply_update(cfg, {"transactions/t1": make_tx("t1"), path: make_tx("x")})

    assert load_collection(cfg, TRANSACTIONS) == []


def test_apply_update_rejects_mismatched_entity_id(tmp_path):
    """The path id must match the entity id."""
    cfg = make_tmp_db_cfg(tmp_path)
    init_database(cfg)

    with pytest.raises(ValueError, match="does not match"):
        apply_update(cfg, {"transactions/t1": make_tx("t2")})


def test_unknown_collection_and_wrong_entity_type_are_rejected(tmp_path):
    """Unknown collections and wrong entity types are rejected."""
    cfg = make_tmp_db_cfg(tmp_path)
    init_database(cfg)

    with pytest.raises(ValueError, match="Unknown collection"):
        load_collection(cfg, "staff")
    with pytest.raises(ValueError, match="Expected an Entrepreneur"):
        write_entity(cfg, ENTREPRENEURS, make_tx("t1"))


def test_unsupported_engine_is_rejected(tmp_path):
    """Only the sqlite engine is supported."""
    cfg = DatabaseConfig(engine="postgres", path=tmp_path / "db.sqlite")

    with pytest.raises(ValueError, match="Unsupported database engine"):
        init_database(cfg)


def test_store_pushes_full_collections_to_subscribers(tmp_path):
    """Listeners get the current content at once, then after every change."""
    store = LedgerStore(make_tmp_db_cfg(tmp_path))
    pushes = []

    unsubscribe = store.subscribe(TRANSACTIONS, pushes.append)
    assert pushes == [[]]

    store.write(TRANSACTIONS, make_tx("t1"))
    store.write(TRANSACTIONS, make_tx("t2"))
    assert [[t.id for t in push] for push in pushes] == [[], ["t1"], ["t1", "t2"]]

    # Deleting a missing record is not a change.
    assert store.delete(TRANSACTIONS, "missing") is False
    assert len(pushes) == 3

    store.update({"transactions/t1": None})
    assert [t.id for t in pushes[-1]] == ["t2"]

    unsubscribe()
    store.overwrite(TRANSACTIONS, [])
    assert len(pushes) == 4


def test_store_only_notifies_touched_collections(tmp_path):
    """Listeners of untouched collections get no push."""
    store = LedgerStore(make_tmp_db_cfg(tmp_path))
    tx_pushes, people_pushes = [], []
    store.subscribe(TRANSACTIONS, tx_pushes.append)
    store.subscribe(ENTREPRENEURS, people_pushes.append)

    store.write(ENTREPRENEURS, make_entrepreneur())

    assert len(tx_pushes) == 1
    assert len(people_pushes) == 2
    assert store.snapshot().entrepreneur("e1").business_name == "Ama Foods"
