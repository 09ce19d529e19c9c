"""Tests for the copy-on-write operation store."""

from swap_history.core.store import OperationStore


def test_get_returns_snapshot(make_account):
    """The snapshot is an immutable tuple in insertion order."""
    store = OperationStore([make_account("a1"), make_account("a2")])

    snapshot = store.get()

    assert isinstance(snapshot, tuple)
    assert [a.id for a in snapshot] == ["a1", "a2"]
    assert len(store) == 2


def test_replace_installs_new_snapshot(make_account):
    """Replacing an account leaves earlier snapshots untouched."""
    store = OperationStore([make_account("a1", ("s1", "pending")), make_account("a2")])
    before = store.get()

    store.replace("a1", make_account("a1", ("s1", "finished")))

    after = store.get()
    assert before is not after
    assert before[0].swap_history[0].status == "pending"
    assert after[0].swap_history[0].status == "finished"
    assert [a.id for a in after] == ["a1", "a2"]


def test_replace_many(make_account):
    """Several accounts are swapped in one step."""
    store = OperationStore([make_account("a1"), make_account("a2"), make_account("a3")])

    replaced = store.replace_many(
        {
            "a1": make_account("a1", ("s1", "finished")),
            "a3": make_account("a3", ("s3", "finished")),
        }
    )

    assert replaced == 2
    snapshot = store.get()
    assert snapshot[0].swap_history[0].swap_id == "s1"
    assert snapshot[1].swap_history == ()
    assert snapshot[2].swap_history[0].swap_id == "s3"


def test_replace_unknown_account_is_ignored(make_account):
    """The account provider owns which accounts exist."""
    store = OperationStore([make_account("a1")])

    replaced = store.replace_many({"zz": make_account("zz", ("s1", "pending"))})

    assert replaced == 0
    assert [a.id for a in store.get()] == ["a1"]


def test_get_account_and_set(make_account):
    """Test lookup by id and wholesale replacement."""
    store = OperationStore([make_account("a1")])

    assert store.get_account("a1").id == "a1"
    assert store.get_account("missing") is None

    store.set([make_account("b1"), make_account("b2")])
    assert [a.id for a in store.get()] == ["b1", "b2"]
    assert store.replace_many({}) == 0


def test_update_many_sees_current_value(make_account):
    """Updaters receive the account held at apply time."""
    store = OperationStore([make_account("a1", ("s1", "pending")), make_account("a2")])
    store.replace("a1", make_account("a1", ("s1", "pending"), ("s9", "new")))
    seen = []

    def finish_s1(current):
        seen.append(current)
        return current.merge_operations([current.swap_history[0].with_status("finished")])

    changed = store.update_many({"a1": finish_s1, "zz": finish_s1})

    assert changed == 1
    assert [op.swap_id for op in seen[0].swap_history] == ["s1", "s9"]
    assert [(op.swap_id, op.status) for op in store.get()[0].swap_history] == [("s1", "finished"), ("s9", "new")]


def test_subscribers_receive_new_snapshots(make_account):
    """Listeners are told about every installed snapshot, and only those."""
    store = OperationStore([make_account("a1")])
    received = []
    unsubscribe = store.subscribe(received.append)

    store.set([make_account("a1"), make_account("a2")])
    store.replace("a2", make_account("a2", ("s2", "pending")))
    store.replace_many({"zz": make_account("zz")})
    store.update_many({"a1": lambda current: current})

    assert len(received) == 2
    assert [a.id for a in received[0]] == ["a1", "a2"]
    assert received[1] is store.get()

    unsubscribe()
    store.set([])
    assert len(received) == 2
