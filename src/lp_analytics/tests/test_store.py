from lp_analytics.data import SnapshotArchive
from lp_analytics.db.db import get_session_factory
from lp_analytics.store import SnapshotStore
from lp_analytics.tests.factories import DAY, make_snapshot

ACCOUNT = "0xAbC"


def test_replace_sorts_and_normalizes_account():
    store = SnapshotStore()
    cache = store.replace(ACCOUNT, [make_snapshot(2 * DAY), make_snapshot(DAY)])

    assert cache.account == "0xabc"
    assert [s.timestamp for s in cache.snapshots] == [DAY, 2 * DAY]
    assert store.get("0xABC") is cache
    assert store.snapshots(ACCOUNT) == cache.snapshots


def test_replace_is_wholesale():
    store = SnapshotStore()
    first = store.replace(ACCOUNT, [make_snapshot(DAY)])
    first.pair_returns["0xpair:year"] = []

    second = store.replace(ACCOUNT, [make_snapshot(3 * DAY)])

    assert second.pair_returns == {}
    assert not store.is_current(first)
    assert store.is_current(second)


def test_invalidate_and_unknown_accounts():
    store = SnapshotStore()
    cache = store.replace(ACCOUNT, [])
    store.invalidate(ACCOUNT)
    assert store.get(ACCOUNT) is None
    assert store.snapshots("0xnobody") is None
    assert not store.is_current(cache)


def test_pair_ids_keep_first_seen_order():
    store = SnapshotStore()
    cache = store.replace(
        ACCOUNT,
        [
            make_snapshot(3 * DAY, pair_id="b"),
            make_snapshot(DAY, pair_id="a"),
            make_snapshot(2 * DAY, pair_id="b"),
        ],
    )
    assert cache.pair_ids == ["a", "b"]
    assert [s.timestamp for s in cache.pair_snapshots("b")] == [2 * DAY, 3 * DAY]


def test_archive_round_trip_replaces_rows(tmp_path):
    factory = get_session_factory(f"sqlite:///{tmp_path / 'archive.db'}")
    archive = SnapshotArchive(factory)

    archive.save(ACCOUNT, [make_snapshot(DAY), make_snapshot(2 * DAY)])
    archive.save(ACCOUNT, [make_snapshot(5 * DAY, balance=42.0)])
    archive.save("0xother", [make_snapshot(DAY)])

    loaded = archive.load(ACCOUNT)
    assert len(loaded) == 1
    assert loaded[0].timestamp == 5 * DAY
    assert loaded[0].liquidity_token_balance == 42.0
    assert loaded[0] == make_snapshot(5 * DAY, balance=42.0)
    assert archive.load("0xnobody") == []


def test_archive_creates_missing_database_directory(tmp_path):
    path = tmp_path / "data" / "nested" / "archive.db"
    archive = SnapshotArchive(get_session_factory(f"sqlite:///{path}"))

    archive.save(ACCOUNT, [make_snapshot(DAY)])

    assert path.exists()
    assert len(archive.load(ACCOUNT)) == 1
