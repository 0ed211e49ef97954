import threading
from datetime import date, timedelta

import locks
from locks import is_locked, local_lock, lock_key, table_date_locks

DAY = date(2024, 6, 1)


def test_lock_key_is_stable_and_distinct():
    assert lock_key(1, DAY) == lock_key(1, DAY)
    assert lock_key(1, DAY) != lock_key(2, DAY)
    assert lock_key(1, DAY) != lock_key(1, date(2024, 6, 2))
    assert -(2 ** 63) <= lock_key(1, DAY) < 2 ** 63


def test_locks_held_inside_block_only(db):
    with table_date_locks(db, [3, 1, 3], DAY):
        assert is_locked(1, DAY)
        assert is_locked(3, DAY)
        assert not is_locked(2, DAY)

    assert not is_locked(1, DAY)
    assert not is_locked(3, DAY)


def test_same_key_blocks_other_writer(db):
    entered = threading.Event()
    release = threading.Event()
    order = []

    def holder():
        with local_lock(1, DAY):
            entered.set()
            release.wait(5)
            order.append("holder")

    def waiter():
        with local_lock(1, DAY):
            order.append("waiter")

    first = threading.Thread(target=holder)
    first.start()
    entered.wait(5)
    second = threading.Thread(target=waiter)
    second.start()
    second.join(0.2)
    # Still waiting for the holder
    assert order == []

    release.set()
    first.join(5)
    second.join(5)
    assert order == ["holder", "waiter"]


def test_registry_is_emptied_after_release(db):
    for offset in range(28):
        day = DAY + timedelta(days=offset)
        with table_date_locks(db, [1, 2, 3], day):
            pass

    assert locks._local_locks == {}


def test_lock_released_on_error(db):
    try:
        with table_date_locks(db, [7], DAY):
            raise RuntimeError("boom")
    except RuntimeError:
        pass
    assert not is_locked(7, DAY)
    assert (7, DAY) not in locks._local_locks
