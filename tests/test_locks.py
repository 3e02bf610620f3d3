"""Tests for per-account locking."""

import threading

from shoestore.core.locks import KeyedLock


class TestKeyedLock:
    def test_same_key_waits_for_holder(self):
        locks = KeyedLock()
        acquired = threading.Event()

        def contender():
            with locks.hold("user-1"):
                acquired.set()

        with locks.hold("user-1"):
            thread = threading.Thread(target=contender)
            thread.start()
            assert not acquired.wait(timeout=0.2)

        assert acquired.wait(timeout=5)
        thread.join()

    def test_other_keys_do_not_block(self):
        locks = KeyedLock()
        acquired = threading.Event()

        def other():
            with locks.hold("user-2"):
                acquired.set()

        with locks.hold("user-1"):
            thread = threading.Thread(target=other)
            thread.start()
            assert acquired.wait(timeout=5)
        thread.join()

    def test_reentrant_for_same_thread(self):
        locks = KeyedLock()
        with locks.hold("user-1"):
            with locks.hold("user-1"):
                pass
