# Overview: Serialization of read-modify-write operations on the in-memory store.

from __future__ import annotations

from contextlib import contextmanager


@contextmanager
def store_mutation(store):
    """
    Hold the store's mutation lock for one read-modify-write.

    Every stock-changing operation reads the latest in-memory snapshot,
    mutates it and persists it inside this block, so two overlapping
    requests (e.g. two rapid checkouts on the threaded dev server) cannot
    interleave their updates. The lock is re-entrant: a service may call
    another service that also takes it.

    NOTE: nothing inside the block may wait on anything but local storage.
    """
    with store.lock:
        yield store
