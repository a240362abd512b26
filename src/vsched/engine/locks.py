# src/vsched/engine/locks.py
from __future__ import annotations

import threading
import weakref
from contextlib import contextmanager
from typing import Iterator


class AssetLocks:
    """
    One mutex per asset, created on first use.

    Mutations on the same schedule run one at a time inside this process;
    SQLite's single writer lock covers other processes sharing the file.
    Entries are weak: a lock lives only while some caller holds or waits on
    it, so asset names that never get a schedule do not pile up.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()

    def lock_for(self, asset: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(asset)
            if lock is None:
                lock = threading.Lock()
                self._locks[asset] = lock
            return lock

    @contextmanager
    def hold(self, asset: str) -> Iterator[None]:
        lock = self.lock_for(asset)
        with lock:
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
