from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from eww_notify.constants import MAX_NOTIFICATION_ID
from eww_notify.domain.models import Notification


@dataclass
class NotificationStore:
    """
    Thread-safe, ordered collection of the currently shown notifications.

    'NotificationStore' owns:
    - the records, in insertion order (a replace keeps the old position)
    - the monotonically increasing id counter
    - capacity-bounded, oldest-first eviction
    - expiry queries used by the periodic sweep

    Concurrency Model
    -----------------
    All reads/writes are guarded by a single re-entrant lock (`threading.RLock`).
    Every critical section is short and never calls out to a collaborator
    (rendering, signal emission).

    Design Notes
    ------------
    - `snapshot` returns independent copies, so callers never observe later
      mutations through a returned snapshot.
    - Ids wrap after 0xFFFFFFFF back to 1; 0 is reserved for "no replace".

    Attributes
    ----------
    max_notifications
        Capacity limit; 0 means unlimited.
    clock
        Source of "now" for expiry checks.
    """

    max_notifications: int = 0
    clock: Callable[[], datetime] = datetime.now

    _records: List[Notification] = field(default_factory=list, init=False, repr=False)
    _id_counter: int = field(default=0, init=False, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)

    # --- Id API ---
    def next_id(self) -> int:
        """
        Allocate the next notification id.

        Returns
        -------
        int
            A value in ``1..0xFFFFFFFF``, never repeated until the counter wraps.
        """
        with self._lock:
            self._id_counter = (self._id_counter % MAX_NOTIFICATION_ID) + 1
            return self._id_counter

    # --- Mutation API ---
    def upsert(self, record: Notification) -> Optional[Notification]:
        """
        Insert a record, or replace the record with the same id in place.

        Parameters
        ----------
        record
            Notification to store.

        Returns
        -------
        Notification or None
            The record evicted to make room, if any.
        """
        with self._lock:
            idx = self._index_of(record.id)
            if idx is not None:
                self._records[idx] = record
                return None

            evicted: Optional[Notification] = None
            if self.max_notifications > 0 and len(self._records) >= self.max_notifications:
                # min() keeps the first of equal timestamps.
                oldest = min(range(len(self._records)), key=lambda i: self._records[i].created_at)
                evicted = self._records.pop(oldest)

            self._records.append(record)
            return evicted

    def remove(self, notification_id: int) -> bool:
        """
        Remove a record by id.

        Returns
        -------
        bool
            True if a record was removed, False if the id was absent.
        """
        with self._lock:
            idx = self._index_of(notification_id)
            if idx is None:
                return False
            del self._records[idx]
            return True

    def sweep_expired(self, now: Optional[datetime] = None) -> List[int]:
        """
        Remove every record whose expiry instant has passed.

        Parameters
        ----------
        now
            Reference time; defaults to `clock()`.

        Returns
        -------
        list of int
            Ids of the removed records, in store order.
        """
        ts = now or self.clock()
        with self._lock:
            expired = [n.id for n in self._records if n.is_expired(ts)]
            if expired:
                gone = set(expired)
                self._records = [n for n in self._records if n.id not in gone]
            return expired

    # --- Query API ---
    def get(self, notification_id: int) -> Optional[Notification]:
        """
        Return a copy of the record with the given id, or None.
        """
        with self._lock:
            idx = self._index_of(notification_id)
            return None if idx is None else self._records[idx].copy()

    def snapshot(self) -> List[Notification]:
        """
        Snapshot copy of all current records in insertion order.

        Returns
        -------
        list of Notification
            Independent copies; safe to mutate or hold across threads.
        """
        with self._lock:
            return [n.copy() for n in self._records]

    def ids(self) -> List[int]:
        with self._lock:
            return [n.id for n in self._records]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _index_of(self, notification_id: int) -> Optional[int]:
        for i, n in enumerate(self._records):
            if n.id == notification_id:
                return i
        return None
