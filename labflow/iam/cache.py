# labflow/iam/cache.py
from __future__ import annotations

import threading
from collections import OrderedDict
from dataclasses import dataclass, replace
from datetime import datetime, timedelta


@dataclass
class CachedSession:
    session_id: str
    login_time: datetime
    last_activity: datetime
    user_agent: str = ""

    @classmethod
    def from_model(cls, session) -> "CachedSession":
        return cls(
            session_id=session.session_id,
            login_time=session.login_time,
            last_activity=session.last_activity,
            user_agent=session.user_agent or "",
        )


class SessionCache:
    """
    Process-local read-through cache of the current session per username.

    Not authoritative: another process may have replaced or dropped the
    session. Bounded LRU, and entries idle longer than ``ttl_seconds`` are
    dropped on read so the cache never outlives the store TTL.
    Request threads share one instance, hence the lock.
    """

    def __init__(self, *, max_entries: int = 1024, ttl_seconds: int = 1800):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.max_entries = max_entries
        self.ttl = timedelta(seconds=ttl_seconds)
        self._entries: OrderedDict[str, CachedSession] = OrderedDict()
        self._lock = threading.Lock()

    def _expired(self, entry: CachedSession, now: datetime) -> bool:
        return now - entry.last_activity > self.ttl

    def get(self, username: str, *, now: datetime) -> CachedSession | None:
        with self._lock:
            entry = self._entries.get(username)
            if entry is None:
                return None
            if self._expired(entry, now):
                del self._entries[username]
                return None
            self._entries.move_to_end(username)
            # hand out a copy; mutation goes through touch()
            return replace(entry)

    def put(self, username: str, entry: CachedSession) -> None:
        with self._lock:
            self._entries[username] = replace(entry)
            self._entries.move_to_end(username)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def touch(self, username: str, session_id: str, now: datetime) -> None:
        with self._lock:
            entry = self._entries.get(username)
            if entry is not None and entry.session_id == session_id:
                entry.last_activity = now

    def evict(self, username: str, session_id: str | None = None) -> None:
        """
        Drop the entry for ``username``; with ``session_id``, only if it still matches.
        """
        with self._lock:
            entry = self._entries.get(username)
            if entry is None:
                return
            if session_id is None or entry.session_id == session_id:
                del self._entries[username]

    def purge_expired(self, now: datetime) -> int:
        with self._lock:
            stale = [u for u, e in self._entries.items() if self._expired(e, now)]
            for username in stale:
                del self._entries[username]
            return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, username: str) -> bool:
        with self._lock:
            return username in self._entries
