from __future__ import annotations

import asyncio
import threading
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Generic, TypeVar

from kbot.models import ColorField, Idle, InSettings, SessionState, UserSettings

K = TypeVar("K")
V = TypeVar("V")


@dataclass
class _UserLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class KeyedTable(Generic[K, V]):
    """Dict with atomic single-key operations, safe to share between threads."""

    def __init__(self) -> None:
        self._items: dict[K, V] = {}
        self._lock = threading.Lock()

    def get(self, key: K) -> V | None:
        with self._lock:
            return self._items.get(key)

    def set(self, key: K, value: V) -> None:
        with self._lock:
            self._items[key] = value

    def pop(self, key: K) -> V | None:
        with self._lock:
            return self._items.pop(key, None)

    def get_or_insert(self, key: K, default: V) -> V:
        with self._lock:
            return self._items.setdefault(key, default)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class SessionRegistry:
    """In-memory per-user state: saved settings, settings being edited and session mode.

    Each operation is atomic for a single user. Operations spanning several tables
    (for example save: write settings, then drop the temporary copy) are not.
    """

    def __init__(self) -> None:
        self._settings: KeyedTable[int, UserSettings] = KeyedTable()
        self._temp: KeyedTable[int, UserSettings] = KeyedTable()
        self._states: KeyedTable[int, SessionState] = KeyedTable()
        self._user_locks: dict[int, _UserLock] = {}
        self._user_locks_guard = threading.Lock()

    def get_or_default(self, user_id: int) -> UserSettings:
        return self._settings.get_or_insert(user_id, UserSettings())

    def set(self, user_id: int, settings: UserSettings) -> None:
        self._settings.set(user_id, settings)

    def get_temp(self, user_id: int) -> tuple[UserSettings | None, bool]:
        temp = self._temp.get(user_id)
        return temp, temp is not None

    def set_temp(self, user_id: int, settings: UserSettings) -> None:
        self._temp.set(user_id, settings)

    def clear_temp(self, user_id: int) -> None:
        self._temp.pop(user_id)

    def get_state(self, user_id: int) -> SessionState:
        state = self._states.get(user_id)
        return state if state is not None else Idle()

    def set_state(self, user_id: int, state: SessionState) -> None:
        self._states.set(user_id, state)

    def clear_state(self, user_id: int) -> None:
        self._states.pop(user_id)

    def is_in_settings(self, user_id: int) -> bool:
        return isinstance(self.get_state(user_id), InSettings)

    def get_pending(self, user_id: int) -> ColorField | None:
        state = self.get_state(user_id)
        if isinstance(state, InSettings):
            return state.pending
        return None

    @asynccontextmanager
    async def serialized(self, user_id: int) -> AsyncIterator[None]:
        """Run one event of ``user_id`` at a time, in arrival order.

        The lock entry is dropped once no event of that user holds or waits for it.
        """
        with self._user_locks_guard:
            entry = self._user_locks.get(user_id)
            if entry is None:
                entry = _UserLock()
                self._user_locks[user_id] = entry
            entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            with self._user_locks_guard:
                entry.users -= 1
                if entry.users == 0:
                    self._user_locks.pop(user_id, None)

    def active_user_locks(self) -> int:
        with self._user_locks_guard:
            return len(self._user_locks)
