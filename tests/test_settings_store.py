from __future__ import annotations

import asyncio
import threading

from kbot.models import ColorField, Idle, InSettings, UserSettings
from kbot.settings_store import KeyedTable, SessionRegistry


def test_new_user_gets_defaults() -> None:
    registry = SessionRegistry()
    settings = registry.get_or_default(42)
    assert settings == UserSettings(text_color="000000", bg_color="FFFFFF")
    registry.set(42, UserSettings("111111", "222222"))
    assert registry.get_or_default(42) == UserSettings("111111", "222222")


def test_temp_settings_lifecycle() -> None:
    registry = SessionRegistry()
    assert registry.get_temp(1) == (None, False)
    registry.set_temp(1, UserSettings("abc", "def"))
    assert registry.get_temp(1) == (UserSettings("abc", "def"), True)
    registry.clear_temp(1)
    assert registry.get_temp(1) == (None, False)
    registry.clear_temp(1)


def test_state_defaults_to_idle() -> None:
    registry = SessionRegistry()
    assert registry.get_state(7) == Idle()
    assert not registry.is_in_settings(7)
    assert registry.get_pending(7) is None

    registry.set_state(7, InSettings(pending=ColorField.BACKGROUND))
    assert registry.is_in_settings(7)
    assert registry.get_pending(7) is ColorField.BACKGROUND

    registry.clear_state(7)
    assert registry.get_state(7) == Idle()


def test_users_are_isolated() -> None:
    registry = SessionRegistry()
    registry.set(1, UserSettings("111", "222"))
    registry.set_state(1, InSettings())
    assert registry.get_or_default(2) == UserSettings()
    assert registry.get_state(2) == Idle()


def test_get_or_insert_is_atomic_across_threads() -> None:
    table: KeyedTable[int, object] = KeyedTable()
    results: list[object] = []
    barrier = threading.Barrier(8)

    def worker() -> None:
        barrier.wait()
        results.append(table.get_or_insert(1, object()))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(table) == 1
    assert all(item is results[0] for item in results)


def test_serialized_runs_one_event_per_user_and_drops_idle_locks() -> None:
    registry = SessionRegistry()
    order: list[str] = []

    async def event(user_id: int, name: str, hold: asyncio.Event | None = None) -> None:
        async with registry.serialized(user_id):
            order.append(f"start:{name}")
            if hold is not None:
                await hold.wait()
            order.append(f"end:{name}")

    async def scenario() -> None:
        hold = asyncio.Event()
        first = asyncio.create_task(event(1, "a", hold))
        await asyncio.sleep(0)
        second = asyncio.create_task(event(1, "b"))
        other = asyncio.create_task(event(2, "c"))
        await asyncio.sleep(0)
        assert registry.active_user_locks() == 1
        assert "end:c" in order
        assert "start:b" not in order
        hold.set()
        await asyncio.gather(first, second, other)

    asyncio.run(scenario())

    assert order.index("end:a") < order.index("start:b")
    assert registry.active_user_locks() == 0
