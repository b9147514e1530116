from __future__ import annotations

from typing import Any

from shopbot.infrastructure.persistence_clients import MongoClientManager, RedisClientManager


class _FakeConnection:
    def __init__(self) -> None:
        self.pinged = False
        self.closed = False

    def ping(self) -> bool:
        self.pinged = True
        return True

    def close(self) -> None:
        self.closed = True


class _ReachableRedis(RedisClientManager):
    def __init__(self) -> None:
        super().__init__(url="redis://unused", enabled=True)
        self.connection = _FakeConnection()
        self.opened = 0

    def _open(self) -> Any:
        self.opened += 1
        return self.connection


class _UnreachableRedis(RedisClientManager):
    def _open(self) -> Any:
        raise ConnectionError("connection refused")


def test_disabled_manager_never_connects() -> None:
    manager = MongoClientManager(uri="mongodb://unused", enabled=False)

    manager.connect()

    assert manager.status == "disabled"
    assert manager.client is None
    assert manager.database() is None


def test_unreachable_backend_is_reported_not_raised() -> None:
    manager = _UnreachableRedis(url="redis://unused", enabled=True)

    manager.connect()

    assert manager.status == "unavailable"
    assert manager.error == "connection refused"
    assert manager.client is None


def test_connect_pings_once_and_disconnect_closes() -> None:
    manager = _ReachableRedis()

    manager.connect()
    manager.connect()

    assert manager.status == "connected"
    assert manager.error is None
    assert manager.opened == 1
    assert manager.connection.pinged

    manager.disconnect()

    assert manager.connection.closed
    assert manager.status == "unavailable"
