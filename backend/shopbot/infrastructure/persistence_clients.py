from __future__ import annotations

from typing import Any

from shopbot.infrastructure.logging import get_logger

logger = get_logger(__name__)


class _ClientManager:
    """Owns one optional backend connection for the lifetime of the app.

    A failed connect leaves the manager ``unavailable``; callers check
    ``client`` for ``None`` and degrade instead of raising.
    """

    backend = "backend"

    def __init__(self, *, enabled: bool) -> None:
        self.enabled = enabled
        self._client: Any = None
        self._last_error: str | None = None

    def _open(self) -> Any:
        raise NotImplementedError

    def _ping(self, client: Any) -> None:
        raise NotImplementedError

    def connect(self) -> None:
        if not self.enabled or self._client is not None:
            return
        try:
            client = self._open()
            self._ping(client)
        except Exception as exc:
            self._client = None
            self._last_error = str(exc)
            logger.warning(f"{self.backend}_connect_failed", error=str(exc))
            return
        self._client = client
        self._last_error = None
        logger.info(f"{self.backend}_connected")

    def disconnect(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            client.close()

    @property
    def status(self) -> str:
        if not self.enabled:
            return "disabled"
        return "connected" if self._client is not None else "unavailable"

    @property
    def error(self) -> str | None:
        return self._last_error

    @property
    def client(self) -> Any:
        return self._client


class MongoClientManager(_ClientManager):
    backend = "mongo"

    def __init__(self, uri: str, enabled: bool, database_name: str = "storebot") -> None:
        super().__init__(enabled=enabled)
        self.uri = uri
        self.database_name = database_name

    def _open(self) -> Any:
        from pymongo import MongoClient

        return MongoClient(self.uri, serverSelectionTimeoutMS=2000)

    def _ping(self, client: Any) -> None:
        client.admin.command("ping")

    def database(self) -> Any | None:
        if self._client is None:
            return None
        # get_default_database() falls back to database_name when the URI names none.
        return self._client.get_default_database(default=self.database_name)


class RedisClientManager(_ClientManager):
    backend = "redis"

    def __init__(self, url: str, enabled: bool) -> None:
        super().__init__(enabled=enabled)
        self.url = url

    def _open(self) -> Any:
        import redis

        return redis.from_url(self.url, socket_timeout=2)

    def _ping(self, client: Any) -> None:
        client.ping()
