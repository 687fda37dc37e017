import json
from typing import Callable

import aiosqlite
import structlog

from .interface import IStateCollection, IStateStorage, StateDocument

logger = structlog.getLogger(__name__)


def _table_name(resource_type: str) -> str:
    return f"state_{resource_type}"


class SqliteStateStorage(IStateStorage):
    """
    Resource state persisted between runs, one table per resource type, documents stored as JSON.

    async with SqliteStateStorage("./state.sqlite") as storage:
        zones = await storage.collection("sdn_zone")
        await zones.save("zone1", {"name": "zone1", "vlan": {"bridge": "vmbr0"}})
    """

    def __init__(self, path: str):
        self._db = None
        self._path = path

    async def _open(self):
        self._db = await aiosqlite.connect(self._path)
        logger.debug("State database opened", db_path=self._path)

    async def close(self):
        if self._db is not None:
            await self._db.commit()
            await self._db.close()
            self._db = None

    async def __aenter__(self):
        if self._db is None:
            await self._open()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise Exception("State database is not open, use the storage as an async context manager.")
        return self._db

    def _connection(self) -> aiosqlite.Connection:
        return self.db

    async def collection(self, resource_type: str) -> "SqliteStateCollection":
        table_name = _table_name(resource_type)
        await self.db.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {table_name} (
                name TEXT PRIMARY KEY,
                state TEXT NOT NULL
            )
        """
        )
        cursor = await self.db.execute(f"PRAGMA table_info({table_name})")
        columns = [(col[1], col[2]) for col in await cursor.fetchall()]
        if columns != [("name", "TEXT"), ("state", "TEXT")]:
            raise Exception(f"Table {table_name!r} exists but has an incorrect schema: {columns}")
        await self.db.commit()
        return SqliteStateCollection(self._connection, resource_type)

    async def drop(self, resource_type: str) -> bool:
        await self.db.execute(f"DROP TABLE IF EXISTS {_table_name(resource_type)}")
        await self.db.commit()
        return True


class SqliteStateCollection(IStateCollection):
    def __init__(self, db_connection_callback: Callable[[], aiosqlite.Connection], resource_type: str):
        self.resource_type = resource_type
        self._table_name = _table_name(resource_type)
        self.db_connection_callback = db_connection_callback

    @property
    def db(self) -> aiosqlite.Connection:
        return self.db_connection_callback()

    async def get(self, name: str) -> StateDocument | None:
        async with self.db.execute(f"SELECT state FROM {self._table_name} WHERE name = ?", (name,)) as cursor:
            row = await cursor.fetchone()
        return json.loads(row[0]) if row else None

    async def save(self, name: str, state: StateDocument) -> None:
        await self.db.execute(
            f"REPLACE INTO {self._table_name} (name, state) VALUES (?, ?)", (name, json.dumps(state, sort_keys=True))
        )
        await self.db.commit()

    async def remove(self, name: str) -> StateDocument | None:
        state = await self.get(name)
        if state is not None:
            await self.db.execute(f"DELETE FROM {self._table_name} WHERE name = ?", (name,))
            await self.db.commit()
        return state

    async def all(self) -> list[tuple[str, StateDocument]]:
        async with self.db.execute(f"SELECT name, state FROM {self._table_name} ORDER BY name") as cursor:
            rows = await cursor.fetchall()
        return [(row[0], json.loads(row[1])) for row in rows]
