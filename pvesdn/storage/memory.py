import copy
from typing import Dict

from .interface import IStateCollection, IStateStorage, StateDocument


class InMemoryStateStorage(IStateStorage):
    """State kept for the lifetime of the process only, used when no database path is configured."""

    def __init__(self):
        self.collections: Dict[str, InMemoryStateCollection] = {}

    async def close(self) -> None:
        self.collections.clear()

    async def collection(self, resource_type: str) -> "InMemoryStateCollection":
        return self.collections.setdefault(resource_type, InMemoryStateCollection())

    async def drop(self, resource_type: str) -> bool:
        return self.collections.pop(resource_type, None) is not None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()


class InMemoryStateCollection(IStateCollection):
    def __init__(self):
        self.documents: Dict[str, StateDocument] = {}

    # Documents are copied in and out, callers never share them with the store.
    async def get(self, name: str) -> StateDocument | None:
        state = self.documents.get(name)
        return copy.deepcopy(state) if state is not None else None

    async def save(self, name: str, state: StateDocument) -> None:
        self.documents[name] = copy.deepcopy(state)

    async def remove(self, name: str) -> StateDocument | None:
        return self.documents.pop(name, None)

    async def all(self) -> list[tuple[str, StateDocument]]:
        return [(name, copy.deepcopy(self.documents[name])) for name in sorted(self.documents)]
