from __future__ import annotations

from typing import Any, Protocol

# Dumped resource model, as stored between runs.
StateDocument = dict[str, Any]


class IStateStorage(Protocol):
    async def close(self) -> None:
        ...

    async def collection(self, resource_type: str) -> IStateCollection:
        """Return the state collection of ``resource_type``, creating it when missing."""
        ...

    async def drop(self, resource_type: str) -> bool:
        ...


class IStateCollection(Protocol):
    """Recorded state of the resources of one type, keyed by resource name."""

    async def get(self, name: str) -> StateDocument | None:
        ...

    async def save(self, name: str, state: StateDocument) -> None:
        ...

    async def remove(self, name: str) -> StateDocument | None:
        ...

    async def all(self) -> list[tuple[str, StateDocument]]:
        """All recorded resources, ordered by name."""
        ...
