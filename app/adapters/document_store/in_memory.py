"""In-memory document store for local development and tests.

Notes:
- Per-process only; contents vanish on restart.
- mutate_field holds an asyncio.Lock across its read and write, so concurrent
  mutations run one after another like a retried store transaction would.
"""

from __future__ import annotations

import asyncio
import copy
from typing import Any, Mapping

from app.adapters.document_store.base import (
    AbstractDocumentStore,
    DocumentSnapshot,
    FieldPlanner,
    FieldWrite,
    check_write_target,
)


class InMemoryDocumentStore(AbstractDocumentStore):
    """Single document kept in a dict; None means the document is absent."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] | None = None if initial is None else copy.deepcopy(dict(initial))
        self._lock = asyncio.Lock()

    def _snapshot(self) -> DocumentSnapshot:
        if self._data is None:
            return DocumentSnapshot(exists=False)
        return DocumentSnapshot(exists=True, data=copy.deepcopy(self._data))

    def _write(self, write: FieldWrite) -> None:
        if write.is_delete:
            if self._data is not None:
                self._data.pop(write.name, None)
            return
        if self._data is None:
            self._data = {}
        self._data[write.name] = copy.deepcopy(write.value)

    async def fetch(self) -> DocumentSnapshot:
        return self._snapshot()

    async def initialize_empty(self) -> None:
        if self._data is None:
            self._data = {}

    async def apply_field_patch(self, name: str, value: Any) -> None:
        self._write(FieldWrite(name=name, value=value))

    async def mutate_field(self, name: str, planner: FieldPlanner) -> DocumentSnapshot:
        async with self._lock:
            write = planner(await self.fetch())
            check_write_target(name, write)
            await self.apply_field_patch(write.name, write.value)
            return await self.fetch()
