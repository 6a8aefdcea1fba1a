"""Document store interface for the shared friends document.

The whole friends mapping lives in one document. Callers either use the
primitive operations (fetch / initialize_empty / apply_field_patch) or, for
read-validate-write sequences, ``mutate_field``, which runs the planner and
the resulting write atomically so concurrent writers cannot clobber each
other.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable


class _DeleteField:
    """Tombstone marker: writing it removes the field from the document."""

    _instance: "_DeleteField | None" = None

    def __new__(cls) -> "_DeleteField":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DELETE_FIELD"


DELETE_FIELD = _DeleteField()


@dataclass(frozen=True)
class DocumentSnapshot:
    """Point-in-time view of the document.

    Attributes:
        exists: Whether the document exists in the store.
        data: Field mapping (empty when the document is absent).
    """

    exists: bool
    data: dict[str, Any] = field(default_factory=dict)

    def has(self, name: str) -> bool:
        return self.exists and name in self.data


@dataclass(frozen=True)
class FieldWrite:
    """A change to exactly one field; ``value`` may be DELETE_FIELD."""

    name: str
    value: Any

    @property
    def is_delete(self) -> bool:
        return self.value is DELETE_FIELD


FieldPlanner = Callable[[DocumentSnapshot], FieldWrite]


class AbstractDocumentStore(ABC):
    """Accessor for the single shared document."""

    @abstractmethod
    async def fetch(self) -> DocumentSnapshot:
        """Read the document. A missing document is reported, never raised.

        Raises:
            InfrastructureAppError: If the store cannot be reached.
        """
        ...

    @abstractmethod
    async def initialize_empty(self) -> None:
        """Create the document as an empty mapping.

        Safe to call when the document already exists: existing fields are
        left untouched.
        """
        ...

    @abstractmethod
    async def apply_field_patch(self, name: str, value: Any) -> None:
        """Write one field, leaving every other field untouched.

        Args:
            name: Field (friend name) to change.
            value: New record, or DELETE_FIELD to remove the field entirely.
        """
        ...

    @abstractmethod
    async def mutate_field(self, name: str, planner: FieldPlanner) -> DocumentSnapshot:
        """Atomically read, plan and write a single field.

        The planner receives the current snapshot and returns the FieldWrite
        to apply; raising from the planner aborts without writing. The
        document is created if absent and the write is not a delete.

        Args:
            name: Field the planner is allowed to change.
            planner: Validation + computation of the new field value.

        Returns:
            A fresh snapshot read after the write committed.

        Raises:
            ValueError: If the planner targets a different field.
            InfrastructureAppError: If the store cannot be reached.
        """
        ...


def check_write_target(name: str, write: FieldWrite) -> None:
    if write.name != name:
        raise ValueError(f"planner wrote field {write.name!r}, expected {name!r}")
