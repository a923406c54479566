"""Store interfaces consumed by the engine.

Backends implement these protocols for structural subtyping; they don't need
to inherit, just implement the methods. Documents are plain field maps
(`dict[str, Any]`); blobs are addressed by slash-separated paths.
"""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")


@dataclass(frozen=True)
class ArrayUnion:
    """Field value for `update`: append elements not already present."""

    values: tuple[Any, ...]

    def __init__(self, *values: Any) -> None:
        object.__setattr__(self, "values", tuple(values))

    def apply(self, current: Any) -> list[Any]:
        merged = list(current) if isinstance(current, list) else []
        for value in self.values:
            if value not in merged:
                merged.append(value)
        return merged


@dataclass(frozen=True)
class ArrayRemove:
    """Field value for `update`: remove every occurrence of the elements."""

    values: tuple[Any, ...]

    def __init__(self, *values: Any) -> None:
        object.__setattr__(self, "values", tuple(values))

    def apply(self, current: Any) -> list[Any]:
        if not isinstance(current, list):
            return []
        return [item for item in current if item not in self.values]


@runtime_checkable
class Transaction(Protocol):
    """Reads and buffered writes inside one optimistic transaction.

    All reads must happen before the first write. Writes become visible only
    when the transaction body returns and the commit succeeds.
    """

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Read a document; None if it does not exist."""
        ...

    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Create or overwrite a document."""
        ...

    def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Merge fields into an existing document."""
        ...

    def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document."""
        ...


TransactionBody = Callable[[Transaction], Awaitable[T]]


@runtime_checkable
class DocumentStore(Protocol):
    """Document database with per-document operations and transactions."""

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Read a document outside any transaction."""
        ...

    async def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Create or overwrite a document."""
        ...

    async def update(
        self, collection: str, doc_id: str, data: dict[str, Any]
    ) -> None:
        """Merge fields (ArrayUnion/ArrayRemove allowed) into a document."""
        ...

    async def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document; deleting a missing document is not an error."""
        ...

    async def get_many(
        self, collection: str, doc_ids: Sequence[str]
    ) -> list[dict[str, Any]]:
        """Read the documents that exist among `doc_ids`."""
        ...

    async def find_without_member(
        self, collection: str, fields: Sequence[str], member: str
    ) -> list[dict[str, Any]]:
        """Read documents whose array `fields` all exclude `member`."""
        ...

    async def run_transaction(self, body: TransactionBody[T]) -> T:
        """Run `body` in an optimistic transaction and commit it.

        The body may be executed more than once, so it must not have side
        effects outside the transaction.
        """
        ...


@runtime_checkable
class BlobStore(Protocol):
    """Namespaced binary object storage addressed by path."""

    async def put(self, path: str, data: bytes, content_type: str) -> str:
        """Store bytes at `path` and return a download URL."""
        ...

    async def list_paths(self, prefix: str) -> list[str]:
        """Return the paths of all blobs under `prefix`."""
        ...

    async def delete(self, path: str) -> None:
        """Delete the blob at `path`."""
        ...

    async def download_url(self, path: str) -> str:
        """Return a download URL for the blob at `path`."""
        ...
