"""Document and blob store interfaces and their backends.

- DocumentStore / Transaction / BlobStore: protocols the engine depends on
- ArrayUnion / ArrayRemove: field-level array mutations for `update`
- InMemoryDocumentStore / InMemoryBlobStore: local and test backends

The Firestore and GCS backends live in `firestore_store` and `gcs_store`
and are imported lazily so the Google SDKs are only loaded when used.
"""

from vibesync.stores.base import (
    ArrayRemove,
    ArrayUnion,
    BlobStore,
    DocumentStore,
    Transaction,
)
from vibesync.stores.memory import InMemoryBlobStore, InMemoryDocumentStore

__all__ = [
    "ArrayRemove",
    "ArrayUnion",
    "BlobStore",
    "DocumentStore",
    "InMemoryBlobStore",
    "InMemoryDocumentStore",
    "Transaction",
]
