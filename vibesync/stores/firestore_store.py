"""Cloud Firestore document store.

Wraps the async Firestore client behind the DocumentStore protocol.
Transactions use Firestore's native optimistic concurrency: the SDK re-runs
the body up to `max_attempts` times when a read document changed before
commit.
"""

import inspect
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

import structlog
from google.api_core import exceptions as google_exceptions
from google.auth.exceptions import GoogleAuthError
from google.cloud import firestore
from google.oauth2.service_account import Credentials

from vibesync.errors import StoreUnavailableError, TransactionConflictError
from vibesync.stores.base import ArrayRemove, ArrayUnion, TransactionBody, T

logger = structlog.get_logger()

FIRESTORE_SCOPES = ["https://www.googleapis.com/auth/datastore"]


@contextmanager
def translate_errors(operation: str) -> Iterator[None]:
    """Map SDK failures onto domain errors."""
    try:
        yield
    except google_exceptions.Aborted as e:
        logger.warning("firestore transaction aborted", operation=operation)
        raise TransactionConflictError(str(e)) from e
    except (google_exceptions.GoogleAPICallError, google_exceptions.RetryError) as e:
        logger.error("firestore call failed", operation=operation, error=str(e))
        raise StoreUnavailableError("firestore", str(e)) from e
    except GoogleAuthError as e:
        logger.error("firestore auth failed", operation=operation, error=str(e))
        raise StoreUnavailableError("firestore", str(e)) from e


def to_firestore_fields(data: dict[str, Any]) -> dict[str, Any]:
    """Replace store-neutral array sentinels with Firestore transforms."""
    converted: dict[str, Any] = {}
    for field, value in data.items():
        if isinstance(value, ArrayUnion):
            converted[field] = firestore.ArrayUnion(list(value.values))
        elif isinstance(value, ArrayRemove):
            converted[field] = firestore.ArrayRemove(list(value.values))
        else:
            converted[field] = value
    return converted


class FirestoreTransaction:
    """Transaction adapter handed to transaction bodies."""

    def __init__(self, client: firestore.AsyncClient, transaction: Any):
        self._client = client
        self._transaction = transaction

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        ref = self._client.collection(collection).document(doc_id)
        snapshot = await ref.get(transaction=self._transaction)
        return snapshot.to_dict() if snapshot.exists else None

    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        ref = self._client.collection(collection).document(doc_id)
        self._transaction.set(ref, to_firestore_fields(data))

    def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        ref = self._client.collection(collection).document(doc_id)
        self._transaction.update(ref, to_firestore_fields(data))

    def delete(self, collection: str, doc_id: str) -> None:
        ref = self._client.collection(collection).document(doc_id)
        self._transaction.delete(ref)


class FirestoreDocumentStore:
    """DocumentStore backed by Cloud Firestore.

    The client is created lazily so constructing the store never touches the
    network or credentials.
    """

    def __init__(
        self,
        project: str | None = None,
        credentials_path: str | None = None,
        database: str | None = None,
        max_attempts: int = 5,
        client: firestore.AsyncClient | None = None,
    ):
        """Initialize with connection parameters.

        Args:
            project: GCP project id. Defaults to the environment's project.
            credentials_path: Service account JSON. Defaults to ADC.
            database: Named Firestore database. Defaults to "(default)".
            max_attempts: Optimistic transaction attempts
            client: Pre-built client (tests, emulator)
        """
        self._project = project
        self._credentials_path = credentials_path
        self._database = database
        self._max_attempts = max_attempts
        self._client = client

    def _get_client(self) -> firestore.AsyncClient:
        if self._client is None:
            credentials = None
            if self._credentials_path:
                credentials = Credentials.from_service_account_file(
                    self._credentials_path,
                    scopes=FIRESTORE_SCOPES,
                )
            kwargs: dict[str, Any] = {"project": self._project}
            if credentials is not None:
                kwargs["credentials"] = credentials
            if self._database:
                kwargs["database"] = self._database
            self._client = firestore.AsyncClient(**kwargs)
            logger.info("firestore client created", project=self._project)
        return self._client

    def _ref(self, collection: str, doc_id: str):
        return self._get_client().collection(collection).document(doc_id)

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        with translate_errors("get"):
            snapshot = await self._ref(collection, doc_id).get()
        return snapshot.to_dict() if snapshot.exists else None

    async def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        with translate_errors("set"):
            await self._ref(collection, doc_id).set(to_firestore_fields(data))

    async def update(
        self, collection: str, doc_id: str, data: dict[str, Any]
    ) -> None:
        with translate_errors("update"):
            await self._ref(collection, doc_id).update(to_firestore_fields(data))

    async def delete(self, collection: str, doc_id: str) -> None:
        with translate_errors("delete"):
            await self._ref(collection, doc_id).delete()

    async def get_many(
        self, collection: str, doc_ids: Sequence[str]
    ) -> list[dict[str, Any]]:
        if not doc_ids:
            return []
        client = self._get_client()
        refs = [self._ref(collection, doc_id) for doc_id in dict.fromkeys(doc_ids)]
        documents: list[dict[str, Any]] = []
        with translate_errors("get_many"):
            async for snapshot in client.get_all(refs):
                if snapshot.exists:
                    documents.append(snapshot.to_dict())
        return documents

    async def find_without_member(
        self, collection: str, fields: Sequence[str], member: str
    ) -> list[dict[str, Any]]:
        # Firestore has no array-not-contains operator, so the exclusion is
        # applied while streaming the collection.
        documents: list[dict[str, Any]] = []
        with translate_errors("find_without_member"):
            async for snapshot in self._get_client().collection(collection).stream():
                data = snapshot.to_dict() or {}
                if any(
                    isinstance(data.get(field), list) and member in data[field]
                    for field in fields
                ):
                    continue
                documents.append(data)
        return documents

    async def run_transaction(self, body: TransactionBody[T]) -> T:
        client = self._get_client()

        @firestore.async_transactional
        async def _run(transaction) -> T:
            return await body(FirestoreTransaction(client, transaction))

        with translate_errors("transaction"):
            return await _run(client.transaction(max_attempts=self._max_attempts))

    async def close(self) -> None:
        """Close the underlying client."""
        if self._client is not None:
            result = self._client.close()
            if inspect.isawaitable(result):
                await result
            self._client = None
            logger.info("firestore client closed")

    async def is_healthy(self) -> bool:
        """Check that credentials resolve and the client can be built."""
        try:
            self._get_client()
            return True
        except Exception:
            return False
