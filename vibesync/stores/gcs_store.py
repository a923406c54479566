"""Google Cloud Storage blob store.

The storage SDK is synchronous, so every call runs through asyncio.to_thread
to keep the event loop free while transfers are in flight.
"""

import asyncio
from datetime import timedelta

import structlog
from google.auth.exceptions import GoogleAuthError
from google.cloud import storage
from google.cloud.exceptions import GoogleCloudError, NotFound
from google.oauth2.service_account import Credentials

from vibesync.errors import StoreUnavailableError

logger = structlog.get_logger()

STORAGE_SCOPES = ["https://www.googleapis.com/auth/devstorage.read_write"]


class GCSBlobStore:
    """BlobStore backed by a single GCS bucket.

    Follows the lazy client pattern: nothing authenticates until the first
    call.
    """

    def __init__(
        self,
        bucket_name: str,
        project: str | None = None,
        credentials_path: str | None = None,
        url_ttl_seconds: int = 0,
        client: storage.Client | None = None,
    ):
        """Initialize with bucket and credentials.

        Args:
            bucket_name: Bucket holding all media
            project: GCP project id. Defaults to the environment's project.
            credentials_path: Service account JSON. Defaults to ADC.
            url_ttl_seconds: Lifetime of signed URLs; 0 returns public URLs
            client: Pre-built client (tests, emulator)
        """
        self._bucket_name = bucket_name
        self._project = project
        self._credentials_path = credentials_path
        self._url_ttl_seconds = url_ttl_seconds
        self._client = client
        self._bucket: storage.Bucket | None = None

    def _get_bucket(self) -> storage.Bucket:
        if self._bucket is None:
            if self._client is None:
                if self._credentials_path:
                    credentials = Credentials.from_service_account_file(
                        self._credentials_path,
                        scopes=STORAGE_SCOPES,
                    )
                    self._client = storage.Client(
                        project=self._project, credentials=credentials
                    )
                else:
                    self._client = storage.Client(project=self._project)
            self._bucket = self._client.bucket(self._bucket_name)
        return self._bucket

    def _url(self, blob: storage.Blob) -> str:
        if self._url_ttl_seconds > 0:
            return blob.generate_signed_url(
                expiration=timedelta(seconds=self._url_ttl_seconds),
                version="v4",
            )
        return blob.public_url

    async def put(self, path: str, data: bytes, content_type: str) -> str:
        return await asyncio.to_thread(self._put_sync, path, data, content_type)

    def _put_sync(self, path: str, data: bytes, content_type: str) -> str:
        try:
            blob = self._get_bucket().blob(path)
            blob.upload_from_string(data, content_type=content_type)
        except (GoogleCloudError, GoogleAuthError) as e:
            logger.error("blob upload failed", path=path, error=str(e))
            raise StoreUnavailableError("gcs", str(e)) from e
        logger.debug("uploaded blob", path=path, size=len(data))
        return self._url(blob)

    async def list_paths(self, prefix: str) -> list[str]:
        return await asyncio.to_thread(self._list_sync, prefix)

    def _list_sync(self, prefix: str) -> list[str]:
        try:
            bucket = self._get_bucket()
            paths = [
                blob.name
                for blob in bucket.client.list_blobs(bucket, prefix=prefix)
                # Skip directory markers
                if not blob.name.endswith("/")
            ]
        except (GoogleCloudError, GoogleAuthError) as e:
            logger.error("blob listing failed", prefix=prefix, error=str(e))
            raise StoreUnavailableError("gcs", str(e)) from e
        return sorted(paths)

    async def delete(self, path: str) -> None:
        await asyncio.to_thread(self._delete_sync, path)

    def _delete_sync(self, path: str) -> None:
        try:
            self._get_bucket().blob(path).delete()
        except NotFound:
            logger.debug("blob already deleted", path=path)
        except (GoogleCloudError, GoogleAuthError) as e:
            logger.error("blob delete failed", path=path, error=str(e))
            raise StoreUnavailableError("gcs", str(e)) from e

    async def download_url(self, path: str) -> str:
        return await asyncio.to_thread(self._download_url_sync, path)

    def _download_url_sync(self, path: str) -> str:
        try:
            return self._url(self._get_bucket().blob(path))
        except (GoogleCloudError, GoogleAuthError) as e:
            raise StoreUnavailableError("gcs", str(e)) from e

    async def is_healthy(self) -> bool:
        """Check if the bucket is reachable."""
        try:
            return await asyncio.to_thread(lambda: self._get_bucket().exists())
        except Exception:
            return False
