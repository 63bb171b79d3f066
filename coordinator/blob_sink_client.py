"""Client abstraction for storing and fetching parts in a size-limited blob sink."""

import asyncio
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from common.constants import (
    DEFAULT_MIME_TYPE,
    SINK_MAX_RETRIES,
    SINK_RETRY_BACKOFF_BASE,
    SINK_TIMEOUT_SECONDS,
)
from common.logging_config import get_logger
from common.types import StoredObject
from coordinator.exceptions import UpstreamFailureError

logger = get_logger(__name__)


class TransientSinkError(UpstreamFailureError):
    """
    Sink failure worth retrying: connection errors, timeouts, HTTP 429 and 5xx.
    """
    pass


class BlobSinkClient(ABC):
    """
    Capability to store a named byte payload and get back a retrievable handle.
    """

    @abstractmethod
    async def store(self, name: str, data: bytes) -> StoredObject:
        """
        Store data under name.

        Raises:
            UpstreamFailureError: If the sink fails, times out, or confirms
                without a usable handle
        """

    @abstractmethod
    async def fetch(self, handle: str) -> bytes:
        """
        Retrieve the bytes behind a handle returned by store().

        Raises:
            UpstreamFailureError: If the object cannot be fetched
        """

    @abstractmethod
    async def delete(self, object_id: str) -> bool:
        """
        Remove a stored object. Returns True if it is gone afterwards.
        """

    async def close(self) -> None:
        """Release network resources."""


class WebhookBlobSink(BlobSinkClient):
    """
    Blob sink backed by a chat webhook that accepts file attachments.

    Each part is posted as a message with a single attachment; the attachment
    URL is the retrieval handle and the message id is the object id used for
    deletion.
    """

    def __init__(
        self,
        webhook_url: str,
        timeout: float = SINK_TIMEOUT_SECONDS,
        max_retries: int = SINK_MAX_RETRIES,
        retry_delay: float = 1.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize sink client with lazy connection.

        Args:
            webhook_url: Webhook endpoint that accepts multipart uploads
            timeout: Per-request timeout in seconds
            max_retries: Retries for transient failures (0 disables retrying)
            retry_delay: Base delay for exponential backoff in seconds
            client: Optional pre-built httpx client (used by tests)
        """
        self.webhook_url = webhook_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._client = client
        self._owns_client = client is None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is established."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
            logger.info(f"Opened HTTP client for sink {self.webhook_url}")
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _retry_with_backoff(self, operation, *args):
        """
        Retry operation with exponential backoff for transient failures.

        Raises:
            Last exception if all retries exhausted
        """
        for attempt in range(self.max_retries + 1):
            try:
                return await operation(*args)
            except TransientSinkError as e:
                if attempt >= self.max_retries:
                    raise
                delay = self.retry_delay * (SINK_RETRY_BACKOFF_BASE ** attempt)
                logger.warning(
                    f"Transient sink failure, retrying in {delay}s "
                    f"(attempt {attempt + 1}/{self.max_retries + 1}): {e}"
                )
                await asyncio.sleep(delay)

    async def _send(self, method: str, url: str, what: str, **kwargs) -> httpx.Response:
        client = self._ensure_client()
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise TransientSinkError(f"Sink timed out while {what}") from e
        except httpx.TransportError as e:
            raise TransientSinkError(f"Sink unreachable while {what}: {e}") from e

        if response.status_code == 429 or response.status_code >= 500:
            raise TransientSinkError(
                f"Sink returned status {response.status_code} while {what}: {response.text[:200]}"
            )
        return response

    async def store(self, name: str, data: bytes) -> StoredObject:
        if not self.webhook_url:
            raise UpstreamFailureError("Sink webhook URL is not configured")
        # A store that timed out may still have landed in the sink. No message id
        # came back for it, so that copy cannot be put in the orphan log.
        return await self._retry_with_backoff(self._store_internal, name, data)

    async def _store_internal(self, name: str, data: bytes) -> StoredObject:
        """Internal implementation of store without retry logic."""
        response = await self._send(
            "POST",
            self.webhook_url,
            f"storing {name}",
            params={"wait": "true"},
            files={"file": (name, data, DEFAULT_MIME_TYPE)},
        )

        if response.status_code == 204:
            raise UpstreamFailureError(
                f"Sink accepted {name} with 204 No Content; no attachment handle available"
            )
        if not response.is_success:
            raise UpstreamFailureError(
                f"Sink rejected {name}. Status: {response.status_code}: {response.text[:200]}"
            )

        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamFailureError(f"Sink returned a non-JSON confirmation for {name}") from e

        attachments = body.get("attachments") if isinstance(body, dict) else None
        if not attachments:
            raise UpstreamFailureError(f"Sink confirmation for {name} carries no attachment")

        attachment = attachments[0]
        url = attachment.get("url")
        size = attachment.get("size")
        if not url or size is None:
            raise UpstreamFailureError(f"Sink confirmation for {name} is missing url or size")
        if size != len(data):
            raise UpstreamFailureError(
                f"Sink confirmed {size} bytes for {name}, sent {len(data)}"
            )

        message_id = body.get("id")
        logger.debug(f"Stored {name} ({size} bytes) as message {message_id}")
        return StoredObject(
            handle=url,
            filename=attachment.get("filename", name),
            size=size,
            object_id=str(message_id) if message_id is not None else None,
        )

    async def fetch(self, handle: str) -> bytes:
        return await self._retry_with_backoff(self._fetch_internal, handle)

    async def _fetch_internal(self, handle: str) -> bytes:
        """Internal implementation of fetch without retry logic."""
        response = await self._send("GET", handle, "fetching a file part")
        if not response.is_success:
            raise UpstreamFailureError(
                f"Failed to fetch a file part. Status: {response.status_code}"
            )
        return response.content

    async def delete(self, object_id: str) -> bool:
        if not self.webhook_url:
            raise UpstreamFailureError("Sink webhook URL is not configured")

        response = await self._retry_with_backoff(
            self._send, "DELETE", f"{self.webhook_url}/messages/{object_id}", f"deleting {object_id}"
        )

        if response.status_code == 404:
            logger.info(f"Sink object {object_id} already gone")
            return True
        if not response.is_success:
            logger.warning(f"Failed to delete sink object {object_id}: status {response.status_code}")
            return False

        logger.info(f"Deleted sink object {object_id}")
        return True
