"""Similarity index client for a Qdrant vector store.

Only the operations transfer triage needs live here: removing an issue's
point once the issue has moved to another repository. Indexing and search
belong to the similarity pipeline.

The client talks to Qdrant's REST API through httpx.
"""

import logging
import re
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


class VectorStoreError(Exception):
    """Raised when vector store operations fail.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status code from the response if applicable.
        response_body: Response body from Qdrant API if applicable.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message)


def collection_name(org: str, prefix: str = "simili") -> str:
    """Per-organization collection holding every repository's issues."""
    slug = re.sub(r"[^a-z0-9_-]", "_", org.lower())
    return f"{prefix}_{slug}"


class VectorIndexClient:
    """Synchronous client for deleting points from Qdrant collections.

    Attributes:
        base_url: Base URL of the Qdrant server (e.g., http://qdrant:6333).
        api_key: Optional Qdrant API key sent as the ``api-key`` header.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def client(self) -> httpx.Client:
        """Get the HTTP client, creating it if necessary."""
        if self._client is None or self._client.is_closed:
            headers = {"api-key": self.api_key} if self.api_key else {}
            self._client = httpx.Client(
                timeout=self.timeout, headers=headers, transport=self._transport
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> "VectorIndexClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def delete(self, collection: str, item_key: str) -> None:
        """Delete one point by key.

        Args:
            collection: Collection name, see ``collection_name``.
            item_key: Point identifier (the issue's stable UUID).

        Raises:
            VectorStoreError: If the request fails or Qdrant rejects it.
        """
        url = f"{self.base_url}/collections/{collection}/points/delete"
        try:
            response = self.client.post(
                url, params={"wait": "true"}, json={"points": [item_key]}
            )
        except httpx.RequestError as e:
            raise VectorStoreError(message=f"Vector store request failed: {e}") from e

        if response.status_code != 200:
            raise VectorStoreError(
                message=f"Vector store error: {response.status_code}",
                status_code=response.status_code,
                response_body=response.text[:500],
            )

        logger.debug(f"Deleted point {item_key} from {collection}")
