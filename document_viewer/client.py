"""SmartAdvocate document-fetch client."""

from dataclasses import dataclass
from typing import Callable, Optional, Union

import requests
from requests import Response

from document_viewer import signatures
from document_viewer.cache import TTLCache
from document_viewer.config import ClientConfig
from document_viewer.exceptions import FetchFailed
from document_viewer.logger import Timer, get_logger

logger = get_logger(__name__)

# Client errors worth retrying; any other 4xx will fail the same way again
_RETRYABLE_CLIENT_STATUSES = {408, 425, 429}


@dataclass
class FetchedDocument:
    """Raw document bytes as returned by the upstream API."""

    data: bytes
    content_type: str
    file_name: Optional[str] = None

    @property
    def size_bytes(self) -> int:
        return len(self.data)


def corrected_content_type(data: bytes, content_type: Optional[str]) -> str:
    """Content type to advertise when re-serving upstream bytes.

    PDFs and Outlook messages are recognised by signature because the upstream
    often labels them ``application/octet-stream``.
    """
    if signatures.is_pdf(data):
        return signatures.PDF_MIME
    if signatures.is_ole(data):
        return signatures.MSG_MIME
    return content_type or signatures.OCTET_STREAM_MIME


class SmartAdvocateClient:
    """Fetches document content from the case-sync API.

    Authentication is handled elsewhere; ``token_provider`` returns a valid
    bearer token for each request.
    """

    def __init__(
        self,
        token_provider: Callable[[], str],
        config: Optional[ClientConfig] = None,
        session: Optional[requests.Session] = None,
        cache: Optional[TTLCache[FetchedDocument]] = None,
    ) -> None:
        self.config = config or ClientConfig()
        self.token_provider = token_provider
        self.session = session or requests.Session()
        self.base_url = self.config.base_url.rstrip("/")
        self.cache = cache if cache is not None else TTLCache(default_ttl=self.config.cache_ttl_seconds)

    def content_url(self, document_id: Union[int, str]) -> str:
        path = self.config.content_path.format(document_id=document_id).lstrip("/")
        return f"{self.base_url}/{path}"

    def get_document_content(
        self, document_id: Union[int, str], file_name: Optional[str] = None
    ) -> FetchedDocument:
        """Download one document's bytes.

        Raises:
            FetchFailed: On network errors or a non-2xx response.
        """
        cached = self.cache.get(str(document_id))
        if cached is not None:
            logger.debug(
                "Serving document from cache",
                extra_data={"document_id": document_id, "size_bytes": cached.size_bytes},
            )
            return cached

        url = self.content_url(document_id)
        with Timer("fetch") as timer:
            response = self._get(url)
        document = FetchedDocument(
            data=response.content,
            content_type=response.headers.get("Content-Type") or signatures.OCTET_STREAM_MIME,
            file_name=file_name,
        )

        logger.info(
            "Fetched document content",
            extra_data={
                "document_id": document_id,
                "content_type": document.content_type,
                "size_bytes": document.size_bytes,
                "head": signatures.describe_head(document.data),
                "fetch_time_ms": timer.get_elapsed_ms(),
            },
        )
        self.cache.put(str(document_id), document, self.config.cache_ttl_seconds)
        return document

    def invalidate(self, document_id: Union[int, str]) -> None:
        self.cache.invalidate(str(document_id))

    def _get(self, url: str) -> Response:
        try:
            token = self.token_provider()
        except Exception as exc:
            raise FetchFailed(f"Could not obtain an access token: {exc}") from exc

        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "*/*",
            "User-Agent": self.config.user_agent,
        }
        try:
            response = self.session.get(url, headers=headers, timeout=self.config.timeout_seconds)
        except requests.RequestException as exc:
            logger.error(
                "Document request failed",
                extra_data={"url": url, "error_type": type(exc).__name__, "error": str(exc)},
            )
            raise FetchFailed(f"Document request failed: {exc}") from exc

        if response.status_code >= 400:
            logger.error(
                "SmartAdvocate API error",
                extra_data={"url": url, "status_code": response.status_code, "reason": response.reason},
            )
            retryable = response.status_code >= 500 or response.status_code in _RETRYABLE_CLIENT_STATUSES
            raise FetchFailed(
                f"SmartAdvocate API Error: {response.status_code} {response.reason}",
                status_code=response.status_code,
                retryable=retryable,
            )
        return response
