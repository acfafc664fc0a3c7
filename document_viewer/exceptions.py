"""Custom exceptions for document viewer."""

from typing import Optional


class DocumentViewerError(Exception):
    """Base exception for document viewer errors."""

    pass


class FetchFailed(DocumentViewerError):
    """Raised when document bytes cannot be obtained from the upstream API.

    The only error allowed to escape a document-view request. Callers should
    offer a retry action when ``retryable`` is set.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class ClassificationAmbiguous(DocumentViewerError):
    """Raised internally when no classification rule matched.

    Never surfaced: the classifier resolves it to the ``unknown`` kind.
    """

    pass


class MsgReadError(DocumentViewerError):
    """Raised when an Outlook compound document cannot be read."""

    pass


class PreviewError(DocumentViewerError):
    """Raised when a structured preview cannot be produced."""

    pass


class ResourceReleasedError(DocumentViewerError):
    """Raised when reading a resource handle that was already released."""

    pass
