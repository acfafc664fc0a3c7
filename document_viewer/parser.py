"""High-level API for viewing local documents."""

import mimetypes
from pathlib import Path
from typing import Optional

from document_viewer.client import FetchedDocument
from document_viewer.config import ViewerConfig
from document_viewer.handler import DocumentHandler, DocumentView


def load_document(
    file_path: Optional[str] = None,
    file_bytes: Optional[bytes] = None,
    file_name: Optional[str] = None,
    mime_type: Optional[str] = None,
    config: Optional[ViewerConfig] = None,
) -> DocumentView:
    """Classify a document and parse it if it is an Outlook message.

    High-level convenience function that accepts either a file path or raw bytes.

    Args:
        file_path: Path to document file (alternative to file_bytes)
        file_bytes: Raw document bytes (alternative to file_path)
        file_name: Original filename, used as a classification hint
        mime_type: Declared MIME type (optional, guessed from a path's extension)
        config: Viewer configuration (optional, uses defaults if not provided)

    Returns:
        DocumentView with the normalized content and, for messages, the parsed email

    Raises:
        ValueError: If neither or both of file_path and file_bytes are provided,
            or the file does not exist

    Examples:
        >>> view = load_document(file_path="invoice.msg")
        >>> print(view.email.subject)

        >>> view = load_document(file_bytes=data, mime_type="application/octet-stream")
        >>> view.content.kind
        <ContentKind.PDF: 'pdf'>
    """
    if file_path and file_bytes is not None:
        raise ValueError("Provide either file_path or file_bytes, not both")

    if not file_path and file_bytes is None:
        raise ValueError("Must provide either file_path or file_bytes")

    if file_path:
        path = Path(file_path)
        if not path.exists():
            raise ValueError(f"File not found: {file_path}")

        file_bytes = path.read_bytes()
        file_name = file_name or path.name

        if not mime_type:
            guessed_type, _ = mimetypes.guess_type(str(path))
            mime_type = guessed_type

    handler = DocumentHandler(config=config)
    return handler.view(
        FetchedDocument(
            data=file_bytes or b"",
            content_type=mime_type or "",
            file_name=file_name,
        )
    )
