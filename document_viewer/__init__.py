"""Content-type detection, Outlook message parsing and previews for case documents."""

from document_viewer.cache import TTLCache
from document_viewer.classifier import ContentClassifier, pdf_text_to_bytes
from document_viewer.client import FetchedDocument, SmartAdvocateClient, corrected_content_type
from document_viewer.config import (
    ClassifierConfig,
    ClientConfig,
    MsgParserConfig,
    PreviewConfig,
    ViewerConfig,
)
from document_viewer.exceptions import (
    ClassificationAmbiguous,
    DocumentViewerError,
    FetchFailed,
    MsgReadError,
    PreviewError,
    ResourceReleasedError,
)
from document_viewer.handler import DocumentHandler, DocumentView
from document_viewer.models import (
    BinaryResource,
    ContentKind,
    DocumentContent,
    EmailAttachment,
    MessageRecord,
    ParsedEmail,
)
from document_viewer.msg_parser import MsgParser
from document_viewer.msg_reader import ExtractMsgReader
from document_viewer.parser import load_document
from document_viewer.preview import DocumentPreview, DocumentPreviewer

__version__ = "0.1.0"

__all__ = [
    # High-level API
    "load_document",
    # Core classes
    "DocumentHandler",
    "ContentClassifier",
    "MsgParser",
    "ExtractMsgReader",
    "SmartAdvocateClient",
    "DocumentPreviewer",
    "TTLCache",
    "pdf_text_to_bytes",
    "corrected_content_type",
    # Data models
    "ContentKind",
    "BinaryResource",
    "DocumentContent",
    "DocumentView",
    "DocumentPreview",
    "FetchedDocument",
    "ParsedEmail",
    "EmailAttachment",
    "MessageRecord",
    # Configuration
    "ClassifierConfig",
    "MsgParserConfig",
    "ClientConfig",
    "PreviewConfig",
    "ViewerConfig",
    # Exceptions
    "DocumentViewerError",
    "FetchFailed",
    "ClassificationAmbiguous",
    "MsgReadError",
    "PreviewError",
    "ResourceReleasedError",
]
