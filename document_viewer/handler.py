"""Document view orchestration."""

from dataclasses import dataclass
from typing import Optional, Union

from document_viewer.classifier import ContentClassifier
from document_viewer.client import FetchedDocument, SmartAdvocateClient
from document_viewer.config import ViewerConfig
from document_viewer.exceptions import FetchFailed
from document_viewer.logger import bind_document, get_logger
from document_viewer.models import ContentKind, DocumentContent, ParsedEmail
from document_viewer.msg_parser import MsgParser
from document_viewer.preview import DocumentPreview, DocumentPreviewer

logger = get_logger(__name__)


@dataclass
class DocumentView:
    """Everything the rendering layer needs for one open document."""

    content: DocumentContent
    email: Optional[ParsedEmail] = None
    document_id: Optional[str] = None

    @property
    def download_only(self) -> bool:
        """No usable inline preview; the viewer must offer the raw download."""
        if self.content.download_only:
            return True
        if self.content.kind is ContentKind.MSG_EMAIL:
            return self.email is None or self.email.is_degraded
        return False

    def close(self) -> None:
        self.content.release()


class DocumentHandler:
    def __init__(
        self,
        client: Optional[SmartAdvocateClient] = None,
        classifier: Optional[ContentClassifier] = None,
        msg_parser: Optional[MsgParser] = None,
        previewer: Optional[DocumentPreviewer] = None,
        config: Optional[ViewerConfig] = None,
    ) -> None:
        """Initialize document handler.

        Args:
            client: Document-fetch client. Required only for :meth:`open`.
            classifier: Content classifier. If None, creates default.
            msg_parser: Outlook message parser. If None, creates default.
            previewer: Preview builder. If None, creates default.
            config: Configuration for the default collaborators.
        """
        self.config = config or ViewerConfig()
        self.client = client
        self.classifier = classifier or ContentClassifier(self.config.classifier)
        self.msg_parser = msg_parser or MsgParser(config=self.config.msg_parser)
        self.previewer = previewer or DocumentPreviewer(self.config.preview)

    def open(
        self, document_id: Union[int, str], file_name: Optional[str] = None
    ) -> DocumentView:
        """Fetch, classify and (for Outlook messages) parse one document.

        Raises:
            FetchFailed: If the bytes could not be fetched. Retry is up to the caller.
        """
        if self.client is None:
            raise FetchFailed("No document client configured", retryable=False)

        bind_document(document_id)
        try:
            fetched = self.client.get_document_content(document_id, file_name=file_name)
        except FetchFailed as exc:
            logger.warning(
                "Document fetch failed",
                extra_data={
                    "file_name": file_name,
                    "status_code": exc.status_code,
                    "retryable": exc.retryable,
                },
            )
            raise

        view = self.view(fetched)
        view.document_id = str(document_id)
        return view

    def view(self, fetched: FetchedDocument) -> DocumentView:
        """Classify already-fetched bytes and parse them if they are a message."""
        content = self.classifier.classify(
            fetched.data,
            declared_mime_type=fetched.content_type,
            file_name=fetched.file_name,
        )

        email = None
        if content.kind is ContentKind.MSG_EMAIL and content.source_bytes is not None:
            email = self.msg_parser.parse(content.source_bytes)
            if email.is_degraded:
                logger.warning(
                    "Outlook message parsing degraded, offering download only",
                    extra_data={"file_name": fetched.file_name, "size_bytes": content.size_bytes},
                )

        return DocumentView(content=content, email=email)

    def preview(self, view: DocumentView) -> DocumentPreview:
        return self.previewer.preview(view.content, view.email)

    def email_html(self, view: DocumentView) -> Optional[str]:
        """Body HTML of an open Outlook message, or None when it has no usable email."""
        if view.email is None or view.email.is_degraded:
            return None
        return view.email.render_html(self.config.msg_parser.link_target)

    def get_attachment(self, view: DocumentView, data_id: int) -> Optional[bytes]:
        """Bytes of one attachment of an open Outlook message."""
        if view.content.kind is not ContentKind.MSG_EMAIL or view.content.source_bytes is None:
            return None
        return self.msg_parser.get_attachment(view.content.source_bytes, data_id)

    def close(self, view: DocumentView) -> None:
        """Release the resource handle of a view the user navigated away from."""
        view.close()
        bind_document(None)
