"""Structured previews for classified documents."""

import io
from dataclasses import dataclass
from typing import Optional

import fitz  # PyMuPDF
from docx import Document
from PIL import Image, UnidentifiedImageError

from document_viewer.config import PreviewConfig
from document_viewer.exceptions import PreviewError, ResourceReleasedError
from document_viewer.logger import Timer, get_logger
from document_viewer.models import ContentKind, DocumentContent, ParsedEmail

logger = get_logger(__name__)


@dataclass
class DocumentPreview:
    """What the viewer can show inline for one document."""

    kind: ContentKind
    available: bool
    text: Optional[str] = None
    page_count: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    image_format: Optional[str] = None
    truncated: bool = False
    error: Optional[str] = None


class DocumentPreviewer:
    """Builds previews: PDF text via PyMuPDF, DOCX via python-docx, images via Pillow.

    ``preview()`` never raises. When a library rejects the bytes the preview is
    marked unavailable and the viewer falls back to a download.
    """

    def __init__(self, config: Optional[PreviewConfig] = None):
        self.config = config or PreviewConfig()

    def preview(
        self, content: DocumentContent, email: Optional[ParsedEmail] = None
    ) -> DocumentPreview:
        if content.download_only:
            return DocumentPreview(kind=content.kind, available=False)

        try:
            with Timer("preview") as timer:
                if content.kind is ContentKind.PLAIN_TEXT:
                    result = self._text_preview(content.kind, content.text or "")
                elif content.kind is ContentKind.MSG_EMAIL:
                    result = self._email_preview(email)
                else:
                    data = self._resource_bytes(content)
                    if content.kind is ContentKind.PDF:
                        result = self._pdf_preview(data)
                    elif content.kind is ContentKind.DOCX:
                        result = self._docx_preview(data)
                    else:
                        result = self._image_preview(data)
        except PreviewError as exc:
            logger.warning(
                "Preview unavailable",
                extra_data={
                    "file_name": content.file_name_hint,
                    "kind": content.kind.value,
                    "error": str(exc),
                },
            )
            return DocumentPreview(kind=content.kind, available=False, error=str(exc))

        logger.debug(
            "Preview built",
            extra_data={
                "file_name": content.file_name_hint,
                "kind": content.kind.value,
                "characters": len(result.text or ""),
                "page_count": result.page_count,
                "preview_time_ms": timer.get_elapsed_ms(),
            },
        )
        return result

    @staticmethod
    def _resource_bytes(content: DocumentContent) -> bytes:
        if content.resource is None:
            raise PreviewError("Document has no binary resource")
        try:
            return content.resource.read()
        except ResourceReleasedError as exc:
            raise PreviewError(str(exc)) from exc

    def _truncate(self, text: str) -> tuple[str, bool]:
        limit = self.config.max_text_chars
        if len(text) <= limit:
            return text, False
        return text[:limit], True

    def _text_preview(self, kind: ContentKind, text: str) -> DocumentPreview:
        text, truncated = self._truncate(text)
        return DocumentPreview(kind=kind, available=True, text=text, truncated=truncated)

    def _email_preview(self, email: Optional[ParsedEmail]) -> DocumentPreview:
        if email is None or email.is_degraded:
            raise PreviewError("Email could not be parsed")
        lines = [
            f"{label}: {value}"
            for label, value in (
                ("From", email.sender),
                ("To", email.to),
                ("CC", email.cc),
                ("Date", email.date),
                ("Subject", email.subject),
            )
            if value
        ]
        text = "\n".join(lines + ["", email.body or ""]).strip()
        return self._text_preview(ContentKind.MSG_EMAIL, text)

    def _pdf_preview(self, data: bytes) -> DocumentPreview:
        try:
            pdf_document = fitz.open(stream=data, filetype="pdf")
        except Exception as exc:
            raise PreviewError(f"Unreadable PDF: {exc}") from exc

        try:
            page_count = len(pdf_document)
            pages = []
            for page_num in range(min(page_count, self.config.max_pdf_pages)):
                page_text = pdf_document[page_num].get_text().strip()
                if page_text:
                    pages.append(page_text)
        except Exception as exc:
            raise PreviewError(f"PDF text extraction failed: {exc}") from exc
        finally:
            pdf_document.close()

        text, truncated = self._truncate("\n\n".join(pages))
        return DocumentPreview(
            kind=ContentKind.PDF,
            available=True,
            text=text,
            page_count=page_count,
            truncated=truncated or page_count > self.config.max_pdf_pages,
        )

    def _docx_preview(self, data: bytes) -> DocumentPreview:
        try:
            doc = Document(io.BytesIO(data))
        except Exception as exc:
            raise PreviewError(f"Unreadable DOCX: {exc}") from exc

        paragraphs = [para.text.strip() for para in doc.paragraphs if para.text.strip()]

        # Tables as markdown, header separator after the first row
        tables = []
        for table in doc.tables:
            rows = []
            for i, row in enumerate(table.rows):
                cells = [cell.text.strip() for cell in row.cells]
                rows.append(" | ".join(cells))
                if i == 0:
                    rows.append(" | ".join(["---"] * len(cells)))
            if rows:
                tables.append("\n".join(rows))

        text, truncated = self._truncate("\n\n".join(paragraphs + tables))
        return DocumentPreview(
            kind=ContentKind.DOCX, available=True, text=text, truncated=truncated
        )

    @staticmethod
    def _image_preview(data: bytes) -> DocumentPreview:
        try:
            with Image.open(io.BytesIO(data)) as image:
                width, height = image.size
                image_format = image.format
        except (UnidentifiedImageError, OSError) as exc:
            raise PreviewError(f"Unreadable image: {exc}") from exc
        return DocumentPreview(
            kind=ContentKind.IMAGE,
            available=True,
            width=width,
            height=height,
            image_format=image_format,
        )
