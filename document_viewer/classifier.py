"""Document content-type detection and normalization."""

import codecs
import mimetypes
import re
from pathlib import PurePosixPath
from typing import Optional, Union

from document_viewer import signatures
from document_viewer.config import ClassifierConfig
from document_viewer.exceptions import ClassificationAmbiguous
from document_viewer.logger import Timer, get_logger
from document_viewer.models import BinaryResource, ContentKind, DocumentContent

logger = get_logger(__name__)

# Characters that betray binary bytes coerced into a text frame
_NON_PRINTABLE_RE = re.compile(r"[\x00-\x08\x0E-\x1F\x7F-\xFF]")

_KIND_MIME_TYPES = {
    ContentKind.PDF: signatures.PDF_MIME,
    ContentKind.DOCX: signatures.DOCX_MIME,
    ContentKind.LEGACY_DOC: signatures.DOC_MIME,
    ContentKind.MSG_EMAIL: signatures.MSG_MIME,
    ContentKind.GENERIC_BINARY: signatures.OCTET_STREAM_MIME,
}

_EXTENSION_KINDS = {
    ".docx": ContentKind.DOCX,
    ".doc": ContentKind.LEGACY_DOC,
    ".msg": ContentKind.MSG_EMAIL,
}


def file_extension(file_name: Optional[str]) -> str:
    if not file_name:
        return ""
    # Upstream names sometimes carry Windows paths
    return PurePosixPath(file_name.replace("\\", "/")).suffix.lower()


def pdf_text_to_bytes(text: str) -> bytes:
    """Recover PDF bytes from a payload the transport decoded as text.

    If any character falls in the non-printable range, every code unit is taken
    as one raw byte; UTF-8 encoding would expand bytes >= 0x80 and corrupt the
    file. Otherwise the text is plain ASCII-ish PDF and UTF-8 is safe.

    This is a heuristic: a payload whose binary section happens to contain only
    printable characters takes the UTF-8 path.
    """
    if _NON_PRINTABLE_RE.search(text):
        return bytes(ord(char) & 0xFF for char in text)
    return text.encode("utf-8")


def sniff_container(data: bytes) -> Optional[ContentKind]:
    """Kind implied by the PDF, OLE or ZIP signature, if any."""
    if signatures.is_pdf(data):
        return ContentKind.PDF
    if signatures.is_ole(data):
        return ContentKind.MSG_EMAIL
    if signatures.is_zip(data):
        return ContentKind.DOCX
    return None


class ContentClassifier:
    """Turns (bytes, declared MIME type, filename) into a :class:`DocumentContent`.

    The declared type comes from an upstream that labels PDFs, DOCX and MSG
    files as ``application/octet-stream`` or text, so byte signatures and the
    filename extension take precedence wherever the rules allow. Classification
    never raises; the worst outcome is ``ContentKind.UNKNOWN``.
    """

    def __init__(self, config: Optional[ClassifierConfig] = None) -> None:
        self.config = config or ClassifierConfig()

    def classify(
        self,
        data: Union[bytes, bytearray, memoryview, str, None],
        declared_mime_type: Optional[str] = None,
        file_name: Optional[str] = None,
    ) -> DocumentContent:
        with Timer("classification") as timer:
            payload, text_frame_pdf = self._to_bytes(data)
            kind = self._classify_kind(payload, declared_mime_type, file_name, text_frame_pdf)
            content = self._normalize(kind, payload, declared_mime_type, file_name)

        logger.info(
            "Document classified",
            extra_data={
                "file_name": file_name,
                "kind": content.kind.value,
                "declared_mime_type": declared_mime_type,
                "mime_type": content.mime_type,
                "mime_type_corrected": content.mime_type != declared_mime_type,
                "size_bytes": content.size_bytes,
                "classification_time_ms": timer.get_elapsed_ms(),
            },
        )
        return content

    @staticmethod
    def _to_bytes(data: Union[bytes, bytearray, memoryview, str, None]) -> tuple[bytes, bool]:
        if data is None:
            return b"", False
        if isinstance(data, str):
            if data.startswith("%PDF-"):
                return pdf_text_to_bytes(data), True
            return data.encode("utf-8"), False
        return bytes(data), False

    def _classify_kind(
        self,
        data: bytes,
        declared_mime_type: Optional[str],
        file_name: Optional[str],
        text_frame_pdf: bool,
    ) -> ContentKind:
        extension = file_extension(file_name)
        declared = (declared_mime_type or "").lower()

        if extension == ".docx":
            return ContentKind.DOCX
        if extension == ".msg":
            return ContentKind.MSG_EMAIL
        if text_frame_pdf:
            return ContentKind.PDF
        if "application/pdf" in declared:
            return ContentKind.PDF
        if "image/" in declared:
            return ContentKind.IMAGE
        if "application/msword" in declared:
            return ContentKind.LEGACY_DOC
        if "application/octet-stream" in declared:
            kind = sniff_container(data) or ContentKind.GENERIC_BINARY
            logger.debug(
                "Sniffed ambiguous payload",
                extra_data={
                    "file_name": file_name,
                    "head": signatures.describe_head(data),
                    "kind": kind.value,
                },
            )
            return kind
        if "text/" in declared:
            return ContentKind.PLAIN_TEXT

        try:
            return self._fallback_kind(data, extension)
        except ClassificationAmbiguous as exc:
            logger.debug(
                "No classification rule matched",
                extra_data={"file_name": file_name, "declared_mime_type": declared_mime_type, "reason": str(exc)},
            )
            return ContentKind.UNKNOWN

    def _fallback_kind(self, data: bytes, extension: str) -> ContentKind:
        """Classify a payload whose declared type gave no usable signal."""
        sniffed = sniff_container(data)
        if sniffed is not None:
            return sniffed
        if signatures.sniff_image_mime(data):
            return ContentKind.IMAGE
        if self.is_readable_text(data):
            return ContentKind.PLAIN_TEXT

        if extension in _EXTENSION_KINDS:
            return _EXTENSION_KINDS[extension]
        guessed, _ = mimetypes.guess_type(f"file{extension}") if extension else (None, None)
        if guessed == signatures.PDF_MIME:
            return ContentKind.PDF
        if guessed and guessed.startswith("image/"):
            return ContentKind.IMAGE
        raise ClassificationAmbiguous(
            f"no signature, text or extension match ({len(data)} bytes, extension={extension!r})"
        )

    def is_readable_text(self, data: bytes) -> bool:
        """True if the buffer decodes as UTF-8 and is mostly printable."""
        if not data:
            return False
        sample = data[: self.config.text_sample_chars * 4]
        try:
            text = codecs.getincrementaldecoder("utf-8-sig")().decode(sample, final=False)
        except UnicodeDecodeError:
            return False
        text = text[: self.config.text_sample_chars]
        if not text:
            return False
        printable = sum(1 for char in text if char.isprintable() or char.isspace())
        return printable / len(text) >= self.config.min_printable_ratio

    def _normalize(
        self,
        kind: ContentKind,
        data: bytes,
        declared_mime_type: Optional[str],
        file_name: Optional[str],
    ) -> DocumentContent:
        content = DocumentContent(
            kind=kind,
            size_bytes=len(data),
            declared_mime_type=declared_mime_type,
            file_name_hint=file_name,
        )

        if kind is ContentKind.PLAIN_TEXT:
            content.mime_type = signatures.TEXT_MIME
            content.renderable_ref = data.decode("utf-8-sig", errors="replace")
            return content

        if kind is ContentKind.UNKNOWN:
            # Kept so the viewer can still offer the download
            content.source_bytes = data
            return content

        if kind is ContentKind.IMAGE:
            content.mime_type = self._image_mime(data, declared_mime_type)
        else:
            content.mime_type = _KIND_MIME_TYPES[kind]
        content.renderable_ref = BinaryResource(data, content.mime_type)

        if kind is ContentKind.MSG_EMAIL:
            content.source_bytes = data
        return content

    @staticmethod
    def _image_mime(data: bytes, declared_mime_type: Optional[str]) -> str:
        sniffed = signatures.sniff_image_mime(data)
        if sniffed:
            return sniffed
        declared = (declared_mime_type or "").split(";", 1)[0].strip().lower()
        if declared.startswith("image/"):
            return declared
        return signatures.OCTET_STREAM_MIME
