"""Data models for document viewer."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from document_viewer.exceptions import ResourceReleasedError
from document_viewer.html_text import linkify

DIAGNOSTIC_PREFIX = "Error parsing MSG file"


class ContentKind(str, Enum):
    """How a document's bytes should be consumed downstream."""

    PDF = "pdf"
    DOCX = "docx"
    LEGACY_DOC = "legacy-doc"
    MSG_EMAIL = "msg-email"
    IMAGE = "image"
    PLAIN_TEXT = "plain-text"
    GENERIC_BINARY = "generic-binary"
    UNKNOWN = "unknown"

    @property
    def is_binary(self) -> bool:
        return self not in (ContentKind.PLAIN_TEXT, ContentKind.UNKNOWN)


class BinaryResource:
    """Bytes tagged with their corrected MIME type behind an addressable handle.

    Owned by the rendering layer once handed off; ``release()`` drops the bytes.
    """

    def __init__(self, data: bytes, mime_type: str) -> None:
        self.mime_type = mime_type
        self.handle = f"resource:{uuid.uuid4()}"
        self._data: Optional[bytes] = bytes(data)
        self._size = len(data)

    @property
    def size(self) -> int:
        return self._size

    @property
    def released(self) -> bool:
        return self._data is None

    def read(self) -> bytes:
        if self._data is None:
            raise ResourceReleasedError(f"Resource {self.handle} was released")
        return self._data

    def release(self) -> None:
        self._data = None

    def __repr__(self) -> str:
        state = "released" if self.released else f"{self._size} bytes"
        return f"BinaryResource({self.handle!r}, {self.mime_type!r}, {state})"


@dataclass
class DocumentContent:
    """Normalized description of one fetched document."""

    kind: ContentKind
    size_bytes: int
    declared_mime_type: Optional[str] = None  # diagnostics only
    file_name_hint: Optional[str] = None
    mime_type: Optional[str] = None  # corrected type
    renderable_ref: Union[BinaryResource, str, None] = None
    source_bytes: Optional[bytes] = None

    @property
    def resource(self) -> Optional[BinaryResource]:
        if isinstance(self.renderable_ref, BinaryResource):
            return self.renderable_ref
        return None

    @property
    def text(self) -> Optional[str]:
        if isinstance(self.renderable_ref, str):
            return self.renderable_ref
        return None

    @property
    def download_only(self) -> bool:
        """No inline preview exists for this kind; offer a download instead."""
        return self.kind in (
            ContentKind.UNKNOWN,
            ContentKind.LEGACY_DOC,
            ContentKind.GENERIC_BINARY,
        )

    @property
    def preview_available(self) -> bool:
        return not self.download_only

    def release(self) -> None:
        if self.resource is not None:
            self.resource.release()


@dataclass
class EmailAttachment:
    """Manifest entry for one attachment; bytes are fetched on demand."""

    file_name: str = "unknown"
    content_length: int = 0
    data_id: int = 0


@dataclass
class ParsedEmail:
    """Structured, best-effort rendition of one Outlook message."""

    subject: Optional[str] = None
    sender: Optional[str] = None
    to: Optional[str] = None
    cc: Optional[str] = None
    date: Optional[str] = None
    body: Optional[str] = None
    html_body: Optional[str] = None
    attachments: list[EmailAttachment] = field(default_factory=list)

    @property
    def is_degraded(self) -> bool:
        """True when nothing beyond a diagnostic could be extracted."""
        has_body = bool(self.body) and not self.body.startswith(DIAGNOSTIC_PREFIX)
        return not (self.subject or self.sender or has_body)

    def render_html(self, link_target: str = "_blank") -> str:
        """HTML for the message body: sanitized HTML when present, else linked text."""
        if self.html_body:
            return self.html_body
        return linkify(self.body or "", target=link_target)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "subject": self.subject,
            "from": self.sender,
            "to": self.to,
            "cc": self.cc,
            "date": self.date,
            "body": self.body,
            "htmlBody": self.html_body,
            "attachments": [
                {
                    "fileName": att.file_name,
                    "contentLength": att.content_length,
                    "dataId": att.data_id,
                }
                for att in self.attachments
            ],
        }
        return {k: v for k, v in result.items() if v is not None}


@dataclass
class RecipientRecord:
    """Recipient as stored in the compound document."""

    name: Optional[str] = None
    email: Optional[str] = None
    display_name: Optional[str] = None
    recipient_type: Optional[str] = None  # "to", "cc", "bcc" or None


@dataclass
class AttachmentRecord:
    file_name: Optional[str] = None
    short_file_name: Optional[str] = None
    content_length: Optional[int] = None
    data_id: Optional[int] = None


@dataclass
class MessageRecord:
    """Raw fields read from an Outlook message before any fallback is applied."""

    subject: Optional[str] = None
    sender_name: Optional[str] = None
    sender_email: Optional[str] = None
    recipients: list[RecipientRecord] = field(default_factory=list)
    body: Optional[str] = None
    html_body: Optional[str] = None
    attachments: list[AttachmentRecord] = field(default_factory=list)
    headers: Optional[str] = None
    creation_time: Union[datetime, str, None] = None
