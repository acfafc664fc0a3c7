"""Compound-document reader backed by extract_msg."""

import io
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Iterator, Optional, Protocol, Union

import extract_msg

from document_viewer.exceptions import MsgReadError
from document_viewer.logger import get_logger
from document_viewer.models import AttachmentRecord, MessageRecord, RecipientRecord

logger = get_logger(__name__)

# MAPI string properties read directly when the library has no accessor
SENDER_NAME_STREAM = "__substg1.0_0C1A"
SENDER_EMAIL_STREAM = "__substg1.0_0C1F"
SENT_REPRESENTING_EMAIL_STREAM = "__substg1.0_0065"
TRANSPORT_HEADERS_STREAM = "__substg1.0_007D"
ATTACH_SIZE_PROPERTY = "0E200003"
CREATION_TIME_PROPERTY = "30070040"

_RECIPIENT_TYPES = {0: None, 1: "to", 2: "cc", 3: "bcc"}


class MessageReader(Protocol):
    """Reads raw Outlook message bytes into a :class:`MessageRecord`."""

    def read(self, raw: bytes) -> MessageRecord: ...

    def read_attachment(self, raw: bytes, data_id: int) -> Optional[bytes]: ...


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bytes):
        # extract_msg hands back HTML bodies as bytes in the declared codepage
        for encoding in ("utf-8", "windows-1252"):
            try:
                return value.decode(encoding)
            except UnicodeDecodeError:
                continue
        return value.decode("latin-1")
    text = str(value)
    return text or None


def _safe(getter: Callable[[], Any], field_name: str, default: Any = None) -> Any:
    """Read one field, treating failures as absent so the rest of the message survives."""
    try:
        return getter()
    except Exception as exc:
        logger.debug(
            "Could not read message field",
            extra_data={"field": field_name, "error_type": type(exc).__name__, "error": str(exc)},
        )
        return default


def _recipient_type(value: Any) -> Optional[str]:
    if value is None:
        return None
    try:
        return _RECIPIENT_TYPES.get(int(value))
    except (TypeError, ValueError):
        name = str(value).rsplit(".", 1)[-1].strip().lower()
        return name or None


class ExtractMsgReader:
    """Maps an ``extract_msg`` message onto the fields the parser resolves."""

    @contextmanager
    def _open(self, raw: bytes) -> Iterator[Any]:
        try:
            msg = extract_msg.Message(io.BytesIO(raw))
        except Exception as exc:
            raise MsgReadError(f"Not a readable Outlook message: {exc}") from exc
        try:
            yield msg
        finally:
            msg.close()

    def read(self, raw: bytes) -> MessageRecord:
        with self._open(raw) as msg:
            record = MessageRecord(
                subject=_safe(lambda: _text(msg.subject), "subject"),
                sender_name=self._string_stream(msg, SENDER_NAME_STREAM),
                sender_email=(
                    self._string_stream(msg, SENDER_EMAIL_STREAM)
                    or self._string_stream(msg, SENT_REPRESENTING_EMAIL_STREAM)
                ),
                recipients=_safe(
                    lambda: [self._recipient(r) for r in (msg.recipients or [])],
                    "recipients",
                    [],
                ),
                body=_safe(lambda: _text(msg.body), "body"),
                html_body=_safe(lambda: _text(msg.htmlBody), "html_body"),
                attachments=_safe(
                    lambda: [
                        self._attachment(att, index)
                        for index, att in enumerate(msg.attachments or [])
                    ],
                    "attachments",
                    [],
                ),
                headers=self._headers(msg),
                creation_time=self._creation_time(msg),
            )

        logger.debug(
            "Read Outlook message container",
            extra_data={
                "recipient_count": len(record.recipients),
                "attachment_count": len(record.attachments),
                "has_headers": record.headers is not None,
            },
        )
        return record

    def read_attachment(self, raw: bytes, data_id: int) -> Optional[bytes]:
        with self._open(raw) as msg:
            attachments = msg.attachments or []
            if not 0 <= data_id < len(attachments):
                return None
            data = attachments[data_id].data
        if isinstance(data, bytes):
            return data
        # Embedded messages come back as message objects, not bytes
        return None

    @staticmethod
    def _string_stream(msg: Any, stream: str) -> Optional[str]:
        try:
            return _text(msg.getStringStream(stream))
        except Exception as exc:
            logger.debug(
                "Could not read string stream",
                extra_data={"stream": stream, "error": str(exc)},
            )
            return None

    @staticmethod
    def _recipient(recipient: Any) -> RecipientRecord:
        name = _text(getattr(recipient, "name", None))
        return RecipientRecord(
            name=name,
            email=_text(getattr(recipient, "email", None)),
            display_name=name,
            recipient_type=_recipient_type(getattr(recipient, "type", None)),
        )

    @staticmethod
    def _attachment(attachment: Any, index: int) -> AttachmentRecord:
        size = None
        try:
            prop = attachment.props.get(ATTACH_SIZE_PROPERTY)
            size = int(prop.value) if prop is not None else None
        except (AttributeError, TypeError, ValueError):
            size = None
        return AttachmentRecord(
            file_name=_text(getattr(attachment, "longFilename", None)),
            short_file_name=_text(getattr(attachment, "shortFilename", None)),
            content_length=size,
            data_id=index,
        )

    def _headers(self, msg: Any) -> Optional[str]:
        text = self._string_stream(msg, TRANSPORT_HEADERS_STREAM)
        if text:
            return text
        # Without transport headers extract_msg synthesizes a header from properties
        header = _safe(lambda: msg.header, "header")
        if header is not None and len(header.items()) > 0:
            return "".join(f"{k}: {v}\n" for k, v in header.items())
        return None

    @staticmethod
    def _creation_time(msg: Any) -> Union[datetime, str, None]:
        """PR_CREATION_TIME, else the date extract_msg derives from headers or submit time."""
        prop = _safe(lambda: msg.props.get(CREATION_TIME_PROPERTY), "creation_time")
        value = getattr(prop, "value", None)
        if isinstance(value, datetime):
            return value
        value = _safe(lambda: msg.date, "date")
        if isinstance(value, datetime) or (isinstance(value, str) and value.strip()):
            return value
        return None
