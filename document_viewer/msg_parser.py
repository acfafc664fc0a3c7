"""Outlook (.msg) message parsing with per-field fallbacks."""

from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Optional, Sequence, Union

from document_viewer.config import MsgParserConfig
from document_viewer.headers import (
    find_embedded_address,
    find_from_address,
    find_header_addresses,
    find_header_date,
    is_distinguished_name,
    is_valid_email,
)
from document_viewer.html_text import clean_body_text, clean_text, html_to_text, sanitize_html
from document_viewer.logger import Timer, get_logger
from document_viewer.models import (
    DIAGNOSTIC_PREFIX,
    AttachmentRecord,
    EmailAttachment,
    MessageRecord,
    ParsedEmail,
    RecipientRecord,
)
from document_viewer.msg_reader import ExtractMsgReader, MessageReader

logger = get_logger(__name__)

RECIPIENT_SEPARATOR = "; "


def resolve_sender(record: MessageRecord) -> Optional[str]:
    """Best available sender address for a message.

    Order: a valid sender email, a sender name that is itself an address, the
    ``From:`` header (when the email property is missing or an Exchange DN),
    an address embedded in the sender name, then the unresolved display name.
    """
    email = (record.sender_email or "").strip()
    name = (record.sender_name or "").strip()

    if is_valid_email(email):
        return email
    if is_valid_email(name):
        return name

    if not email or is_distinguished_name(email):
        from_header = find_from_address(record.headers)
        if from_header:
            return from_header

    embedded = find_embedded_address(name)
    if embedded:
        return embedded

    return name or email or None


def resolve_recipient(recipient: RecipientRecord) -> Optional[str]:
    """Address for one recipient, or its unresolved name when none is found."""
    email = (recipient.email or "").strip()
    name = (recipient.name or "").strip()
    display_name = (recipient.display_name or "").strip()

    if is_valid_email(email):
        return email
    if is_valid_email(name):
        return name

    embedded = find_embedded_address(display_name) or find_embedded_address(name)
    if embedded:
        return embedded

    return display_name or name or email or None


def _needs_header_rescan(bucket: Sequence[str]) -> bool:
    return not bucket or all(not is_valid_email(value) for value in bucket)


def resolve_recipients(record: MessageRecord) -> tuple[list[str], list[str]]:
    """Split recipients into (to, cc) buckets.

    Anything not marked ``cc`` lands in ``to``; BCC is not distinguished. A
    bucket that is empty or holds only unresolved names (typically Exchange DNs)
    is replaced wholesale by the addresses on the matching header line, when
    that line has any.
    """
    to: list[str] = []
    cc: list[str] = []

    for recipient in record.recipients:
        value = resolve_recipient(recipient)
        if not value:
            continue
        if (recipient.recipient_type or "to").lower() == "cc":
            cc.append(value)
        else:
            to.append(value)

    if _needs_header_rescan(to):
        from_headers = find_header_addresses(record.headers, "To")
        if from_headers:
            to = from_headers
    if _needs_header_rescan(cc):
        from_headers = find_header_addresses(record.headers, "CC")
        if from_headers:
            cc = from_headers

    return to, cc


def _coerce_datetime(value: Union[datetime, str, None]) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass
    try:
        return parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        return None


def format_date(value: datetime, template: str = MsgParserConfig.date_format) -> str:
    """Format like ``January 5, 2024 at 03:04 PM``."""
    return template.format(
        month=value.strftime("%B"),
        day=value.day,
        year=value.year,
        time=value.strftime("%I:%M %p"),
    )


def resolve_date(
    record: MessageRecord, template: str = MsgParserConfig.date_format
) -> Optional[str]:
    """Creation time if it parses, else the ``Date:`` header."""
    created = _coerce_datetime(record.creation_time)
    if created is not None:
        return format_date(created, template)

    header_date = find_header_date(record.headers)
    if header_date is not None:
        return format_date(header_date, template)
    return None


def resolve_body(record: MessageRecord) -> tuple[Optional[str], Optional[str]]:
    """Return (plain body, sanitized HTML body).

    The plain body falls back to text derived from the HTML body.
    """
    html_body = sanitize_html(record.html_body)
    body = clean_body_text(record.body)
    if body is None and html_body:
        body = clean_body_text(html_to_text(html_body))
    return body, html_body


def build_attachment_manifest(attachments: Sequence[AttachmentRecord]) -> list[EmailAttachment]:
    return [
        EmailAttachment(
            file_name=att.file_name or att.short_file_name or "unknown",
            content_length=att.content_length or 0,
            data_id=att.data_id or 0,
        )
        for att in attachments
    ]


class MsgParser:
    """Parses raw Outlook message bytes into a :class:`ParsedEmail`.

    Never raises: a message that cannot be read yields a ``ParsedEmail`` whose
    only field is a diagnostic ``body``, and callers fall back to offering the
    raw download (see :attr:`ParsedEmail.is_degraded`).
    """

    def __init__(
        self,
        reader: Optional[MessageReader] = None,
        config: Optional[MsgParserConfig] = None,
    ) -> None:
        self.reader = reader or ExtractMsgReader()
        self.config = config or MsgParserConfig()

    def parse(self, raw: bytes) -> ParsedEmail:
        try:
            with Timer("msg_parse") as timer:
                record = self.reader.read(raw)
                email = self._build(record)
        except Exception as exc:
            logger.warning(
                "Failed to parse Outlook message",
                extra_data={
                    "size_bytes": len(raw) if raw else 0,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
            return ParsedEmail(body=f"{DIAGNOSTIC_PREFIX}: {str(exc) or 'Unknown error'}")

        logger.info(
            "Parsed Outlook message",
            extra_data={
                "has_subject": email.subject is not None,
                "has_sender": email.sender is not None,
                "attachment_count": len(email.attachments),
                "degraded": email.is_degraded,
                "parse_time_ms": timer.get_elapsed_ms(),
            },
        )
        return email

    def get_attachment(self, raw: bytes, data_id: int) -> Optional[bytes]:
        """Bytes of one attachment, by the ``data_id`` from the manifest."""
        try:
            return self.reader.read_attachment(raw, data_id)
        except Exception as exc:
            logger.warning(
                "Failed to extract Outlook attachment",
                extra_data={"data_id": data_id, "error_type": type(exc).__name__, "error": str(exc)},
            )
            return None

    def _build(self, record: MessageRecord) -> ParsedEmail:
        to, cc = resolve_recipients(record)
        body, html_body = resolve_body(record)
        return ParsedEmail(
            subject=clean_text(record.subject),
            sender=resolve_sender(record),
            to=RECIPIENT_SEPARATOR.join(to) or None,
            cc=RECIPIENT_SEPARATOR.join(cc) or None,
            date=resolve_date(record, self.config.date_format),
            body=body,
            html_body=html_body,
            attachments=build_attachment_manifest(record.attachments),
        )
