from datetime import datetime

import pytest

from document_viewer.config import MsgParserConfig
from document_viewer.exceptions import MsgReadError
from document_viewer.models import (
    DIAGNOSTIC_PREFIX,
    AttachmentRecord,
    EmailAttachment,
    MessageRecord,
    ParsedEmail,
    RecipientRecord,
)
from document_viewer.msg_parser import (
    MsgParser,
    format_date,
    resolve_date,
    resolve_recipients,
    resolve_sender,
)
from tests.conftest import FakeReader

DN = "/O=ACME/OU=EXCHANGE ADMINISTRATIVE GROUP/CN=RECIPIENTS/CN=JDOE"


def parse(record: MessageRecord, config=None) -> ParsedEmail:
    return MsgParser(reader=FakeReader(record), config=config).parse(b"raw message")


class TestSender:
    def test_valid_sender_email(self):
        record = MessageRecord(sender_name="Jane Doe", sender_email="jane@example.com")

        assert resolve_sender(record) == "jane@example.com"

    def test_sender_name_that_is_an_address(self):
        record = MessageRecord(sender_name="jane@example.com", sender_email=DN)

        assert resolve_sender(record) == "jane@example.com"

    def test_distinguished_name_falls_back_to_from_header(self):
        record = MessageRecord(
            sender_name="Jane Doe",
            sender_email=DN,
            headers='From: "Jane Doe" <jane@example.com>\r\nTo: billing@client.com\r\n',
        )

        assert resolve_sender(record) == "jane@example.com"

    def test_missing_email_falls_back_to_from_header(self):
        record = MessageRecord(sender_name="Jane Doe", headers="From: jane@example.com\n")

        assert resolve_sender(record) == "jane@example.com"

    def test_address_embedded_in_name(self):
        record = MessageRecord(sender_name="Jane Doe <jane@example.com>", sender_email=DN)

        assert resolve_sender(record) == "jane@example.com"

    def test_unresolved_name_is_kept(self):
        record = MessageRecord(sender_name="Jane Doe", sender_email=DN, headers="From: Jane Doe\n")

        assert resolve_sender(record) == "Jane Doe"

    def test_no_sender_at_all(self):
        assert resolve_sender(MessageRecord()) is None


class TestRecipients:
    def test_distinguished_names_replaced_from_to_header(self):
        record = MessageRecord(
            recipients=[
                RecipientRecord(name="Alice", email="/o=ACME/cn=alice", recipient_type="to"),
                RecipientRecord(name="Bob", email="/o=ACME/cn=bob", recipient_type="to"),
            ],
            headers="To: a@x.com, b@x.com\r\n",
        )

        assert parse(record).to == "a@x.com; b@x.com"

    def test_resolved_recipients_ignore_headers(self):
        record = MessageRecord(
            recipients=[RecipientRecord(name="Alice", email="alice@x.com", recipient_type="to")],
            headers="To: someone.else@x.com\r\n",
        )

        assert parse(record).to == "alice@x.com"

    def test_cc_bucketing_and_bcc_lands_in_to(self):
        record = MessageRecord(
            recipients=[
                RecipientRecord(email="to@x.com", recipient_type="to"),
                RecipientRecord(email="cc@x.com", recipient_type="cc"),
                RecipientRecord(email="bcc@x.com", recipient_type="bcc"),
                RecipientRecord(email="untyped@x.com"),
            ]
        )

        to, cc = resolve_recipients(record)

        assert to == ["to@x.com", "bcc@x.com", "untyped@x.com"]
        assert cc == ["cc@x.com"]

    def test_empty_cc_filled_from_header(self):
        record = MessageRecord(
            recipients=[RecipientRecord(email="to@x.com", recipient_type="to")],
            headers='Cc: "Roe, Richard" <richard@x.com>\n',
        )

        email = parse(record)

        assert email.to == "to@x.com"
        assert email.cc == "richard@x.com"

    def test_unresolved_names_kept_without_headers(self):
        record = MessageRecord(
            recipients=[
                RecipientRecord(name="Alice", email=DN, display_name="Alice Smith"),
                RecipientRecord(display_name="Billing <billing@client.com>"),
            ]
        )

        assert parse(record).to == "Alice Smith; billing@client.com"

    def test_no_recipients(self):
        email = parse(MessageRecord(subject="Note to self"))

        assert email.to is None
        assert email.cc is None


class TestDate:
    def test_creation_time_is_formatted(self):
        record = MessageRecord(creation_time=datetime(2024, 1, 5, 15, 4))

        assert parse(record).date == "January 5, 2024 at 03:04 PM"

    def test_iso_string_creation_time(self):
        assert resolve_date(MessageRecord(creation_time="2024-01-05T09:30:00Z")) == (
            "January 5, 2024 at 09:30 AM"
        )

    def test_falls_back_to_date_header(self):
        record = MessageRecord(
            creation_time="not a date",
            headers="Date: Fri, 05 Jan 2024 15:04:00 +0000\n",
        )

        assert resolve_date(record) == "January 5, 2024 at 03:04 PM"

    def test_no_date(self):
        assert parse(MessageRecord(subject="x")).date is None

    def test_custom_template(self):
        config = MsgParserConfig(date_format="{day} {month} {year}")

        assert parse(MessageRecord(creation_time=datetime(2024, 12, 25, 8, 0)), config).date == (
            "25 December 2024"
        )

    def test_format_date(self):
        assert format_date(datetime(2023, 7, 14, 0, 5)) == "July 14, 2023 at 12:05 AM"


class TestBody:
    def test_plain_body_is_cleaned(self):
        record = MessageRecord(body="Hi,  \r\n\r\n\r\n\r\nPlease   remit.\r\n")

        assert parse(record).body == "Hi,\n\nPlease remit."

    def test_html_body_is_sanitized_and_used_for_text(self):
        record = MessageRecord(
            html_body='<p onclick="steal()">Hello&nbsp;there</p><script>track()</script>'
        )

        email = parse(record)

        assert email.html_body == "<p>Hello&nbsp;there</p>"
        assert email.body == "Hello there"

    def test_plain_body_preferred_over_html_text(self):
        record = MessageRecord(body="Plain version", html_body="<b>HTML version</b>")

        email = parse(record)

        assert email.body == "Plain version"
        assert email.html_body == "<b>HTML version</b>"

    def test_subject_whitespace_collapsed(self):
        assert parse(MessageRecord(subject="  Re:\r\n  Invoice   #100 ")).subject == "Re: Invoice #100"


def test_attachment_manifest_defaults():
    record = MessageRecord(
        subject="Docs",
        attachments=[
            AttachmentRecord(file_name="Retainer Agreement.pdf", content_length=52344, data_id=0),
            AttachmentRecord(short_file_name="INVOIC~1.PDF", data_id=1),
            AttachmentRecord(),
        ],
    )

    assert parse(record).attachments == [
        EmailAttachment("Retainer Agreement.pdf", 52344, 0),
        EmailAttachment("INVOIC~1.PDF", 0, 1),
        EmailAttachment("unknown", 0, 0),
    ]


def test_reader_error_yields_diagnostic_body():
    parser = MsgParser(reader=FakeReader(error=MsgReadError("Invalid header signature")))

    email = parser.parse(b"\xd0\xcf\x11\xe0broken")

    assert email.body == f"{DIAGNOSTIC_PREFIX}: Invalid header signature"
    assert email.subject is None
    assert email.sender is None
    assert email.attachments == []
    assert email.is_degraded


def test_error_without_message_uses_placeholder():
    email = MsgParser(reader=FakeReader(error=RuntimeError())).parse(b"x")

    assert email.body == f"{DIAGNOSTIC_PREFIX}: Unknown error"


def test_random_bytes_never_raise():
    raw = bytes((i * 37) % 256 for i in range(4096))
    parser = MsgParser()

    first = parser.parse(raw)
    second = parser.parse(raw)

    assert first.body.startswith(DIAGNOSTIC_PREFIX)
    assert first.is_degraded
    assert first == second


@pytest.mark.parametrize("raw", [b"", b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"])
def test_truncated_input_never_raises(raw):
    email = MsgParser().parse(raw)

    assert email.body.startswith(DIAGNOSTIC_PREFIX)


def test_parse_is_idempotent():
    reader = FakeReader(
        MessageRecord(
            subject="Invoice #100",
            sender_email="jane@example.com",
            recipients=[RecipientRecord(email="billing@client.com", recipient_type="to")],
            body="Please remit payment.",
        )
    )
    parser = MsgParser(reader=reader)

    assert parser.parse(b"raw") == parser.parse(b"raw")
    assert reader.calls == [b"raw", b"raw"]


def test_invoice_message():
    record = MessageRecord(
        subject="Invoice #100",
        sender_name="Accounts",
        sender_email=DN,
        recipients=[RecipientRecord(name="Billing", email="billing@client.com", recipient_type="to")],
        body="Please remit payment.",
        headers="From: Accounts <accounts@firm.com>\r\nTo: billing@client.com\r\n",
        creation_time=datetime(2024, 3, 1, 10, 15),
    )

    email = parse(record)

    assert email.subject == "Invoice #100"
    assert email.sender == "accounts@firm.com"
    assert email.to == "billing@client.com"
    assert email.body == "Please remit payment."
    assert email.date == "March 1, 2024 at 10:15 AM"
    assert not email.is_degraded


def test_get_attachment():
    parser = MsgParser(reader=FakeReader(attachments={0: b"%PDF-1.4 attachment"}))

    assert parser.get_attachment(b"raw", 0) == b"%PDF-1.4 attachment"
    assert parser.get_attachment(b"raw", 3) is None


def test_get_attachment_reader_error_returns_none():
    parser = MsgParser(reader=FakeReader(error=MsgReadError("corrupt")))

    assert parser.get_attachment(b"raw", 0) is None


class TestParsedEmail:
    def test_to_dict_uses_wire_names_and_drops_missing(self):
        email = ParsedEmail(
            subject="Invoice #100",
            sender="jane@example.com",
            body="Please remit payment.",
            attachments=[EmailAttachment("a.pdf", 10, 0)],
        )

        assert email.to_dict() == {
            "subject": "Invoice #100",
            "from": "jane@example.com",
            "body": "Please remit payment.",
            "attachments": [{"fileName": "a.pdf", "contentLength": 10, "dataId": 0}],
        }

    def test_render_html_prefers_sanitized_html(self):
        email = ParsedEmail(body="plain", html_body="<p>rich</p>")

        assert email.render_html() == "<p>rich</p>"

    def test_render_html_linkifies_plain_body(self):
        email = ParsedEmail(body="Portal: www.client.com\nThanks")

        html = email.render_html(link_target="viewer")

        assert 'href="https://www.client.com" target="viewer"' in html
        assert html.endswith("<br>Thanks")

    def test_subject_only_is_not_degraded(self):
        assert not ParsedEmail(subject="Hello").is_degraded
        assert ParsedEmail().is_degraded
