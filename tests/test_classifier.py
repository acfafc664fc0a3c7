import pytest

from document_viewer.classifier import ContentClassifier, file_extension, pdf_text_to_bytes
from document_viewer.config import ClassifierConfig
from document_viewer.exceptions import ResourceReleasedError
from document_viewer.models import BinaryResource, ContentKind
from document_viewer.signatures import DOCX_MIME, MSG_MIME, PNG_SIGNATURE

OCTET = "application/octet-stream"


@pytest.fixture
def classifier():
    return ContentClassifier()


@pytest.mark.parametrize("file_name", [None, "scan.bin", "report.txt", "letter.pdf", "noext"])
def test_pdf_signature_with_octet_stream(classifier, pdf_bytes, file_name):
    content = classifier.classify(pdf_bytes, OCTET, file_name)

    assert content.kind is ContentKind.PDF
    assert content.mime_type == "application/pdf"
    assert content.resource.mime_type == "application/pdf"
    assert content.declared_mime_type == OCTET


@pytest.mark.parametrize("declared", [OCTET, "application/octet-stream; charset=binary"])
def test_ole_signature_with_ambiguous_type_is_msg(classifier, msg_bytes, declared):
    content = classifier.classify(msg_bytes, declared, "attachment")

    assert content.kind is ContentKind.MSG_EMAIL
    assert content.source_bytes == msg_bytes
    assert content.resource.mime_type == MSG_MIME


def test_zip_signature_with_octet_stream_is_docx(classifier, zip_bytes):
    content = classifier.classify(zip_bytes, OCTET, None)

    assert content.kind is ContentKind.DOCX
    assert content.mime_type == DOCX_MIME


def test_unrecognised_octet_stream_is_generic_binary(classifier):
    content = classifier.classify(b"\x00\x01\x02 not a known format", OCTET, None)

    assert content.kind is ContentKind.GENERIC_BINARY
    assert content.mime_type == OCTET
    assert content.source_bytes is None


@pytest.mark.parametrize("declared", ["text/plain", "application/pdf", OCTET, "", None])
def test_docx_extension_always_wins(classifier, zip_bytes, pdf_bytes, declared):
    assert classifier.classify(zip_bytes, declared, "Brief.DOCX").kind is ContentKind.DOCX
    assert classifier.classify(pdf_bytes, declared, "brief.docx").kind is ContentKind.DOCX


def test_msg_extension_wins_over_declared_text(classifier):
    content = classifier.classify(b"whatever", "text/plain", r"C:\mail\invoice.msg")

    assert content.kind is ContentKind.MSG_EMAIL
    assert content.source_bytes == b"whatever"


def test_declared_pdf(classifier):
    assert classifier.classify(b"junk", "application/pdf", None).kind is ContentKind.PDF


def test_declared_image_gets_sniffed_mime(classifier):
    png = PNG_SIGNATURE + b"\x00" * 32

    content = classifier.classify(png, "image/jpeg", "photo.jpg")

    assert content.kind is ContentKind.IMAGE
    assert content.mime_type == "image/png"


def test_declared_image_without_signature_keeps_declared_subtype(classifier):
    content = classifier.classify(b"\x01\x02\x03", "image/svg+xml; charset=utf-8", None)

    assert content.kind is ContentKind.IMAGE
    assert content.mime_type == "image/svg+xml"


def test_declared_msword_is_legacy_doc(classifier, msg_bytes):
    content = classifier.classify(msg_bytes, "application/msword", "old.doc")

    assert content.kind is ContentKind.LEGACY_DOC
    assert content.mime_type == "application/msword"
    assert content.download_only


def test_declared_text_is_plain_text(classifier):
    content = classifier.classify("Deposition notes\n".encode("utf-8"), "text/plain; charset=utf-8", None)

    assert content.kind is ContentKind.PLAIN_TEXT
    assert content.text == "Deposition notes\n"
    assert content.resource is None
    assert content.source_bytes is None


def test_pdf_text_frame_with_binary_chars_maps_code_units_to_bytes(classifier):
    raw = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\nstream\x00\x01\x9c"
    text = raw.decode("latin-1")

    content = classifier.classify(text, "text/plain", None)

    assert content.kind is ContentKind.PDF
    assert content.resource.read() == raw
    assert content.size_bytes == len(raw)


def test_pdf_text_frame_without_binary_chars_uses_utf8():
    text = "%PDF-1.4\n1 0 obj << /Title (Smith\u2019s) >> endobj\n"

    assert pdf_text_to_bytes(text) == text.encode("utf-8")


def test_pdf_text_to_bytes_masks_wide_code_units():
    assert pdf_text_to_bytes("%PDF-\x01\u0141") == b"%PDF-\x01\x41"


def test_unlabeled_readable_text_is_plain_text(classifier):
    content = classifier.classify("Case 2024-118: hearing moved to May 3.".encode(), None, None)

    assert content.kind is ContentKind.PLAIN_TEXT


def test_unlabeled_bytes_are_sniffed(classifier, pdf_bytes, msg_bytes):
    assert classifier.classify(pdf_bytes, "", None).kind is ContentKind.PDF
    assert classifier.classify(msg_bytes, "application/x-unknown", None).kind is ContentKind.MSG_EMAIL


def test_unlabeled_binary_falls_back_to_extension(classifier):
    data = bytes(range(128, 256)) * 4

    assert classifier.classify(data, None, "scan.pdf").kind is ContentKind.PDF
    assert classifier.classify(data, None, "memo.doc").kind is ContentKind.LEGACY_DOC


def test_unmatched_payload_is_unknown_and_keeps_bytes(classifier):
    data = bytes(range(256)) * 4

    content = classifier.classify(data, "application/json", None)

    assert content.kind is ContentKind.UNKNOWN
    assert content.renderable_ref is None
    assert content.source_bytes == data
    assert content.download_only


@pytest.mark.parametrize("data", [None, b"", "", bytearray(b"\xff\xfe")])
def test_malformed_input_never_raises(classifier, data):
    content = classifier.classify(data, None, None)

    assert content.kind is ContentKind.UNKNOWN


def test_binary_kinds_round_trip_length(classifier, pdf_bytes, msg_bytes, zip_bytes):
    png = PNG_SIGNATURE + b"\x01" * 100
    samples = [
        (pdf_bytes, OCTET, None),
        (msg_bytes, OCTET, None),
        (zip_bytes, OCTET, None),
        (png, "image/png", None),
        (b"\x07" * 333, OCTET, None),
        (msg_bytes, "application/msword", None),
    ]
    for data, declared, name in samples:
        content = classifier.classify(data, declared, name)

        assert isinstance(content.renderable_ref, BinaryResource)
        assert content.resource.size == len(data)
        assert content.resource.read() == data
        assert content.size_bytes == len(data)


def test_each_classification_creates_its_own_handle(classifier, pdf_bytes):
    first = classifier.classify(pdf_bytes, OCTET, None)
    second = classifier.classify(pdf_bytes, OCTET, None)

    assert first.resource.handle != second.resource.handle
    assert first.resource.handle.startswith("resource:")


def test_release_drops_resource_bytes(classifier, pdf_bytes):
    content = classifier.classify(pdf_bytes, OCTET, None)

    content.release()

    assert content.resource.released
    with pytest.raises(ResourceReleasedError):
        content.resource.read()


def test_readable_text_threshold_is_configurable():
    data = "Mostly text\x01\x02\x03".encode()

    assert not ContentClassifier(ClassifierConfig(min_printable_ratio=0.95)).is_readable_text(data)
    assert ContentClassifier(ClassifierConfig(min_printable_ratio=0.5)).is_readable_text(data)


def test_file_extension_handles_windows_paths():
    assert file_extension(r"C:\Docs\Letter.PDF") == ".pdf"
    assert file_extension(None) == ""
    assert file_extension("README") == ""
