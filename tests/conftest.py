from typing import Optional

import pytest

from document_viewer.logger import bind_document
from document_viewer.models import MessageRecord
from document_viewer.signatures import OLE_SIGNATURE, ZIP_SIGNATURE


class FakeReader:
    """Stands in for the compound-document reader; returns a prepared record."""

    def __init__(
        self,
        record: Optional[MessageRecord] = None,
        error: Optional[Exception] = None,
        attachments: Optional[dict[int, bytes]] = None,
    ):
        self.record = record
        self.error = error
        self.attachments = attachments or {}
        self.calls: list[bytes] = []

    def read(self, raw: bytes) -> MessageRecord:
        self.calls.append(raw)
        if self.error is not None:
            raise self.error
        return self.record or MessageRecord()

    def read_attachment(self, raw: bytes, data_id: int) -> Optional[bytes]:
        if self.error is not None:
            raise self.error
        return self.attachments.get(data_id)


@pytest.fixture
def msg_bytes() -> bytes:
    return OLE_SIGNATURE + b"\x00" * 504


@pytest.fixture
def zip_bytes() -> bytes:
    return ZIP_SIGNATURE + b"\x14\x00\x06\x00" + b"\x00" * 64


@pytest.fixture
def pdf_bytes() -> bytes:
    return b"%PDF-1.7\n%\xe2\xe3\xcf\xd3\n1 0 obj\n<< /Type /Catalog >>\nendobj\n%%EOF\n"


@pytest.fixture(autouse=True)
def clear_document_context():
    yield
    bind_document(None)
