"""Magic-byte signatures and matching helpers."""

from typing import Optional

PDF_SIGNATURE = b"%PDF-"
OLE_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"  # Compound document (.msg, .doc)
ZIP_SIGNATURE = b"PK\x03\x04"  # Office Open XML container

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JPEG_SIGNATURE = b"\xff\xd8\xff"
GIF_SIGNATURES = (b"GIF87a", b"GIF89a")
BMP_SIGNATURE = b"BM"
TIFF_SIGNATURES = (b"II*\x00", b"MM\x00*")

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
DOC_MIME = "application/msword"
MSG_MIME = "application/vnd.ms-outlook"
OCTET_STREAM_MIME = "application/octet-stream"
TEXT_MIME = "text/plain"


def has_signature(data: bytes, signature: bytes) -> bool:
    """Return True if ``data`` starts with the full ``signature``."""
    return len(data) >= len(signature) and data[: len(signature)] == signature


def is_pdf(data: bytes) -> bool:
    return has_signature(data, PDF_SIGNATURE)


def is_ole(data: bytes) -> bool:
    return has_signature(data, OLE_SIGNATURE)


def is_zip(data: bytes) -> bool:
    return has_signature(data, ZIP_SIGNATURE)


def sniff_image_mime(data: bytes) -> Optional[str]:
    """Detect an image MIME type from its signature."""
    if has_signature(data, PNG_SIGNATURE):
        return "image/png"
    if has_signature(data, JPEG_SIGNATURE):
        return "image/jpeg"
    if any(has_signature(data, sig) for sig in GIF_SIGNATURES):
        return "image/gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    if any(has_signature(data, sig) for sig in TIFF_SIGNATURES):
        return "image/tiff"
    # "BM" alone is too weak; require the reserved header words to be zero
    if has_signature(data, BMP_SIGNATURE) and len(data) >= 14 and data[6:10] == b"\x00\x00\x00\x00":
        return "image/bmp"
    return None


def describe_head(data: bytes, length: int = 8) -> str:
    """Hex dump of the first bytes, for log records."""
    return data[:length].hex(" ")
