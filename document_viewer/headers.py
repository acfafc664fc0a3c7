"""Address and date scraping from an Outlook message's raw transport headers.

Structured MSG properties are often incomplete or hold Exchange legacy
distinguished names (``/o=ORG/ou=.../cn=...``) instead of addresses, while the
plain RFC 822 header block carries the real values. Each function here takes
that header block (or a single value) and returns ``None`` / ``[]`` when
nothing usable is found; none of them raise on malformed input.
"""

import re
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Optional

_VALID_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_EMBEDDED_EMAIL_RE = re.compile(r"[^\s@<>()\[\],;:\"']+@[^\s@<>()\[\],;:\"']+\.[^\s@<>()\[\],;:\"']+")
_FROM_LINE_RE = re.compile(
    r"^From:[ \t]*(?:[^<\r\n]*<([^>\r\n]+)>|.*?([^\s@<>\"']+@[^\s@<>\"']+\.[^\s@<>\"',;]+))",
    re.IGNORECASE | re.MULTILINE,
)
_DATE_LINE_RE = re.compile(r"^Date:[ \t]*([^\r\n]+)", re.IGNORECASE | re.MULTILINE)
_DN_PREFIX_RE = re.compile(r"^\s*/o=", re.IGNORECASE)


def is_valid_email(value: Optional[str]) -> bool:
    """True if the whole value is a single ``local@domain.tld`` address."""
    if not value or not isinstance(value, str):
        return False
    return bool(_VALID_EMAIL_RE.match(value.strip()))


def is_distinguished_name(value: Optional[str]) -> bool:
    """True for Exchange legacy DNs such as ``/O=ACME/OU=EXCHANGE/CN=JDOE``."""
    return bool(value) and bool(_DN_PREFIX_RE.match(value))


def find_embedded_address(text: Optional[str]) -> Optional[str]:
    """First address-like substring of ``text`` (e.g. ``Jane <jane@x.com>``)."""
    if not text:
        return None
    match = _EMBEDDED_EMAIL_RE.search(text)
    return match.group(0) if match else None


def find_from_address(headers: Optional[str]) -> Optional[str]:
    """Address on the ``From:`` header line.

    Accepts both ``From: "Name" <addr>`` and ``From: addr``. Only the first
    ``From:`` line is considered.
    """
    if not headers:
        return None
    match = _FROM_LINE_RE.search(headers)
    if not match:
        return None
    address = (match.group(1) or match.group(2) or "").strip()
    return address if is_valid_email(address) else find_embedded_address(address)


def header_value(headers: Optional[str], name: str) -> Optional[str]:
    """Unfolded value of the first header called ``name`` (case-insensitive)."""
    if not headers:
        return None
    lines = headers.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    prefix = f"{name.lower()}:"
    for index, line in enumerate(lines):
        if not line.lower().startswith(prefix):
            continue
        parts = [line[len(prefix):].strip()]
        for continuation in lines[index + 1:]:
            if not continuation or continuation[0] not in " \t":
                break
            parts.append(continuation.strip())
        return " ".join(part for part in parts if part) or None
    return None


def find_header_addresses(headers: Optional[str], name: str) -> list[str]:
    """All addresses on the ``name`` header (``To``, ``CC``), in order, deduplicated."""
    value = header_value(headers, name)
    if not value:
        return []
    addresses: list[str] = []
    for address in _EMBEDDED_EMAIL_RE.findall(value):
        if address.lower() not in (a.lower() for a in addresses):
            addresses.append(address)
    return addresses


def find_header_date(headers: Optional[str]) -> Optional[datetime]:
    """Parsed ``Date:`` header, or None if missing or not RFC 2822."""
    if not headers:
        return None
    match = _DATE_LINE_RE.search(headers)
    if not match:
        return None
    try:
        return parsedate_to_datetime(match.group(1).strip())
    except (TypeError, ValueError, IndexError):
        return None
