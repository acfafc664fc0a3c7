"""Configuration classes for document viewer."""

from dataclasses import dataclass, field


@dataclass
class ClassifierConfig:
    """Configuration for content classification.

    Examples:
        >>> # Default configuration
        >>> config = ClassifierConfig()

        >>> # Stricter readable-text check for unlabeled payloads
        >>> config = ClassifierConfig(min_printable_ratio=0.98)
    """

    text_sample_chars: int = 2048
    """Number of decoded characters inspected by the readable-text check."""

    min_printable_ratio: float = 0.9
    """Minimum share of printable characters (whitespace included) for an
    unlabeled payload to be treated as plain text."""


@dataclass
class MsgParserConfig:
    """Configuration for Outlook message parsing."""

    date_format: str = "{month} {day}, {year} at {time}"
    """Template for the displayed date. Fields: month (full name), day
    (unpadded), year, time (``03:04 PM``)."""

    link_target: str = "_blank"
    """``target`` attribute of anchors produced when link-ifying a body."""


@dataclass
class ClientConfig:
    """Configuration for the SmartAdvocate document-fetch client."""

    base_url: str = "https://sa.actslaw.com/CaseSyncAPI"
    """Root of the upstream case-sync API."""

    content_path: str = "case/document/{document_id}/content"
    """Path template of the document content endpoint."""

    timeout_seconds: float = 30.0
    """Per-request timeout. Large scanned PDFs can take a while upstream."""

    cache_ttl_seconds: int = 300
    """How long fetched documents are kept in the client cache. 0 disables."""

    user_agent: str = "document-viewer/0.1"


@dataclass
class PreviewConfig:
    """Configuration for structured previews."""

    max_pdf_pages: int = 20
    """Pages of text extracted for a PDF preview. The page count is always exact."""

    max_text_chars: int = 20_000
    """Preview text is truncated to this many characters."""


@dataclass
class ViewerConfig:
    """Bundle of all configuration used by :class:`DocumentHandler`."""

    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    msg_parser: MsgParserConfig = field(default_factory=MsgParserConfig)
    client: ClientConfig = field(default_factory=ClientConfig)
    preview: PreviewConfig = field(default_factory=PreviewConfig)
