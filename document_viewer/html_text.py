"""HTML sanitizing, HTML-to-text conversion and body cleanup for email bodies."""

import html
import re
from typing import Optional

import html2text

_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.DOTALL | re.IGNORECASE)
# Unterminated blocks are dropped to the end of the document
_OPEN_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b[^>]*>.*\Z", re.DOTALL | re.IGNORECASE)
# Opening tag, allowing ">" inside quoted attribute values
_OPEN_TAG_RE = re.compile(r"""<[a-zA-Z](?:"[^"]*"|'[^']*'|[^'">])*>""")
# Quoted values are matched first and kept, so "on...=" inside them is untouched
_EVENT_HANDLER_RE = re.compile(
    r"""("[^"]*"|'[^']*')|(?:\s|/)+on[a-z]+\s*=\s*(?:"[^"]*"|'[^']*'|[^\s>]+)""",
    re.IGNORECASE,
)
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_URL_RE = re.compile(r"(?:https?://|www\.)[^\s<>\"']+", re.IGNORECASE)


def _strip_event_handlers(tag: "re.Match[str]") -> str:
    return _EVENT_HANDLER_RE.sub(lambda m: m.group(1) or "", tag.group(0))


def sanitize_html(content: Optional[str]) -> Optional[str]:
    """Remove script/style blocks and inline ``on*`` event handlers."""
    if not content:
        return None
    cleaned = _SCRIPT_STYLE_RE.sub("", content)
    cleaned = _OPEN_SCRIPT_STYLE_RE.sub("", cleaned)
    cleaned = _OPEN_TAG_RE.sub(_strip_event_handlers, cleaned)
    return cleaned.strip() or None


def _text_converter() -> html2text.HTML2Text:
    converter = html2text.HTML2Text()
    converter.ignore_links = True
    converter.ignore_images = True
    converter.ignore_emphasis = True
    converter.body_width = 0
    converter.unicode_snob = True
    return converter


def html_to_text(content: Optional[str]) -> Optional[str]:
    """Derive plain text from an HTML body with html2text.

    Block-level tags and ``<br>`` become line breaks, script/style content is
    dropped and entities are decoded. Non-breaking spaces become plain spaces.
    """
    if not content:
        return None
    text = _text_converter().handle(content).replace("\u00a0", " ")
    return text.strip() or None


def clean_text(text: Optional[str]) -> Optional[str]:
    """Collapse all whitespace to single spaces (subjects, names)."""
    if not text:
        return None
    return re.sub(r"\s+", " ", text).strip() or None


def clean_body_text(body: Optional[str]) -> Optional[str]:
    """Normalize a plain-text body for display.

    Line endings become ``\\n``, control characters are dropped, trailing
    whitespace is removed per line, inline whitespace runs collapse to a single
    space and consecutive blank lines collapse to one.
    """
    if not body:
        return None
    text = body.replace("\r\n", "\n").replace("\r", "\n")
    text = _CONTROL_CHARS_RE.sub("", text)
    text = re.sub(r"[ \t\f\v\u00a0]+$", "", text, flags=re.MULTILINE)
    text = re.sub(r"[ \t\f\v\u00a0]{2,}", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip() or None


def _split_trailing_punctuation(url: str) -> tuple[str, str]:
    trailing = ""
    while url and url[-1] in ".,;:!?)]}":
        # Keep a closing paren that balances one inside the URL
        if url[-1] == ")" and url.count("(") >= url.count(")"):
            break
        trailing = url[-1] + trailing
        url = url[:-1]
    return url, trailing


def linkify(text: str, target: str = "_blank") -> str:
    """Render plain text as HTML with line breaks and clickable links.

    URLs are swapped for placeholders before the text is escaped and newlines
    become ``<br>``, so neither step can touch them; anchors are substituted
    back at the end. Bare ``www.`` links get an ``https://`` scheme.
    """
    links: list[str] = []

    def _protect(match: "re.Match[str]") -> str:
        url, trailing = _split_trailing_punctuation(match.group(0))
        if not url or url.lower() in ("http://", "https://", "www."):
            return match.group(0)
        links.append(url)
        return f"\x00{len(links) - 1}\x00{trailing}"

    protected = _URL_RE.sub(_protect, text)
    rendered = html.escape(protected, quote=True).replace("\n", "<br>")

    def _restore(match: "re.Match[str]") -> str:
        url = links[int(match.group(1))]
        href = url if re.match(r"https?://", url, re.IGNORECASE) else f"https://{url}"
        return (
            f'<a href="{html.escape(href, quote=True)}" target="{html.escape(target, quote=True)}" '
            f'rel="noopener noreferrer">{html.escape(url)}</a>'
        )

    return re.sub(r"\x00(\d+)\x00", _restore, rendered)
