import base64
import binascii
import logging
import re

logger = logging.getLogger(__name__)

# runs on escaped text, so a quote shows up as &quot; or &#39;
URL_PATTERN = re.compile(r"(https?://(?:(?!&quot;|&#39;)[^\s<>\"'])+)")

# order matters: "&" first so later entities are not escaped twice
HTML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#39;"),
)


def to_standard_b64(data: str) -> str:
    """Translate Gmail base64url into standard base64 (for data URIs)."""
    return data.replace("-", "+").replace("_", "/")


def decode_b64url_to_bytes(data: str) -> bytes:
    """Decode Gmail base64url, tolerating missing padding.

    Raises
    ------
    binascii.Error
        If `data` is not valid base64.

    """
    raw = data.encode("ascii")
    padding = (-len(raw)) % 4
    if padding:
        raw += b"=" * padding
    return base64.urlsafe_b64decode(raw)


def decode_b64url_to_text(data: str) -> str:
    """Decode Gmail base64url string to utf-8 text.

    Multi-byte sequences are decoded as a whole, so non-ASCII text survives.
    Returns an empty string when `data` is missing or cannot be decoded.
    """
    if not data:
        return ""
    try:
        return decode_b64url_to_bytes(data).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError) as e:
        logger.warning(f"Failed to decode message body: {e}")
        return ""


def escape_html(text: str) -> str:
    for char, entity in HTML_ESCAPES:
        text = text.replace(char, entity)
    return text


def convert_text_to_html(text: str) -> str:
    """Promote a plain-text body to safe HTML.

    Escapes markup, wraps bare http(s) URLs in anchors, and turns every
    newline convention into a <br>.
    """
    escaped = escape_html(text)
    with_links = URL_PATTERN.sub(r'<a href="\1">\1</a>', escaped)

    # "\r\n" before the single characters, otherwise it yields two breaks
    return (
        with_links
        .replace("\r\n", "<br>")
        .replace("\r", "<br>")
        .replace("\n", "<br>")
    )
