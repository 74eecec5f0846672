"""
Tests for body decoding and plain-text promotion
"""

import re

from conftest import b64url
from mailcal.impl.body import (
    convert_text_to_html,
    decode_b64url_to_bytes,
    decode_b64url_to_text,
    escape_html,
    to_standard_b64,
)

MARKUP = re.compile(r'<a href="[^"]*">|</a>|<br>')


class TestDecodeB64url:
    """Tests for transport decoding"""

    def test_ascii(self):
        assert decode_b64url_to_text(b64url("Hello, world")) == "Hello, world"

    def test_multibyte_utf8(self):
        """Multi-byte sequences must be decoded as a whole"""
        text = "こんにちは、世界 café ✓"
        assert decode_b64url_to_text(b64url(text)) == text

    def test_url_safe_alphabet(self):
        raw = b"\xfb\xff\xbf\xfe"
        encoded = b64url(raw)
        assert "-" in encoded or "_" in encoded
        assert decode_b64url_to_bytes(encoded) == raw

    def test_missing_padding(self):
        assert decode_b64url_to_text("YQ") == "a"

    def test_empty(self):
        assert decode_b64url_to_text("") == ""
        assert decode_b64url_to_text(None) == ""

    def test_invalid_base64_returns_empty(self):
        assert decode_b64url_to_text("abcde") == ""

    def test_invalid_utf8_returns_empty(self):
        assert decode_b64url_to_text(b64url(b"\xff\xfe\xfa")) == ""

    def test_to_standard_b64(self):
        assert to_standard_b64("ab-cd_ef") == "ab+cd/ef"


class TestEscapeHtml:
    """Tests for HTML escaping"""

    def test_all_five_characters(self):
        assert escape_html("<b>&\"'") == "&lt;b&gt;&amp;&quot;&#39;"

    def test_no_double_escaping(self):
        assert escape_html("a & <b>") == "a &amp; &lt;b&gt;"
        assert escape_html("&lt;") == "&amp;lt;"


class TestConvertTextToHtml:
    """Tests for plain text to HTML promotion"""

    def test_linkifies_url(self):
        result = convert_text_to_html("see https://example.com/x?a=1&b=2 now")
        assert result == (
            'see <a href="https://example.com/x?a=1&amp;b=2">'
            "https://example.com/x?a=1&amp;b=2</a> now"
        )

    def test_url_stops_at_quote(self):
        result = convert_text_to_html('"http://example.com"')
        assert result == '&quot;<a href="http://example.com">http://example.com</a>&quot;'

    def test_all_newline_conventions(self):
        assert convert_text_to_html("a\r\nb\rc\nd") == "a<br>b<br>c<br>d"

    def test_crlf_is_a_single_break(self):
        assert convert_text_to_html("a\r\n\r\nb") == "a<br><br>b"

    def test_markup_in_text_is_escaped(self):
        result = convert_text_to_html("<script>alert('x')</script>")
        assert "<script>" not in result
        assert result == "&lt;script&gt;alert(&#39;x&#39;)&lt;/script&gt;"

    def test_no_unescaped_characters_outside_markup(self):
        text = "Tom & Jerry <tj@example.com>\nhttp://a.example/<c>?q=\"1\"\r\n'quoted' https://b.example"
        result = convert_text_to_html(text)
        stripped = MARKUP.sub("", result)
        assert "<" not in stripped
        assert ">" not in stripped
        assert not re.findall(r"&(?!amp;|lt;|gt;|quot;|#39;)", stripped)
