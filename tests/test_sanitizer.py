"""Tests for HTML sanitization."""

from lfw_harvester.ingestion.sanitizer import render_html_list, sanitize_html, sanitize_multiline


class TestSanitizeHtml:
    """Tests for sanitize_html."""

    def test_empty(self) -> None:
        assert sanitize_html(None) == ""
        assert sanitize_html("") == ""

    def test_plain_text_unchanged(self) -> None:
        assert sanitize_html("tarwebloem") == "tarwebloem"

    def test_script_removed(self) -> None:
        cleaned = sanitize_html("melk<script>alert(1)</script>")
        assert "<script" not in cleaned
        assert "melk" in cleaned

    def test_event_handler_removed(self) -> None:
        cleaned = sanitize_html('<b onclick="steal()">ei</b>')
        assert "onclick" not in cleaned
        assert "<b>ei</b>" in cleaned

    def test_multiline(self) -> None:
        """Test that line breaks survive as br tags."""
        cleaned = sanitize_multiline("Bakkerij\nsinds 1980")
        assert "\n" not in cleaned
        assert cleaned.startswith("Bakkerij<br")
        assert cleaned.endswith("sinds 1980")


class TestRenderHtmlList:
    """Tests for render_html_list."""

    def test_format(self) -> None:
        assert render_html_list(["bloem", "melk"]) == "<ul>\n  <li>bloem</li>\n  <li>melk</li>\n</ul>"

    def test_empty_list(self) -> None:
        assert render_html_list([]) == "<ul>\n</ul>"

    def test_items_are_sanitized(self) -> None:
        rendered = render_html_list(["<script>x</script>suiker"])
        assert "<script" not in rendered
        assert "suiker" in rendered
