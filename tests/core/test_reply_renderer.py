"""
Test suite for ReplyRenderer.

Covers markdown conversion, sanitization and optional fragments.
"""

from threadchat.core.reply_renderer import ReplyRenderer, sanitize_html


class TestRender:
    """Tests for markdown to HTML rendering."""

    def test_markdown_becomes_html(self) -> None:
        html = ReplyRenderer().render("# Title\n\n**bold** and *italic*\n\n- one\n- two")

        assert "<h1>Title</h1>" in html
        assert "<strong>bold</strong>" in html
        assert "<em>italic</em>" in html
        assert "<li>one</li>" in html

    def test_script_tags_are_removed(self) -> None:
        html = ReplyRenderer().render("Hi <script>alert('x')</script> there")

        assert "<script" not in html
        assert "</script>" not in html

    def test_event_handlers_are_removed(self) -> None:
        html = ReplyRenderer().render('<a href="https://example.com" onclick="steal()">link</a>')

        assert "onclick" not in html
        assert 'href="https://example.com"' in html

    def test_javascript_urls_are_removed(self) -> None:
        html = ReplyRenderer().render("[click](javascript:alert(1))")

        assert "javascript:" not in html

    def test_images_with_handlers_are_stripped(self) -> None:
        html = sanitize_html('<p>x</p><img src="x" onerror="alert(1)">')

        assert "<img" not in html
        assert "onerror" not in html
        assert "<p>x</p>" in html

    def test_notice_is_placed_before_reply(self) -> None:
        html = ReplyRenderer().render("The answer.", notice="No attachment found.")

        assert html.index("No attachment found.") < html.index("The answer.")

    def test_closing_prompt_only_when_enabled(self) -> None:
        plain = ReplyRenderer(closing_prompt="Anything else?").render("Done.")
        closing = ReplyRenderer(closing_prompt="Anything else?", append_closing_prompt=True).render("Done.")

        assert "Anything else?" not in plain
        assert closing.rstrip().endswith("Anything else?</p>")

    def test_empty_reply_with_notice_renders_notice_only(self) -> None:
        html = ReplyRenderer().render("", notice="Nothing to ingest.")

        assert html == "<p>Nothing to ingest.</p>"
