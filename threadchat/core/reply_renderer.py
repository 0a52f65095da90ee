"""
Reply postprocessing.

Converts raw reply markdown into sanitized HTML. Script tags, event handler
attributes and javascript: URLs never survive rendering.

Dependencies: markdown, bleach
System role: Reply sanitization before persistence and response
"""

import bleach
import markdown

ALLOWED_TAGS = frozenset({
    "a", "abbr", "b", "blockquote", "br", "code", "del", "em", "h1", "h2",
    "h3", "h4", "h5", "h6", "hr", "i", "li", "ol", "p", "pre", "strong",
    "sub", "sup", "table", "tbody", "td", "th", "thead", "tr", "ul",
})

ALLOWED_ATTRIBUTES = {
    "a": ["href", "title"],
    "abbr": ["title"],
    "code": ["class"],
    "td": ["align"],
    "th": ["align"],
}

ALLOWED_PROTOCOLS = frozenset({"http", "https", "mailto"})

_MARKDOWN_EXTENSIONS = ["extra", "sane_lists", "nl2br"]


class ReplyRenderer:
    """Markdown to sanitized HTML renderer."""

    def __init__(
        self,
        closing_prompt: str | None = None,
        append_closing_prompt: bool = False,
    ) -> None:
        """
        Initialize renderer.

        Args:
            closing_prompt: Fragment appended to every reply when enabled
            append_closing_prompt: Whether to append the closing prompt
        """
        self._closing_prompt = closing_prompt if append_closing_prompt else None

    def to_markdown(self, reply: str, notice: str | None = None) -> str:
        """Assemble the final markdown: optional notice, reply, optional closing prompt."""
        parts = [part for part in (notice, reply, self._closing_prompt) if part]
        return "\n\n".join(parts)

    def render(self, reply: str, notice: str | None = None) -> str:
        """
        Render reply markdown to sanitized HTML.

        Args:
            reply: Raw reply text (markdown)
            notice: Informational paragraph placed before the reply

        Returns:
            str: Sanitized HTML
        """
        html = markdown.markdown(
            self.to_markdown(reply, notice),
            extensions=_MARKDOWN_EXTENSIONS,
            output_format="html",
        )
        return sanitize_html(html)


def sanitize_html(html: str) -> str:
    """Strip every tag, attribute and protocol outside the allow-lists."""
    return bleach.clean(
        html,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
        strip_comments=True,
    )
