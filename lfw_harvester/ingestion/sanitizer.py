"""HTML sanitization of free text coming from the LFW API."""

from __future__ import annotations

from collections.abc import Iterable

import nh3


def sanitize_html(text: str | None) -> str:
    """
    Strip unsafe markup from a piece of HTML.

    Scripts, styles, event handlers and unknown tags are removed; safe
    formatting tags are kept.
    """
    if not text:
        return ""
    return nh3.clean(text)


def sanitize_multiline(text: str | None) -> str:
    """Sanitize plain text whose line breaks should survive as <br />."""
    return sanitize_html((text or "").replace("\n", "<br />"))


def render_html_list(items: Iterable[str]) -> str:
    """
    Render sanitized items as an HTML unordered list.

    Example:
        >>> render_html_list(["flour", "water"])
        '<ul>\\n  <li>flour</li>\\n  <li>water</li>\\n</ul>'
    """
    entries = "".join(f"\n  <li>{sanitize_html(item)}</li>" for item in items)
    return f"<ul>{entries}\n</ul>"
