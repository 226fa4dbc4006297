"""
Markup escaping for anything a client will render verbatim.

Names and messages are escaped once, before they are stored or broadcast, so
receivers never have to escape again.
"""

from __future__ import annotations

import html
from typing import Any


def sanitize_text(text: Any) -> str:
    """Entity-escape `& < > " '`. Non-strings become ""."""
    if not isinstance(text, str):
        return ""
    return html.escape(text, quote=True)
