"""
Text normalization shared by the extractor and the matcher.
"""
import html
from typing import Optional

NBSP = "\u00a0"


def normalize_title(text: Optional[str]) -> str:
    """
    Normalize a title or query for storage and comparison.

    Applied identically to extracted titles and incoming queries; if the two
    sides were normalized differently, matching would degrade silently.

    Args:
        text: Raw title or query text

    Returns:
        HTML-unescaped text with non-breaking spaces replaced by plain
        spaces and surrounding whitespace removed.

    Examples:
        >>> normalize_title("How\\u00a0to\\u00a0Train\\u00a0Your\\u00a0Dragon")
        'How to Train Your Dragon'
        >>> normalize_title("How to Train Your&nbsp;Dragon")
        'How to Train Your Dragon'
        >>> normalize_title("  Fast &amp; Furious ")
        'Fast & Furious'
    """
    if not text:
        return ""

    decoded = html.unescape(text)
    return decoded.replace(NBSP, " ").strip()
