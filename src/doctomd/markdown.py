"""Markdown reference rewriting and page aggregation.

The OCR service marks the position of every extracted image with a
placeholder whose link target is the image id, typically
``![img-0.jpeg](img-0.jpeg)``.  :func:`rewrite` swaps those targets for
a resolved reference (a relative file path or a data URI) and leaves
everything else in the page untouched.  The Markdown is treated as a
flat string; no parsing beyond the placeholder pattern takes place.

:func:`aggregate` joins the rewritten pages into one document.
"""

from __future__ import annotations

import re
from typing import Iterable, Mapping, Optional

PAGE_SEPARATOR = "\n\n"

# descriptive alt-text prefixes accepted in front of (or instead of) the id
_PREFIX = r"(?:image|figure|fig\.?)\s*[:#-]?\s*"
_ALT_PREFIX = re.compile("^" + _PREFIX, re.IGNORECASE)


def _build_pattern(ids: Iterable[str]) -> Optional[re.Pattern]:
    # longest ids first so that "image-10" is tried before "image-1"
    ordered = sorted(set(ids), key=len, reverse=True)
    if not ordered:
        return None
    targets = "|".join(re.escape(i) for i in ordered)
    # the alt text is limited to the accepted shapes so that ids containing
    # brackets still match and a stray "]" cannot swallow a placeholder
    alt = r"\s*(?i:" + _PREFIX + r")?(?:" + targets + r")?\s*"
    return re.compile(r"!\[(?P<alt>" + alt + r")\]\((?P<target>" + targets + r")\)")


def is_placeholder_alt(alt: str, image_id: str) -> bool:
    """Return True if ``alt`` is an alt text the OCR emits for ``image_id``.

    Accepted forms are the id itself, an empty alt text, or a
    descriptive prefix such as ``Image`` / ``Figure:`` optionally
    followed by the id.
    """
    alt = alt.strip()
    if alt in ("", image_id):
        return True
    m = _ALT_PREFIX.match(alt)
    if not m:
        return False
    rest = alt[m.end():]
    return rest in ("", image_id)


def rewrite(markdown: str, references: Mapping[str, str]) -> str:
    """Point image placeholders at their resolved references.

    Parameters
    ----------
    markdown:
        Raw page Markdown as returned by the OCR service.
    references:
        Mapping of image id to the reference that should replace the
        placeholder target (relative path or data URI).

    Returns
    -------
    str
        The Markdown with every known placeholder rewritten.  Ids absent
        from ``references`` are left as they are.
    """
    if not markdown or not references:
        return markdown or ""
    pattern = _build_pattern(references)
    if pattern is None:
        return markdown

    def _replace(m: re.Match) -> str:
        alt, target = m.group("alt"), m.group("target")
        if not is_placeholder_alt(alt, target):
            return m.group(0)
        return f"![{alt}]({references[target]})"

    # single pass: replacements are never re-scanned for other ids
    return pattern.sub(_replace, markdown)


def aggregate(pages: Iterable[Optional[str]]) -> str:
    """Join rewritten pages with one blank line, dropping empty pages."""
    return PAGE_SEPARATOR.join(p for p in pages if p and p.strip())
