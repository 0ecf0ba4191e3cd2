"""Open-tag scanning used by the close-tag assist."""

from __future__ import annotations

import re

# Opening and closing tags in one pattern; group 1 is "/" for a closing tag.
TAG_RE = re.compile(r"<(/?)([\w-]+)[^>]*>", re.ASCII)


def open_tags_before(text: str, offset: int) -> list[str]:
    """Return the tags still open at `offset`, outermost first.

    A closing tag removes the nearest preceding open tag of the same name,
    which is not necessarily the last one pushed. Unmatched closing tags are
    ignored and self-closing tags are never opened.
    """

    open_tags: list[str] = []
    for match in TAG_RE.finditer(text[: max(0, offset)]):
        name = match.group(2)
        if match.group(1) == "/":
            for i in range(len(open_tags) - 1, -1, -1):
                if open_tags[i] == name:
                    del open_tags[i]
                    break
        elif not match.group(0).endswith("/>"):
            open_tags.append(name)
    return open_tags
