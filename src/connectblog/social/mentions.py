"""@mention extraction."""

from __future__ import annotations

import re

# ASCII only: "@josé" mentions "jos".
MENTION_RE = re.compile(r"@([A-Za-z0-9_]+)")


def extract_mentions(text: str | None) -> list[str]:
    """Distinct candidate usernames in order of first appearance (case-sensitive)."""
    if not text:
        return []
    return list(dict.fromkeys(MENTION_RE.findall(text)))
