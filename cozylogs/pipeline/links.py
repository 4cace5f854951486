from __future__ import annotations

import re
from typing import Iterable, List, Union


def extract_links(text: str, url_regex: Union[str, "re.Pattern[str]"]) -> List[str]:
    """Capture group 1 of every match, deduplicated in discovery order."""
    if not text:
        return []
    pattern = re.compile(url_regex) if isinstance(url_regex, str) else url_regex
    seen: dict[str, None] = {}
    for m in pattern.finditer(text):
        link = m.group(1)
        if link:
            seen.setdefault(link, None)
    return list(seen)


def merge_links(found: Iterable[str], attachments: Iterable[str]) -> List[str]:
    """Union of text links and attachment URLs; text links keep their order, attachments follow."""
    out: dict[str, None] = {}
    for link in list(found) + [str(a).strip() for a in attachments]:
        if link:
            out.setdefault(link, None)
    return list(out)
