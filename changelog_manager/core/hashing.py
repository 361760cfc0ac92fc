"""Content hashes embedded in changelog lines.

Every entry carries a trailing ``<!-- hash:xxxxxxxx -->`` marker derived from
the raw commit message. The markers inside a document are the only record of
what has already been added, so deduplication is always re-derived from the
document text.
"""

from __future__ import annotations

import hashlib
import re

HASH_LENGTH = 8
_MARKER_RE = re.compile(r"<!-- hash:([0-9a-f]{8}) -->")


def message_hash(message: str) -> str:
    """Return the first 8 hex chars of the SHA-256 digest of ``message``."""
    return hashlib.sha256(message.encode("utf-8")).hexdigest()[:HASH_LENGTH]


def hash_marker(digest: str) -> str:
    return f"<!-- hash:{digest} -->"


def contains_hash(document_text: str | None, digest: str) -> bool:
    """True if the marker for ``digest`` appears anywhere in the document."""
    if not document_text:
        return False
    return hash_marker(digest) in document_text


def hashes_in(document_text: str | None) -> list[str]:
    """Return every embedded hash in document order."""
    if not document_text:
        return []
    return _MARKER_RE.findall(document_text)
