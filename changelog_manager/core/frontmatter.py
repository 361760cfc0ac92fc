"""Parse and serialize the ``---`` delimited key/value block of a document."""

from __future__ import annotations

from typing import Mapping, Tuple

DELIMITER = "---"
# Order used by the document template; other keys follow in insertion order.
KEY_ORDER = ("version", "date", "tag")


def decode(text: str) -> Tuple[dict[str, str], str]:
    """Split ``text`` into its frontmatter mapping and the remaining body.

    The block must start on the very first line and end at the next line equal
    to ``---``. Lines inside are split on the first ``:``; lines without one
    (or with an empty key) are ignored. Text without a complete block yields
    an empty mapping and the unchanged text.
    """
    if not text:
        return {}, text or ""
    lines = text.split("\n")
    if lines[0].rstrip("\r") != DELIMITER:
        return {}, text

    meta: dict[str, str] = {}
    for idx in range(1, len(lines)):
        line = lines[idx].rstrip("\r")
        if line == DELIMITER:
            body = "\n".join(lines[idx + 1 :])
            return meta, body
        key, sep, value = line.partition(":")
        key = key.strip()
        if not sep or not key:
            continue
        meta[key] = value.strip()

    # No closing delimiter: not a frontmatter block after all
    return {}, text


def encode(meta: Mapping[str, str], body: str) -> str:
    """Render ``meta`` as a frontmatter block followed by ``body``."""
    if not meta:
        return body
    ordered = [k for k in KEY_ORDER if k in meta]
    ordered.extend(k for k in meta if k not in KEY_ORDER)
    lines = [DELIMITER]
    for key in ordered:
        value = meta[key]
        lines.append(f"{key}: {'' if value is None else value}")
    lines.append(DELIMITER)
    return "\n".join(lines) + "\n" + body


def rewrite(text: str, changes: Mapping[str, str]) -> str:
    """Replace the values of top-level keys already present in the block.

    Only lines whose key is in ``changes`` are touched. Missing keys are not
    added, and every other line (unknown keys, indented list items, comments)
    is kept byte for byte. Text without a complete block is returned as-is.
    """
    lines = text.split("\n")
    if lines[0].rstrip("\r") != DELIMITER:
        return text
    for idx in range(1, len(lines)):
        line = lines[idx]
        if line.rstrip("\r") == DELIMITER:
            return "\n".join(lines)
        if line[:1].isspace():
            continue
        key, sep, _ = line.partition(":")
        key = key.strip()
        if sep and key in changes:
            eol = "\r" if line.endswith("\r") else ""
            lines[idx] = f"{key}: {changes[key]}{eol}"
    return text
