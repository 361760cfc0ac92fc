"""Insert rendered entries into a document's Unreleased section."""

from __future__ import annotations

from typing import Iterable, List

from changelog_manager.core.document import (
    Entry,
    RELEASE_HEADING_PREFIX,
    UNRELEASED_HEADER,
    is_unreleased_header,
)


def merge(document_text: str, entries: Iterable[Entry]) -> str:
    """Return ``document_text`` with ``entries`` placed under the Unreleased header.

    New lines go directly below the header in the given order, above any
    existing entries. A missing header is created below the ``# Release``
    heading, or at the end of the document when there is none. All other
    lines are kept as-is.
    """
    new_lines = [entry.render() for entry in entries]
    if not new_lines:
        return document_text

    lines: List[str] = document_text.split("\n")

    header_idx = next(
        (i for i, line in enumerate(lines) if is_unreleased_header(line)), -1
    )
    if header_idx != -1:
        insert_at = header_idx + 1
    else:
        heading_idx = next(
            (i for i, line in enumerate(lines) if line.startswith(RELEASE_HEADING_PREFIX)),
            -1,
        )
        section = ["", UNRELEASED_HEADER, ""]
        if heading_idx != -1:
            lines[heading_idx + 1 : heading_idx + 1] = section
            insert_at = heading_idx + 1 + len(section)
        else:
            lines.extend(section)
            insert_at = len(lines)

    lines[insert_at:insert_at] = new_lines
    return "\n".join(lines)
