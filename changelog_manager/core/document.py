"""Changelog document model and the templates used to create documents."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date as _date
from pathlib import Path
from typing import List, Optional

from changelog_manager.core import frontmatter
from changelog_manager.core.hashing import hash_marker, message_hash, hashes_in

UNRELEASED_MARKER = "**Unreleased**"
UNRELEASED_HEADER = "## **Unreleased**"
RELEASE_HEADING_PREFIX = "# Release"
ENTRIES_PLACEHOLDER = "<!-- New entries will be added here -->"


def today() -> str:
    return _date.today().isoformat()


def is_unreleased_header(line: str) -> bool:
    """Any line carrying ``**Unreleased**`` opens the section, whatever its level."""
    return UNRELEASED_MARKER in line


def release_heading(version: str) -> str:
    return f"{RELEASE_HEADING_PREFIX} {version}"


@dataclass(frozen=True)
class Entry:
    """One changelog line: the polished text plus the hash of its raw message."""

    raw_message: str
    rendered_text: str

    @property
    def hash(self) -> str:
        return message_hash(self.raw_message)

    def render(self) -> str:
        return f"{self.rendered_text} {hash_marker(self.hash)}"


@dataclass
class ReleaseDocument:
    """A parsed changelog document.

    Attributes:
        text: Full document text as stored.
        path: Location of the document, if known.
        meta: Decoded frontmatter mapping.
        body: Everything after the frontmatter block.
    """

    text: str
    path: Optional[Path] = None
    meta: dict[str, str] = field(default_factory=dict)
    body: str = ""

    @classmethod
    def parse(cls, text: str, path: Optional[Path] = None) -> "ReleaseDocument":
        meta, body = frontmatter.decode(text)
        return cls(text=text, path=path, meta=meta, body=body)

    @property
    def version(self) -> Optional[str]:
        return self.meta.get("version") or None

    @property
    def date(self) -> Optional[str]:
        return self.meta.get("date") or None

    @property
    def tag(self) -> Optional[str]:
        return self.meta.get("tag") or None

    @property
    def title(self) -> str:
        return f"Release {self.version or ''}".rstrip()

    @property
    def is_open(self) -> bool:
        return not self.tag

    @property
    def is_closed(self) -> bool:
        return not self.is_open

    @property
    def entries(self) -> List[str]:
        """Hash-marked lines of the Unreleased section, in document order."""
        lines = self.text.split("\n")
        start = next((i for i, line in enumerate(lines) if is_unreleased_header(line)), None)
        if start is None:
            return []
        out: List[str] = []
        for line in lines[start + 1 :]:
            if line.startswith("#"):
                break
            if hashes_in(line):
                out.append(line)
        return out

    def release_notes(self, fallback: str) -> str:
        """Document content after the frontmatter, trimmed."""
        notes = self.body.strip() if self.meta else ""
        return notes or fallback


def render_draft(version: str, on: Optional[str] = None) -> str:
    """Template for a fresh open document."""
    body = "\n".join(
        ["", release_heading(version), "", UNRELEASED_HEADER, "", ENTRIES_PLACEHOLDER, "", ""]
    )
    return frontmatter.encode({"version": version, "date": on or today(), "tag": ""}, body)


def render_minimal_release(version: str, on: Optional[str] = None) -> str:
    """Stand-in document used when no open document can be released."""
    body = "\n".join(["", release_heading(version), "", f"- Release {version}", ""])
    return frontmatter.encode(
        {"version": version, "date": on or today(), "tag": f"v{version}"}, body
    )
