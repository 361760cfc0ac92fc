"""Filesystem access for changelog documents.

The store is the only component that reads or writes the changelog
directory. Writes always replace whole files via a temporary sibling and
``os.replace`` so a crash never leaves a half-written document behind.
"""

from __future__ import annotations

import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from loguru import logger
from packaging.version import Version

from changelog_manager.core import versioning
from changelog_manager.errors import DocumentWriteError

VERSION_FILE_RE = re.compile(r"^\d+\.\d+\.\d+\.md$")


@dataclass(frozen=True)
class VersionDocument:
    version: str
    path: Path
    parsed: Version


class VersionSet:
    """Version documents of a directory, highest version first."""

    def __init__(self, documents: List[VersionDocument]) -> None:
        self._docs = sorted(documents, key=lambda d: d.parsed, reverse=True)

    @property
    def highest(self) -> Optional[VersionDocument]:
        return self._docs[0] if self._docs else None

    @property
    def versions(self) -> List[str]:
        return [d.version for d in self._docs]

    def next_version(self, bump_type: str = "patch") -> str:
        return versioning.next_version(self.versions, bump_type)


class ReleaseDocumentStore:
    def __init__(self, directory: Path, draft_file_name: str = "draft.md") -> None:
        self.directory = Path(directory)
        self.draft_file_name = draft_file_name

    @property
    def draft_path(self) -> Path:
        return self.directory / self.draft_file_name

    def version_path(self, version: str) -> Path:
        return self.directory / f"{version}.md"

    def ensure_directory(self) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        return self.directory

    def list_version_documents(self) -> VersionSet:
        if not self.directory.is_dir():
            return VersionSet([])
        docs: List[VersionDocument] = []
        for entry in self.directory.iterdir():
            if not entry.is_file() or not VERSION_FILE_RE.match(entry.name):
                continue
            ver = entry.name[: -len(".md")]
            parsed = versioning.parse_strict(ver)
            if parsed is None:
                logger.debug(f"Skipping unparseable version document {entry.name}")
                continue
            docs.append(VersionDocument(version=ver, path=entry, parsed=parsed))
        return VersionSet(docs)

    def exists(self, path: Path) -> bool:
        return Path(path).is_file()

    def read(self, path: Path) -> Optional[str]:
        """Return the file's text, or None when it is missing or unreadable."""
        p = Path(path)
        try:
            return p.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error reading changelog document {p}: {e}")
            return None

    def read_draft(self) -> Optional[str]:
        return self.read(self.draft_path)

    def write(self, path: Path, text: str) -> Path:
        p = Path(path)
        self.ensure_directory()
        fd, tmp = tempfile.mkstemp(prefix=f".{p.name}.", suffix=".tmp", dir=p.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
                fh.write(text)
            os.replace(tmp, p)
        except OSError as e:
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise DocumentWriteError(f"Could not write {p}: {e}") from e
        logger.debug(f"Wrote {p} ({len(text)} chars)")
        return p

    def write_draft(self, text: str) -> Path:
        return self.write(self.draft_path, text)

    def write_version_document(self, version: str, text: str) -> Path:
        return self.write(self.version_path(version), text)

    def delete(self, path: Path) -> bool:
        p = Path(path)
        try:
            p.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Could not delete {p}: {e}")
            return False

    def delete_draft(self) -> bool:
        return self.delete(self.draft_path)

    def rename_draft_to_version(self, version: str) -> Path:
        target = self.version_path(version)
        try:
            os.replace(self.draft_path, target)
        except OSError as e:
            raise DocumentWriteError(
                f"Could not rename {self.draft_path} to {target.name}: {e}"
            ) from e
        return target
