"""Decide which changelog document currently accepts new entries."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from loguru import logger

from changelog_manager.core.document import ReleaseDocument
from changelog_manager.core.store import ReleaseDocumentStore

DocumentKind = Literal["draft", "version"]


@dataclass(frozen=True)
class OpenDocument:
    """Handle to the open document.

    ``exists`` is False when the open document is the draft path that has not
    been created yet; the first write must materialize it.
    """

    path: Path
    kind: DocumentKind
    exists: bool


class OpenDocumentResolver:
    def __init__(self, store: ReleaseDocumentStore) -> None:
        self.store = store

    def resolve(self) -> OpenDocument:
        """Return the open document.

        1. An existing draft always wins; its tag is not inspected.
        2. Otherwise the highest version document, if it has no tag yet.
        3. Otherwise the (possibly missing) draft path.
        """
        self.store.ensure_directory()

        draft = self.store.draft_path
        if self.store.exists(draft):
            return OpenDocument(path=draft, kind="draft", exists=True)

        highest = self.store.list_version_documents().highest
        if highest is not None:
            text = self.store.read(highest.path)
            if text is not None:
                doc = ReleaseDocument.parse(text, highest.path)
                if doc.is_open:
                    logger.debug(f"Highest version {highest.version} is untagged; using it")
                    return OpenDocument(path=highest.path, kind="version", exists=True)

        return OpenDocument(path=draft, kind="draft", exists=False)
