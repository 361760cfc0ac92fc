"""The "add" workflow: commits (or one custom message) into the open document."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional, Protocol, Sequence

from loguru import logger

from changelog_manager.config import Settings
from changelog_manager.core.document import Entry, render_draft
from changelog_manager.core.hashing import contains_hash, message_hash
from changelog_manager.core.merger import merge
from changelog_manager.core.resolver import OpenDocument, OpenDocumentResolver
from changelog_manager.core.store import ReleaseDocumentStore
from changelog_manager.integrations.git import Commit, GitCommitSource
from changelog_manager.polishers import MessagePolisher, get_polisher, polish_messages

IngestStatus = Literal["added", "duplicate", "no_changes"]


class CommitSource(Protocol):
    def fetch(self, time_range: str) -> List[Commit]: ...


@dataclass
class IngestResult:
    status: IngestStatus
    document: OpenDocument
    entries: List[Entry] = field(default_factory=list)
    skipped: int = 0

    @property
    def added(self) -> int:
        return len(self.entries)


class CommitIngestionPipeline:
    def __init__(
        self,
        settings: Settings,
        *,
        store: Optional[ReleaseDocumentStore] = None,
        commit_source: Optional[CommitSource] = None,
        polisher: Optional[MessagePolisher] = None,
        use_default_polisher: bool = True,
    ) -> None:
        self.settings = settings
        self.store = store or ReleaseDocumentStore(
            settings.changelog_path, settings.draft_file_name
        )
        self.resolver = OpenDocumentResolver(self.store)
        self.commit_source = commit_source or GitCommitSource(settings.project_root)
        if polisher is None and use_default_polisher:
            polisher = get_polisher(settings)
        self.polisher = polisher

    def _new_messages(self, messages: Sequence[str], document_text: str) -> List[str]:
        """Drop messages already in the document or repeated within the batch."""
        seen: set[str] = set()
        fresh: List[str] = []
        for msg in messages:
            digest = message_hash(msg)
            if digest in seen or contains_hash(document_text, digest):
                continue
            seen.add(digest)
            fresh.append(msg)
        return fresh

    def run(self, custom_message: Optional[str] = None) -> IngestResult:
        logger.info("Starting changelog update...")
        target = self.resolver.resolve()
        logger.info(f"Using release file: {target.path}")
        current = self.store.read(target.path) if target.exists else None
        text = current or ""

        if custom_message is not None and custom_message.strip():
            messages = [custom_message]
            fresh = self._new_messages(messages, text)
            if not fresh:
                logger.warning("Message already exists in changelog, skipping...")
                return IngestResult("duplicate", target, skipped=1)
        else:
            commits = self.commit_source.fetch(self.settings.git_time_range)
            logger.info(f"Found {len(commits)} recent commits")
            messages = [c.message for c in commits]
            fresh = self._new_messages(messages, text)
            logger.info(f"{len(fresh)} new commits to add")
            if not fresh:
                logger.success("No new commits to add to changelog")
                return IngestResult("no_changes", target, skipped=len(messages))

        polished = polish_messages(self.polisher, fresh, self.settings.use_emojis)
        entries = [Entry(raw, rendered) for raw, rendered in zip(fresh, polished)]

        if current is None:
            placeholder = self.store.list_version_documents().next_version("patch")
            text = render_draft(placeholder)
            logger.info(f"Created new unreleased file: {target.path}")

        self.store.write(target.path, merge(text, entries))
        logger.info(f"Updated changelog: {target.path}")
        logger.success(f"Added {len(entries)} new entries")
        return IngestResult(
            "added", target, entries=entries, skipped=len(messages) - len(entries)
        )
