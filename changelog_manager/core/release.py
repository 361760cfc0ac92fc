"""The "release" workflow.

An open document moves through ``Open -> Cutting -> Released`` and a new
draft opens the next cycle. Collaborator steps (manifest, tag, push, remote
release) are best-effort: their failures are logged and the cut continues.
Only failing to write a changelog document aborts the release, and nothing
done before that point is rolled back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date as _date
from pathlib import Path
from typing import Callable, List, Optional, Protocol

from loguru import logger

from changelog_manager.config import Settings
from changelog_manager.core import frontmatter
from changelog_manager.core.document import (
    RELEASE_HEADING_PREFIX,
    ReleaseDocument,
    is_unreleased_header,
    release_heading,
    render_draft,
    render_minimal_release,
)
from changelog_manager.core.resolver import OpenDocumentResolver
from changelog_manager.core.store import ReleaseDocumentStore
from changelog_manager.core.versioning import bump_version, validate_bump_type
from changelog_manager.integrations import git
from changelog_manager.integrations.github import GitHubReleaseHost
from changelog_manager.integrations.manifest import Manifest, update_version_files


class TagPublisher(Protocol):
    def create_tag(self, version: str) -> bool: ...


class ReleaseHost(Protocol):
    def create_release(self, tag: str, title: str, body: str) -> bool: ...


@dataclass
class ReleaseResult:
    previous_version: str
    version: str
    document: Path
    fabricated: bool = False
    entries: int = 0
    manifest_updated: bool = False
    version_files: List[str] = field(default_factory=list)
    tagged: bool = False
    pushed: bool = False
    published: bool = False
    next_draft: Optional[Path] = None

    @property
    def tag(self) -> str:
        return f"v{self.version}"


def close_document(text: str, version: str, on: str) -> str:
    """Stamp ``version``/``date``/``tag`` into the frontmatter, retitle the
    ``# Release`` heading and drop the Unreleased header line (plus the blank
    line after it).

    Frontmatter lines are edited in place; ``tag`` is only filled in when the
    key is present and empty.
    """
    meta, _ = frontmatter.decode(text)
    changes = {"version": version, "date": on}
    if "tag" in meta and not meta["tag"]:
        changes["tag"] = f"v{version}"

    lines = frontmatter.rewrite(text, changes).split("\n")
    for idx, line in enumerate(lines):
        if line.startswith(RELEASE_HEADING_PREFIX):
            lines[idx] = release_heading(version)
            break
    for idx, line in enumerate(lines):
        if is_unreleased_header(line):
            end = idx + 1
            if end < len(lines) and not lines[end].strip():
                end += 1
            del lines[idx:end]
            break
    return "\n".join(lines)


class ReleaseCutter:
    def __init__(
        self,
        settings: Settings,
        *,
        store: Optional[ReleaseDocumentStore] = None,
        manifest: Optional[Manifest] = None,
        tag_publisher: Optional[TagPublisher] = None,
        release_host: Optional[ReleaseHost] = None,
        pusher: Optional[Callable[[Path, str], bool]] = None,
        today: Optional[Callable[[], str]] = None,
    ) -> None:
        self.settings = settings
        self.store = store or ReleaseDocumentStore(
            settings.changelog_path, settings.draft_file_name
        )
        self.resolver = OpenDocumentResolver(self.store)
        self.manifest = manifest or Manifest(settings.manifest_full_path)
        self.tag_publisher = tag_publisher or git.GitTagPublisher(settings.project_root)
        self.release_host = release_host or GitHubReleaseHost(
            settings.github_token, settings.github_repository, settings.http_timeout
        )
        self.pusher = pusher or git.commit_and_push
        self._today = today or (lambda: _date.today().isoformat())

    def cut_document(self, version: str) -> tuple[ReleaseDocument, bool, int]:
        """Turn the open document into ``<version>.md``.

        Returns the written document, whether a minimal stand-in had to be
        fabricated (no readable open document) and how many entries the open
        document carried. Write failures propagate.
        """
        on = self._today()
        target = self.resolver.resolve()
        if not target.exists:
            text = None
        elif target.kind == "draft":
            text = self.store.read_draft()
        else:
            text = self.store.read(target.path)

        if text is None:
            if target.exists and target.kind == "draft":
                # unreadable; the cut replaces it
                self.store.delete_draft()
            logger.warning("No open changelog document found; creating a basic release file")
            minimal = render_minimal_release(version, on)
            path = self.store.write_version_document(version, minimal)
            logger.info(f"Created basic release file: {path.name}")
            return ReleaseDocument.parse(minimal, path), True, 0

        entries = len(ReleaseDocument.parse(text, target.path).entries)
        closed = close_document(text, version, on)
        if target.kind == "draft":
            self.store.write_draft(closed)
            path = self.store.rename_draft_to_version(version)
        else:
            path = self.store.write_version_document(version, closed)
            if Path(target.path).resolve() != path.resolve():
                self.store.delete(target.path)

        released = ReleaseDocument.parse(closed, path)
        logger.info(
            f"Renamed {target.path.name} to {path.name}: {released.title} "
            f"({released.date or 'undated'}, {entries} entries)"
        )
        if not released.is_closed:
            logger.warning(
                f"{path.name} has no tag in its frontmatter and will still count as open"
            )
        return released, False, entries

    def start_new_draft(self) -> Path:
        placeholder = self.store.list_version_documents().next_version("patch")
        path = self.store.write_draft(render_draft(placeholder, self._today()))
        logger.info(f"Started new draft changelog ({placeholder})")
        return path

    def release(self, bump_type: str = "patch") -> ReleaseResult:
        bump = validate_bump_type(bump_type)
        logger.info("Starting release process...")
        self.store.ensure_directory()

        current = self.manifest.read_version()
        new_version = bump_version(current, bump)
        logger.info(f"Bumping version from {current} to {new_version}")

        manifest_updated = self.manifest.write_version(new_version)
        updated_files = update_version_files(
            self.settings.project_root, self.settings.version_files, new_version
        )

        released, fabricated, entries = self.cut_document(new_version)
        result = ReleaseResult(
            previous_version=current,
            version=new_version,
            document=released.path,
            fabricated=fabricated,
            entries=entries,
            manifest_updated=manifest_updated,
            version_files=updated_files,
        )

        if self.settings.create_tag:
            try:
                result.tagged = self.tag_publisher.create_tag(new_version)
            except Exception as e:
                logger.warning(f"Could not create git tag {result.tag}: {e}")

        if self.settings.commit_and_push:
            try:
                result.pushed = self.pusher(self.settings.project_root, new_version)
            except Exception as e:
                logger.warning(f"Could not commit and push changes: {e}")

        try:
            result.published = self.release_host.create_release(
                result.tag, result.tag, released.release_notes(f"Release {new_version}")
            )
        except Exception as e:
            logger.warning(f"Could not create GitHub release: {e}")

        result.next_draft = self.start_new_draft()
        logger.success(f"Release {new_version} completed successfully!")
        return result
