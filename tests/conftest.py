import sys
from dataclasses import dataclass, field
from pathlib import Path

import pytest

repo_root = Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

_ENV_VARS = (
    "OPENAI_API_KEY",
    "CLAUDE_API_KEY",
    "ANTHROPIC_API_KEY",
    "GEMINI_API_KEY",
    "CHANGELOG_AI_PROVIDER",
    "CHANGELOG_AI_MODEL",
    "CHANGELOG_USE_EMOJIS",
    "CHANGELOG_HTTP_TIMEOUT",
    "GITHUB_TOKEN",
    "GITHUB_REPOSITORY",
    "CHANGELOG_LOG_FILE",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    # Keep developer credentials out of tests
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def settings(tmp_path):
    from changelog_manager.config import Settings

    return Settings(project_root=tmp_path, manifest_path="package.json")


@pytest.fixture
def store(settings):
    from changelog_manager.core.store import ReleaseDocumentStore

    return ReleaseDocumentStore(settings.changelog_path, settings.draft_file_name)


@dataclass
class FakeCommitSource:
    messages: list = field(default_factory=list)
    ranges: list = field(default_factory=list)

    def fetch(self, time_range):
        from changelog_manager.integrations.git import Commit

        self.ranges.append(time_range)
        return [Commit(sha=f"{i:040x}", message=m) for i, m in enumerate(self.messages)]


@dataclass
class FakeTagPublisher:
    ok: bool = True
    tags: list = field(default_factory=list)

    def create_tag(self, version):
        self.tags.append(version)
        if isinstance(self.ok, Exception):
            raise self.ok
        return self.ok


@dataclass
class FakeReleaseHost:
    ok: bool = True
    calls: list = field(default_factory=list)

    def create_release(self, tag, title, body):
        self.calls.append((tag, title, body))
        if isinstance(self.ok, Exception):
            raise self.ok
        return self.ok


@pytest.fixture
def commit_source():
    return FakeCommitSource()


@pytest.fixture
def tag_publisher():
    return FakeTagPublisher()


@pytest.fixture
def release_host():
    return FakeReleaseHost()


def write_doc(directory: Path, name: str, version: str, tag: str = "", entries=()):
    directory.mkdir(parents=True, exist_ok=True)
    lines = [
        "---",
        f"version: {version}",
        "date: 2024-01-01",
        f"tag: {tag}",
        "---",
        "",
        f"# Release {version}",
        "",
        "## **Unreleased**",
        *entries,
        "",
    ]
    path = directory / name
    path.write_text("\n".join(lines), encoding="utf-8")
    return path


@pytest.fixture
def make_doc(settings):
    def _make(name, version, tag="", entries=()):
        return write_doc(settings.changelog_path, name, version, tag, entries)

    return _make
