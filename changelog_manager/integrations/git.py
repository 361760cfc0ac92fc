"""Thin wrappers around the git command line."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from loguru import logger

# Administrative commits never make it into the changelog.
_EXCLUDED_SUBSTRINGS = ("updated changelog", "merge pull request", "merge branch")
_EXCLUDED_PREFIXES = ("merge ",)


@dataclass(frozen=True)
class Commit:
    sha: str
    message: str


def _git(args: Sequence[str], cwd: Path) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        check=True,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
    )
    return result.stdout


def _describe(exc: Exception) -> str:
    if isinstance(exc, subprocess.CalledProcessError):
        return (exc.stderr or "").strip() or str(exc)
    return str(exc)


def is_administrative(message: str) -> bool:
    msg = message.lower()
    if any(s in msg for s in _EXCLUDED_SUBSTRINGS):
        return True
    return msg.startswith(_EXCLUDED_PREFIXES)


def parse_log_output(raw_log: str) -> List[Commit]:
    """Convert ``%H%x00%s`` lines into commits, dropping malformed lines."""
    commits: List[Commit] = []
    for line in raw_log.split("\n"):
        if not line.strip():
            continue
        sha, sep, subject = line.partition("\x00")
        if not sep:
            continue
        commits.append(Commit(sha=sha.strip(), message=subject.strip()))
    return commits


class GitCommitSource:
    """Reads recent commit subjects from ``git log``."""

    def __init__(self, repo_root: Path) -> None:
        self.repo_root = Path(repo_root)

    def fetch(self, time_range: str) -> List[Commit]:
        """Commits since ``time_range`` (any ``--since`` expression), newest first.

        Merge and changelog-update commits are filtered out. Git failures are
        logged and produce an empty list.
        """
        try:
            raw = _git(
                ["log", "--pretty=format:%H%x00%s", f"--since={time_range}"],
                self.repo_root,
            )
        except (OSError, subprocess.CalledProcessError) as e:
            logger.error(f"Error getting git commits: {_describe(e)}")
            return []
        commits = parse_log_output(raw)
        kept = [c for c in commits if c.message and not is_administrative(c.message)]
        if len(kept) != len(commits):
            logger.debug(f"Filtered {len(commits) - len(kept)} administrative commits")
        return kept


class GitTagPublisher:
    def __init__(self, repo_root: Path) -> None:
        self.repo_root = Path(repo_root)

    def create_tag(self, version: str) -> bool:
        tag = f"v{version}"
        try:
            _git(["tag", tag], self.repo_root)
        except (OSError, subprocess.CalledProcessError) as e:
            logger.warning(f"Could not create git tag {tag}: {_describe(e)}")
            return False
        logger.info(f"Created git tag: {tag}")
        return True


def commit_and_push(repo_root: Path, version: str) -> bool:
    """Stage everything, commit ``Release <version>`` and push with tags."""
    steps = (
        ["add", "."],
        ["commit", "-m", f"Release {version}"],
        ["push"],
        ["push", "--tags"],
    )
    try:
        for step in steps:
            _git(step, Path(repo_root))
    except (OSError, subprocess.CalledProcessError) as e:
        logger.warning(f"Could not commit and push changes: {_describe(e)}")
        return False
    logger.info("Changes committed and pushed to repository")
    return True


def pending_changes(repo_root: Path) -> List[str]:
    """Return ``git status --porcelain`` lines; empty when clean or not a repo."""
    try:
        out = _git(["status", "--porcelain"], Path(repo_root))
    except (OSError, subprocess.CalledProcessError) as e:
        logger.debug(f"git status failed: {_describe(e)}")
        return []
    return [line for line in out.split("\n") if line.strip()]
