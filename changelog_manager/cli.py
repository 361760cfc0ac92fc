"""Command line entry points: ``changelog-manager {init,add,release}``."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Callable, Optional

from loguru import logger

from changelog_manager import bootstrap
from changelog_manager._version import get_version
from changelog_manager.config import (
    CONFIG_FILE_NAME,
    DEFAULT_CHANGELOG_DIR,
    DEFAULT_DRAFT_FILE,
    DEFAULT_TIME_RANGE,
    load_settings,
)
from changelog_manager.core.document import render_draft
from changelog_manager.core.store import ReleaseDocumentStore
from changelog_manager.core.versioning import BOOTSTRAP_VERSION, BUMP_TYPES, validate_bump_type
from changelog_manager.errors import ChangelogError
from changelog_manager.integrations.git import pending_changes

InputFn = Callable[[str], str]


def _ask(prompt: str, input_fn: InputFn) -> str:
    try:
        return input_fn(prompt).strip()
    except EOFError:
        return ""


def _confirm(prompt: str, input_fn: InputFn, default: bool) -> bool:
    answer = _ask(prompt, input_fn).lower()
    if not answer:
        return default
    return answer in ("y", "yes")


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("-r", "--root", default=None, help="Project root directory")
    p.add_argument("-d", "--dir", default=None, help="Changelog directory path")
    p.add_argument("-f", "--file", default=None, help="Draft filename")
    p.add_argument("--config", default=None, help="Path to config file")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="changelog-manager",
        description="Maintain a versioned changelog from git history and cut releases.",
    )
    parser.add_argument("--version", action="version", version=get_version())
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log debug output"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_init = sub.add_parser("init", help="Initialize changelog-manager in your project")
    p_init.add_argument("-r", "--root", default=None, help="Project root directory")
    p_init.add_argument(
        "-d", "--dir", default=DEFAULT_CHANGELOG_DIR, help="Changelog directory path"
    )
    p_init.add_argument("--skip-env", action="store_true", help="Skip .env file creation")
    p_init.add_argument(
        "--skip-config", action="store_true", help="Skip config file creation"
    )
    p_init.add_argument(
        "-y", "--yes", action="store_true", help="Do not prompt; use defaults"
    )

    p_add = sub.add_parser(
        "add", help="Add entries to changelog from git commits or custom messages"
    )
    _add_common(p_add)
    p_add.add_argument("-m", "--message", default=None, help="Custom message to add")
    p_add.add_argument("-t", "--time", default=None, help="Git time range for commits")
    p_add.add_argument("--openai-key", default=None, help="OpenAI API key (overrides env)")
    p_add.add_argument("--claude-key", default=None, help="Claude API key (overrides env)")
    p_add.add_argument("--gemini-key", default=None, help="Gemini API key (overrides env)")
    p_add.add_argument(
        "--emojis",
        dest="emojis",
        action="store_true",
        default=None,
        help="Enable emoji-enhanced changelog entries",
    )
    p_add.add_argument(
        "--no-emojis",
        dest="emojis",
        action="store_false",
        help="Disable emoji-enhanced changelog entries",
    )

    p_rel = sub.add_parser(
        "release", help="Create a new release with version bump and changelog"
    )
    _add_common(p_rel)
    p_rel.add_argument(
        "-t",
        "--type",
        default="patch",
        help=f"Version bump type ({', '.join(BUMP_TYPES)})",
    )
    p_rel.add_argument("-p", "--package", default=None, help="Manifest path")
    p_rel.add_argument("--github-token", default=None, help="GitHub token (overrides env)")
    p_rel.add_argument(
        "--github-repo", default=None, help="GitHub repository owner/name (overrides env)"
    )
    p_rel.add_argument(
        "--skip-check",
        action="store_true",
        help="Skip the uncommitted-changes check before releasing",
    )
    p_rel.add_argument(
        "-y", "--yes", action="store_true", help="Continue without prompting"
    )
    p_rel.add_argument("--no-tag", action="store_true", help="Do not create a git tag")
    p_rel.add_argument(
        "--no-push", action="store_true", help="Do not commit and push the release"
    )
    return parser


def _root(args: argparse.Namespace) -> Path:
    return Path(args.root).expanduser().resolve() if args.root else Path.cwd()


def _common_overrides(args: argparse.Namespace) -> dict[str, Any]:
    return {
        "project_root": _root(args),
        "changelog_dir": args.dir,
        "draft_file_name": args.file,
    }


def run_add(args: argparse.Namespace) -> int:
    overrides = _common_overrides(args)
    overrides["git_time_range"] = args.time
    for provider in ("openai", "claude", "gemini"):
        key = getattr(args, f"{provider}_key")
        if key:
            overrides["ai_provider"], overrides["ai_api_key"] = provider, key
            break
    overrides["use_emojis"] = args.emojis
    settings = load_settings(overrides, args.config)

    from changelog_manager.core.ingest import CommitIngestionPipeline

    result = CommitIngestionPipeline(settings).run(args.message)
    if result.status == "duplicate":
        logger.info("Nothing added: message already exists.")
    return 0


def run_release(args: argparse.Namespace, input_fn: Optional[InputFn] = None) -> int:
    input_fn = input_fn or input
    bump = validate_bump_type(args.type)
    overrides = _common_overrides(args)
    overrides.update(
        {
            "manifest_path": args.package,
            "github_token": args.github_token,
            "github_repository": args.github_repo,
            "create_tag": False if args.no_tag else None,
            "commit_and_push": False if args.no_push else None,
        }
    )
    settings = load_settings(overrides, args.config)

    if not args.skip_check:
        pending = pending_changes(settings.project_root)
        if pending:
            logger.warning(f"You have {len(pending)} uncommitted change(s):")
            for line in pending[:20]:
                logger.warning(f"  {line}")
            if not args.yes and not _confirm(
                "They will be included in the release commit. Continue? (y/N): ",
                input_fn,
                default=False,
            ):
                logger.info("Release cancelled.")
                return 1

    from changelog_manager.core.release import ReleaseCutter

    ReleaseCutter(settings).release(bump)
    return 0


def run_init(args: argparse.Namespace, input_fn: Optional[InputFn] = None) -> int:
    input_fn = input_fn or input
    logger.info("Initializing changelog-manager...")
    interactive = not args.yes
    if interactive:
        print(
            "You have the option to use AI for generating and formatting changelog entries.\n"
            "If you want to use AI features, you will need:\n"
            "  - An API key for either ChatGPT, Claude, or Gemini\n"
            "  - The GitHub repository (owner/name) for this project (for releases)\n"
            "You can also add these values later in .env and changelog.config.json."
        )
        if not _confirm("Ready to proceed? (Y/n): ", input_fn, default=True):
            logger.info("Setup cancelled. Run again when you're ready!")
            return 0

    root = _root(args)
    store = ReleaseDocumentStore((root / args.dir).resolve(), DEFAULT_DRAFT_FILE)
    store.ensure_directory()
    logger.info(f"Created changelog directory: {args.dir}")

    if store.exists(store.draft_path):
        logger.info("Draft file already exists, skipping...")
    else:
        store.write_draft(render_draft(BOOTSTRAP_VERSION))
        logger.info("Created initial draft file")

    keys: dict[str, str] = {}
    if not args.skip_env:
        env_path = root / ".env"
        if env_path.exists():
            logger.info(".env file already exists, skipping...")
        else:
            if interactive:
                for var, label in (
                    ("OPENAI_API_KEY", "OpenAI API Key"),
                    ("CLAUDE_API_KEY", "Claude API Key"),
                    ("GEMINI_API_KEY", "Gemini API Key"),
                    ("GITHUB_TOKEN", "GitHub Token"),
                    ("GITHUB_REPOSITORY", "GitHub Repository (owner/name)"),
                ):
                    value = _ask(f"{label} (optional): ", input_fn)
                    if value:
                        keys[var] = value
            lines = ["# Changelog Manager Environment Variables", ""]
            lines.extend(f"{k}={v}" for k, v in keys.items())
            env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
            logger.info("Created .env file")

    use_emojis = False
    if any(k in keys for k in ("OPENAI_API_KEY", "CLAUDE_API_KEY", "GEMINI_API_KEY")):
        use_emojis = _confirm(
            "Do you want AI to add emojis to your changelog entries? (Y/n): ",
            input_fn,
            default=True,
        )
    else:
        logger.info("No AI API keys provided - using standard changelog format.")

    if not args.skip_config:
        config_path = root / CONFIG_FILE_NAME
        if config_path.exists():
            logger.info("Config file already exists, skipping...")
        else:
            cfg = {
                "changelogDir": args.dir,
                "draftFileName": DEFAULT_DRAFT_FILE,
                "gitTimeRange": DEFAULT_TIME_RANGE,
                "useEmojis": use_emojis,
                "manifestPath": "pyproject.toml",
                "versionFiles": [],
            }
            config_path.write_text(json.dumps(cfg, indent=2) + "\n", encoding="utf-8")
            logger.info("Created config file")

    logger.success("changelog-manager initialized successfully!")
    return 0


_COMMANDS = {"init": run_init, "add": run_add, "release": run_release}


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    bootstrap.init(_root(args), "DEBUG" if args.verbose else None)
    try:
        return _COMMANDS[args.command](args)
    except ChangelogError as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.error(f"Error: {e}")
        logger.opt(exception=e).debug("Unhandled failure")
        return 1


def init_main() -> int:
    return main(["init", *sys.argv[1:]])


def add_main() -> int:
    return main(["add", *sys.argv[1:]])


def release_main() -> int:
    return main(["release", *sys.argv[1:]])


if __name__ == "__main__":  # pragma: no cover - manual execution entry point
    sys.exit(main())
