"""Read and rewrite the project version in manifests and stamped files."""

from __future__ import annotations

import json
import re
import tomllib
from pathlib import Path
from typing import Any, Iterable, List, Optional

from loguru import logger

from changelog_manager.config import VersionFileSpec

DEFAULT_VERSION = "0.0.0"

# [project] / [tool.poetry] table headers and their version keys
_TOML_SECTIONS = ("project", "tool.poetry")
_TOML_HEADER_RE = re.compile(r"^\s*\[([^\[\]]+)\]\s*(#.*)?$")
_TOML_VERSION_RE = re.compile(r'^(\s*version\s*=\s*)(["\'])([^"\']*)(["\'])(.*)$')


def _is_toml(path: Path) -> bool:
    return path.suffix.lower() == ".toml"


def _toml_version(data: dict[str, Any]) -> Optional[str]:
    project = data.get("project") or {}
    if project.get("version"):
        return str(project["version"])
    poetry = (data.get("tool") or {}).get("poetry") or {}
    if poetry.get("version"):
        return str(poetry["version"])
    return None


def _replace_toml_version(text: str, new_version: str) -> tuple[str, bool]:
    """Replace ``version = "..."`` inside the first matching version table."""
    lines = text.split("\n")
    section: Optional[str] = None
    for section_name in _TOML_SECTIONS:
        for idx, line in enumerate(lines):
            header = _TOML_HEADER_RE.match(line)
            if header:
                section = header.group(1).strip()
                continue
            if section != section_name:
                continue
            m = _TOML_VERSION_RE.match(line)
            if m:
                prefix, q1, _old, q2, rest = m.groups()
                lines[idx] = f"{prefix}{q1}{new_version}{q2}{rest}"
                return "\n".join(lines), True
        section = None
    return text, False


def set_nested(obj: dict[str, Any], dotted: str, value: Any) -> None:
    """Assign ``value`` at a dotted key path, creating missing objects."""
    keys = dotted.split(".")
    current = obj
    for key in keys[:-1]:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]
    current[keys[-1]] = value


class Manifest:
    """The package manifest (``pyproject.toml`` or ``package.json``)."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def read_version(self) -> str:
        try:
            text = self.path.read_text(encoding="utf-8")
            if _is_toml(self.path):
                found = _toml_version(tomllib.loads(text))
            else:
                found = json.loads(text).get("version")
        except (OSError, ValueError, AttributeError) as e:
            logger.warning(
                f"Could not read version from {self.path.name} ({e}), defaulting to {DEFAULT_VERSION}"
            )
            return DEFAULT_VERSION
        if not found:
            logger.warning(f"No version in {self.path.name}, defaulting to {DEFAULT_VERSION}")
            return DEFAULT_VERSION
        return str(found)

    def write_version(self, new_version: str) -> bool:
        try:
            text = self.path.read_text(encoding="utf-8")
            if _is_toml(self.path):
                text, changed = _replace_toml_version(text, new_version)
                if not changed:
                    logger.warning(f"No version field found in {self.path.name}")
                    return False
            else:
                data = json.loads(text)
                data["version"] = new_version
                text = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
            self.path.write_text(text, encoding="utf-8")
        except (OSError, ValueError, TypeError) as e:
            logger.warning(f"Could not update {self.path.name}: {e}")
            return False
        logger.info(f"Updated {self.path.name} to version {new_version}")
        return True


def update_version_file(root: Path, spec: VersionFileSpec, new_version: str) -> bool:
    path = (Path(root) / spec.path).resolve()
    try:
        content = path.read_text(encoding="utf-8")
        if spec.pattern:
            replacement = (spec.replacement or "{{version}}").replace("{{version}}", new_version)
            content = re.sub(spec.pattern, lambda _m: replacement, content)
        elif spec.json_path:
            data = json.loads(content)
            set_nested(data, spec.json_path, new_version)
            content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
        else:
            logger.warning(f"{spec.path}: no pattern or jsonPath configured, skipping")
            return False
        path.write_text(content, encoding="utf-8")
    except (OSError, ValueError, re.error) as e:
        logger.warning(f"Could not update {spec.path}: {e}")
        return False
    logger.info(f"Updated {spec.path} to version {new_version}")
    return True


def update_version_files(
    root: Path, specs: Iterable[VersionFileSpec], new_version: str
) -> List[str]:
    """Rewrite every configured file; returns the paths that were updated."""
    return [s.path for s in specs if update_version_file(root, s, new_version)]
