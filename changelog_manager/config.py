import json
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional

from loguru import logger

from changelog_manager.errors import ConfigError

"""Layered configuration

Values are resolved once, before any changelog logic runs, in this order
(later layers win):

  1. built-in defaults
  2. environment (.env is loaded by the CLI bootstrap)
  3. the JSON config file (changelog.config.json in the project root, or an
     explicit --config path)
  4. explicit overrides from the call site (CLI flags)

The result is a frozen Settings instance passed to every component.
"""

CONFIG_FILE_NAME = "changelog.config.json"
DEFAULT_CHANGELOG_DIR = "changelog/releases"
DEFAULT_DRAFT_FILE = "draft.md"
DEFAULT_TIME_RANGE = "1 day ago"
DEFAULT_MANIFEST = "pyproject.toml"
AI_PROVIDERS = ("openai", "claude", "gemini")


def _as_bool(val: str | None, default: bool) -> bool:
    if val is None:
        return default
    v = val.strip().lower()
    return v in ("1", "true", "yes", "on")


def _str_to_path(val: str | os.PathLike[str] | None) -> Path | None:
    if not val:
        return None
    try:
        return Path(val).expanduser()
    except Exception:
        return None


@dataclass(frozen=True)
class VersionFileSpec:
    """An auxiliary file carrying the project version.

    Either ``pattern`` + ``replacement`` (regex substitution, ``{{version}}``
    in the replacement is filled in) or ``json_path`` (dotted key to set).
    """

    path: str
    pattern: Optional[str] = None
    replacement: Optional[str] = None
    json_path: Optional[str] = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "VersionFileSpec":
        if not isinstance(raw, Mapping) or not raw.get("path"):
            raise ConfigError(f"versionFiles entries need a 'path': {raw!r}")
        return cls(
            path=str(raw["path"]),
            pattern=raw.get("pattern"),
            replacement=raw.get("replacement"),
            json_path=raw.get("jsonPath") or raw.get("json_path"),
        )


@dataclass(frozen=True)
class Settings:
    project_root: Path = field(default_factory=Path.cwd)
    changelog_dir: str = DEFAULT_CHANGELOG_DIR
    draft_file_name: str = DEFAULT_DRAFT_FILE
    git_time_range: str = DEFAULT_TIME_RANGE
    use_emojis: bool = False
    ai_provider: Optional[str] = None
    ai_api_key: Optional[str] = None
    ai_model: Optional[str] = None
    manifest_path: str = DEFAULT_MANIFEST
    version_files: tuple[VersionFileSpec, ...] = ()
    github_token: Optional[str] = None
    github_repository: Optional[str] = None
    http_timeout: float = 30.0
    create_tag: bool = True
    commit_and_push: bool = True

    @property
    def changelog_path(self) -> Path:
        return (self.project_root / self.changelog_dir).resolve()

    @property
    def draft_path(self) -> Path:
        return self.changelog_path / self.draft_file_name

    @property
    def manifest_full_path(self) -> Path:
        return (self.project_root / self.manifest_path).resolve()

    @property
    def ai_enabled(self) -> bool:
        return bool(self.ai_api_key and self.ai_provider)

    @property
    def github_enabled(self) -> bool:
        return bool(self.github_token and self.github_repository)


# camelCase config-file keys mapped to Settings field names.
# snake_case field names are accepted as-is.
_FILE_KEY_ALIASES = {
    "projectRoot": "project_root",
    "changelogDir": "changelog_dir",
    "draftFileName": "draft_file_name",
    "gitTimeRange": "git_time_range",
    "useEmojis": "use_emojis",
    "aiApiType": "ai_provider",
    "aiProvider": "ai_provider",
    "aiApiKey": "ai_api_key",
    "aiModel": "ai_model",
    "packageJsonPath": "manifest_path",
    "manifestPath": "manifest_path",
    "versionFiles": "version_files",
    "githubToken": "github_token",
    "githubRepository": "github_repository",
    "httpTimeout": "http_timeout",
    "createTag": "create_tag",
    "commitAndPush": "commit_and_push",
}
_FIELD_NAMES = {f.name for f in fields(Settings)}


def _env_layer() -> dict[str, Any]:
    layer: dict[str, Any] = {}

    openai_key = os.getenv("OPENAI_API_KEY", "").strip()
    claude_key = (
        os.getenv("CLAUDE_API_KEY", "").strip()
        or os.getenv("ANTHROPIC_API_KEY", "").strip()
    )
    gemini_key = os.getenv("GEMINI_API_KEY", "").strip()
    provider = os.getenv("CHANGELOG_AI_PROVIDER", "").strip().lower()
    keys = {"openai": openai_key, "claude": claude_key, "gemini": gemini_key}

    if provider in keys and keys[provider]:
        layer["ai_provider"], layer["ai_api_key"] = provider, keys[provider]
    else:
        if provider:
            logger.warning(
                f"CHANGELOG_AI_PROVIDER={provider!r} has no matching API key; auto-selecting."
            )
        for name in AI_PROVIDERS:
            if keys[name]:
                layer["ai_provider"], layer["ai_api_key"] = name, keys[name]
                break

    model = os.getenv("CHANGELOG_AI_MODEL", "").strip()
    if model:
        layer["ai_model"] = model
    emojis = os.getenv("CHANGELOG_USE_EMOJIS")
    if emojis is not None:
        layer["use_emojis"] = _as_bool(emojis, False)
    token = os.getenv("GITHUB_TOKEN", "").strip()
    if token:
        layer["github_token"] = token
    repo = os.getenv("GITHUB_REPOSITORY", "").strip()
    if repo:
        layer["github_repository"] = repo
    timeout = os.getenv("CHANGELOG_HTTP_TIMEOUT", "").strip()
    if timeout:
        try:
            layer["http_timeout"] = float(timeout)
        except ValueError:
            logger.warning(f"Ignoring invalid CHANGELOG_HTTP_TIMEOUT={timeout!r}")
    return layer


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse a JSON config file into Settings field names.

    Raises ConfigError when the file cannot be read or is not a JSON object.
    """
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Could not load config file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Could not parse config file {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")

    layer: dict[str, Any] = {}
    for key, value in raw.items():
        name = _FILE_KEY_ALIASES.get(key, key)
        if name not in _FIELD_NAMES:
            logger.debug(f"Ignoring unknown config key {key!r}")
            continue
        layer[name] = value
    return layer


def _coerce(layer: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for name, value in layer.items():
        if value is None:
            continue
        if name == "project_root":
            value = _str_to_path(value) or Path.cwd()
        elif name == "version_files":
            if not isinstance(value, (list, tuple)):
                raise ConfigError("versionFiles must be a list")
            value = tuple(
                v if isinstance(v, VersionFileSpec) else VersionFileSpec.from_mapping(v)
                for v in value
            )
        elif name in ("use_emojis", "create_tag", "commit_and_push"):
            value = value if isinstance(value, bool) else _as_bool(str(value), False)
        elif name == "http_timeout":
            try:
                value = float(value)
            except (TypeError, ValueError) as e:
                raise ConfigError(f"Invalid httpTimeout: {value!r}") from e
        elif name == "ai_provider":
            value = str(value).strip().lower()
            if value not in AI_PROVIDERS:
                raise ConfigError(
                    f"Unknown AI provider {value!r}. Must be one of: {', '.join(AI_PROVIDERS)}"
                )
        out[name] = value
    return out


def load_settings(
    overrides: Optional[Mapping[str, Any]] = None,
    config_path: str | os.PathLike[str] | None = None,
) -> Settings:
    """Resolve defaults, environment, config file and overrides into Settings.

    The config file is optional unless ``config_path`` is given explicitly;
    an explicit path that cannot be loaded raises ConfigError.
    """
    overrides = {k: v for k, v in (overrides or {}).items() if v is not None}
    settings = replace(Settings(), **_coerce(_env_layer()))

    root = _str_to_path(overrides.get("project_root")) or settings.project_root
    if config_path:
        file_path = Path(config_path).expanduser()
        if not file_path.is_absolute():
            file_path = Path.cwd() / file_path
        file_layer = read_config_file(file_path)
    else:
        file_path = root / CONFIG_FILE_NAME
        file_layer = read_config_file(file_path) if file_path.is_file() else {}
    if file_layer:
        logger.debug(f"Loaded config file {file_path}")

    settings = replace(settings, **_coerce(file_layer))
    settings = replace(settings, **_coerce(overrides))
    if settings.ai_api_key and not settings.ai_provider:
        settings = replace(settings, ai_provider="openai")

    logger.debug(
        f"changelog_dir={settings.changelog_path}, draft={settings.draft_file_name}, "
        f"ai={settings.ai_provider or '<disabled>'}, emojis={settings.use_emojis}, "
        f"github={'on' if settings.github_enabled else 'off'}"
    )
    return settings
