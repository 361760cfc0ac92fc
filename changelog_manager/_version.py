"""Package version lookup."""

from importlib import metadata
from pathlib import Path

DIST_NAME = "changelog-manager"
VERSION_FILE = Path(__file__).resolve().parents[1] / "VERSION"


def get_version() -> str:
    """Version from the source tree's VERSION file, else installed metadata.

    A blank VERSION file counts as missing. Returns ``0.0.0`` when neither
    source is available.
    """
    if VERSION_FILE.exists():
        text = VERSION_FILE.read_text(encoding="utf-8").strip()
        if text:
            return text
    try:
        return metadata.version(DIST_NAME)
    except metadata.PackageNotFoundError:
        return "0.0.0"


__version__ = get_version()
