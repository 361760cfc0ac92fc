"""Exception hierarchy shared by the changelog core and its collaborators."""


class ChangelogError(Exception):
    pass


class ConfigError(ChangelogError):
    """Configuration file missing, unreadable or malformed."""


class InvalidBumpTypeError(ChangelogError):
    """Bump type is not one of major, minor or patch."""

    def __init__(self, bump_type: str, valid: tuple[str, ...]) -> None:
        self.bump_type = bump_type
        self.valid = valid
        super().__init__(
            f"Invalid version type: {bump_type}. Must be one of: {', '.join(valid)}"
        )


class PolisherError(ChangelogError):
    """A message polishing provider failed or returned an unusable response."""


class ReleaseHostError(ChangelogError):
    """The remote release host rejected or failed a release request."""

    def __init__(self, status_code: int | None, detail: str = "") -> None:
        self.status_code = status_code
        self.detail = detail
        msg = f"Release host error: {status_code}" if status_code else "Release host error"
        if detail:
            msg += f" {detail}"
        super().__init__(msg)


class DocumentWriteError(ChangelogError):
    """A changelog document could not be written to storage."""
