from .document import Entry, ReleaseDocument, render_draft
from .hashing import contains_hash, message_hash
from .merger import merge
from .resolver import OpenDocument, OpenDocumentResolver
from .store import ReleaseDocumentStore, VersionSet

__all__ = [
    "Entry",
    "OpenDocument",
    "OpenDocumentResolver",
    "ReleaseDocument",
    "ReleaseDocumentStore",
    "VersionSet",
    "contains_hash",
    "merge",
    "message_hash",
    "render_draft",
]
