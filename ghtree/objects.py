"""
Typed primitives for the remote repository object graph.

A lookup resolves to exactly one of four object kinds. Commits and tags are
kept representable so the walk can reject them explicitly.
"""
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from ghtree.errors import LookupFailed


# Opaque, content-addressed git object id assigned by the server
RemoteObjectId = str


class ObjectType(str, Enum):
    """GraphQL __typename values of a GitObject."""
    BLOB = "Blob"
    TREE = "Tree"
    COMMIT = "Commit"
    TAG = "Tag"


class TreeEntry(BaseModel):
    """One named child reference inside a tree."""
    name: str
    oid: RemoteObjectId


class FileObject(BaseModel):
    """Blob node. text is None when the payload is binary."""
    object_type: ObjectType = ObjectType.BLOB
    text: Optional[str] = None

    @property
    def label(self) -> str:
        return "file"


class DirectoryObject(BaseModel):
    """Tree node with its entries in server order."""
    object_type: ObjectType = ObjectType.TREE
    entries: List[TreeEntry] = Field(default_factory=list)

    @property
    def label(self) -> str:
        return "directory"


class CommitReference(BaseModel):
    object_type: ObjectType = ObjectType.COMMIT
    oid: Optional[RemoteObjectId] = None

    @property
    def label(self) -> str:
        return "commit"


class TagReference(BaseModel):
    object_type: ObjectType = ObjectType.TAG
    oid: Optional[RemoteObjectId] = None
    name: Optional[str] = None

    @property
    def label(self) -> str:
        return "tag"


ObjectKind = Union[FileObject, DirectoryObject, CommitReference, TagReference]


def is_reference(kind: ObjectKind) -> bool:
    """True for the kinds a subtree request must never resolve to."""
    return isinstance(kind, (CommitReference, TagReference))


def parse_object(payload: Dict[str, Any]) -> ObjectKind:
    """
    Classify the ``object`` field of a repository lookup.

    Args:
        payload: The GitObject dict, including ``__typename``

    Returns:
        The matching ObjectKind model

    Raises:
        LookupFailed: If the payload is not an object or has an unknown __typename
    """
    if not isinstance(payload, dict):
        raise LookupFailed(f"malformed object in response: {payload!r}")

    typename = payload.get("__typename")
    try:
        object_type = ObjectType(typename)
    except ValueError:
        raise LookupFailed(f"unexpected object type in response: {typename!r}")

    try:
        if object_type == ObjectType.BLOB:
            return FileObject(text=payload.get("text"))

        if object_type == ObjectType.TREE:
            # GitHub types both the list and its items as nullable
            raw_entries = payload.get("entries") or []
            entries = [TreeEntry(name=e["name"], oid=e["oid"]) for e in raw_entries if e is not None]
            return DirectoryObject(entries=entries)

        if object_type == ObjectType.COMMIT:
            return CommitReference(oid=payload.get("oid"))

        return TagReference(oid=payload.get("oid"), name=payload.get("name"))
    except (KeyError, TypeError, ValidationError) as e:
        raise LookupFailed(f"malformed {typename} in response: {e}") from e
