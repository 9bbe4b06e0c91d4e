"""
Error taxonomy for ghtree.

Every failure the fetch core can report derives from GHTreeError.
Filesystem errors (permissions, disk space) are not wrapped and
propagate as plain OSError.
"""
from pathlib import Path
from typing import Optional, Union


class GHTreeError(Exception):
    """Base class for all ghtree failures."""
    pass


class LookupFailed(GHTreeError):
    """Raised when a remote GraphQL call fails at the transport or protocol level."""
    pass


class IncompleteResponse(GHTreeError):
    """Raised when a well-formed reply lacks the repository or object requested."""
    pass


class UnsupportedObjectKind(GHTreeError):
    """Raised when a commit or tag shows up where only blobs and trees are valid."""

    def __init__(self, object_type: str, path: Optional[Union[str, Path]] = None):
        self.object_type = object_type
        self.path = path
        if path is None or str(path) == "":
            message = f"expected blob or tree, not {object_type}"
        else:
            message = f"expected blob or tree at {path}, not {object_type}"
        super().__init__(message)


class UnsupportedRootKind(UnsupportedObjectKind):
    """The requested path resolved to a commit or tag."""
    pass


class UnsupportedNestedKind(UnsupportedObjectKind):
    """A tree entry below the root resolved to a commit or tag (e.g. a submodule)."""
    pass


class BinaryContentUnsupported(GHTreeError):
    """Raised when a blob has no text payload."""

    def __init__(self, path: Union[str, Path]):
        self.path = path
        super().__init__(f"only text files are supported, {path} is binary")


class PathConflict(GHTreeError):
    """Raised when a path that must be a directory is occupied by something else."""

    def __init__(self, path: Union[str, Path]):
        self.path = path
        super().__init__(f"cannot create directory {path}: a non-directory already exists there")
