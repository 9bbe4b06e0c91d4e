"""
Tree materializer: recursive fetch-and-write of a repository subtree.

Every entry of a directory is looked up and materialized concurrently.
Sibling entry names are unique, so concurrent writers never target the
same path; only directory creation is shared and it is idempotent.
"""
import asyncio
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Iterable, List, Optional

from ghtree.errors import BinaryContentUnsupported, LookupFailed, PathConflict, UnsupportedNestedKind
from ghtree.objects import DirectoryObject, FileObject, ObjectKind, RemoteObjectId


logger = logging.getLogger(__name__)

FILE_MODE = 0o644

Reporter = Callable[[ObjectKind, Path], None]


@dataclass(frozen=True)
class WalkContext:
    """Read-only state shared by every branch of a walk."""
    owner: str
    repo: str
    lookup: Callable[[RemoteObjectId], Awaitable[ObjectKind]]
    reporter: Optional[Reporter] = None

    def report(self, kind: ObjectKind, path: Path) -> None:
        if self.reporter is not None:
            self.reporter(kind, path)


def child_path(parent: Path, name: str) -> Path:
    """
    Join a tree entry name onto its parent's local path.

    Raises:
        LookupFailed: If the name could escape the parent directory
    """
    if name in ("", ".", "..") or "/" in name:
        raise LookupFailed(f"unsafe tree entry name {name!r} under {parent}")
    return parent / name


def ensure_directory(path: Path) -> None:
    """
    Create a directory and its ancestors; no-op if it already exists.

    Raises:
        PathConflict: If the path or one of its ancestors is not a directory
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except (FileExistsError, NotADirectoryError) as e:
        raise PathConflict(path) from e


def write_text_file(path: Path, text: str) -> None:
    """
    Write text to path, replacing any existing file.

    Content is written verbatim (UTF-8, no newline translation) to a temp
    file in the same directory, then moved into place.
    """
    ensure_directory(path.parent)

    temp_fd, temp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp"
    )
    try:
        with os.fdopen(temp_fd, 'w', encoding='utf-8', newline='') as f:
            f.write(text)
        os.chmod(temp_path, FILE_MODE)
        os.replace(temp_path, path)
    except BaseException:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise

    logger.debug(f"Wrote {path} ({len(text)} chars)")


async def gather_entries(coros: Iterable[Awaitable[Any]]) -> List[Any]:
    """
    Run sibling coroutines concurrently and collect their results in order.

    The first failure wins. Outstanding siblings are cancelled and allowed
    to settle before the failure is re-raised; work they already finished
    (files written) is left in place.
    """
    tasks = [asyncio.ensure_future(coro) for coro in coros]
    if not tasks:
        return []
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def materialize(local_path: Path, kind: ObjectKind, context: WalkContext) -> None:
    """
    Realize one classified object at local_path.

    Args:
        local_path: Destination for this node
        kind: Classified object
        context: Walk context with the lookup-by-id capability

    Raises:
        BinaryContentUnsupported: If a blob has no text
        UnsupportedNestedKind: If the object is a commit or tag
        PathConflict: If a directory cannot be created
        LookupFailed, IncompleteResponse: From child lookups
        OSError: From file writes
    """
    context.report(kind, local_path)

    if isinstance(kind, FileObject):
        if kind.text is None:
            raise BinaryContentUnsupported(local_path)
        await asyncio.to_thread(write_text_file, local_path, kind.text)
        return

    if isinstance(kind, DirectoryObject):
        children = [(child_path(local_path, entry.name), entry.oid) for entry in kind.entries]
        await asyncio.to_thread(ensure_directory, local_path)
        await gather_entries(
            _materialize_entry(path, oid, context) for path, oid in children
        )
        return

    raise UnsupportedNestedKind(kind.object_type.value, local_path)


async def _materialize_entry(path: Path, oid: RemoteObjectId, context: WalkContext) -> None:
    child = await context.lookup(oid)
    await materialize(path, child, context)
