"""
In-memory snapshot of a repository subtree.

Walks the same object graph as the materializer, with the same
classification and errors, but builds a TreeNode instead of writing to disk.
Used for dry runs.
"""
from pathlib import PurePosixPath
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from ghtree.errors import BinaryContentUnsupported, UnsupportedNestedKind
from ghtree.materializer import WalkContext, child_path, gather_entries
from ghtree.objects import DirectoryObject, FileObject, ObjectKind, RemoteObjectId


class TreeNode(BaseModel):
    """A fetched file or directory."""
    name: str
    kind: str = Field(..., description="file or directory")
    text: Optional[str] = None
    children: List['TreeNode'] = Field(default_factory=list)

    def paths(self) -> List[str]:
        """Relative paths of every file at or below this node, sorted."""
        if self.kind == "file":
            return [self.name]
        found = []
        for child in self.children:
            for sub in child.paths():
                found.append(f"{self.name}/{sub}" if self.name else sub)
        return sorted(found)

    def count(self) -> Tuple[int, int]:
        """Return (files, directories) in this subtree, including this node."""
        if self.kind == "file":
            return 1, 0
        files, dirs = 0, 1
        for child in self.children:
            child_files, child_dirs = child.count()
            files += child_files
            dirs += child_dirs
        return files, dirs


TreeNode.model_rebuild()


async def collect(
    kind: ObjectKind,
    context: WalkContext,
    path: PurePosixPath = PurePosixPath(".")
) -> TreeNode:
    """
    Fetch a subtree into memory.

    Args:
        kind: Classified root object
        context: Walk context with the lookup-by-id capability
        path: Relative path of this node, used for naming and reporting

    Raises:
        BinaryContentUnsupported: If a blob has no text
        UnsupportedNestedKind: If the object is a commit or tag
        LookupFailed, IncompleteResponse: From child lookups
    """
    context.report(kind, path)

    if isinstance(kind, FileObject):
        if kind.text is None:
            raise BinaryContentUnsupported(path)
        return TreeNode(name=path.name, kind="file", text=kind.text)

    if isinstance(kind, DirectoryObject):
        children = [(child_path(path, entry.name), entry.oid) for entry in kind.entries]
        nodes = await gather_entries(
            _collect_entry(child, oid, context) for child, oid in children
        )
        return TreeNode(name=path.name, kind="directory", children=nodes)

    raise UnsupportedNestedKind(kind.object_type.value, path)


async def _collect_entry(path: PurePosixPath, oid: RemoteObjectId, context: WalkContext) -> TreeNode:
    child = await context.lookup(oid)
    return await collect(child, context, path)


def render(node: TreeNode, indent: str = "  ") -> str:
    """Indented listing of a snapshot; directories end with '/'."""
    lines: List[str] = []

    def walk(current: TreeNode, depth: int) -> None:
        label = current.name or "."
        if current.kind == "directory":
            label += "/"
        lines.append(f"{indent * depth}{label}")
        for child in sorted(current.children, key=lambda c: c.name):
            walk(child, depth + 1)

    walk(node, 0)
    return "\n".join(lines)
