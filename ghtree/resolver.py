"""
Root resolution: one start lookup that classifies the requested subtree.
"""
import logging
from pathlib import PurePosixPath
from typing import Union

from ghtree.errors import UnsupportedRootKind
from ghtree.graphql_client import GraphQLClient
from ghtree.objects import ObjectKind, is_reference


logger = logging.getLogger(__name__)


def normalize_path(path: Union[str, PurePosixPath]) -> str:
    """
    Normalize an in-repo path to an expression relative to the repository root.

    An absolute path has its root component dropped and the remaining parts
    reassembled ("/src/lib" -> "src/lib"), it is not rejected. The repository
    root itself normalizes to "".
    """
    pure = PurePosixPath(path)
    parts = pure.parts
    if pure.is_absolute():
        parts = parts[1:]
    return "/".join(parts)


def revision_expression(commit_ish: str, path: Union[str, PurePosixPath]) -> str:
    """Compose the ``<commit-ish>:<path>`` lookup key."""
    return f"{commit_ish}:{normalize_path(path)}"


async def resolve_root(
    client: GraphQLClient,
    owner: str,
    repo: str,
    commit_ish: str,
    path: Union[str, PurePosixPath]
) -> ObjectKind:
    """
    Resolve and classify the root object of the requested subtree.

    Args:
        client: Open GraphQL client
        owner: Repository owner
        repo: Repository name
        commit_ish: Revision expression (branch, tag, commit id, ...)
        path: In-repo path, absolute or relative

    Returns:
        FileObject or DirectoryObject

    Raises:
        LookupFailed: If the remote call fails
        IncompleteResponse: If the repository or path does not exist
        UnsupportedRootKind: If the path resolves to a commit or tag
    """
    expression = revision_expression(commit_ish, path)
    kind = await client.lookup_expression(owner, repo, expression)

    if is_reference(kind):
        raise UnsupportedRootKind(kind.object_type.value, expression)

    logger.info(f"Resolved {owner}/{repo} {expression} to {kind.label}")
    return kind
