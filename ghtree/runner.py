"""
Fetch orchestration for ghtree.

Opens the GraphQL client, resolves the requested root, chooses the local
destination and hands off to the materializer (or the snapshot walker for
dry runs).
"""
import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, Optional

from ghtree.config import FetchConfig
from ghtree.graphql_client import GraphQLClient
from ghtree.materializer import Reporter, WalkContext, materialize
from ghtree.objects import FileObject, ObjectKind
from ghtree.resolver import normalize_path, resolve_root
from ghtree.snapshot import TreeNode, collect


logger = logging.getLogger(__name__)


@dataclass
class FetchRequest:
    """What to fetch and where to put it."""
    owner: str
    repo: str
    commit_ish: str = "HEAD"
    path: str = ""
    destination: Path = field(default_factory=lambda: Path("."))
    dry_run: bool = False


@dataclass
class FetchResult:
    """Outcome of a successful fetch."""
    root_kind: str
    destination: Path
    files: int = 0
    directories: int = 0
    tree: Optional[TreeNode] = None


def file_destination(destination: Path, path: str) -> Path:
    """
    Local path for a root that resolved to a single file.

    An existing directory receives the file under its in-repo basename;
    anything else is taken as the target file path.
    """
    name = PurePosixPath(normalize_path(path)).name
    if destination.is_dir() and name:
        return destination / name
    return destination


async def fetch_subtree(
    request: FetchRequest,
    config: FetchConfig,
    reporter: Optional[Reporter] = None,
    client: Optional[GraphQLClient] = None
) -> FetchResult:
    """
    Resolve the requested subtree and write it to disk.

    Args:
        request: Repository coordinates and destination
        config: Endpoint, token and concurrency settings
        reporter: Optional callback invoked per resolved node
        client: Pre-built client (default: one built from config)

    Returns:
        FetchResult with counts of written files and directories

    Raises:
        GHTreeError: Any lookup, classification or path failure
        OSError: On filesystem errors
    """
    if client is None:
        client = GraphQLClient(
            endpoint=config.endpoint,
            token=config.token,
            timeout=config.timeout,
            max_concurrency=config.max_concurrency
        )

    counts: Dict[str, int] = {"file": 0, "directory": 0}

    def on_node(kind: ObjectKind, path) -> None:
        if kind.label in counts:
            counts[kind.label] += 1
        if reporter is not None:
            reporter(kind, path)

    cap = config.max_concurrency if config.max_concurrency > 0 else "unbounded"
    logger.info(f"Fetching {request.owner}/{request.repo} from {config.endpoint} (max concurrency: {cap})")

    async with client:
        root = await resolve_root(client, request.owner, request.repo, request.commit_ish, request.path)
        context = WalkContext(
            owner=request.owner,
            repo=request.repo,
            lookup=client.lookup_for(request.owner, request.repo),
            reporter=on_node
        )

        if request.dry_run:
            start = PurePosixPath(".")
            if isinstance(root, FileObject):
                start = PurePosixPath(PurePosixPath(normalize_path(request.path)).name or ".")
            tree = await collect(root, context, start)
            return FetchResult(
                root_kind=root.label,
                destination=request.destination,
                files=counts["file"],
                directories=counts["directory"],
                tree=tree
            )

        if isinstance(root, FileObject):
            target = file_destination(request.destination, request.path)
        else:
            target = request.destination

        await materialize(target, root, context)

    return FetchResult(
        root_kind=root.label,
        destination=target,
        files=counts["file"],
        directories=counts["directory"]
    )


def run(request: FetchRequest, config: FetchConfig, reporter: Optional[Reporter] = None) -> FetchResult:
    """Synchronous wrapper around fetch_subtree."""
    return asyncio.run(fetch_subtree(request, config, reporter=reporter))
