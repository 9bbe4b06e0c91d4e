"""
Pytest configuration for unit tests.

Provides an in-memory repository object table and a GraphQL mock transport
that serves it, so walks run without network access.
"""
import asyncio
import json
from typing import Any, Dict, List, Optional

import httpx
import pytest

from ghtree.materializer import WalkContext
from ghtree.objects import (
    CommitReference,
    DirectoryObject,
    FileObject,
    ObjectKind,
    TagReference,
    TreeEntry,
)


def tree(*entries) -> DirectoryObject:
    """Build a DirectoryObject from (name, oid) pairs."""
    return DirectoryObject(entries=[TreeEntry(name=name, oid=oid) for name, oid in entries])


def blob(text: Optional[str]) -> FileObject:
    return FileObject(text=text)


class ObjectTable:
    """In-memory object graph with an async lookup-by-id."""

    def __init__(self, objects: Dict[str, ObjectKind], delays: Optional[Dict[str, float]] = None):
        self.objects = objects
        self.delays = delays or {}
        self.calls: List[str] = []

    async def lookup(self, oid: str) -> ObjectKind:
        self.calls.append(oid)
        delay = self.delays.get(oid, 0)
        if delay:
            await asyncio.sleep(delay)
        else:
            await asyncio.sleep(0)
        return self.objects[oid]

    def context(self, reporter=None) -> WalkContext:
        return WalkContext(owner="octocat", repo="hello-world", lookup=self.lookup, reporter=reporter)


def to_payload(kind: ObjectKind) -> Dict[str, Any]:
    """Render an ObjectKind as the GraphQL GitObject payload."""
    if isinstance(kind, FileObject):
        return {"__typename": "Blob", "text": kind.text}
    if isinstance(kind, DirectoryObject):
        return {
            "__typename": "Tree",
            "entries": [{"name": e.name, "oid": e.oid} for e in kind.entries]
        }
    if isinstance(kind, CommitReference):
        return {"__typename": "Commit", "oid": kind.oid}
    if isinstance(kind, TagReference):
        return {"__typename": "Tag", "oid": kind.oid, "name": kind.name}
    raise TypeError(kind)


class FakeGraphQLServer:
    """
    Serves start and continue lookups from dicts.

    by_expression maps "rev:path" to an ObjectKind, by_oid maps object ids.
    Unknown keys answer with a null object, like GitHub does.
    """

    def __init__(self, by_expression: Dict[str, ObjectKind], by_oid: Dict[str, ObjectKind]):
        self.by_expression = by_expression
        self.by_oid = by_oid
        self.requests: List[Dict[str, Any]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append({"body": body, "headers": dict(request.headers)})
        variables = body["variables"]

        if "revParse" in variables:
            kind = self.by_expression.get(variables["revParse"])
        else:
            kind = self.by_oid.get(variables["oid"])

        obj = to_payload(kind) if kind is not None else None
        return httpx.Response(200, json={"data": {"repository": {"object": obj}}})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def scenario_b_table():
    """Root tree with a.txt and sub/b.txt."""
    return ObjectTable({
        "id1": blob("x"),
        "id2": tree(("b.txt", "id3")),
        "id3": blob("y"),
    })


@pytest.fixture
def scenario_b_root():
    return tree(("a.txt", "id1"), ("sub", "id2"))
