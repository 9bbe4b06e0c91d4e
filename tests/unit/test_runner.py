"""
Unit tests for fetch orchestration against a mock GraphQL endpoint.
"""
import pytest

from conftest import FakeGraphQLServer, blob, tree
from ghtree.config import FetchConfig
from ghtree.errors import IncompleteResponse, UnsupportedRootKind
from ghtree.graphql_client import GraphQLClient
from ghtree.objects import CommitReference
from ghtree.runner import FetchRequest, fetch_subtree, file_destination


class TestFetchSubtree:

    def setup_method(self):
        """Set up a config that ignores the real environment and home directory."""
        self.config = FetchConfig(config_path=None, environ={})
        self.config.endpoint = "https://api.github.test/graphql"
        self.config.token = "test-token"

    def client_for(self, server: FakeGraphQLServer) -> GraphQLClient:
        return GraphQLClient(
            self.config.endpoint,
            token=self.config.token,
            transport=server.transport()
        )

    @pytest.mark.asyncio
    async def test_directory_root(self, tmp_path):
        """Root tree with a.txt and sub/b.txt is written under the destination."""
        server = FakeGraphQLServer(
            by_expression={"HEAD:src": tree(("a.txt", "id1"), ("sub", "id2"))},
            by_oid={"id1": blob("x"), "id2": tree(("b.txt", "id3")), "id3": blob("y")}
        )
        request = FetchRequest(owner="octocat", repo="hello-world", path="/src", destination=tmp_path / "out")

        result = await fetch_subtree(request, self.config, client=self.client_for(server))

        assert (tmp_path / "out" / "a.txt").read_text() == "x"
        assert (tmp_path / "out" / "sub" / "b.txt").read_text() == "y"
        assert result.root_kind == "directory"
        assert (result.files, result.directories) == (2, 2)
        assert server.requests[0]["body"]["variables"]["revParse"] == "HEAD:src"
        assert all(r["headers"]["authorization"] == "Bearer test-token" for r in server.requests)

    @pytest.mark.asyncio
    async def test_file_root_into_existing_directory(self, tmp_path):
        """A file root lands under its basename when the destination is a directory."""
        server = FakeGraphQLServer(by_expression={"main:docs/hello.txt": blob("hello\n")}, by_oid={})
        request = FetchRequest(owner="o", repo="r", commit_ish="main", path="docs/hello.txt", destination=tmp_path)

        result = await fetch_subtree(request, self.config, client=self.client_for(server))

        assert (tmp_path / "hello.txt").read_bytes() == b"hello\n"
        assert result.destination == tmp_path / "hello.txt"
        assert result.files == 1

    @pytest.mark.asyncio
    async def test_file_root_to_explicit_file_path(self, tmp_path):
        server = FakeGraphQLServer(by_expression={"HEAD:README.md": blob("readme")}, by_oid={})
        target = tmp_path / "copy.md"
        request = FetchRequest(owner="o", repo="r", path="README.md", destination=target)

        await fetch_subtree(request, self.config, client=self.client_for(server))

        assert target.read_text() == "readme"

    @pytest.mark.asyncio
    async def test_commit_root_writes_nothing(self, tmp_path):
        """A root that resolves to a commit fails before any filesystem write."""
        server = FakeGraphQLServer(by_expression={"HEAD:": CommitReference(oid="abc")}, by_oid={})
        destination = tmp_path / "out"
        request = FetchRequest(owner="o", repo="r", destination=destination)

        with pytest.raises(UnsupportedRootKind):
            await fetch_subtree(request, self.config, client=self.client_for(server))

        assert not destination.exists()
        assert len(server.requests) == 1

    @pytest.mark.asyncio
    async def test_missing_path(self, tmp_path):
        server = FakeGraphQLServer(by_expression={}, by_oid={})
        request = FetchRequest(owner="o", repo="r", path="nope", destination=tmp_path)

        with pytest.raises(IncompleteResponse):
            await fetch_subtree(request, self.config, client=self.client_for(server))

    @pytest.mark.asyncio
    async def test_dry_run_writes_nothing(self, tmp_path):
        server = FakeGraphQLServer(
            by_expression={"HEAD:": tree(("a.txt", "id1"))},
            by_oid={"id1": blob("x")}
        )
        destination = tmp_path / "out"
        request = FetchRequest(owner="o", repo="r", destination=destination, dry_run=True)

        result = await fetch_subtree(request, self.config, client=self.client_for(server))

        assert not destination.exists()
        assert result.tree is not None
        assert result.tree.paths() == ["a.txt"]
        assert (result.files, result.directories) == (1, 1)

    @pytest.mark.asyncio
    async def test_reporter_receives_nodes(self, tmp_path):
        server = FakeGraphQLServer(
            by_expression={"HEAD:": tree(("a.txt", "id1"))},
            by_oid={"id1": blob("x")}
        )
        seen = []
        request = FetchRequest(owner="o", repo="r", destination=tmp_path)

        await fetch_subtree(
            request, self.config,
            reporter=lambda kind, path: seen.append(kind.label),
            client=self.client_for(server)
        )

        assert sorted(seen) == ["directory", "file"]


class TestFileDestination:

    def test_existing_directory_gets_basename(self, tmp_path):
        assert file_destination(tmp_path, "/docs/guide.md") == tmp_path / "guide.md"

    def test_non_directory_used_as_is(self, tmp_path):
        target = tmp_path / "renamed.md"
        assert file_destination(target, "docs/guide.md") == target
