"""
GitHub GraphQL client for repository object lookups.

Two query shapes are used: a "start" lookup by revision expression
(``HEAD:src/lib``) and a "continue" lookup by object id. Both resolve to
a GitObject which is classified into an ObjectKind.
"""
import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from ghtree import __version__
from ghtree.errors import IncompleteResponse, LookupFailed
from ghtree.objects import ObjectKind, RemoteObjectId, parse_object


logger = logging.getLogger(__name__)

OBJECT_FIELDS = """
      __typename
      ... on Blob { text }
      ... on Tree { entries { name oid } }
      ... on Commit { oid }
      ... on Tag { oid name }
"""

START_QUERY = """
query Start($repoOwner: String!, $repoName: String!, $revParse: String!) {
  repository(owner: $repoOwner, name: $repoName) {
    object(expression: $revParse) {%s}
  }
}
""" % OBJECT_FIELDS

CONT_QUERY = """
query Cont($repoOwner: String!, $repoName: String!, $oid: GitObjectID!) {
  repository(owner: $repoOwner, name: $repoName) {
    object(oid: $oid) {%s}
  }
}
""" % OBJECT_FIELDS

Lookup = Callable[[RemoteObjectId], Awaitable[ObjectKind]]


class GraphQLClient:
    """
    Async GraphQL client shared by every branch of a walk.

    Headers (including the bearer token) are fixed at construction and never
    mutated. When max_concurrency > 0 a single semaphore caps the number of
    requests in flight across the whole walk. The underlying httpx client is
    opened on enter and closed on exit; pass a transport to swap the network
    layer (e.g. httpx.MockTransport).
    """

    def __init__(
        self,
        endpoint: str,
        token: Optional[str] = None,
        timeout: float = 30.0,
        max_concurrency: int = 8,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.endpoint = endpoint
        self.token = token
        self.timeout = timeout
        self.max_concurrency = max_concurrency
        self.transport = transport
        self.headers = {
            'Content-Type': 'application/json',
            'User-Agent': f'ghtree/{__version__}'
        }
        if token:
            self.headers['Authorization'] = f'Bearer {token}'

        self._http: Optional[httpx.AsyncClient] = None
        self._semaphore: Optional[asyncio.Semaphore] = None

    async def __aenter__(self) -> 'GraphQLClient':
        if self._http is None:
            self._http = httpx.AsyncClient(
                headers=self.headers,
                timeout=self.timeout,
                transport=self.transport
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    def _limit(self) -> Optional[asyncio.Semaphore]:
        if self.max_concurrency <= 0:
            return None
        # Created lazily so it binds to the running loop
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.max_concurrency)
        return self._semaphore

    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        if self._http is None:
            raise RuntimeError("GraphQLClient used outside 'async with'")

        semaphore = self._limit()
        if semaphore is None:
            return await self._http.post(self.endpoint, json=payload, headers=self.headers)
        async with semaphore:
            return await self._http.post(self.endpoint, json=payload, headers=self.headers)

    async def execute(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        """
        Run a GraphQL query and return its ``data`` field.

        Raises:
            LookupFailed: On network errors, non-2xx status, malformed envelope,
                reported query errors or a missing data field
        """
        try:
            response = await self._post({'query': query, 'variables': variables})
        except httpx.HTTPError as e:
            raise LookupFailed(f"request to {self.endpoint} failed: {e}") from e

        if not response.is_success:
            raise LookupFailed(
                f"{self.endpoint} returned HTTP {response.status_code}: {response.text[:200]}"
            )

        try:
            envelope = response.json()
        except ValueError as e:
            raise LookupFailed(f"invalid JSON from {self.endpoint}: {e}") from e

        if not isinstance(envelope, dict):
            raise LookupFailed(f"malformed GraphQL envelope from {self.endpoint}")

        errors = envelope.get('errors')
        if errors:
            messages = [
                err.get('message', str(err)) if isinstance(err, dict) else str(err)
                for err in errors
            ]
            raise LookupFailed(f"errors: {'; '.join(messages)}")

        data = envelope.get('data')
        if data is None:
            raise LookupFailed("no response")
        if not isinstance(data, dict):
            raise LookupFailed(f"malformed data in response from {self.endpoint}: {data!r:.200}")

        return data

    def _object_from(self, data: Dict[str, Any], owner: str, repo: str, target: str) -> ObjectKind:
        repository = data.get('repository')
        if repository is None:
            raise IncompleteResponse(f"no repository {owner}/{repo}")
        if not isinstance(repository, dict):
            raise LookupFailed(f"malformed repository in response: {repository!r:.200}")

        obj = repository.get('object')
        if obj is None:
            raise IncompleteResponse(f"no object at {target} in {owner}/{repo}")

        return parse_object(obj)

    async def lookup_expression(self, owner: str, repo: str, expression: str) -> ObjectKind:
        """Start lookup: resolve a revision expression such as ``HEAD:src/lib``."""
        logger.debug(f"Resolving {owner}/{repo} {expression}")
        data = await self.execute(START_QUERY, {
            'repoOwner': owner,
            'repoName': repo,
            'revParse': expression
        })
        return self._object_from(data, owner, repo, expression)

    async def lookup_oid(self, owner: str, repo: str, oid: RemoteObjectId) -> ObjectKind:
        """Continue lookup: fetch an object by id."""
        logger.debug(f"Fetching {owner}/{repo} object {oid}")
        data = await self.execute(CONT_QUERY, {
            'repoOwner': owner,
            'repoName': repo,
            'oid': oid
        })
        return self._object_from(data, owner, repo, oid)

    def lookup_for(self, owner: str, repo: str) -> Lookup:
        """Bind repository coordinates into a lookup-by-id callable."""
        return functools.partial(self.lookup_oid, owner, repo)
