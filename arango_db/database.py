"""
ArangoDB Database Handle

A Database binds one logical database to the client's shared session. AQL
queries and collection calls are all addressed relative to it.

@version 0.3.1
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, AsyncIterator, Dict, List, Optional
from urllib.parse import quote

from . import cursor as aql
from .query import AqlQuery
from .response import Decoder, decode_response, decode_result
from .types import (
    ArangoError,
    CollectionInfo,
    ConnectionError,
    Cursor,
    DatabaseInfo,
    RawResponse,
    ReadOnlyError,
    Version,
)

if TYPE_CHECKING:
    from .client import ArangoClient

logger = logging.getLogger(__name__)


class Database:
    """
    Handle for one database on an ArangoDB server.

    Obtain it from ``ArangoClient.db()``. The handle borrows the client's
    session and stops working once the client is closed.

    Example:
        async with ArangoClient("http://localhost:8529", username="root", password="") as client:
            db = client.db("test_db")
            users = await db.aql_str("FOR u IN users LIMIT 3 RETURN u")
    """

    def __init__(self, client: "ArangoClient", name: str, *, read_only: bool = False):
        if not name:
            raise ValueError("Database name must not be empty")
        self._client = client
        self._name = name
        self._read_only = read_only
        self._url = f"{client.url}/_db/{quote(name, safe='')}/"

    @property
    def name(self) -> str:
        return self._name

    @property
    def url(self) -> str:
        """Base URL of the database, ending in a slash."""
        return self._url

    @property
    def read_only(self) -> bool:
        return self._read_only

    def api_url(self, path: str) -> str:
        """Join an API path such as ``_api/collection`` onto the database URL."""
        return self._url + path.lstrip("/")

    def cursor_url(self, cursor_id: Optional[str] = None) -> str:
        """Cursor creation URL, or the URL of an existing cursor."""
        if cursor_id is None:
            return self.api_url("_api/cursor")
        return self.api_url(f"_api/cursor/{quote(cursor_id, safe='')}")

    async def send(self, method: str, url: str, body: Optional[str] = None) -> RawResponse:
        """Send a request through the owning client."""
        if self._client.closed:
            raise ConnectionError(f"Client for database {self._name!r} is closed")
        return await self._client.send(method, url, body)

    def _check_writable(self, action: str) -> None:
        if self._read_only:
            raise ReadOnlyError(f"Cannot {action}: database {self._name!r} is opened read-only")

    # =========================================================================
    # AQL Methods
    # =========================================================================

    async def aql_query_batch(
        self,
        query: AqlQuery,
        decoder: Optional[Decoder] = None,
    ) -> Cursor:
        """
        Execute an AQL query and return its first page.

        Cursors carry the continuation id and statistics, so callers can
        page through large results without holding them in memory.
        """
        return await aql.submit(self, query, decoder)

    async def aql_next_batch(
        self,
        cursor_id: str,
        decoder: Optional[Decoder] = None,
    ) -> Cursor:
        """Fetch the next page of a cursor by id."""
        return await aql.advance(self, cursor_id, decoder)

    async def aql_delete_cursor(self, cursor_id: str) -> None:
        """Release a cursor that will not be read to the end."""
        await aql.delete(self, cursor_id)

    async def aql_query(
        self,
        query: AqlQuery,
        decoder: Optional[Decoder] = None,
    ) -> List[Any]:
        """
        Execute an AQL query and fetch all results.

        Do not use this for result sets too large to hold in memory, and
        avoid tiny batch sizes, which turn into many HTTP requests.
        """
        return await aql.fetch_all(self, query, decoder)

    def aql_iter(
        self,
        query: AqlQuery,
        decoder: Optional[Decoder] = None,
    ) -> AsyncIterator[Any]:
        """
        Stream query results page by page.

        Example:
            async for user in db.aql_iter(AqlQuery("FOR u IN users RETURN u")):
                print(user)
        """
        return aql.iterate(self, query, decoder)

    async def aql_str(self, query: str, decoder: Optional[Decoder] = None) -> List[Any]:
        """Like ``aql_query``, for a bare query string."""
        return await self.aql_query(AqlQuery(query), decoder)

    async def aql_bind_vars(
        self,
        query: str,
        bind_vars: Dict[str, Any],
        decoder: Optional[Decoder] = None,
    ) -> List[Any]:
        """Like ``aql_query``, for a query string plus bind variables."""
        return await self.aql_query(AqlQuery(query).bind_vars_from(bind_vars), decoder)

    # =========================================================================
    # Collection Methods
    # =========================================================================

    async def accessible_collections(self, exclude_system: bool = False) -> List[CollectionInfo]:
        """List the collections of this database."""
        url = self.api_url("_api/collection")
        if exclude_system:
            url += "?excludeSystem=true"
        logger.debug("Retrieving collections from %s: %s", self._name, url)
        raw = await self.send("GET", url)
        return decode_result(raw, lambda items: [CollectionInfo.from_json(c) for c in items])

    async def collection(self, name: str) -> CollectionInfo:
        """Get a collection by name."""
        for info in await self.accessible_collections():
            if info.name == name:
                return info
        raise ArangoError(f"Collection {name} not found")

    async def create_collection(self, name: str, *, edge: bool = False) -> CollectionInfo:
        """Create a document (or edge) collection."""
        self._check_writable("create collection")
        payload = {"name": name, "type": 3 if edge else 2}
        raw = await self.send("POST", self.api_url("_api/collection"), json.dumps(payload))
        info = decode_response(raw, CollectionInfo.from_json)
        logger.debug("Created collection %s in %s", name, self._name)
        return info

    async def drop_collection(self, name: str) -> str:
        """Drop a collection, returning its id."""
        self._check_writable("drop collection")
        url = self.api_url(f"_api/collection/{quote(name, safe='')}")
        raw = await self.send("DELETE", url)
        collection_id = decode_response(raw, lambda data: data["id"])
        logger.debug("Dropped collection %s from %s", name, self._name)
        return collection_id

    # =========================================================================
    # Server Methods
    # =========================================================================

    async def info(self) -> DatabaseInfo:
        """Get information about this database."""
        raw = await self.send("GET", self.api_url("_api/database/current"))
        return decode_result(raw, DatabaseInfo.from_json)

    async def arango_version(self) -> Version:
        """Get the server version."""
        raw = await self.send("GET", self.api_url("_api/version"))
        return decode_response(raw, Version.from_json)

    def __repr__(self) -> str:
        mode = "read-only" if self._read_only else "read-write"
        return f"Database({self._name!r}, {mode})"
