"""
ArangoDB Python Client

An async Python client for the ArangoDB HTTP API.

Features:
- Async-first design with aiohttp
- Connection pooling
- Immutable AQL query builder
- Cursor pagination, collected or streamed
- Typed result decoding

Example:
    >>> import asyncio
    >>> from arango_db import ArangoClient, AqlQuery
    >>>
    >>> async def main():
    ...     async with ArangoClient("http://localhost:8529", username="root", password="") as client:
    ...         db = client.db("test_db")
    ...         aql = AqlQuery("FOR u IN users LIMIT @n RETURN u").bind_var("n", 3)
    ...         for user in await db.aql_query(aql):
    ...             print(user)
    >>>
    >>> asyncio.run(main())

@version 0.3.1
"""

import logging

from .client import ArangoClient, ClientConfig
from .database import Database
from .query import AqlQuery
from .response import as_type
from .types import (
    Cursor,
    RawResponse,
    Version,
    DatabaseInfo,
    CollectionInfo,
    ArangoError,
    ConnectionError,
    MalformedResponseError,
    SchemaMismatchError,
    ReadOnlyError,
    ServerError,
    AuthenticationError,
    InvalidCursorError,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.3.1"
__all__ = [
    "ArangoClient",
    "ClientConfig",
    "Database",
    "AqlQuery",
    "as_type",
    "Cursor",
    "RawResponse",
    "Version",
    "DatabaseInfo",
    "CollectionInfo",
    "ArangoError",
    "ConnectionError",
    "MalformedResponseError",
    "SchemaMismatchError",
    "ReadOnlyError",
    "ServerError",
    "AuthenticationError",
    "InvalidCursorError",
]
