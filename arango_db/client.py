"""
ArangoDB Python Client

Async client with connection pooling. One client owns one aiohttp session;
every Database handle derived from it shares that session.

@version 0.3.1
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Optional
from urllib.parse import quote

import aiohttp

from .database import Database
from .response import decode_response, decode_result
from .types import (
    ArangoError,
    ConnectionError,
    RawResponse,
    Version,
)

logger = logging.getLogger(__name__)

AUTH_METHODS = ("basic", "jwt")

_METHODS = ("GET", "POST", "PUT", "DELETE")


@dataclass
class ClientConfig:
    """Configuration for ArangoDB client."""
    url: str = "http://localhost:8529"
    database: str = "_system"
    username: Optional[str] = None
    password: Optional[str] = None
    auth: Optional[str] = "basic"
    timeout: float = 30.0
    max_connections: int = 10

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """
        Build a config from ``ARANGODB_HOST``, ``ARANGO_USER``,
        ``ARANGO_PASSWORD`` and ``ARANGO_DB``.

        ``ARANGODB_HOST`` may be given as ``host:port`` without a scheme.
        """
        config = cls()
        host = os.environ.get("ARANGODB_HOST")
        if host:
            config.url = host if "://" in host else f"http://{host}"
        config.username = os.environ.get("ARANGO_USER", config.username)
        config.password = os.environ.get("ARANGO_PASSWORD", config.password)
        config.database = os.environ.get("ARANGO_DB", config.database)
        return config


class ArangoClient:
    """
    Async client for ArangoDB.

    Example:
        async with ArangoClient("http://localhost:8529", username="root", password="") as client:
            db = client.db("test_db")
            rows = await db.aql_str("FOR u IN users LIMIT 3 RETURN u")
    """

    def __init__(
        self,
        url: str = "http://localhost:8529",
        *,
        database: str = "_system",
        username: Optional[str] = None,
        password: Optional[str] = None,
        auth: Optional[str] = "basic",
        timeout: float = 30.0,
        max_connections: int = 10,
    ):
        """
        Initialize ArangoDB client.

        Args:
            url: Server URL (e.g., "http://localhost:8529")
            database: Default database name for ``db()``
            username: Optional username for authentication
            password: Optional password for authentication
            auth: "basic" for HTTP basic auth, "jwt" for a token from
                ``/_open/auth``, or None for no authentication
            timeout: Request timeout in seconds
            max_connections: Maximum concurrent connections
        """
        if auth is not None and auth not in AUTH_METHODS:
            raise ValueError(f"Unknown auth method {auth!r}, expected one of {AUTH_METHODS}")

        self.config = ClientConfig(
            url=url.rstrip("/"),
            database=database,
            username=username,
            password=password,
            auth=auth,
            timeout=timeout,
            max_connections=max_connections,
        )
        self._session: Optional[aiohttp.ClientSession] = None
        self._token: Optional[str] = None

    @classmethod
    def from_config(cls, config: ClientConfig) -> "ArangoClient":
        return cls(
            config.url,
            database=config.database,
            username=config.username,
            password=config.password,
            auth=config.auth,
            timeout=config.timeout,
            max_connections=config.max_connections,
        )

    @property
    def url(self) -> str:
        return self.config.url

    @property
    def closed(self) -> bool:
        return self._session is None or self._session.closed

    async def __aenter__(self) -> "ArangoClient":
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    async def connect(self) -> None:
        """Open the HTTP session and authenticate."""
        if self._session is not None:
            return

        basic_auth = None
        if self.config.auth == "basic" and self.config.username is not None:
            basic_auth = aiohttp.BasicAuth(self.config.username, self.config.password or "")

        connector = aiohttp.TCPConnector(limit=self.config.max_connections)
        timeout = aiohttp.ClientTimeout(total=self.config.timeout)
        self._session = aiohttp.ClientSession(
            connector=connector,
            timeout=timeout,
            auth=basic_auth,
        )

        if self.config.auth == "jwt" and self.config.username is not None:
            try:
                await self._authenticate()
            except ArangoError:
                await self.close()
                raise

    async def _authenticate(self) -> None:
        """Exchange username/password for a JWT."""
        payload = {
            "username": self.config.username,
            "password": self.config.password or "",
        }
        raw = await self.send("POST", f"{self.config.url}/_open/auth", json.dumps(payload))
        self._token = decode_response(raw, lambda data: data["jwt"])
        logger.debug("Obtained JWT for user %s", self.config.username)

    async def close(self) -> None:
        """Close the client connection."""
        if self._session:
            await self._session.close()
            self._session = None
            self._token = None

    def _headers(self) -> Dict[str, str]:
        """Get request headers."""
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"bearer {self._token}"
        return headers

    async def send(
        self,
        method: str,
        url: str,
        body: Optional[str] = None,
    ) -> RawResponse:
        """
        Send one HTTP request.

        The response is returned whatever its status; envelope errors are
        classified by the response decoder.

        Raises:
            ConnectionError: Not connected, or the request failed in transit
        """
        if self._session is None:
            raise ConnectionError("Client not connected. Call connect() first.")

        if method not in _METHODS:
            raise ValueError(f"Unsupported method: {method}")

        logger.debug("%s %s", method, url)
        try:
            async with self._session.request(
                method, url, data=body, headers=self._headers()
            ) as resp:
                text = await resp.text()
                return RawResponse(status=resp.status, body=text)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ConnectionError(f"Request failed: {e}") from e

    def db(self, name: Optional[str] = None, *, read_only: bool = False) -> Database:
        """
        Get a handle for a database.

        Args:
            name: Database name, defaults to the configured database
            read_only: Refuse collection create/drop through this handle
        """
        return Database(self, name or self.config.database, read_only=read_only)

    # =========================================================================
    # Database Administration
    # =========================================================================

    async def list_databases(self) -> List[str]:
        """List the databases the current user can access."""
        raw = await self.send("GET", f"{self.config.url}/_api/database/user")
        return decode_result(raw)

    async def create_database(self, name: str) -> Database:
        """Create a database and return a handle for it."""
        raw = await self.send("POST", f"{self.config.url}/_api/database", json.dumps({"name": name}))
        decode_result(raw)
        logger.debug("Created database %s", name)
        return self.db(name)

    async def drop_database(self, name: str) -> bool:
        """Drop a database."""
        raw = await self.send("DELETE", f"{self.config.url}/_api/database/{quote(name, safe='')}")
        return decode_result(raw)

    async def arango_version(self) -> Version:
        """Get the server version."""
        raw = await self.send("GET", f"{self.config.url}/_api/version")
        return decode_response(raw, Version.from_json)
