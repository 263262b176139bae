"""
ArangoDB Client Type Definitions

@version 0.3.1
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Iterator, List, Optional, TypeVar

T = TypeVar("T")


class ArangoError(Exception):
    """Base exception for ArangoDB client errors."""
    pass


class ConnectionError(ArangoError):
    """Transport-level failures: network errors, timeouts, closed client."""
    pass


class MalformedResponseError(ArangoError):
    """Response body is not a well-formed server envelope."""
    pass


class SchemaMismatchError(ArangoError):
    """Success envelope whose payload does not fit the expected type."""
    pass


class ReadOnlyError(ArangoError):
    """Mutating call issued through a read-only database handle."""
    pass


class ServerError(ArangoError):
    """
    The server answered with ``"error": true``.

    Attributes:
        http_status: Value of the envelope's ``code`` field
        error_num: ArangoDB error number (``errorNum``)
        message: Server supplied ``errorMessage``
    """

    def __init__(self, http_status: int, error_num: int, message: str):
        self.http_status = http_status
        self.error_num = error_num
        self.message = message
        super().__init__(f"[{http_status}/{error_num}] {message}")


class AuthenticationError(ServerError):
    """Server rejected the credentials (401/403)."""
    pass


class InvalidCursorError(ServerError):
    """Cursor id is unknown to the server or has expired."""
    pass


@dataclass(frozen=True)
class RawResponse:
    """Status and body text returned by the transport."""
    status: int
    body: str


@dataclass(frozen=True)
class Cursor(Generic[T]):
    """
    One page of an AQL result set.

    ``id`` is set whenever ``has_more`` is true and is redeemed for the next
    page. ``count`` is only reported on the first page, and only when the
    query asked for it.
    """
    result: List[T]
    has_more: bool
    id: Optional[str] = None
    count: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    cached: bool = False

    def __iter__(self) -> Iterator[T]:
        return iter(self.result)

    def __len__(self) -> int:
        return len(self.result)

    @property
    def warnings(self) -> List[Dict[str, Any]]:
        return self.extra.get("warnings", [])

    @property
    def stats(self) -> Dict[str, Any]:
        return self.extra.get("stats", {})


@dataclass
class Version:
    """Server version information."""
    server: str
    version: str
    license: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Version":
        return cls(
            server=data["server"],
            version=data["version"],
            license=data.get("license"),
            details=data.get("details"),
        )


@dataclass
class DatabaseInfo:
    """Information about the current database."""
    name: str
    id: str
    path: Optional[str] = None
    is_system: bool = False

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "DatabaseInfo":
        return cls(
            name=data["name"],
            id=data["id"],
            path=data.get("path"),
            is_system=data.get("isSystem", False),
        )


@dataclass
class CollectionInfo:
    """Information about a collection."""
    id: str
    name: str
    status: int = 0
    type: int = 2
    is_system: bool = False
    globally_unique_id: Optional[str] = None

    @property
    def is_edge(self) -> bool:
        return self.type == 3

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "CollectionInfo":
        return cls(
            id=data["id"],
            name=data["name"],
            status=data.get("status", 0),
            type=data.get("type", 2),
            is_system=data.get("isSystem", False),
            globally_unique_id=data.get("globallyUniqueId"),
        )
