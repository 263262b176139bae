"""
ArangoDB AQL Query

Immutable AQL query value with a fluent builder. The query text is opaque to
the client; it is sent as-is together with its bind variables and options.

@version 0.3.1
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class AqlQuery:
    """
    AQL query text, bind variables and cursor options.

    Every builder method returns a new query, so one instance can be
    submitted any number of times.

    Example:
        aql = AqlQuery("FOR u IN users FILTER u.age >= @age RETURN u") \\
            .bind_var("age", 18) \\
            .with_batch_size(100) \\
            .with_count(True)
        users = await db.aql_query(aql)
    """

    query: str
    bind_vars: Dict[str, Any] = field(default_factory=dict)
    batch_size: Optional[int] = None
    count: Optional[bool] = None
    cache: Optional[bool] = None
    ttl: Optional[int] = None
    memory_limit: Optional[int] = None
    options: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.query, str) or not self.query.strip():
            raise ValueError("AQL query text must be a non-empty string")
        if self.batch_size is not None and self.batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        if self.ttl is not None and self.ttl < 0:
            raise ValueError(f"ttl must not be negative, got {self.ttl}")
        if self.memory_limit is not None and self.memory_limit < 0:
            raise ValueError(f"memory_limit must not be negative, got {self.memory_limit}")
        # Detach from the caller's mappings.
        object.__setattr__(self, "bind_vars", dict(self.bind_vars))
        object.__setattr__(self, "options", dict(self.options))

    def bind_var(self, name: str, value: Any) -> "AqlQuery":
        """Bind ``@name`` to ``value``; rebinding a name replaces the old value."""
        return replace(self, bind_vars={**self.bind_vars, name: value})

    def bind_vars_from(self, values: Mapping[str, Any]) -> "AqlQuery":
        """Bind every entry of ``values``."""
        return replace(self, bind_vars={**self.bind_vars, **values})

    def with_batch_size(self, size: int) -> "AqlQuery":
        """Maximum number of items per page."""
        return replace(self, batch_size=size)

    def with_count(self, count: bool = True) -> "AqlQuery":
        """Ask the server for the total result count on the first page."""
        return replace(self, count=count)

    def with_cache(self, cache: bool = True) -> "AqlQuery":
        """Allow the query result cache."""
        return replace(self, cache=cache)

    def with_ttl(self, seconds: int) -> "AqlQuery":
        """Server-side cursor lifetime in seconds."""
        return replace(self, ttl=seconds)

    def with_memory_limit(self, limit: int) -> "AqlQuery":
        """Maximum memory in bytes the query may use."""
        return replace(self, memory_limit=limit)

    def with_option(self, key: str, value: Any) -> "AqlQuery":
        """Set an extra cursor option, e.g. ``fullCount`` or ``stream``."""
        return replace(self, options={**self.options, key: value})

    def to_json(self) -> Dict[str, Any]:
        """Build the cursor creation request body."""
        body: Dict[str, Any] = {
            "query": self.query,
            "bindVars": dict(self.bind_vars),
        }

        if self.batch_size is not None:
            body["batchSize"] = self.batch_size

        if self.count is not None:
            body["count"] = self.count

        if self.cache is not None:
            body["cache"] = self.cache

        if self.ttl is not None:
            body["ttl"] = self.ttl

        if self.memory_limit is not None:
            body["memoryLimit"] = self.memory_limit

        if self.options:
            body["options"] = dict(self.options)

        return body

    def __repr__(self) -> str:
        return f"AqlQuery({self.query!r}, bind_vars={self.bind_vars})"
