"""
ArangoDB AQL Cursor Execution

Submits AQL queries to a database's cursor API and follows the server's
continuation ids page by page. All functions are stateless: each one issues
exactly one request per page and keeps nothing between calls.

@version 0.3.1
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, AsyncIterator, List, Optional

from .query import AqlQuery
from .response import Decoder, decode_cursor, parse_envelope
from .types import Cursor, InvalidCursorError, ServerError

if TYPE_CHECKING:
    from .database import Database

logger = logging.getLogger(__name__)

# ERROR_CURSOR_NOT_FOUND
CURSOR_NOT_FOUND = 1600


def _is_cursor_gone(e: ServerError) -> bool:
    return e.http_status == 404 or e.error_num == CURSOR_NOT_FOUND


def _require_id(cursor_id: Optional[str]) -> str:
    if not cursor_id:
        raise ValueError("A cursor id is required")
    return cursor_id


async def submit(
    db: "Database",
    query: AqlQuery,
    decoder: Optional[Decoder] = None,
) -> Cursor:
    """
    Create a cursor for ``query`` and return its first page.

    Args:
        db: Database the query runs in
        query: AQL query with bind variables and options
        decoder: Optional callable applied to every result item

    Returns:
        The first Cursor page
    """
    logger.debug("Submitting AQL query to %s: %s", db.name, query.query)
    raw = await db.send("POST", db.cursor_url(), json.dumps(query.to_json()))
    cursor = decode_cursor(raw, decoder)
    logger.debug(
        "Cursor created: %d items, has_more=%s, id=%s",
        len(cursor.result), cursor.has_more, cursor.id,
    )
    return cursor


async def advance(
    db: "Database",
    cursor_id: str,
    decoder: Optional[Decoder] = None,
) -> Cursor:
    """
    Fetch the page that follows ``cursor_id``.

    Raises:
        InvalidCursorError: The id is unknown or has expired on the server
    """
    cursor_id = _require_id(cursor_id)
    raw = await db.send("PUT", db.cursor_url(cursor_id))
    try:
        cursor = decode_cursor(raw, decoder)
    except ServerError as e:
        if _is_cursor_gone(e):
            raise InvalidCursorError(e.http_status, e.error_num, e.message) from e
        raise
    logger.debug(
        "Cursor %s advanced: %d items, has_more=%s",
        cursor_id, len(cursor.result), cursor.has_more,
    )
    return cursor


async def delete(db: "Database", cursor_id: str) -> None:
    """Release a cursor on the server before it is exhausted."""
    cursor_id = _require_id(cursor_id)
    raw = await db.send("DELETE", db.cursor_url(cursor_id))
    try:
        parse_envelope(raw)
    except ServerError as e:
        if _is_cursor_gone(e):
            raise InvalidCursorError(e.http_status, e.error_num, e.message) from e
        raise
    logger.debug("Cursor %s deleted", cursor_id)


async def fetch_all(
    db: "Database",
    query: AqlQuery,
    decoder: Optional[Decoder] = None,
) -> List[Any]:
    """
    Run ``query`` and collect every page into one list.

    The first page is always requested; each later page only if the page
    before it reported ``has_more``. Any failure, including cancellation,
    propagates and the pages collected so far are dropped.

    The whole result set is held in memory. Use ``iterate`` or ``submit`` and
    ``advance`` directly for result sets that do not fit.
    """
    cursor = await submit(db, query, decoder)
    results = list(cursor.result)

    while cursor.has_more:
        cursor = await advance(db, cursor.id, decoder)
        results.extend(cursor.result)

    logger.debug("AQL query finished with %d items", len(results))
    return results


async def iterate(
    db: "Database",
    query: AqlQuery,
    decoder: Optional[Decoder] = None,
) -> AsyncIterator[Any]:
    """
    Stream the items of ``query`` one page at a time.

    If the consumer stops before the last page, the server-side cursor is
    deleted instead of being left to expire.

    Yields:
        Result items in server order
    """
    cursor = await submit(db, query, decoder)
    # Id of a cursor the server still holds open while items are handed out.
    open_id = None
    try:
        while True:
            open_id = cursor.id if cursor.has_more else None
            for item in cursor.result:
                yield item
            if open_id is None:
                return
            next_id, open_id = open_id, None
            cursor = await advance(db, next_id, decoder)
    finally:
        if open_id is not None:
            try:
                await delete(db, open_id)
            except InvalidCursorError:
                logger.debug("Cursor %s already gone on the server", open_id)
