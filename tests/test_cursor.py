"""
Tests for AQL cursor execution and pagination.

These tests verify:
- Request shape for cursor creation, continuation and deletion
- Page chaining gated on the previous page's hasMore flag
- All-or-nothing aggregation on mid-stream failures
- Error classification for expired cursors
"""

import asyncio
import json

import pytest

from arango_db import (
    AqlQuery,
    ConnectionError,
    InvalidCursorError,
    MalformedResponseError,
    SchemaMismatchError,
    ServerError,
    as_type,
)
from arango_db import cursor as aql

from .helpers import failure, page

CURSOR_URL = "http://localhost:8529/_db/test_db/_api/cursor"


@pytest.mark.asyncio
async def test_submit_posts_query(client, db):
    client.queue(page([{"a": 1}], count=1))
    query = AqlQuery("FOR u IN c FILTER u.a == @a RETURN u").bind_var("a", 1).with_batch_size(10)

    cursor = await aql.submit(db, query)

    method, url, body = client.calls[0]
    assert method == "POST"
    assert url == CURSOR_URL
    assert json.loads(body) == {
        "query": "FOR u IN c FILTER u.a == @a RETURN u",
        "bindVars": {"a": 1},
        "batchSize": 10,
    }
    assert cursor.result == [{"a": 1}]
    assert cursor.count == 1


@pytest.mark.asyncio
async def test_advance_puts_without_body(client, db):
    client.queue(page([2, 3]))

    cursor = await aql.advance(db, "123", as_type(int))

    assert client.calls == [("PUT", f"{CURSOR_URL}/123", None)]
    assert cursor.result == [2, 3]
    assert cursor.has_more is False


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [failure(404, 1600, "cursor not found"), failure(400, 1600, "cursor not found")],
)
async def test_advance_expired_cursor(client, db, response):
    client.queue(response)

    with pytest.raises(InvalidCursorError) as exc_info:
        await aql.advance(db, "123", as_type(int))

    assert isinstance(exc_info.value, ServerError)
    assert exc_info.value.error_num == 1600


@pytest.mark.asyncio
async def test_advance_other_server_error_unchanged(client, db):
    client.queue(failure(500, 4, "out of memory"))

    with pytest.raises(ServerError) as exc_info:
        await aql.advance(db, "123")

    assert not isinstance(exc_info.value, InvalidCursorError)


@pytest.mark.asyncio
async def test_advance_requires_id(client, db):
    with pytest.raises(ValueError):
        await aql.advance(db, "")
    assert client.calls == []


@pytest.mark.asyncio
async def test_delete_cursor(client, db):
    client.queue(page([], id="123", code=202))

    await aql.delete(db, "123")

    assert client.calls == [("DELETE", f"{CURSOR_URL}/123", None)]


@pytest.mark.asyncio
async def test_delete_unknown_cursor(client, db):
    client.queue(failure(404, 1600, "cursor not found"))

    with pytest.raises(InvalidCursorError):
        await aql.delete(db, "123")


@pytest.mark.asyncio
async def test_fetch_all_concatenates_pages(client, db):
    client.queue(
        page([{"a": 1}], has_more=True, id="123"),
        page([{"a": 2}, {"a": 3}]),
    )

    rows = await aql.fetch_all(db, AqlQuery("FOR u IN c LIMIT 3 RETURN u"))

    assert rows == [{"a": 1}, {"a": 2}, {"a": 3}]
    assert [c[0] for c in client.calls] == ["POST", "PUT"]
    assert client.calls[1][1] == f"{CURSOR_URL}/123"


@pytest.mark.asyncio
@pytest.mark.parametrize("pages", [2, 3, 5])
async def test_fetch_all_issues_one_call_per_page(client, db, pages):
    for n in range(pages):
        last = n == pages - 1
        client.queue(page([n * 10, n * 10 + 1], has_more=not last, id=None if last else "42"))

    rows = await aql.fetch_all(db, AqlQuery("FOR i IN 0..100 RETURN i"), as_type(int))

    assert rows == [v for n in range(pages) for v in (n * 10, n * 10 + 1)]
    assert len(client.calls) == pages
    assert client.calls[0][0] == "POST"
    assert all(method == "PUT" for method, _, _ in client.calls[1:])


@pytest.mark.asyncio
async def test_fetch_all_single_page(client, db):
    client.queue(page([1, 2, 3]))

    rows = await aql.fetch_all(db, AqlQuery("RETURN 1"))

    assert rows == [1, 2, 3]
    assert len(client.calls) == 1


@pytest.mark.asyncio
async def test_fetch_all_empty_result(client, db):
    client.queue(page([]))

    assert await aql.fetch_all(db, AqlQuery("FOR u IN empty RETURN u")) == []
    assert len(client.calls) == 1


@pytest.mark.asyncio
async def test_fetch_all_first_page_failure(client, db):
    client.queue(failure(400, 1501, "syntax error"))

    with pytest.raises(ServerError):
        await aql.fetch_all(db, AqlQuery("FOR u IN"))


@pytest.mark.asyncio
async def test_fetch_all_mid_stream_failure_returns_nothing(client, db):
    client.queue(
        page([1], has_more=True, id="7"),
        page([2], has_more=True, id="7"),
        failure(404, 1600, "cursor not found"),
        page([4], has_more=True, id="7"),
        page([5]),
    )

    with pytest.raises(InvalidCursorError):
        await aql.fetch_all(db, AqlQuery("FOR i IN 1..5 RETURN i"))

    assert len(client.calls) == 3


@pytest.mark.asyncio
async def test_fetch_all_transport_failure(client, db):
    client.queue(page([1], has_more=True, id="7"), ConnectionError("connection reset"))

    with pytest.raises(ConnectionError):
        await aql.fetch_all(db, AqlQuery("FOR i IN 1..2 RETURN i"))


@pytest.mark.asyncio
async def test_fetch_all_cancellation_propagates(client, db):
    client.queue(page([1], has_more=True, id="7"), asyncio.CancelledError())

    with pytest.raises(asyncio.CancelledError):
        await aql.fetch_all(db, AqlQuery("FOR i IN 1..2 RETURN i"))


@pytest.mark.asyncio
async def test_fetch_all_schema_mismatch(client, db):
    client.queue(page([{"a": 1}]))

    with pytest.raises(SchemaMismatchError):
        await aql.fetch_all(db, AqlQuery("FOR u IN c RETURN u"), as_type(int))


@pytest.mark.asyncio
async def test_fetch_all_rejects_has_more_without_id(client, db):
    client.queue(page([1], has_more=True))

    with pytest.raises(MalformedResponseError):
        await aql.fetch_all(db, AqlQuery("FOR i IN 1..2 RETURN i"))

    assert len(client.calls) == 1


@pytest.mark.asyncio
async def test_iterate_streams_in_order(client, db):
    client.queue(
        page(["a", "b"], has_more=True, id="9"),
        page(["c"], has_more=True, id="9"),
        page(["d"]),
    )

    seen = []
    async for item in aql.iterate(db, AqlQuery("FOR x IN xs RETURN x"), as_type(str)):
        seen.append(item)
        # Pages are fetched lazily.
        if item == "a":
            assert len(client.calls) == 1

    assert seen == ["a", "b", "c", "d"]
    assert len(client.calls) == 3


@pytest.mark.asyncio
async def test_query_is_resubmittable(client, db):
    query = AqlQuery("RETURN @x").bind_var("x", 5)
    client.queue(page([5]), page([5]))

    assert await aql.fetch_all(db, query) == [5]
    assert await aql.fetch_all(db, query) == [5]
    assert client.calls[0][2] == client.calls[1][2]


@pytest.mark.asyncio
async def test_fetch_all_rejects_empty_cursor_id(client, db):
    client.queue(page([1], has_more=True, id=""))

    with pytest.raises(MalformedResponseError):
        await aql.fetch_all(db, AqlQuery("FOR i IN 1..2 RETURN i"))

    assert len(client.calls) == 1


@pytest.mark.asyncio
async def test_iterate_closed_early_deletes_cursor(client, db):
    client.queue(page([1, 2], has_more=True, id="9"), page([], id="9", code=202))

    stream = aql.iterate(db, AqlQuery("FOR i IN 1..10 RETURN i"))
    assert await stream.__anext__() == 1
    await stream.aclose()

    assert [c[:2] for c in client.calls] == [("POST", CURSOR_URL), ("DELETE", f"{CURSOR_URL}/9")]


@pytest.mark.asyncio
async def test_iterate_consumer_error_deletes_cursor(client, db):
    client.queue(page([1], has_more=True, id="9"), page([], id="9", code=202))

    stream = aql.iterate(db, AqlQuery("FOR i IN 1..10 RETURN i"))
    with pytest.raises(RuntimeError):
        try:
            async for item in stream:
                raise RuntimeError("consumer failed")
        finally:
            await stream.aclose()

    assert client.calls[-1][:2] == ("DELETE", f"{CURSOR_URL}/9")


@pytest.mark.asyncio
async def test_iterate_closed_early_ignores_expired_cursor(client, db):
    client.queue(page([1], has_more=True, id="9"), failure(404, 1600, "cursor not found"))

    stream = aql.iterate(db, AqlQuery("FOR i IN 1..10 RETURN i"))
    assert await stream.__anext__() == 1
    await stream.aclose()

    assert client.calls[-1][0] == "DELETE"


@pytest.mark.asyncio
async def test_iterate_exhausted_does_not_delete(client, db):
    client.queue(page([1], has_more=True, id="9"), page([2]))

    items = [item async for item in aql.iterate(db, AqlQuery("FOR i IN 1..2 RETURN i"))]

    assert items == [1, 2]
    assert [c[0] for c in client.calls] == ["POST", "PUT"]


@pytest.mark.asyncio
async def test_iterate_failed_advance_does_not_delete(client, db):
    client.queue(page([1], has_more=True, id="9"), failure(500, 4, "out of memory"))

    with pytest.raises(ServerError):
        async for _ in aql.iterate(db, AqlQuery("FOR i IN 1..2 RETURN i")):
            pass

    assert [c[0] for c in client.calls] == ["POST", "PUT"]
