import json
from typing import Any, Dict, List, Optional, Tuple, Union

from arango_db import RawResponse


BASE_URL = "http://localhost:8529"


def envelope(status: int = 200, **fields: Any) -> RawResponse:
    """Success envelope with the given fields."""
    return RawResponse(status=status, body=json.dumps({"error": False, "code": status, **fields}))


def page(result: List[Any], has_more: bool = False, id: Optional[str] = None, **fields: Any) -> RawResponse:
    """A cursor page as the server sends it."""
    data: Dict[str, Any] = {"result": result, "hasMore": has_more}
    if id is not None:
        data["id"] = id
    data.update(fields)
    return envelope(**data)


def failure(code: int, error_num: int, message: str) -> RawResponse:
    body = {"error": True, "code": code, "errorNum": error_num, "errorMessage": message}
    return RawResponse(status=code, body=json.dumps(body))


class FakeClient:
    """Stands in for ArangoClient: replays scripted responses and records requests."""

    def __init__(self, responses: Optional[List[Union[RawResponse, BaseException]]] = None):
        self.url = BASE_URL
        self.closed = False
        self.responses = list(responses or [])
        self.calls: List[Tuple[str, str, Optional[str]]] = []

    def queue(self, *responses: Union[RawResponse, BaseException]) -> None:
        self.responses.extend(responses)

    async def send(self, method: str, url: str, body: Optional[str] = None) -> RawResponse:
        self.calls.append((method, url, body))
        if not self.responses:
            raise AssertionError(f"Unexpected request: {method} {url}")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

