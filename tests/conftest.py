import json
from typing import Any, Dict, List, Optional, Tuple

import pytest
import requests

from sqlgen.api.client import ApiClient, TokenStore
from sqlgen.config import Settings

BASE_URL = "http://api.test/api"


def make_response(status: int = 200, body: Any = None, reason: Optional[str] = None) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp.reason = reason if reason is not None else ("OK" if status < 400 else "Error")
    resp.encoding = "utf-8"
    if body is None:
        resp._content = b""
    elif isinstance(body, (dict, list)):
        resp._content = json.dumps(body).encode("utf-8")
        resp.headers["Content-Type"] = "application/json"
    else:
        resp._content = str(body).encode("utf-8")
    return resp


class FakeSession:
    """Подменяет requests.Session: отдаёт заранее заданные ответы по (method, path)."""

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Any] = {}
        self.calls: List[Dict[str, Any]] = []

    def add(self, method: str, path: str, status: int = 200, body: Any = None, reason: Optional[str] = None):
        self.routes[(method, BASE_URL + path)] = make_response(status, body, reason)

    def fail(self, method: str, path: str, exc: Exception):
        self.routes[(method, BASE_URL + path)] = exc

    def request(self, method, url, headers=None, timeout=None, **kwargs):
        self.calls.append({"method": method, "url": url, "headers": headers, "timeout": timeout, **kwargs})
        route = self.routes.get((method, url))
        if route is None:
            return make_response(404, {"message": f"no route for {method} {url}"}, "Not Found")
        if isinstance(route, Exception):
            raise route
        return route

    @property
    def last(self) -> Dict[str, Any]:
        return self.calls[-1]


@pytest.fixture
def settings():
    return Settings(api_base_url=BASE_URL, request_timeout=5.0)


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def api(settings, session):
    return ApiClient(settings, token_store=TokenStore(settings.auth_token_key), session=session)
