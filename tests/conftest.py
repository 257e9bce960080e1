import sys
from pathlib import Path

import pytest
import requests

# Ensure project root is importable (so `import records_cli` works without install)
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from lms_records.config import Settings  # noqa: E402


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        if self._payload is None:
            raise ValueError("no json body")
        return self._payload


class FakeSession:
    """
    Stand-in for requests.Session. Responses are matched by URL suffix, in order;
    a route whose queue runs dry keeps returning its last response.
    """

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, suffix, *responses):
        self.routes.setdefault(suffix, []).extend(responses)
        return self

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        for suffix, queue in self.routes.items():
            if url.endswith(suffix):
                item = queue.pop(0) if len(queue) > 1 else queue[0]
                if isinstance(item, Exception):
                    raise item
                return item
        raise requests.ConnectionError(f"no route for {url}")

    def post(self, url, **kwargs):
        return self.request("POST", url, **kwargs)

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)

    def calls_to(self, suffix):
        return [c for c in self.calls if c[1].endswith(suffix)]


def ok(**extra):
    return FakeResponse({"success": True, "error": "ok", **extra})


def fail(error, status_code=200):
    return FakeResponse({"success": False, "error": error}, status_code=status_code)


@pytest.fixture
def settings(tmp_path):
    return Settings(api_url="https://lms.test/api/v1", token_file=str(tmp_path / "refresh-token.txt"))


@pytest.fixture
def token_file(settings):
    Path(settings.token_file).write_text("refresh-0", encoding="utf-8")
    return Path(settings.token_file)


@pytest.fixture
def http():
    return FakeSession()


@pytest.fixture
def http_with_refresh(http, token_file):
    http.add("/auth/refresh", ok(accessToken="access-1", refreshToken="refresh-1"))
    return http
