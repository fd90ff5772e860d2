"""
Pytest配置和共享fixtures
"""
import json
import threading
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import httpx
import pytest

from tweetstream.utils.config import DEFAULT_STREAM_URL, DEFAULT_TOKEN_URL

STREAM_PATH = httpx.URL(DEFAULT_STREAM_URL).path
TOKEN_PATH = httpx.URL(DEFAULT_TOKEN_URL).path


# ==================== Pytest Markers ====================

def pytest_configure(config):
    """注册自定义markers"""
    config.addinivalue_line("markers", "unit: fast tests with no network access")


# ==================== 假HTTP层 ====================


class TrackingStream(httpx.SyncByteStream):
    """可观测是否被关闭的响应体"""

    def __init__(self, chunks: Iterable[bytes]):
        self._chunks = list(chunks)
        self.closed = False

    def __iter__(self):
        for chunk in self._chunks:
            if isinstance(chunk, Exception):
                raise chunk
            yield chunk

    def close(self) -> None:
        self.closed = True


class StubAPI:
    """按 (method, path) 路由的假服务端，记录所有请求"""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.routes: Dict[Tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.streams: List[TrackingStream] = []
        self._lock = threading.Lock()

        self.token(200, {"token_type": "bearer", "access_token": "XYZ"})
        self.delete(200)

    # ---- 路由配置 ----

    def route(self, method: str, path: str, handler) -> None:
        self.routes[(method, path)] = handler

    def token(self, status: int = 200, body=None, raw: Optional[bytes] = None) -> None:
        content = raw if raw is not None else json.dumps(body or {}).encode()
        self.route(
            "POST", TOKEN_PATH, lambda request: httpx.Response(status, content=content)
        )

    def stream(self, chunks: Iterable, status: int = 200) -> None:
        chunks = list(chunks)

        def handler(request):
            body = TrackingStream(chunks)
            self.streams.append(body)
            return httpx.Response(status, stream=body)

        self.route("GET", STREAM_PATH, handler)

    def delete(self, status: int = 200) -> None:
        def handler(request):
            body = TrackingStream([b"{}"])
            self.streams.append(body)
            return httpx.Response(status, stream=body)

        self.route("DELETE", STREAM_PATH, handler)

    # ---- 查询 ----

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    @property
    def token_calls(self) -> List[httpx.Request]:
        return self.calls("POST", TOKEN_PATH)

    @property
    def stream_calls(self) -> List[httpx.Request]:
        return self.calls("GET", STREAM_PATH)

    @property
    def delete_calls(self) -> List[httpx.Request]:
        return self.calls("DELETE", STREAM_PATH)

    def handle(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404)
        return handler(request)


@pytest.fixture
def api() -> StubAPI:
    """假服务端"""
    return StubAPI()


@pytest.fixture
def http(api):
    """指向假服务端的同步HTTP客户端"""
    client = httpx.Client(transport=httpx.MockTransport(api.handle))
    yield client
    client.close()


def _ndjson(*objects) -> bytes:
    return b"".join(json.dumps(obj).encode() + b"\r\n" for obj in objects)


@pytest.fixture
def ndjson():
    """换行分隔的JSON编码函数"""
    return _ndjson


@pytest.fixture
def tweet_payload():
    """单条流记录"""
    return {
        "data": {
            "id": "1600000000000000001",
            "text": "hello stream",
            "author_id": "42",
            "created_at": "2024-01-01T00:00:00.000Z",
            "lang": "en",
            "edit_history_tweet_ids": ["1600000000000000001"],
        },
        "includes": {"users": [{"id": "42", "username": "alice", "name": "Alice"}]},
    }
