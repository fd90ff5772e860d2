"""
Client 单元测试
"""
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import httpx
import pytest

from tweetstream.client import Client
from tweetstream.core.models import Credential, FilterSpec, SessionCookie, SessionState
from tweetstream.stream.session import StreamSession
from tweetstream.utils.config import DEFAULT_STREAM_URL, DEFAULT_TOKEN_URL, Settings
from tweetstream.utils.exceptions import AuthError, ConfigurationError


@pytest.mark.unit
class TestClient:
    """Client测试"""

    @pytest.fixture
    def client(self, http):
        return Client(DEFAULT_STREAM_URL, "key", "secret", http=http)

    def test_credential_acquired_on_construction(self, client, api):
        """测试构造时完成凭证交换"""
        assert len(api.token_calls) == 1
        assert client.credential == Credential(token_type="bearer", access_token="XYZ")

    def test_failed_exchange_aborts_construction(self, http, api):
        """测试凭证交换失败时构造失败"""
        api.token(401, {"errors": []})

        with pytest.raises(AuthError):
            Client(DEFAULT_STREAM_URL, "key", "secret", http=http)

        assert not http.is_closed

    def test_failed_exchange_closes_owned_http(self, api, monkeypatch):
        """测试凭证交换失败时关闭自建的HTTP客户端"""
        api.token(401, {"errors": []})
        created = []
        real_client = httpx.Client

        class TrackingClient(real_client):
            def __init__(self, **kwargs):
                kwargs["transport"] = httpx.MockTransport(api.handle)
                super().__init__(**kwargs)
                created.append(self)

        monkeypatch.setattr(httpx, "Client", TrackingClient)

        with pytest.raises(AuthError):
            Client(DEFAULT_STREAM_URL, "key", "secret")

        assert len(created) == 1
        assert created[0].is_closed
        assert len(api.token_calls) == 1

    def test_stream_reuses_credential(self, client, api):
        """测试多个会话共享同一凭证"""
        first = client.stream()
        second = client.stream()

        assert isinstance(first, StreamSession)
        assert first is not second
        assert first.bearer_token == second.bearer_token == "XYZ"
        assert first.state == SessionState.UNOPENED
        assert len(api.token_calls) == 1

    def test_lazy_acquisition(self, http, api):
        """测试 lazy=True 时延迟到首次 stream()"""
        client = Client(DEFAULT_STREAM_URL, "key", "secret", http=http, lazy=True)
        assert api.token_calls == []

        client.stream()
        client.stream()

        assert len(api.token_calls) == 1

    def test_concurrent_sessions_exchange_once(self, http, api):
        """测试并发创建会话只触发一次凭证交换"""
        barrier = threading.Barrier(8)

        def slow_token(request):
            time.sleep(0.05)
            return httpx.Response(200, json={"token_type": "bearer", "access_token": "XYZ"})

        api.route("POST", httpx.URL(DEFAULT_TOKEN_URL).path, slow_token)
        client = Client(DEFAULT_STREAM_URL, "key", "secret", http=http, lazy=True)

        def create():
            barrier.wait()
            return client.stream()

        with ThreadPoolExecutor(max_workers=8) as pool:
            sessions = list(pool.map(lambda _: create(), range(8)))

        assert len(sessions) == 8
        assert len({id(s) for s in sessions}) == 8
        assert len(api.token_calls) == 1

    def test_stream_with_cookie(self, client, api):
        """测试传入Cookie"""
        api.stream([b"\r\n"])
        cookie = SessionCookie(name="personalization_id", value="v1_3AFIXED00")

        session = client.stream(cookie=cookie)
        session.filter(FilterSpec(tweet_fields=["lang"]))

        assert api.stream_calls[0].headers["Cookie"] == cookie.header_value

    def test_end_to_end(self, client, api, ndjson, tweet_payload):
        """测试完整流程：凭证 -> 打开 -> 解码 -> 关闭"""
        api.stream([b"\r\n", ndjson(tweet_payload)])

        with client.stream() as session:
            session.filter(FilterSpec(expansions=["author_id"], user_fields=["username"]))
            records = list(session.records())

        assert [r.data.id for r in records] == ["1600000000000000001"]
        assert session.state == SessionState.CLOSED
        assert len(api.delete_calls) == 1

    def test_raw_record_type(self, http, api, ndjson, tweet_payload):
        """测试 record_type=None 时返回原始JSON"""
        api.stream([ndjson(tweet_payload)])
        client = Client(DEFAULT_STREAM_URL, "key", "secret", http=http, record_type=None)

        session = client.stream()
        session.filter()

        assert list(session.records()) == [tweet_payload]

    def test_close_does_not_close_external_http(self, client, http):
        """测试外部传入的HTTP客户端由调用方关闭"""
        client.close()

        assert not http.is_closed

    def test_close_owned_http(self, api):
        """测试客户端自建的HTTP传输会被关闭"""
        client = Client(DEFAULT_STREAM_URL, "key", "secret", lazy=True)

        with client:
            pass

        assert client.http.is_closed


@pytest.mark.unit
class TestClientFromSettings:
    """Client.from_settings测试"""

    def test_missing_credentials(self, monkeypatch):
        """测试缺少 consumer key/secret"""
        monkeypatch.delenv("TWEETSTREAM_CONSUMER_KEY", raising=False)
        monkeypatch.delenv("TWEETSTREAM_CONSUMER_SECRET", raising=False)

        with pytest.raises(ConfigurationError):
            Client.from_settings(Settings(_env_file=None))

    def test_from_env(self, monkeypatch, http, api):
        """测试从环境变量读取配置"""
        monkeypatch.setenv("TWEETSTREAM_CONSUMER_KEY", "env-key")
        monkeypatch.setenv("TWEETSTREAM_CONSUMER_SECRET", "env-secret")
        monkeypatch.setenv("TWEETSTREAM_STREAM_URL", DEFAULT_STREAM_URL)

        client = Client.from_settings(Settings(_env_file=None), http=http)

        assert client.consumer_key == "env-key"
        assert client.endpoint_url == DEFAULT_STREAM_URL
        assert len(api.token_calls) == 1
