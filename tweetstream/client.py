"""
流客户端

持有配置与HTTP传输，一次性获取应用凭证，并按需创建独立的流会话。
"""
from threading import Lock
from typing import Optional, Type

import httpx
from pydantic import BaseModel

from tweetstream.auth.credentials import CredentialProvider
from tweetstream.core.models import Credential, SessionCookie
from tweetstream.core.records import StreamRecord
from tweetstream.stream.session import StreamSession
from tweetstream.utils.config import DEFAULT_STREAM_URL, DEFAULT_TOKEN_URL, Settings
from tweetstream.utils.exceptions import ConfigurationError
from tweetstream.utils.logger import get_logger

logger = get_logger(__name__)


class Client:
    """流API客户端"""

    def __init__(
        self,
        endpoint_url: str = DEFAULT_STREAM_URL,
        consumer_key: str = "",
        consumer_secret: str = "",
        *,
        token_url: str = DEFAULT_TOKEN_URL,
        http: Optional[httpx.Client] = None,
        timeout: float = 10.0,
        read_timeout: float = 30.0,
        record_type: Optional[Type[BaseModel]] = StreamRecord,
        lazy: bool = False,
    ):
        """
        初始化客户端

        默认在构造时完成凭证交换，失败则构造失败；lazy=True 时推迟到首次 stream()。

        Args:
            endpoint_url: 流端点
            consumer_key: 应用 consumer key
            consumer_secret: 应用 consumer secret
            token_url: 凭证交换端点
            http: 可选的外部HTTP客户端（调用方负责关闭）
            timeout: 连接/写入超时（秒）
            read_timeout: 流读取超时（秒），应大于服务端 keep-alive 间隔
            record_type: 记录解码目标；None 返回原始JSON对象
            lazy: 是否延迟获取凭证

        Raises:
            AuthError: 凭证交换失败（lazy=False）
            TransportError: 网络层错误（lazy=False）
        """
        self.endpoint_url = endpoint_url
        self.token_url = token_url
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.record_type = record_type

        self._owns_http = http is None
        self._http = http or httpx.Client(
            timeout=httpx.Timeout(timeout, read=read_timeout),
            follow_redirects=True,
        )
        self._provider = CredentialProvider(self._http, token_url=token_url)

        self._credential: Optional[Credential] = None
        self._credential_lock = Lock()

        if not lazy:
            try:
                self._get_credential()
            except Exception:
                # 构造失败时释放自建的连接池
                if self._owns_http:
                    self._http.close()
                raise

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs) -> "Client":
        """
        从配置创建客户端

        Args:
            settings: 配置实例，默认从环境变量和 .env 加载
            **kwargs: 透传给构造函数的其他参数

        Raises:
            ConfigurationError: 缺少 consumer key/secret
        """
        settings = settings or Settings()
        if not settings.consumer_key or not settings.consumer_secret:
            raise ConfigurationError(
                "TWEETSTREAM_CONSUMER_KEY and TWEETSTREAM_CONSUMER_SECRET are required"
            )
        return cls(
            settings.stream_url,
            settings.consumer_key,
            settings.consumer_secret,
            token_url=settings.token_url,
            timeout=settings.request_timeout,
            read_timeout=settings.stream_read_timeout,
            **kwargs,
        )

    @property
    def http(self) -> httpx.Client:
        return self._http

    @property
    def credential(self) -> Credential:
        """应用凭证（首次访问时获取，之后不再变化）"""
        return self._get_credential()

    def stream(self, cookie: Optional[SessionCookie] = None) -> StreamSession:
        """
        创建新的流会话

        每次调用返回一个独立会话；并发调用只会触发一次凭证交换。

        Args:
            cookie: 可选的会话Cookie，为空时在会话首次打开时生成

        Returns:
            处于 UNOPENED 状态的 StreamSession
        """
        credential = self._get_credential()
        return StreamSession(
            self._http,
            credential.access_token,
            endpoint_url=self.endpoint_url,
            cookie=cookie,
            record_type=self.record_type,
        )

    def close(self) -> None:
        """关闭客户端持有的HTTP传输"""
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} endpoint_url={self.endpoint_url}>"

    def _get_credential(self) -> Credential:
        # 单次初始化：锁内再次检查
        if self._credential is not None:
            return self._credential
        with self._credential_lock:
            if self._credential is None:
                credential = self._provider.acquire(
                    self.consumer_key, self.consumer_secret
                )
                logger.info(
                    "credential_acquired",
                    token_type=credential.token_type,
                    token_url=self.token_url,
                )
                self._credential = credential
        return self._credential
