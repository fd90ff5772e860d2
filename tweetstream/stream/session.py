"""
流会话

一个会话拥有一条到流端点的认证连接：打开（应用过滤参数）、增量读取、关闭。
状态机：UNOPENED -> OPEN -> CLOSED（终态）。
"""
from typing import Any, Dict, Iterator, Optional, Type

import httpx
from pydantic import BaseModel

from tweetstream.core.models import (
    DecodeResult,
    FilterSpec,
    SessionConfig,
    SessionCookie,
    SessionState,
)
from tweetstream.core.records import StreamRecord
from tweetstream.stream.decoder import RecordDecoder
from tweetstream.stream.filters import FilterBuilder
from tweetstream.utils.config import DEFAULT_STREAM_URL
from tweetstream.utils.exceptions import (
    AuthError,
    EndOfStream,
    HTTPStatusError,
    SessionStateError,
    TransportError,
)
from tweetstream.utils.logger import get_logger

logger = get_logger(__name__)


class StreamSession:
    """单条流连接的生命周期管理"""

    def __init__(
        self,
        http: httpx.Client,
        bearer_token: str,
        endpoint_url: str = DEFAULT_STREAM_URL,
        cookie: Optional[SessionCookie] = None,
        record_type: Optional[Type[BaseModel]] = StreamRecord,
    ):
        """
        初始化流会话

        Args:
            http: 同步HTTP客户端（由 Client 持有）
            bearer_token: 访问令牌（不含 'Bearer ' 前缀）
            endpoint_url: 流端点（不含查询参数）
            cookie: 可选的会话Cookie；为空时在首次打开时生成
            record_type: 记录解码目标
        """
        self.http = http
        self.bearer_token = bearer_token
        self.endpoint_url = endpoint_url.rstrip("?")
        self.record_type = record_type
        self._cookie = cookie
        self._state = SessionState.UNOPENED
        self._config: Optional[SessionConfig] = None
        self._response: Optional[httpx.Response] = None
        self._decoder: Optional[RecordDecoder] = None

    # ==================== 属性 ====================

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state == SessionState.OPEN

    @property
    def cookie(self) -> Optional[SessionCookie]:
        """会话Cookie，分配后保持不变"""
        return self._cookie

    @property
    def config(self) -> Optional[SessionConfig]:
        """最近一次打开时构建的请求配置"""
        return self._config

    # ==================== 公共API ====================

    def filter(self, spec: Optional[FilterSpec] = None) -> None:
        """
        按过滤参数打开流

        UNOPENED -> OPEN；会话已打开时先释放当前连接再以新参数重新打开，Cookie 不变。
        重新打开的请求失败时会话处于 UNOPENED（旧连接已释放），可再次调用 filter()。
        若会话尚无Cookie，本次转换会生成一个并在此后所有请求中使用。
        响应体不在此处读取，由 next()/records() 增量解码。

        Args:
            spec: 过滤参数，None 等价于空过滤

        Raises:
            SessionStateError: 会话已关闭
            AuthError: bearer token 为空（不会发起网络请求）
            HTTPStatusError: 状态码非200
            TransportError: 网络层错误
        """
        self._require_not_closed("filter")
        self._require_token()

        if self._state == SessionState.OPEN:
            # 旧连接释放后回到 UNOPENED，新请求失败时可直接重试
            self._release_handle()
            self._config = None
            self._state = SessionState.UNOPENED

        query = FilterBuilder.build(spec or FilterSpec())
        url = f"{self.endpoint_url}?{query}" if query else self.endpoint_url
        config = SessionConfig(
            endpoint_url=url,
            authorization=self._authorization(),
            cookie=self._ensure_cookie(),
        )

        request = self.http.build_request("GET", config.endpoint_url, headers=config.headers)
        try:
            response = self.http.send(request, stream=True)
        except httpx.TransportError as e:
            logger.error("stream_open_failed", url=config.endpoint_url, error=str(e))
            raise TransportError(f"Failed to open stream: {e}") from e

        if response.status_code != 200:
            response.close()
            logger.warning(
                "stream_open_rejected",
                url=config.endpoint_url,
                status_code=response.status_code,
            )
            raise HTTPStatusError(response.status_code, "open")

        self._config = config
        self._response = response
        self._decoder = RecordDecoder(
            response.iter_bytes(),
            record_type=self.record_type,
            close=response.close,
        )
        self._state = SessionState.OPEN
        logger.info("stream_opened", url=config.endpoint_url, cookie=config.cookie.name)

    open = filter

    def sample(self) -> bytes:
        """
        一次性读取未过滤的流端点

        整个响应体被一次性读入内存，不可与 next()/records() 组合使用，
        仅用于采样。

        Raises:
            SessionStateError: 会话已关闭
            AuthError: bearer token 为空
            HTTPStatusError: 状态码非200
            TransportError: 网络层错误
        """
        self._require_not_closed("sample")
        self._require_token()
        self._ensure_cookie()

        try:
            response = self.http.get(self.endpoint_url, headers=self._headers())
        except httpx.TransportError as e:
            raise TransportError(f"Failed to sample stream: {e}") from e

        logger.info("stream_sampled", url=self.endpoint_url, status_code=response.status_code)
        if response.status_code != 200:
            raise HTTPStatusError(response.status_code, "sample")
        return response.content

    def next(self) -> DecodeResult:
        """
        从打开的连接执行一个解码周期

        Raises:
            SessionStateError: 会话未处于 OPEN 状态
            EndOfStream: 流已结束
            TransportError: 读取失败
        """
        if self._state != SessionState.OPEN or self._decoder is None:
            raise SessionStateError("read from", self._state.value)
        return self._decoder.next()

    def records(self) -> Iterator[Any]:
        """
        惰性迭代流中的记录，直到流结束

        keep-alive 周期被跳过；解码失败抛出 DecodeError，会话保持打开，
        调用方可以再次调用 records() 继续读取。
        """
        while True:
            try:
                result = self.next()
            except EndOfStream:
                return
            yield from result.unwrap()

    def close(self) -> None:
        """
        关闭会话

        向端点发送 DELETE（携带与打开时相同的 Authorization 和 Cookie），
        无论响应如何都释放本地连接。

        Raises:
            SessionStateError: 会话已关闭（重复调用）
            HTTPStatusError: DELETE 状态码非200（连接已释放）
            TransportError: 网络层错误（连接已释放）
        """
        self._require_not_closed("close")
        if not self.bearer_token:
            self._release_handle()
            self._state = SessionState.CLOSED
            raise AuthError("Bearer token is empty")

        try:
            response = self.http.delete(self.endpoint_url, headers=self._headers())
        except httpx.TransportError as e:
            raise TransportError(f"Failed to close stream: {e}") from e
        finally:
            self._release_handle()
            self._state = SessionState.CLOSED

        logger.info("stream_closed", url=self.endpoint_url, status_code=response.status_code)
        if response.status_code != 200:
            raise HTTPStatusError(response.status_code, "close")

    def __enter__(self) -> "StreamSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._state != SessionState.CLOSED:
            self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} state={self._state.value} url={self.endpoint_url}>"

    # ==================== 内部方法 ====================

    def _authorization(self) -> str:
        return f"Bearer {self.bearer_token}"

    def _ensure_cookie(self) -> SessionCookie:
        if self._cookie is None:
            self._cookie = SessionCookie.generate()
            logger.debug("session_cookie_generated", cookie=self._cookie.name)
        return self._cookie

    def _headers(self) -> Dict[str, str]:
        if self._config is not None:
            return dict(self._config.headers)
        headers = {"Authorization": self._authorization()}
        if self._cookie is not None:
            headers["Cookie"] = self._cookie.header_value
        return headers

    def _require_token(self) -> None:
        if not self.bearer_token:
            raise AuthError("Bearer token is empty")

    def _require_not_closed(self, operation: str) -> None:
        if self._state == SessionState.CLOSED:
            raise SessionStateError(operation, self._state.value)

    def _release_handle(self) -> None:
        if self._decoder is not None:
            self._decoder.close()
        elif self._response is not None:
            self._response.close()
        self._decoder = None
        self._response = None
