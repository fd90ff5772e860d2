"""
tweetstream - 流API同步客户端

提供：
- OAuth2 应用凭证交换
- 采样流端点的过滤打开
- 响应体的增量记录解码
"""
from .client import Client
from .core.models import (
    Credential,
    DecodeResult,
    FilterSpec,
    SessionConfig,
    SessionCookie,
    SessionState,
)
from .core.records import StreamRecord, Tweet, User
from .stream import FilterBuilder, RecordDecoder, StreamSession
from .auth import CredentialProvider
from .utils.exceptions import (
    AuthError,
    ConfigurationError,
    DecodeError,
    EndOfStream,
    HTTPStatusError,
    SessionStateError,
    StreamSDKError,
    TransportError,
)

__version__ = "0.1.0"

__all__ = [
    "Client",
    "CredentialProvider",
    "FilterBuilder",
    "RecordDecoder",
    "StreamSession",
    "Credential",
    "DecodeResult",
    "FilterSpec",
    "SessionConfig",
    "SessionCookie",
    "SessionState",
    "StreamRecord",
    "Tweet",
    "User",
    "StreamSDKError",
    "ConfigurationError",
    "AuthError",
    "HTTPStatusError",
    "DecodeError",
    "TransportError",
    "EndOfStream",
    "SessionStateError",
]
