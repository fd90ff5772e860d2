"""
自定义异常类
"""
from typing import Optional


class StreamSDKError(Exception):
    """SDK基础异常"""

    pass


class ConfigurationError(StreamSDKError):
    """配置错误"""

    pass


class AuthError(StreamSDKError):
    """认证错误：凭证交换失败，或在没有token的情况下操作流"""

    pass


class HTTPStatusError(StreamSDKError):
    """非预期的HTTP状态码"""

    def __init__(self, status_code: int, operation: str):
        self.status_code = status_code
        self.operation = operation
        super().__init__(f"[{operation}] unexpected response code: {status_code}")


class DecodeError(StreamSDKError):
    """记录边界上的JSON格式错误"""

    def __init__(self, message: str, payload: Optional[bytes] = None):
        self.message = message
        self.payload = payload
        super().__init__(message)


class TransportError(StreamSDKError):
    """底层I/O错误（连接重置等）"""

    pass


class EndOfStream(TransportError):
    """流已结束，后续读取全部失败"""

    pass


class SessionStateError(StreamSDKError):
    """会话状态不允许当前操作"""

    def __init__(self, operation: str, state: str):
        self.operation = operation
        self.state = state
        super().__init__(f"Cannot {operation} a session in state '{state}'")
