"""工具模块"""
from .config import Settings
from .exceptions import (
    AuthError,
    ConfigurationError,
    DecodeError,
    EndOfStream,
    HTTPStatusError,
    SessionStateError,
    StreamSDKError,
    TransportError,
)
from .logger import get_logger, setup_logging

__all__ = [
    "Settings",
    "StreamSDKError",
    "ConfigurationError",
    "AuthError",
    "HTTPStatusError",
    "DecodeError",
    "TransportError",
    "EndOfStream",
    "SessionStateError",
    "get_logger",
    "setup_logging",
]
