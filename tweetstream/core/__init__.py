"""核心数据模型"""
from .models import (
    Credential,
    DecodeResult,
    FilterSpec,
    SessionConfig,
    SessionCookie,
    SessionState,
)
from .records import Includes, Media, Place, Poll, StreamRecord, Tweet, User

__all__ = [
    "Credential",
    "DecodeResult",
    "FilterSpec",
    "SessionConfig",
    "SessionCookie",
    "SessionState",
    "StreamRecord",
    "Tweet",
    "User",
    "Media",
    "Place",
    "Poll",
    "Includes",
]
