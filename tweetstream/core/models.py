"""
核心数据模型 - Pydantic定义
"""
import random
import string
from datetime import datetime
from enum import Enum
from typing import Any, Generic, List, Optional, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tweetstream.utils.exceptions import DecodeError

R = TypeVar("R")

COOKIE_NAME = "personalization_id"
COOKIE_VERSION = "v1_"
COOKIE_MARKER = "3A"
COOKIE_CHARSET = string.digits + string.ascii_uppercase
COOKIE_LENGTH = 10


# ==================== 枚举类型 ====================


class SessionState(Enum):
    """流会话状态"""

    UNOPENED = "unopened"  # 已创建，尚未发起请求
    OPEN = "open"  # 连接已建立，可以读取
    CLOSED = "closed"  # 终态，不可重新打开


# ==================== 认证 ====================


class Credential(BaseModel):
    """应用级Bearer凭证，每个Client仅一个"""

    model_config = ConfigDict(frozen=True)

    token_type: str = Field(..., description="令牌类型，通常为 bearer")
    access_token: str = Field(..., description="访问令牌", repr=False)

    @property
    def value(self) -> str:
        """可直接展示的形式：'<type> <token>'"""
        return f"{self.token_type} {self.access_token}"


# ==================== 会话 ====================


class SessionCookie(BaseModel):
    """会话Cookie，一旦分配在会话生命周期内保持不变"""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str

    @classmethod
    def generate(cls, rng: Optional[random.Random] = None) -> "SessionCookie":
        """
        生成新的个性化Cookie

        值为 'v1_' + 10个字符，前两个字符固定为服务端格式标记。

        Args:
            rng: 可选的随机数生成器（测试时可注入）

        Returns:
            SessionCookie实例
        """
        rng = rng or random.SystemRandom()
        tail = "".join(
            rng.choice(COOKIE_CHARSET)
            for _ in range(COOKIE_LENGTH - len(COOKIE_MARKER))
        )
        return cls(name=COOKIE_NAME, value=f"{COOKIE_VERSION}{COOKIE_MARKER}{tail}")

    @property
    def header_value(self) -> str:
        return f"{self.name}={self.value}"


class SessionConfig(BaseModel):
    """打开会话时构建的请求配置"""

    model_config = ConfigDict(frozen=True)

    endpoint_url: str
    authorization: str
    cookie: SessionCookie

    @property
    def headers(self) -> dict:
        """打开、读取、关闭共用的请求头"""
        return {
            "Authorization": self.authorization,
            "Cookie": self.cookie.header_value,
        }


# ==================== 过滤参数 ====================


class FilterSpec(BaseModel):
    """流过滤参数，所有字段可选，列表字段保持调用方顺序"""

    model_config = ConfigDict(frozen=True)

    tweet_fields: Tuple[str, ...] = ()
    expansions: Tuple[str, ...] = ()
    media_fields: Tuple[str, ...] = ()
    poll_fields: Tuple[str, ...] = ()
    place_fields: Tuple[str, ...] = ()
    user_fields: Tuple[str, ...] = ()
    backfill_minutes: Optional[int] = Field(default=None, description="回填分钟数")
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @field_validator(
        "tweet_fields",
        "expansions",
        "media_fields",
        "poll_fields",
        "place_fields",
        "user_fields",
        mode="before",
    )
    @classmethod
    def _split_csv(cls, v: Any) -> Any:
        # 允许 "a,b" 形式的字符串
        if isinstance(v, str):
            return tuple(item for item in v.split(",") if item)
        return v


# ==================== 解码结果 ====================


class DecodeResult(Generic[R]):
    """
    单次解码周期的结果

    Ok(records) 或 Err(error)，两者互斥。空的 Ok 表示当前没有待处理记录，
    不代表流结束。
    """

    __slots__ = ("_records", "_error")

    def __init__(
        self,
        records: Optional[List[R]] = None,
        error: Optional[DecodeError] = None,
    ):
        if error is not None and records:
            raise ValueError("DecodeResult cannot carry both records and an error")
        self._records: List[R] = list(records or [])
        self._error = error

    @classmethod
    def ok(cls, records: List[R]) -> "DecodeResult[R]":
        return cls(records=records)

    @classmethod
    def err(cls, error: DecodeError) -> "DecodeResult[R]":
        return cls(error=error)

    @property
    def is_ok(self) -> bool:
        return self._error is None

    @property
    def records(self) -> List[R]:
        return list(self._records)

    @property
    def error(self) -> Optional[DecodeError]:
        return self._error

    def unwrap(self) -> List[R]:
        """返回记录列表，若为错误结果则抛出 DecodeError"""
        if self._error is not None:
            raise self._error
        return list(self._records)

    def __repr__(self) -> str:
        if self._error is not None:
            return f"Err({self._error!r})"
        return f"Ok({len(self._records)} records)"
