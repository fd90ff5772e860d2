"""
配置管理

仅供 Client.from_settings 使用，核心API不读取环境变量。
"""
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_STREAM_URL = "https://api.twitter.com/2/tweets/sample/stream"
DEFAULT_TOKEN_URL = "https://api.twitter.com/oauth2/token"


class Settings(BaseSettings):
    """全局配置"""

    # 端点
    stream_url: str = Field(default=DEFAULT_STREAM_URL, alias="TWEETSTREAM_STREAM_URL")
    token_url: str = Field(default=DEFAULT_TOKEN_URL, alias="TWEETSTREAM_TOKEN_URL")

    # 应用凭证
    consumer_key: Optional[str] = Field(default=None, alias="TWEETSTREAM_CONSUMER_KEY")
    consumer_secret: Optional[str] = Field(
        default=None, alias="TWEETSTREAM_CONSUMER_SECRET"
    )

    # 超时配置（秒）
    request_timeout: float = Field(default=10.0, alias="TWEETSTREAM_REQUEST_TIMEOUT")
    # 服务端约每20秒发送一次keep-alive
    stream_read_timeout: float = Field(
        default=30.0, alias="TWEETSTREAM_STREAM_READ_TIMEOUT"
    )

    log_level: str = Field(default="INFO", alias="TWEETSTREAM_LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )
