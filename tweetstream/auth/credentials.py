"""
OAuth2 client-credentials 凭证交换
"""
import base64
from typing import Dict
from urllib.parse import quote_plus

import httpx

from tweetstream.core.models import Credential
from tweetstream.utils.config import DEFAULT_TOKEN_URL
from tweetstream.utils.exceptions import AuthError, TransportError
from tweetstream.utils.logger import get_logger

logger = get_logger(__name__)

GRANT_BODY = "grant_type=client_credentials"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded;charset=UTF-8"


def basic_authorization(consumer_key: str, consumer_secret: str) -> str:
    """构建 Basic 认证头：base64(escape(key) + ':' + escape(secret))"""
    raw = f"{quote_plus(consumer_key)}:{quote_plus(consumer_secret)}"
    return "Basic " + base64.b64encode(raw.encode("utf-8")).decode("ascii")


class CredentialProvider:
    """用 consumer key/secret 换取应用级 Bearer Token"""

    def __init__(self, http: httpx.Client, token_url: str = DEFAULT_TOKEN_URL):
        """
        Args:
            http: 同步HTTP客户端
            token_url: 凭证交换端点
        """
        self.http = http
        self.token_url = token_url

    def _get_headers(self, consumer_key: str, consumer_secret: str) -> Dict[str, str]:
        return {
            "Authorization": basic_authorization(consumer_key, consumer_secret),
            "Content-Type": FORM_CONTENT_TYPE,
        }

    def acquire(self, consumer_key: str, consumer_secret: str) -> Credential:
        """
        执行一次凭证交换（不重试）

        Args:
            consumer_key: 应用 consumer key
            consumer_secret: 应用 consumer secret

        Returns:
            Credential实例

        Raises:
            AuthError: 状态码非200或响应体格式错误
            TransportError: 网络层错误
        """
        try:
            response = self.http.post(
                self.token_url,
                headers=self._get_headers(consumer_key, consumer_secret),
                content=GRANT_BODY.encode("ascii"),
            )
        except httpx.TransportError as e:
            logger.error("credential_exchange_failed", url=self.token_url, error=str(e))
            raise TransportError(f"Credential exchange failed: {e}") from e

        logger.info(
            "credential_exchange_completed",
            url=self.token_url,
            status_code=response.status_code,
        )

        if response.status_code != 200:
            raise AuthError(
                f"Credential exchange returned unexpected response code: "
                f"{response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise AuthError(f"Failed to decode credential response: {e}") from e

        if not isinstance(payload, dict):
            raise AuthError("Credential response is not a JSON object")

        token_type = payload.get("token_type")
        access_token = payload.get("access_token")
        if not isinstance(token_type, str) or not isinstance(access_token, str):
            raise AuthError("Credential response is missing token_type or access_token")
        if not token_type or not access_token:
            raise AuthError("Credential response contains an empty token")

        return Credential(token_type=token_type, access_token=access_token)
