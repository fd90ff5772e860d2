"""
流记录模型 - 服务端定义的数据结构

字段取自 v2 数据字典，全部可选并允许额外字段，服务端新增字段不会导致解码失败。
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Record(BaseModel):
    """记录基类"""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


# ==================== 实体 ====================


class Hashtag(_Record):
    start: Optional[int] = None
    end: Optional[int] = None
    tag: str


class Mention(_Record):
    start: Optional[int] = None
    end: Optional[int] = None
    username: str
    id: Optional[str] = None


class Cashtag(_Record):
    start: Optional[int] = None
    end: Optional[int] = None
    tag: str


class URLEntity(_Record):
    start: Optional[int] = None
    end: Optional[int] = None
    url: str
    expanded_url: Optional[str] = None
    display_url: Optional[str] = None
    unwound_url: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    media_key: Optional[str] = None


class Entities(_Record):
    hashtags: List[Hashtag] = Field(default_factory=list)
    mentions: List[Mention] = Field(default_factory=list)
    cashtags: List[Cashtag] = Field(default_factory=list)
    urls: List[URLEntity] = Field(default_factory=list)


class ContextAnnotation(_Record):
    """上下文注解，domain/entity 各含 id、name、description"""

    domain: Dict[str, Any]
    entity: Dict[str, Any]


class ReferencedTweet(_Record):
    type: str  # retweeted / quoted / replied_to
    id: str


# ==================== 主体对象 ====================


class PublicMetrics(_Record):
    retweet_count: int = 0
    reply_count: int = 0
    like_count: int = 0
    quote_count: int = 0
    impression_count: int = 0


class Tweet(_Record):
    """推文对象"""

    id: str
    text: str = ""
    author_id: Optional[str] = None
    conversation_id: Optional[str] = None
    created_at: Optional[datetime] = None
    lang: Optional[str] = None
    source: Optional[str] = None
    possibly_sensitive: Optional[bool] = None
    in_reply_to_user_id: Optional[str] = None
    reply_settings: Optional[str] = None
    edit_history_tweet_ids: List[str] = Field(default_factory=list)
    referenced_tweets: List[ReferencedTweet] = Field(default_factory=list)
    context_annotations: List[ContextAnnotation] = Field(default_factory=list)
    entities: Optional[Entities] = None
    public_metrics: Optional[PublicMetrics] = None
    attachments: Optional[Dict[str, List[str]]] = None
    geo: Optional[Dict[str, Any]] = None
    withheld: Optional[Dict[str, Any]] = None


class UserMetrics(_Record):
    followers_count: int = 0
    following_count: int = 0
    tweet_count: int = 0
    listed_count: int = 0


class User(_Record):
    """用户对象"""

    id: str
    name: Optional[str] = None
    username: Optional[str] = None
    created_at: Optional[datetime] = None
    description: Optional[str] = None
    location: Optional[str] = None
    pinned_tweet_id: Optional[str] = None
    profile_image_url: Optional[str] = None
    protected: Optional[bool] = None
    verified: Optional[bool] = None
    url: Optional[str] = None
    public_metrics: Optional[UserMetrics] = None
    entities: Optional[Dict[str, Any]] = None
    withheld: Optional[Dict[str, Any]] = None


class Variant(_Record):
    bit_rate: Optional[int] = None
    content_type: Optional[str] = None
    url: Optional[str] = None


class Media(_Record):
    """媒体对象"""

    media_key: str
    type: Optional[str] = None  # photo / video / animated_gif
    url: Optional[str] = None
    preview_image_url: Optional[str] = None
    duration_ms: Optional[int] = None
    height: Optional[int] = None
    width: Optional[int] = None
    alt_text: Optional[str] = None
    public_metrics: Optional[Dict[str, int]] = None
    variants: List[Variant] = Field(default_factory=list)


class Place(_Record):
    """地点对象"""

    id: str
    full_name: Optional[str] = None
    name: Optional[str] = None
    country: Optional[str] = None
    country_code: Optional[str] = None
    place_type: Optional[str] = None
    contained_within: List[str] = Field(default_factory=list)
    geo: Optional[Dict[str, Any]] = None


class PollOption(_Record):
    position: int
    label: str
    votes: int = 0


class Poll(_Record):
    """投票对象"""

    id: str
    options: List[PollOption] = Field(default_factory=list)
    duration_minutes: Optional[int] = None
    end_datetime: Optional[datetime] = None
    voting_status: Optional[str] = None


# ==================== 流信封 ====================


class Includes(_Record):
    """通过 expansions 展开的关联对象"""

    tweets: List[Tweet] = Field(default_factory=list)
    users: List[User] = Field(default_factory=list)
    media: List[Media] = Field(default_factory=list)
    places: List[Place] = Field(default_factory=list)
    polls: List[Poll] = Field(default_factory=list)


class MatchingRule(_Record):
    id: str
    tag: Optional[str] = None


class StreamRecord(_Record):
    """
    流中的单条记录

    data 为推文本体；includes 为展开对象；errors 为服务端附带的部分错误。
    """

    data: Optional[Tweet] = None
    includes: Optional[Includes] = None
    matching_rules: List[MatchingRule] = Field(default_factory=list)
    errors: List[Dict[str, Any]] = Field(default_factory=list)

    def author(self) -> Optional[User]:
        """从 includes 中查找推文作者"""
        if self.data is None or self.data.author_id is None or self.includes is None:
            return None
        for user in self.includes.users:
            if user.id == self.data.author_id:
                return user
        return None
