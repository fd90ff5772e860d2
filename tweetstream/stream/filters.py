"""
过滤参数构建器
"""
from datetime import datetime, timezone
from typing import List, Tuple
from urllib.parse import quote

from tweetstream.core.models import FilterSpec

# 字段名 -> 查询参数名
LIST_PARAMS = {
    "tweet_fields": "tweet.fields",
    "expansions": "expansions",
    "media_fields": "media.fields",
    "poll_fields": "poll.fields",
    "place_fields": "place.fields",
    "user_fields": "user.fields",
}

RFC3339_UTC = "%Y-%m-%dT%H:%M:%SZ"


def format_timestamp(value: datetime) -> str:
    """RFC 3339 UTC 时间戳；naive datetime 按 UTC 处理"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(RFC3339_UTC)


class FilterBuilder:
    """FilterSpec -> 查询字符串"""

    @staticmethod
    def params(spec: FilterSpec) -> List[Tuple[str, str]]:
        """
        构建查询参数对

        空列表和未设置的可选字段不生成参数。结果按参数名排序，
        同一个 FilterSpec 总是得到相同顺序。

        Args:
            spec: 过滤参数

        Returns:
            [(name, value), ...]
        """
        pairs: List[Tuple[str, str]] = []

        for attr, name in LIST_PARAMS.items():
            values = getattr(spec, attr)
            if values:
                pairs.append((name, ",".join(values)))

        if spec.backfill_minutes is not None:
            pairs.append(("backfill_minutes", str(int(spec.backfill_minutes))))
        if spec.start_time is not None:
            pairs.append(("start_time", format_timestamp(spec.start_time)))
        if spec.end_time is not None:
            pairs.append(("end_time", format_timestamp(spec.end_time)))

        pairs.sort(key=lambda pair: pair[0])
        return pairs

    @staticmethod
    def build(spec: FilterSpec) -> str:
        """
        构建查询字符串（不含前导 '?'）

        Args:
            spec: 过滤参数

        Returns:
            例如 'expansions=author_id&tweet.fields=created_at,lang'；空参数返回 ''
        """
        return "&".join(
            f"{quote(name, safe='.')}={quote(value, safe=',')}"
            for name, value in FilterBuilder.params(spec)
        )
