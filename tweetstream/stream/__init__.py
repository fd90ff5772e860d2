"""
流端点访问

- 过滤参数构建
- 会话生命周期
- 增量记录解码
"""
from .decoder import RecordDecoder
from .filters import FilterBuilder
from .session import StreamSession

__all__ = ["FilterBuilder", "RecordDecoder", "StreamSession"]
