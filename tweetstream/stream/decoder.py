"""
流记录增量解码器

从打开的响应体中逐块读取字节，按换行切分记录帧，容忍任意位置的分块边界。
一帧内可以连续出现多个JSON文档（无分隔或以空白分隔）；尚无换行的尾部数据
中已完整的文档也会被提前取出。
服务端周期性发送空行作为 keep-alive，它们不产生记录，也不代表流结束。
"""
import json
import re
from collections import deque
from typing import Any, Callable, Deque, Iterator, List, Optional, Tuple, Type

import httpx
from pydantic import BaseModel, ValidationError

from tweetstream.core.models import DecodeResult
from tweetstream.core.records import StreamRecord
from tweetstream.utils.exceptions import DecodeError, EndOfStream, TransportError
from tweetstream.utils.logger import get_logger

logger = get_logger(__name__)

FRAME_DELIMITER = b"\n"
PREVIEW_BYTES = 120
DOCUMENT_ENDINGS = (b"}", b"]")

_json = json.JSONDecoder()
_WHITESPACE = re.compile(r"[ \t\r\n]*")


class RecordDecoder:
    """
    增量记录解码器

    每次 next() 执行一个解码周期：读取一块数据，返回其中所有完整记录。
    解码失败以 Err 返回，不关闭底层连接；读到流末尾后抛出 EndOfStream。
    """

    def __init__(
        self,
        source: Iterator[bytes],
        record_type: Optional[Type[BaseModel]] = StreamRecord,
        close: Optional[Callable[[], None]] = None,
    ):
        """
        Args:
            source: 字节块迭代器（通常为 Response.iter_bytes()）
            record_type: 解码目标模型；None 表示返回原始 JSON 对象
            close: 释放底层连接的回调
        """
        self._source = source
        self.record_type = record_type
        self._close = close
        self._buffer = b""
        self._pending: Deque[bytes] = deque()
        self._exhausted = False
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def exhausted(self) -> bool:
        """底层数据已读完且没有剩余帧"""
        return self._exhausted and not self._pending and not self._buffer

    def decode_frame(self, frame: bytes) -> List[Any]:
        """
        解码单个记录帧

        帧可以包含一个或多个连续的JSON文档，每个文档是一个对象或数组
        （数组的每个元素是一条记录），空数组返回空列表。

        Raises:
            DecodeError: JSON格式错误或记录结构不符合 record_type
        """
        try:
            values = list(_iter_documents(frame.decode("utf-8")))
        except ValueError as e:
            raise DecodeError(f"Malformed JSON record: {e}", payload=frame) from e

        items: List[Any] = []
        for value in values:
            if isinstance(value, list):
                items.extend(value)
            elif isinstance(value, dict):
                items.append(value)
            else:
                raise DecodeError(
                    f"Unexpected JSON value of type {type(value).__name__}", payload=frame
                )

        if self.record_type is None:
            return items

        records = []
        for item in items:
            try:
                records.append(self.record_type.model_validate(item))
            except ValidationError as e:
                raise DecodeError(f"Invalid record: {e}", payload=frame) from e
        return records

    def next(self) -> DecodeResult:
        """
        执行一个解码周期

        Returns:
            Ok(records)：可能为空（keep-alive 或记录尚未完整到达）
            Err(DecodeError)：当前帧格式错误，连接保持打开

        Raises:
            EndOfStream: 流已结束或解码器已关闭
            TransportError: 读取时发生网络错误
        """
        if self._closed:
            raise EndOfStream("Stream handle is closed")

        if not self._pending:
            if self._exhausted:
                raise EndOfStream("Stream has ended")
            self._read_chunk()

        return self._drain_pending()

    def close(self) -> None:
        """释放底层连接（可重复调用）"""
        if self._closed:
            return
        self._closed = True
        self._pending.clear()
        self._buffer = b""
        if self._close is not None:
            self._close()

    def __iter__(self) -> Iterator[DecodeResult]:
        while True:
            try:
                yield self.next()
            except EndOfStream:
                return

    # ==================== 内部方法 ====================

    def _read_chunk(self) -> None:
        """读取一块数据并切分出完整帧"""
        try:
            chunk = next(self._source)
        except StopIteration:
            self._exhausted = True
            tail, self._buffer = self._buffer, b""
            if not tail.strip():
                logger.info("stream_ended")
                raise EndOfStream("Stream has ended")
            self._pending.append(tail)
            return
        except httpx.StreamError as e:
            self._exhausted = True
            raise EndOfStream(f"Stream is no longer readable: {e}") from e
        except httpx.TransportError as e:
            logger.warning("stream_read_failed", error=str(e))
            raise TransportError(f"Failed to read stream: {e}") from e

        self._buffer += chunk
        *frames, self._buffer = self._buffer.split(FRAME_DELIMITER)
        self._pending.extend(frames)

        # 无换行分隔的分块帧：取出尾部已完整的文档
        if self._buffer.rstrip().endswith(DOCUMENT_ENDINGS):
            complete, self._buffer = _split_complete(self._buffer)
            if complete:
                self._pending.append(complete)

    def _drain_pending(self) -> DecodeResult:
        records: List[Any] = []
        while self._pending:
            frame = self._pending.popleft()
            if not frame.strip():
                continue
            try:
                decoded = self.decode_frame(frame)
            except DecodeError as e:
                logger.warning(
                    "record_decode_failed",
                    error=e.message,
                    payload_preview=frame[:PREVIEW_BYTES].decode("utf-8", "replace"),
                )
                if records:
                    # 先交付已解码的记录，错误留到下一个周期
                    self._pending.appendleft(frame)
                    return DecodeResult.ok(records)
                return DecodeResult.err(e)
            records.extend(decoded)
        return DecodeResult.ok(records)


def _iter_documents(text: str) -> Iterator[Any]:
    """依次解析文本中连续的JSON文档，文档之间允许空白"""
    idx = _WHITESPACE.match(text, 0).end()
    while idx < len(text):
        value, idx = _json.raw_decode(text, idx)
        yield value
        idx = _WHITESPACE.match(text, idx).end()


def _split_complete(data: bytes) -> Tuple[bytes, bytes]:
    """
    把尾部缓冲区切分为 (已完整的文档, 剩余数据)

    只取出完整的对象或数组，遇到不完整或其他类型的值即停止。
    """
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        return b"", data

    complete_end = 0
    idx = _WHITESPACE.match(text, 0).end()
    while idx < len(text):
        try:
            value, end = _json.raw_decode(text, idx)
        except ValueError:
            break
        if not isinstance(value, (dict, list)):
            break
        complete_end = end
        idx = _WHITESPACE.match(text, end).end()

    if not complete_end:
        return b"", data
    return text[:complete_end].encode("utf-8"), text[complete_end:].encode("utf-8")
