"""调用方可见的对话历史。

ConversationHistory 由调用方持有，可以在多次 chat 之间复用、预先填充或直接检查。
核心只做两件事：追加消息，以及在调用失败时截断回调用前的长度。
已经提交的消息不会被重排或删除。

同一个 ConversationHistory 不支持多个并发中的 chat 调用，调用方需自行串行化。
"""

from typing import Iterable, Iterator, List, Optional, Union

from .models import ChatMessage, Role


class ConversationHistory:
    def __init__(self, messages: Optional[Iterable[ChatMessage]] = None):
        self._messages: List[ChatMessage] = list(messages or [])

    def append(self, role: Role, content: Optional[str], **meta) -> ChatMessage:
        msg = ChatMessage(role=role, content=content, meta=dict(meta))
        self._messages.append(msg)
        return msg

    def truncate(self, length: int) -> None:
        """丢弃 length 之后的消息，只在调用失败回滚时使用。"""

        if length < 0 or length > len(self._messages):
            raise ValueError(f"invalid history length {length}")
        del self._messages[length:]

    def snapshot(self) -> List[ChatMessage]:
        return list(self._messages)

    @property
    def last(self) -> Optional[ChatMessage]:
        return self._messages[-1] if self._messages else None

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(list(self._messages))

    def __len__(self) -> int:
        return len(self._messages)

    def __getitem__(self, index):
        return self._messages[index]

    def __repr__(self) -> str:
        return f"ConversationHistory({len(self._messages)} messages)"


HistoryLike = Union[ConversationHistory, Iterable[ChatMessage]]


def as_history(value: Optional[HistoryLike]) -> ConversationHistory:
    """把调用方传入的历史统一成 ConversationHistory。

    传入的就是 ConversationHistory 时原样返回（共享同一个对象，原地修改）。
    """

    if isinstance(value, ConversationHistory):
        return value
    return ConversationHistory(value)
