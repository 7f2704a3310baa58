"""统一的对话与结果数据模型。

本模块定义了核心与 Provider 之间共享的标准数据结构：

- ChatMessage: 一条对话消息（system/user/assistant）。
- ChatRequest: 发给底层 LLM Provider 的完整请求。
- ChatResult: 从 Provider 解析后的统一响应结果。

所有 Provider 适配器都只依赖这些模型，并负责在各自的 API JSON
和这些模型之间做转换。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional


# 与 OpenAI 兼容接口的 role 字段对应
Role = Literal["system", "user", "assistant"]


@dataclass
class ChatMessage:
    """一条对话消息，既可用于请求，也可用于响应。

    - role: 消息角色。
    - content: 纯文本内容；Provider 未返回内容时为 None。
    - meta: 附加元数据（尝试序号、provider 等），不发给 Provider，只用于日志与调试。
    """

    role: Role
    content: Optional[str]
    meta: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ChatRequest:
    """一次完整的聊天请求。"""

    provider: str  # Provider 名，如 "groq"
    model: str  # 模型名，可以是 registry 里的别名
    messages: List[ChatMessage]
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


@dataclass
class ChatUsage:
    """Provider 返回的 token 统计信息（统一格式）。"""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class ChatChoice:
    """单个候选回答（目前只用 index=0 的一条）。"""

    index: int
    message: ChatMessage
    finish_reason: Optional[str] = None


@dataclass
class ChatResult:
    """一次对话调用的最终结果。

    - provider / model: 本次调用使用的 Provider 与模型。
    - choices: 一个或多个候选回答。
    - usage: 可选的 token 使用统计。
    - raw: 原始响应 JSON，用于调试。
    """

    provider: str
    model: str
    choices: List[ChatChoice]
    usage: Optional[ChatUsage] = None
    raw: Optional[dict] = None

    @property
    def content(self) -> Optional[str]:
        """第一个候选的文本内容，没有候选时返回 None。"""

        if not self.choices:
            return None
        return self.choices[0].message.content
