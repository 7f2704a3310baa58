"""Lowdeep 顶层包。

从 LLM 的自由文本输出中提取并校验结构化 JSON：
清洗推理段与代码块、宽松提取 JSON、按 schema 校验，
失败时把错误反馈给模型并在有限次数内重试。
"""

from lowdeep.builder import Lowdeep, lowdeep
from lowdeep.domain.conversation import ConversationHistory
from lowdeep.domain.exceptions import (
    BusinessError,
    ConfigurationError,
    InvalidTemperatureError,
    RetriesExhaustedError,
)
from lowdeep.domain.models import ChatMessage

__all__ = [
    "lowdeep",
    "Lowdeep",
    "ConversationHistory",
    "ChatMessage",
    "BusinessError",
    "ConfigurationError",
    "InvalidTemperatureError",
    "RetriesExhaustedError",
]
