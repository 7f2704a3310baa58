"""Provider 抽象接口。

RetryOrchestrator 不直接依赖具体厂商的 HTTP 实现，而是依赖此协议：
负责把 ChatRequest 转成具体 API 请求，并把响应 JSON 解析为 ChatResult。

测试或调用方也可以注入任意实现了该协议的对象（例如本地模型、录制回放）。
"""

from typing import Protocol

from lowdeep.domain.models import ChatRequest, ChatResult


class ProviderClient(Protocol):
    """LLM Provider 客户端协议。

    - name: Provider 名称，用于日志。
    - chat(req): 异步执行一次非流式对话调用，返回统一的 ChatResult。
    """

    name: str

    async def chat(self, req: ChatRequest) -> ChatResult:
        ...
