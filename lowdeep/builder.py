"""链式调用入口。

用法::

    from pydantic import BaseModel
    from lowdeep import lowdeep

    class Person(BaseModel):
        name: str
        age: int

    bot = lowdeep().key("gsk_...").provider("groq").model("llama-3.3-70b-versatile").schema(Person)
    person = await bot.chat("Invent a person")

key 与 model 在调用 chat 时才校验，未设置（且配置里也没有默认值）时抛 ConfigurationError。
一个 Lowdeep 实例持有一段对话历史，不要在同一实例上并发调用 chat。
"""

import asyncio
from typing import Any, Iterable, Optional, Union

from lowdeep.agents.retry_agent import (
    OrchestratorConfig,
    RetryAttempt,
    RetryOrchestrator,
    validate_max_attempts,
    validate_temperature,
)
from lowdeep.config.settings import settings
from lowdeep.domain.conversation import ConversationHistory, as_history
from lowdeep.domain.exceptions import ConfigurationError
from lowdeep.domain.models import ChatMessage
from lowdeep.providers import create_provider
from lowdeep.providers.base import ProviderClient
from lowdeep.schema.binding import SchemaBinding


class Lowdeep:
    def __init__(self, cfg=settings):
        self._settings = cfg
        self._key: Optional[str] = None
        self._provider: str = cfg.default_provider
        self._model: Optional[str] = cfg.default_model
        self._system: str = cfg.default_system_prompt
        self._max_attempts: int = cfg.default_max_attempts
        self._temperature: Optional[float] = cfg.default_temperature
        self._schema: Optional[SchemaBinding] = None
        self._client: Optional[ProviderClient] = None
        self._history = ConversationHistory()
        self._last_orchestrator: Optional[RetryOrchestrator] = None

    # ---- 链式配置 ----

    def key(self, val: str) -> "Lowdeep":
        self._key = val
        return self

    def provider(self, val: str) -> "Lowdeep":
        self._provider = val
        return self

    def model(self, val: str) -> "Lowdeep":
        self._model = val
        return self

    def system(self, prompt: str) -> "Lowdeep":
        self._system = prompt
        return self

    def schema(self, schema: Any) -> "Lowdeep":
        """绑定输出 schema（pydantic 模型或任意 pydantic 可校验的类型）。再次调用会替换。"""

        self._schema = schema if isinstance(schema, SchemaBinding) else SchemaBinding(schema)
        return self

    def retry(self, num: int) -> "Lowdeep":
        self._max_attempts = validate_max_attempts(num)
        return self

    def temperature(self, val: float) -> "Lowdeep":
        self._temperature = validate_temperature(val)
        return self

    def conversation(self, history: Union[ConversationHistory, Iterable[ChatMessage]]) -> "Lowdeep":
        """绑定调用方持有的对话历史；传入 ConversationHistory 时原地修改。"""

        self._history = as_history(history)
        return self

    def client(self, provider_client: ProviderClient) -> "Lowdeep":
        """注入自定义的 Provider 客户端，设置后不再按 provider/key 创建 HTTP 客户端。"""

        self._client = provider_client
        return self

    # ---- 查询 ----

    @property
    def history(self) -> ConversationHistory:
        return self._history

    @property
    def last_attempts(self) -> list[RetryAttempt]:
        if self._last_orchestrator is None:
            return []
        return self._last_orchestrator.attempts

    # ---- 调用 ----

    async def chat(self, message: str) -> Any:
        """发送一条消息；绑定了 schema 时返回校验后的值，否则返回文本。"""

        orchestrator = self._build_orchestrator()
        self._last_orchestrator = orchestrator
        return await orchestrator.run(self._history, message, self._schema)

    def chat_sync(self, message: str) -> Any:
        return asyncio.run(self.chat(message))

    def _build_orchestrator(self) -> RetryOrchestrator:
        temperature = validate_temperature(self._temperature)
        if not self._model:
            raise ConfigurationError(code="MISSING_MODEL", message="model not set")
        client = self._client
        if client is None:
            client = create_provider(self._provider, self._key, cfg=self._settings)
        return RetryOrchestrator(
            client,
            OrchestratorConfig(
                provider=getattr(client, "name", None) or self._provider,
                model=self._model,
                system_prompt=self._system,
                max_attempts=self._max_attempts,
                temperature=temperature,
            ),
        )


def lowdeep(cfg=settings) -> Lowdeep:
    """创建一个新的 Lowdeep 实例。"""

    return Lowdeep(cfg)
