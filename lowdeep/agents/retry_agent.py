"""结构化输出重试引擎。

一次 run() 对应一轮对话：

1. 把用户消息追加到 history，构造 system prompt + history 作为请求消息列表。
2. 调用 Provider，拿到原始文本。
3. 没有 schema：直接把回复写入 history 并返回文本，不做重试。
4. 有 schema：清洗 -> 提取 JSON -> 校验。
   - 成功：把原始回复写入 history，返回校验后的值。
   - 失败：把原始回复和一条纠错 user 消息追加到“本次请求”的消息列表（不写 history），
     进入下一次尝试。
5. 尝试次数用尽：把 history 回滚到调用前的长度，抛出 RetriesExhaustedError。

纠错消息只存在于本次调用的请求列表里，多次调用不会把重试噪音累积到 history。
各次尝试严格串行，因为每次请求都依赖上一次的纠错消息。
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar
from uuid import uuid4

from lowdeep.domain.conversation import ConversationHistory
from lowdeep.domain.exceptions import (
    BusinessError,
    ConfigurationError,
    InvalidTemperatureError,
    JsonExtractionError,
    RetriesExhaustedError,
    SchemaValidationFailed,
)
from lowdeep.domain.models import ChatMessage, ChatRequest, ChatResult, ChatUsage
from lowdeep.infrastructure.logging.logger import logger
from lowdeep.parsing import extract_json, sanitize
from lowdeep.prompts import DEFAULT_SYSTEM_PROMPT, build_system_prompt, parse_correction, schema_correction
from lowdeep.providers.base import ProviderClient
from lowdeep.schema.binding import SchemaBinding

T = TypeVar("T")

# Provider 没有返回内容时写入 history 的占位文本
EMPTY_RESPONSE_PLACEHOLDER = "[empty response]"

AttemptOutcome = Literal["accepted", "schema_rejected", "parse_failed"]


@dataclass
class RetryAttempt:
    """单次尝试的记录，只在本次调用内有效。"""

    index: int
    raw: Optional[str]
    outcome: AttemptOutcome
    error: Optional[str] = None


@dataclass
class OrchestratorConfig:
    provider: str
    model: str
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    max_attempts: int = 3
    temperature: Optional[float] = None


def validate_temperature(value: Optional[float]) -> Optional[float]:
    """temperature 必须是 [0, 2] 内的实数；None 表示使用 Provider 默认值。"""

    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidTemperatureError(value)
    if math.isnan(value) or not 0.0 <= value <= 2.0:
        raise InvalidTemperatureError(value)
    return float(value)


def validate_max_attempts(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigurationError(code="INVALID_RETRY", message=f"retry count must be a positive integer, got {value!r}")
    return value


class RetryOrchestrator(Generic[T]):
    def __init__(self, provider_client: ProviderClient, config: OrchestratorConfig):
        self._provider_client = provider_client
        self._config = config
        self._attempts: List[RetryAttempt] = []

    @property
    def attempts(self) -> List[RetryAttempt]:
        """最近一次 run() 的尝试记录。"""

        return list(self._attempts)

    async def run(
        self,
        history: ConversationHistory,
        user_message: str,
        schema: Optional[SchemaBinding[T]] = None,
    ) -> Any:
        """执行一次对话。

        Returns:
            有 schema 时返回校验后的值；否则返回模型的原始文本。

        Raises:
            InvalidTemperatureError / ConfigurationError: 配置错误，在任何网络调用前抛出。
            RetriesExhaustedError: 所有尝试均未通过解析或校验。
            NetworkError / ApiError / RateLimitError: Provider 调用失败。
        """

        cfg = self._config
        validate_temperature(cfg.temperature)
        validate_max_attempts(cfg.max_attempts)

        start_time = time.time()
        log_ctx: Dict[str, Any] = {
            "trace_id": f"tr-{uuid4().hex}",
            "provider": cfg.provider,
            "model": cfg.model,
        }
        self._attempts = []

        baseline = len(history)
        history.append("user", user_message)
        outgoing: List[ChatMessage] = [
            ChatMessage(role="system", content=build_system_prompt(cfg.system_prompt, schema))
        ]
        outgoing.extend(history.snapshot())
        self._log(
            logging.INFO,
            "Starting chat",
            log_ctx,
            schema=repr(schema) if schema else None,
            max_attempts=cfg.max_attempts,
            history_length=len(history),
        )

        last_error: Optional[BusinessError] = None
        try:
            for index in range(cfg.max_attempts):
                raw = await self._complete(outgoing, log_ctx, attempt=index)

                if schema is None:
                    text = raw if raw is not None else EMPTY_RESPONSE_PLACEHOLDER
                    history.append("assistant", text)
                    self._attempts.append(RetryAttempt(index=index, raw=raw, outcome="accepted"))
                    self._log_done(log_ctx, start_time, attempts=index + 1)
                    return text

                try:
                    value = schema.validate(extract_json(sanitize(raw or "")))
                except JsonExtractionError as e:
                    attempt = RetryAttempt(index=index, raw=raw, outcome="parse_failed", error=e.message)
                    correction = parse_correction(e.message)
                    last_error = e
                except SchemaValidationFailed as e:
                    attempt = RetryAttempt(index=index, raw=raw, outcome="schema_rejected", error=e.message)
                    correction = schema_correction(e.detail)
                    last_error = e
                else:
                    self._attempts.append(RetryAttempt(index=index, raw=raw, outcome="accepted"))
                    history.append("assistant", raw, attempt=index)
                    self._log_done(log_ctx, start_time, attempts=index + 1)
                    return value

                self._attempts.append(attempt)
                self._log(
                    logging.WARNING,
                    f"Try {index + 1}/{cfg.max_attempts} failed, injecting correction",
                    log_ctx,
                    attempt=index,
                    outcome=attempt.outcome,
                    error=attempt.error,
                )
                if raw:
                    outgoing.append(ChatMessage(role="assistant", content=raw))
                outgoing.append(ChatMessage(role="user", content=correction))
        except BaseException:
            history.truncate(baseline)
            raise

        history.truncate(baseline)
        self._log(
            logging.ERROR,
            "Retries exhausted",
            log_ctx,
            attempts=len(self._attempts),
            elapsed_seconds=round(time.time() - start_time, 2),
        )
        raise RetriesExhaustedError(self.attempts, last_error)

    async def _complete(self, messages: List[ChatMessage], log_ctx: Dict[str, Any], attempt: int) -> Optional[str]:
        req = ChatRequest(
            provider=self._config.provider,
            model=self._config.model,
            messages=list(messages),
            temperature=self._config.temperature,
        )
        self._log(
            logging.INFO,
            "Calling provider",
            log_ctx,
            attempt=attempt,
            message_count=len(messages),
        )
        result: ChatResult = await self._provider_client.chat(req)
        if result.usage:
            self._log(logging.INFO, "Token usage", log_ctx, **self._usage_meta(result.usage))
        return result.content

    def _log_done(self, log_ctx: Dict[str, Any], start_time: float, attempts: int) -> None:
        self._log(
            logging.INFO,
            "Completed chat",
            log_ctx,
            attempts=attempts,
            elapsed_seconds=round(time.time() - start_time, 2),
        )

    @staticmethod
    def _usage_meta(usage: ChatUsage) -> Dict[str, Any]:
        return {
            "prompt_tokens": usage.prompt_tokens,
            "completion_tokens": usage.completion_tokens,
            "total_tokens": usage.total_tokens,
        }

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
