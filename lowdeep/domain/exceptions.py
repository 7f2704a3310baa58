"""统一业务异常模型。

所有跨模块抛出的错误都继承自 BusinessError，便于调用方统一捕获。

按照是否对调用方可见分为两类：

- 本地可恢复：EmptyInputError / NoJsonFoundError / SchemaValidationFailed，
  只在重试循环内部流转，用来生成纠错消息，不会抛出 RetryOrchestrator。
- 调用方可见：ConfigurationError（含 InvalidTemperatureError）、
  RetriesExhaustedError 以及 Provider 层的 NetworkError / ApiError / RateLimitError。
"""

from typing import Any, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from lowdeep.agents.retry_agent import RetryAttempt


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "NO_JSON_FOUND"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 trace_id、provider 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(BusinessError):
    """第三方 API 返回非 2xx/429 错误时抛出。"""


class RateLimitError(BusinessError):
    """Provider 限流错误，由上层负责重试/退避策略。"""


class ConfigurationError(BusinessError):
    """调用方配置错误（缺少 key / model、未知 Provider 等），立即失败，不参与重试。"""


class InvalidTemperatureError(ConfigurationError):
    """temperature 不在 [0, 2] 区间。"""

    def __init__(self, value: Any):
        super().__init__(
            code="INVALID_TEMPERATURE",
            message=f"temperature must be within [0, 2], got {value!r}",
            value=value,
        )


class JsonExtractionError(BusinessError):
    """无法从模型输出中提取 JSON。"""


class EmptyInputError(JsonExtractionError):
    def __init__(self, message: str = "response is empty after sanitization"):
        super().__init__(code="EMPTY_INPUT", message=message)


class NoJsonFoundError(JsonExtractionError):
    def __init__(self, message: str = "no balanced JSON value found in response"):
        super().__init__(code="NO_JSON_FOUND", message=message)


class SchemaValidationFailed(BusinessError):
    """JSON 解析成功，但未通过 schema 校验。

    detail 为校验器给出的结构化错误列表，会原样回传给模型。
    """

    def __init__(self, detail: List[dict]):
        self.detail = detail
        fields = sorted({".".join(str(p) for p in e.get("loc", ())) or "<root>" for e in detail})
        super().__init__(
            code="SCHEMA_VALIDATION_FAILED",
            message=f"{len(detail)} validation error(s) at: {', '.join(fields)}",
        )


class RetriesExhaustedError(BusinessError):
    """所有尝试都未得到合法结果。

    attempts 保存每一次尝试的 RetryAttempt 记录，仅用于诊断。
    """

    def __init__(self, attempts: "List[RetryAttempt]", last_error: Optional[BusinessError] = None):
        self.attempts = attempts
        self.last_error = last_error
        summary = last_error.message if last_error else "unknown error"
        super().__init__(
            code="RETRIES_EXHAUSTED",
            message=f"All {len(attempts)} attempt(s) exhausted. Last error: {summary}",
            http_status=502,
        )
