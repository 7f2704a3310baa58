"""对外 API 服务模块。

提供一次性的函数接口，省去链式配置，适合脚本和简单调用方。
"""

from typing import Any, Optional

from lowdeep.builder import lowdeep
from lowdeep.domain.conversation import HistoryLike
from lowdeep.infrastructure.logging.logger import logger


async def run_structured_chat(
    message: str,
    schema: Any = None,
    *,
    provider: Optional[str] = None,
    model: Optional[str] = None,
    key: Optional[str] = None,
    system: Optional[str] = None,
    retries: Optional[int] = None,
    temperature: Optional[float] = None,
    history: Optional[HistoryLike] = None,
) -> Any:
    """运行一次对话。

    Args:
        message: 用户输入内容
        schema: 输出 schema（可选，不提供则返回文本）
        provider / model / key / system / retries / temperature: 覆盖配置中的默认值
        history: 调用方持有的对话历史（可选）

    Returns:
        有 schema 时返回校验后的值，否则返回模型回复文本

    Raises:
        各种 domain.exceptions 中定义的异常
    """
    bot = lowdeep()
    if provider:
        bot.provider(provider)
    if model:
        bot.model(model)
    if key:
        bot.key(key)
    if system:
        bot.system(system)
    if retries is not None:
        bot.retry(retries)
    if temperature is not None:
        bot.temperature(temperature)
    if schema is not None:
        bot.schema(schema)
    if history is not None:
        bot.conversation(history)
    try:
        return await bot.chat(message)
    except Exception as e:
        logger.error("run_structured_chat failed", extra={"extra": {"error": str(e), "type": type(e).__name__}})
        raise
