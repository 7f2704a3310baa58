"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护 Provider 与模型配置 (registry)。
- 提供 OpenAI 兼容接口的具体实现 (openai_compat)。
"""

from typing import Optional

from lowdeep.config.settings import settings
from lowdeep.domain.exceptions import ConfigurationError
from lowdeep.providers.base import ProviderClient
from lowdeep.providers.openai_compat import OpenAICompatibleClient, normalize_api_key


def create_provider(name: Optional[str] = None, api_key: Optional[str] = None, cfg=None) -> ProviderClient:
    """根据名称创建 Provider 实例，默认取配置中的 provider 与 API key。"""

    cfg = cfg or settings
    provider_name = (name or cfg.default_provider or "").strip().lower()
    if not provider_name:
        raise ConfigurationError(code="UNKNOWN_PROVIDER", message="provider name is empty")
    key = normalize_api_key(api_key) or normalize_api_key(cfg.api_key_for(provider_name))
    if not key:
        raise ConfigurationError(code="MISSING_API_KEY", message=f"API key for {provider_name!r} not set")
    return OpenAICompatibleClient(
        cfg,
        provider=provider_name,
        api_key=key,
        base_url=cfg.base_url_for(provider_name),
    )


__all__ = ["ProviderClient", "OpenAICompatibleClient", "create_provider"]
