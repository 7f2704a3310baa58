"""Provider 与模型配置。

本模块负责把 Provider 名解析为 OpenAI 兼容接口的 base_url，
并允许为常用模型配置别名（逻辑名 -> 厂商模型 ID）。

未登记的 Provider 按约定模板 https://api.<provider>.com/openai/v1 推导；
未登记的模型 ID 原样透传。
"""

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

FALLBACK_BASE_URL_TEMPLATE = "https://api.{provider}.com/openai/v1"


@dataclass
class ModelConfig:
    """单个逻辑模型的配置。"""

    logical_name: str
    provider_model: str
    max_tokens: Optional[int] = None


@dataclass
class ProviderConfig:
    """某个 Provider 的整体配置。"""

    name: str
    base_url: str
    models: Dict[str, ModelConfig] = field(default_factory=dict)

    def resolve_model(self, model: str) -> ModelConfig:
        cfg = self.models.get(model)
        if cfg is None:
            return ModelConfig(logical_name=model, provider_model=model)
        return cfg


GROQ_CONFIG = ProviderConfig(
    name="groq",
    base_url="https://api.groq.com/openai/v1",
    models={
        "fast": ModelConfig(logical_name="fast", provider_model="llama-3.1-8b-instant"),
        "smart": ModelConfig(logical_name="smart", provider_model="llama-3.3-70b-versatile"),
    },
)

DEEPINFRA_CONFIG = ProviderConfig(
    name="deepinfra",
    base_url="https://api.deepinfra.com/v1/openai",
    models={
        "smart": ModelConfig(logical_name="smart", provider_model="meta-llama/Llama-3.3-70B-Instruct"),
    },
)


PROVIDER_REGISTRY: Mapping[str, ProviderConfig] = {
    "groq": GROQ_CONFIG,
    "deepinfra": DEEPINFRA_CONFIG,
}


def get_provider_config(name: str) -> ProviderConfig:
    """根据名称获取 ProviderConfig，名称不区分大小写。"""

    key = name.strip().lower()
    if not key:
        raise KeyError("Empty provider name")
    cfg = PROVIDER_REGISTRY.get(key)
    if cfg is not None:
        return cfg
    return ProviderConfig(name=key, base_url=FALLBACK_BASE_URL_TEMPLATE.format(provider=key))
