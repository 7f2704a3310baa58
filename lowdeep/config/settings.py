"""配置管理模块。

支持从环境变量、.env 以及 config.yaml 加载配置。
builder 上显式设置的值永远优先于这里的默认值。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("LOWDEEP_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.append(Path.cwd() / "config.yaml")

    seen: set[Path] = set()
    for path in candidates:
        if path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class Settings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- Provider 相关配置 ----
    default_provider: str = Field(default="groq", description="默认 Provider 名称，例如 groq、deepinfra")
    default_model: Optional[str] = Field(default=None, description="默认模型 ID，未设置时必须在 builder 上指定")
    default_system_prompt: str = Field(default="Be a helpful assistant", description="默认系统提示词")
    default_max_attempts: int = Field(default=3, ge=1, le=20, description="结构化输出的最大尝试次数")
    default_temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0, description="默认生成温度")

    groq_api_key: Optional[str] = Field(default=None, description="Groq API 密钥")
    groq_base_url: str = Field(default="https://api.groq.com/openai/v1", description="Groq API 基础URL")
    deepinfra_api_key: Optional[str] = Field(default=None, description="DeepInfra API 密钥")
    deepinfra_base_url: str = Field(
        default="https://api.deepinfra.com/v1/openai",
        description="DeepInfra API 基础URL",
    )
    http_timeout: float = Field(default=60.0, ge=1.0, description="HTTP 超时时间（秒）")

    # ---- 日志 ----
    log_dir: str = Field(default="logs", description="日志目录")
    log_to_file: bool = Field(default=True, description="是否写 JSON 日志文件")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("groq_api_key", "deepinfra_api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v and len(v.strip()) < 10:
            raise ValueError("API key seems too short")
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )

    def api_key_for(self, provider: str) -> Optional[str]:
        """返回某个 Provider 在配置里的 API key，未配置时返回 None。"""

        return getattr(self, f"{provider.lower()}_api_key", None)

    def base_url_for(self, provider: str) -> Optional[str]:
        return getattr(self, f"{provider.lower()}_base_url", None)


settings = Settings()
