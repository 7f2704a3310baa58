"""OpenAI 兼容接口适配器。

Groq、DeepInfra 等厂商都提供与 OpenAI 相同的 chat/completions 端点：
- URL: {base_url}/chat/completions
- 认证: Authorization: Bearer <api_key>

本实现只依赖公共字段：model/messages/temperature/max_tokens。
网络重试不在这里做，单次调用失败直接抛给上层。
"""

import re
from typing import Any, Dict, Optional

import httpx

from lowdeep.config.settings import settings
from lowdeep.domain.exceptions import ApiError, ConfigurationError, NetworkError, RateLimitError
from lowdeep.domain.models import ChatChoice, ChatMessage, ChatRequest, ChatResult, ChatUsage
from lowdeep.providers.registry import ProviderConfig, get_provider_config

_BEARER_PREFIX_RE = re.compile(r"^bearer(?:\s+|$)", re.IGNORECASE)


def normalize_api_key(raw: Optional[str]) -> Optional[str]:
    """去掉首尾空白以及误粘贴进来的 "Bearer " 前缀。"""

    if raw is None:
        return None
    key = _BEARER_PREFIX_RE.sub("", raw.strip()).strip()
    return key or None


class OpenAICompatibleClient:
    """OpenAI 兼容 Provider 客户端实现。"""

    def __init__(
        self,
        cfg=settings,
        *,
        provider: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        self._settings = cfg
        self._provider_cfg: ProviderConfig = get_provider_config(provider)
        self.name = self._provider_cfg.name
        self._api_key = normalize_api_key(api_key)
        self._base_url = (base_url or self._provider_cfg.base_url).rstrip("/")

    @property
    def base_url(self) -> str:
        return self._base_url

    async def chat(self, req: ChatRequest) -> ChatResult:
        """执行一次非流式对话调用。

        步骤：
        1. 解析模型别名。
        2. 构造 HTTP 请求 payload。
        3. 发送请求并捕获网络错误/限流/服务端错误。
        4. 解析为统一的 ChatResult。
        """

        if not self._api_key:
            raise ConfigurationError(code="MISSING_API_KEY", message=f"API key for {self.name!r} not set")
        payload = self._build_payload(req)
        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = await client.post(
                    f"{self._base_url}/chat/completions",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {self._api_key}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接超时等
            raise NetworkError(code="NETWORK_ERROR", message=str(e), provider=self.name)
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message=f"{self.name} rate limit", http_status=429)
        if resp.status_code >= 400:
            raise ApiError(code="API_ERROR", message=resp.text, http_status=resp.status_code)
        try:
            data = resp.json()
        except ValueError as e:
            raise ApiError(code="BAD_RESPONSE", message=f"non-JSON response: {e}", http_status=502)
        return self._parse_response(data, req)

    def _build_payload(self, req: ChatRequest) -> Dict[str, Any]:
        model_cfg = self._provider_cfg.resolve_model(req.model)
        payload: Dict[str, Any] = {
            "model": model_cfg.provider_model,
            "messages": [{"role": m.role, "content": m.content or ""} for m in req.messages],
        }
        if req.temperature is not None:
            payload["temperature"] = req.temperature
        max_tokens = req.max_tokens or model_cfg.max_tokens
        if max_tokens:
            payload["max_tokens"] = max_tokens
        return payload

    def _parse_response(self, data: dict, req: ChatRequest) -> ChatResult:
        choices: list[ChatChoice] = []
        for i, ch in enumerate(data.get("choices") or []):
            msg = ch.get("message") or {}
            cm = ChatMessage(role=msg.get("role") or "assistant", content=msg.get("content"))
            choices.append(ChatChoice(index=ch.get("index", i), message=cm, finish_reason=ch.get("finish_reason")))
        usage_raw = data.get("usage") or {}
        usage = None
        if usage_raw:
            usage = ChatUsage(
                prompt_tokens=usage_raw.get("prompt_tokens", 0),
                completion_tokens=usage_raw.get("completion_tokens", 0),
                total_tokens=usage_raw.get("total_tokens", 0),
            )
        return ChatResult(provider=self.name, model=req.model, choices=choices, usage=usage, raw=data)
