"""OpenAI 兼容的 chat-completions 客户端。

OpenAI、Moonshot/Kimi 与 GLM 共享同一套接口形态：
- URL: {base_url}/chat/completions
- 鉴权: Authorization: Bearer <api_key>

只使用通用字段 model/messages/temperature/max_tokens/top_p 以及 tools/tool_choice。
工具调用参数双向都以原始字符串透传，解码由 ToolExecutor 负责。
"""

from typing import Any, Dict, List

import httpx

from assistant_core.config.settings import settings
from assistant_core.domain.exceptions import ApiError, NetworkError, RateLimitError, ValidationError
from assistant_core.domain.models import ChatChoice, ChatRequest, ChatResult, ChatUsage, Message, ROLES
from assistant_core.providers.registry import ModelConfig, ProviderConfig
from assistant_core.tools.definitions import ToolCall, ToolDef


class ChatCompletionsClient:
    """单个已注册 OpenAI 兼容 Provider 的客户端。"""

    def __init__(self, provider: ProviderConfig, cfg=settings):
        self._provider = provider
        self._settings = cfg
        self.name = provider.name

    def chat(self, req: ChatRequest) -> ChatResult:
        api_key = getattr(self._settings, self._provider.api_key_field, None)
        if not api_key:
            raise ValidationError(
                code="MISSING_API_KEY",
                message=f"{self._provider.api_key_field.upper()} not set",
            )
        logical_model = req.model or getattr(self._settings, "default_model", "chat")
        model_cfg = self._provider.models.get(logical_model)
        if model_cfg is None:
            raise ValidationError(
                code="UNKNOWN_MODEL",
                message=f"Provider {self.name!r} has no model {logical_model!r}",
            )
        payload = self._build_payload(req, model_cfg)
        base = getattr(self._settings, self._provider.base_url_field, None) or self._provider.base_url
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = client.post(
                    f"{base.rstrip('/')}/chat/completions",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {api_key}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e), provider=self.name)
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message=f"{self.name} rate limit", provider=self.name)
        if resp.status_code >= 400:
            raise ApiError(code="API_ERROR", message=resp.text, http_status=resp.status_code, provider=self.name)
        try:
            data = resp.json()
        except ValueError as e:
            raise ApiError(code="INVALID_RESPONSE", message=f"Response is not JSON: {e}", provider=self.name)
        return self._parse_response(data, logical_model)

    # ---- 辅助方法 ----

    def _build_payload(self, req: ChatRequest, model_cfg: ModelConfig) -> dict:
        payload: Dict[str, Any] = {
            "model": model_cfg.provider_model,
            "messages": [self._message_to_payload(m) for m in req.messages],
            "temperature": req.temperature if req.temperature is not None else model_cfg.default_temperature,
            "max_tokens": req.max_tokens or model_cfg.max_tokens,
        }
        if req.top_p is not None:
            payload["top_p"] = req.top_p
        if req.tools:
            payload["tools"] = [self._serialize_tool(tool) for tool in req.tools]
            payload["tool_choice"] = req.tool_choice
        return payload

    def _parse_response(self, data: dict, logical_model: str) -> ChatResult:
        choices: List[ChatChoice] = []
        for i, ch in enumerate(data.get("choices") or []):
            msg = ch.get("message") or {}
            choices.append(
                ChatChoice(
                    index=ch.get("index", i),
                    message=self._build_message(msg),
                    finish_reason=ch.get("finish_reason"),
                )
            )
        usage = None
        usage_raw = data.get("usage") or {}
        if usage_raw:
            usage = ChatUsage(
                prompt_tokens=usage_raw.get("prompt_tokens", 0),
                completion_tokens=usage_raw.get("completion_tokens", 0),
                total_tokens=usage_raw.get("total_tokens", 0),
            )
        return ChatResult(
            provider=self.name,
            model=logical_model,
            choices=choices,
            usage=usage,
            raw=data,
        )

    @staticmethod
    def _build_message(payload: Dict[str, Any]) -> Message:
        """解析响应消息；旧版 ``function_call`` 转换为工具调用。"""

        role = payload.get("role") or "assistant"
        # 模型响应本身不会回答工具调用
        if role not in ROLES or role == "tool":
            role = "assistant"
        tool_calls: List[ToolCall] = [
            ToolCall.from_payload(call, idx)
            for idx, call in enumerate(payload.get("tool_calls") or [])
        ]
        function_call = payload.get("function_call")
        if function_call:
            tool_calls.append(
                ToolCall(
                    id=function_call.get("id") or "function_call",
                    name=function_call.get("name") or "",
                    arguments=function_call.get("arguments") or "",
                )
            )
        if role != "assistant" and tool_calls:
            role = "assistant"
        return Message(role=role, content=payload.get("content") or "", tool_calls=tuple(tool_calls))

    @staticmethod
    def _message_to_payload(message: Message) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"role": message.role}
        if message.content or not message.tool_calls:
            payload["content"] = message.content
        if message.tool_calls:
            payload["tool_calls"] = [call.to_payload() for call in message.tool_calls]
        if message.tool_call_id:
            payload["tool_call_id"] = message.tool_call_id
        return payload

    @staticmethod
    def _serialize_tool(tool: ToolDef) -> Dict[str, Any]:
        properties: Dict[str, Any] = {}
        required: List[str] = []
        for name, param in tool.params.items():
            schema = param.schema or {"type": "string"}
            if param.description:
                schema = {**schema, "description": param.description}
            properties[name] = schema
            if param.required:
                required.append(name)
        return {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": {
                    "type": "object",
                    "properties": properties,
                    "required": required,
                },
            },
        }
