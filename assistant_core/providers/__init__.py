"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Assistant 依赖的模型客户端协议 (base)。
- 维护 Provider 端点与逻辑模型配置 (registry)。
- 提供 OpenAI 兼容的 HTTP 客户端实现 (chat_completions)。
"""

from typing import Optional

from assistant_core.config.settings import settings
from assistant_core.providers.base import ProviderClient
from assistant_core.providers.chat_completions import ChatCompletionsClient
from assistant_core.providers.registry import get_provider_config


def create_provider(name: Optional[str] = None) -> ProviderClient:
    """根据名称创建 Provider 客户端，默认取配置中的 default_provider。"""

    provider_name = (name or getattr(settings, "default_provider", "openai")).lower()
    return ChatCompletionsClient(get_provider_config(provider_name), settings)
