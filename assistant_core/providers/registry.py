"""Provider 与模型配置。

代码只引用逻辑模型名（"chat"），具体由哪个厂商模型承载在此处决定。
"""

from dataclasses import dataclass
from typing import Dict, Mapping


@dataclass
class ModelConfig:
    """单个逻辑模型。"""

    logical_name: str
    provider_model: str
    max_tokens: int
    default_temperature: float


@dataclass
class ProviderConfig:
    """一个 OpenAI 兼容的 chat-completions 端点。

    ``api_key_field`` / ``base_url_field`` 指向 Settings 中保存该 Provider
    凭证与端点覆盖值的字段名。
    """

    name: str
    base_url: str
    models: Dict[str, ModelConfig]
    api_key_field: str
    base_url_field: str


OPENAI_CONFIG = ProviderConfig(
    name="openai",
    base_url="https://api.openai.com/v1",
    models={
        "chat": ModelConfig(
            logical_name="chat",
            provider_model="gpt-4o-mini",
            max_tokens=4096,
            default_temperature=0.7,
        )
    },
    api_key_field="openai_api_key",
    base_url_field="openai_base_url",
)

KIMI_CONFIG = ProviderConfig(
    name="kimi",
    base_url="https://api.moonshot.cn/v1",
    models={
        "chat": ModelConfig(
            logical_name="chat",
            provider_model="kimi-k2-turbo-preview",
            max_tokens=8192,
            default_temperature=0.7,
        )
    },
    api_key_field="kimi_api_key",
    base_url_field="kimi_base_url",
)

GLM_CONFIG = ProviderConfig(
    name="glm",
    base_url="https://open.bigmodel.cn/api/paas/v4",
    models={
        "chat": ModelConfig(
            logical_name="chat",
            provider_model="glm-4.6",
            max_tokens=8192,
            default_temperature=0.7,
        )
    },
    api_key_field="glm_api_key",
    base_url_field="glm_base_url",
)


PROVIDER_REGISTRY: Mapping[str, ProviderConfig] = {
    "openai": OPENAI_CONFIG,
    "kimi": KIMI_CONFIG,
    "glm": GLM_CONFIG,
}


def get_provider_config(name: str) -> ProviderConfig:
    """按名称查找 ProviderConfig，忽略大小写。"""

    key = name.lower()
    for k, cfg in PROVIDER_REGISTRY.items():
        if k.lower() == key:
            return cfg
    raise KeyError(f"Unknown provider: {name!r}")
