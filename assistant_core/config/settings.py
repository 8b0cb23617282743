"""全局配置。

取值优先级：初始化参数 > 环境变量 > ``.env`` > ``config.yaml``。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_config_from_yaml() -> Dict[str, Any]:
    """若存在 config.yaml 则加载。"""
    candidates = []
    explicit = os.getenv("ASSISTANT_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])

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
    # ---- Provider ----
    default_provider: str = Field(
        default="openai",
        description="Provider used when none is named: openai, kimi or glm",
    )
    default_model: str = Field(
        default="chat",
        description="Logical model name, mapped to a vendor model by the registry",
    )

    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    openai_base_url: str = Field(default="https://api.openai.com/v1")
    kimi_api_key: Optional[str] = Field(default=None, description="Moonshot/Kimi API key")
    kimi_base_url: str = Field(default="https://api.moonshot.cn/v1")
    glm_api_key: Optional[str] = Field(default=None, description="GLM API key")
    glm_base_url: str = Field(default="https://open.bigmodel.cn/api/paas/v4")
    http_timeout: float = Field(default=30.0, ge=1.0, description="HTTP timeout in seconds")

    # ---- 日志 ----
    log_dir: str = Field(default="logs")
    log_level: str = Field(default="INFO")
    log_redact_content: bool = Field(default=False, description="Truncate logged messages")

    # ---- 助手 ----
    max_tool_rounds: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Model calls allowed in one run before it is aborted",
    )
    auto_tool_execution: bool = Field(
        default=False,
        description="Execute requested tool calls without waiting for the caller",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("openai_api_key", "kimi_api_key", "glm_api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v and len(v) < 10:
            raise ValueError("API key seems too short")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {v!r}")
        return level

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


settings = Settings()
