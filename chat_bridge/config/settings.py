"""配置管理模块。

支持从 .env、config.yaml 以及环境变量加载配置。
这里只提供调用方（设置界面等）需要读取的值，核心模块本身不写入任何持久化存储。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_BASE_ENDPOINT = "https://api.deepseek.com/v1"


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("CHAT_BRIDGE_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
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

    # ---- 连接相关配置 ----
    base_endpoint: str = Field(
        default=DEFAULT_BASE_ENDPOINT,
        description="API 基础URL，由 registry 按片段匹配出具体 Provider",
    )
    api_credential: Optional[str] = Field(
        default=None,
        description="凭证：Bearer token、api-key，或签名方案下的 appId:appKey",
    )
    http_timeout: float = Field(default=300.0, ge=1.0, description="HTTP 超时时间（秒）")

    # ---- 对话相关配置 ----
    default_model: str = Field(
        default="deepseek-chat",
        description="逻辑模型名，由 registry 映射为具体厂商模型",
    )
    system_prompt: str = Field(default="", description="每次对话前置的系统提示词")
    stream: bool = Field(default=False, description="是否以流式方式请求")

    # ---- 日志 ----
    log_dir: str = Field(default="logs", description="日志目录")
    log_level: str = Field(default="INFO", description="日志级别")
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

    @field_validator("api_credential")
    @classmethod
    def validate_credential(cls, v: Optional[str]) -> Optional[str]:
        if v and len(v.strip()) < 6:
            raise ValueError("API credential seems too short")
        return v.strip() if v else v

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
