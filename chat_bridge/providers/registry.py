"""Provider 与模型配置。

本模块把“基础 URL”映射到具体 Provider 的行为差异：

- 认证方式（Bearer / api-key / 签名）。
- 对话接口路径。
- 逻辑模型名到厂商模型名的映射（例如 "deepseek-reasoner" -> "DeepSeek-R1"）。
- 响应外层包装（choices 直出，或多包一层 detail）。

Provider 是一个封闭集合，每个 ProviderProfile 只是数据，
在设置 endpoint 时解析一次，之后随 ClientConfig 一起传递。"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple


class ProviderKind(str, Enum):
    OPENAI_COMPATIBLE = "openai"
    AZURE_STYLE = "azure"
    SIGNED_ENTERPRISE = "signed"


class AuthScheme(str, Enum):
    BEARER = "bearer"
    API_KEY = "api-key"
    SIGNED = "signed"


class Envelope(str, Enum):
    # 顶层直接是 {"choices": [...]}
    CHOICES = "choices"
    # 顶层是 {"detail": {"choices": [...]}}
    DETAIL = "detail"


@dataclass(frozen=True)
class ModelConfig:
    """单个逻辑模型的配置。"""

    logical_name: str
    max_tokens: int
    reasoning: bool = False


CHAT_MODEL = ModelConfig(logical_name="deepseek-chat", max_tokens=2000)
REASONER_MODEL = ModelConfig(logical_name="deepseek-reasoner", max_tokens=4000, reasoning=True)

MODELS: Mapping[str, ModelConfig] = {
    CHAT_MODEL.logical_name: CHAT_MODEL,
    REASONER_MODEL.logical_name: REASONER_MODEL,
}


@dataclass(frozen=True)
class ProviderProfile:
    """某个 Provider 的请求/认证/响应规则。"""

    kind: ProviderKind
    match_fragment: Optional[str]
    auth_scheme: AuthScheme
    chat_path: str
    envelope: Envelope
    model_aliases: Mapping[str, str] = field(default_factory=dict)
    digest: str = "md5"

    def alias(self, model: str) -> str:
        """逻辑模型名 -> 厂商模型名；未配置别名时原样返回。"""

        return self.model_aliases.get(model, model)


OPENAI_PROFILE = ProviderProfile(
    kind=ProviderKind.OPENAI_COMPATIBLE,
    match_fragment=None,
    auth_scheme=AuthScheme.BEARER,
    chat_path="/chat/completions",
    envelope=Envelope.CHOICES,
)

# Azure AI 的 serverless 部署，域名形如 xxx.eastus.models.ai.azure.com
AZURE_PROFILE = ProviderProfile(
    kind=ProviderKind.AZURE_STYLE,
    match_fragment=".azure.com",
    auth_scheme=AuthScheme.API_KEY,
    chat_path="/chat/completions",
    envelope=Envelope.CHOICES,
    model_aliases={
        "deepseek-chat": "DeepSeek-V3",
        "deepseek-reasoner": "DeepSeek-R1",
    },
)

SIGNED_PROFILE = ProviderProfile(
    kind=ProviderKind.SIGNED_ENTERPRISE,
    match_fragment="llm.internal",
    auth_scheme=AuthScheme.SIGNED,
    chat_path="/v1/chat/completions",
    envelope=Envelope.DETAIL,
    model_aliases={
        "deepseek-chat": "deepseek-v3",
        "deepseek-reasoner": "deepseek-r1",
    },
    digest="md5",
)


# 按顺序匹配，先命中者优先；默认 profile 不参与匹配
PROVIDER_PROFILES: Tuple[ProviderProfile, ...] = (AZURE_PROFILE, SIGNED_PROFILE)

PROVIDER_REGISTRY: Dict[ProviderKind, ProviderProfile] = {
    p.kind: p for p in (OPENAI_PROFILE, AZURE_PROFILE, SIGNED_PROFILE)
}


def resolve(base_endpoint: str) -> ProviderProfile:
    """根据基础 URL 选出 ProviderProfile，未命中时回落到 OpenAI 兼容配置。"""

    endpoint = (base_endpoint or "").lower()
    for profile in PROVIDER_PROFILES:
        if profile.match_fragment and profile.match_fragment in endpoint:
            return profile
    return OPENAI_PROFILE


def get_model_config(model: str) -> ModelConfig:
    """获取逻辑模型配置；未知模型按普通对话模型处理。"""

    cfg = MODELS.get(model)
    if cfg is not None:
        return cfg
    return ModelConfig(logical_name=model, max_tokens=CHAT_MODEL.max_tokens)
