"""统一的对话客户端。

ChatClient 把各模块串起来：

1. 读取调用开始时的 ClientConfig 快照（endpoint + profile + 认证头）。
2. Normalizer 规整历史消息。
3. Registry 给出模型别名与 max_tokens。
4. Transport 发送请求。
5. Decoder 解析结果（流式时逐条回调增量）。

endpoint 或凭证变化时会整体生成一个新的 ClientConfig 并原子替换，
进行中的调用始终看到一致的 endpoint/认证头组合。
"""

import threading
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence

from chat_bridge.domain.exceptions import BusinessError, ValidationError
from chat_bridge.domain.models import ChatMessage, ChatResult
from chat_bridge.infrastructure.logging.logger import logger
from chat_bridge.providers import decoder, transport
from chat_bridge.providers.decoder import DeltaCallback
from chat_bridge.providers.normalizer import normalize
from chat_bridge.providers.registry import ProviderProfile, get_model_config, resolve
from chat_bridge.providers.signer import apply_credentials


@dataclass(frozen=True)
class ClientConfig:
    """一次调用所需的全部连接信息，创建后不可修改。"""

    base_endpoint: str
    profile: ProviderProfile
    credential: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def build(cls, base_endpoint: str, credential: Optional[str]) -> "ClientConfig":
        """解析 profile 并重新生成认证头（签名方案会得到新的 nonce/timestamp）。"""

        profile = resolve(base_endpoint)
        headers = apply_credentials(profile, credential) if credential else {}
        return cls(
            base_endpoint=base_endpoint,
            profile=profile,
            credential=credential,
            headers=MappingProxyType(dict(headers)),
        )


class ChatClient:
    """对外统一调用入口。"""

    def __init__(self, settings, base_endpoint: Optional[str] = None, credential: Optional[str] = None):
        # Settings 里包含默认 endpoint、凭证、超时等配置
        self._settings = settings
        self._lock = threading.Lock()
        self._config = ClientConfig.build(
            base_endpoint or settings.base_endpoint,
            credential if credential is not None else getattr(settings, "api_credential", None),
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    def configure(self, base_endpoint: str, credential: Optional[str]) -> ClientConfig:
        """同时切换 endpoint 与凭证，避免中间态（例如签名 endpoint 配上 Bearer 凭证）。"""

        with self._lock:
            self._config = ClientConfig.build(base_endpoint, credential)
            cfg = self._config
        self._log_config(cfg)
        return cfg

    def set_base_endpoint(self, url: str) -> ClientConfig:
        """切换 endpoint，沿用当前凭证重新生成认证头。

        新 endpoint 为签名方案而当前凭证不是 appId:appKey 时抛 CredentialFormatError，
        原配置保持不变；需要同时切换两者时用 configure()。
        """

        with self._lock:
            self._config = ClientConfig.build(url, self._config.credential)
            cfg = self._config
        self._log_config(cfg)
        return cfg

    def set_credential(self, raw: str) -> ClientConfig:
        with self._lock:
            self._config = ClientConfig.build(self._config.base_endpoint, raw)
            cfg = self._config
        self._log_config(cfg)
        return cfg

    def send_message(
        self,
        history: Sequence[ChatMessage],
        model: Optional[str] = None,
        on_delta: Optional[DeltaCallback] = None,
    ) -> ChatResult:
        """执行一次对话调用。

        传入 on_delta 时以流式方式请求，并在响应体读完后按顺序回调每条增量；
        否则走非流式接口。返回值总是完整的 ChatResult。
        """

        cfg = self._config
        if not cfg.credential:
            # 配置缺失走 ValidationError，方便上层统一处理
            raise ValidationError(code="MISSING_API_KEY", message="API credential not set")
        model = model or self._settings.default_model
        model_cfg = get_model_config(model)
        streaming = on_delta is not None
        messages = normalize(history, reasoning=model_cfg.reasoning)
        body = transport.build_body(cfg.profile, model_cfg, messages, streaming)

        started = time.monotonic()
        logger.info(
            "chat.request",
            extra={"extra": self._request_fields(cfg, body, messages)},
        )
        try:
            resp = transport.send(
                cfg.profile,
                cfg.base_endpoint,
                cfg.headers,
                body,
                streaming,
                timeout=self._settings.http_timeout,
            )
            if streaming:
                result = decoder.decode_stream(cfg.profile, transport.read_text(resp), on_delta, model=model)
            else:
                result = decoder.decode_final(cfg.profile, transport.read_json(resp), model=model)
        except BusinessError as e:
            logger.error(
                "chat.failed",
                extra={"extra": {"code": e.code, "http_status": e.http_status, "error": e.message[:500]}},
            )
            raise
        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            "chat.done",
            extra={
                "extra": {
                    "provider": cfg.profile.kind.value,
                    "model": model,
                    "stream": streaming,
                    "elapsed_ms": elapsed_ms,
                    "content_chars": len(result.message.content),
                }
            },
        )
        return result

    def _request_fields(self, cfg: ClientConfig, body: dict, messages: List[dict]) -> dict:
        fields = {
            "provider": cfg.profile.kind.value,
            "endpoint": cfg.base_endpoint,
            "model": body["model"],
            "stream": body["stream"],
            "messages": len(messages),
        }
        if not getattr(self._settings, "log_redact_content", False):
            fields["last_message"] = messages[-1]["content"][:200] if messages else ""
        return fields

    @staticmethod
    def _log_config(cfg: ClientConfig) -> None:
        logger.info(
            "config.updated",
            extra={"extra": {"provider": cfg.profile.kind.value, "endpoint": cfg.base_endpoint}},
        )
