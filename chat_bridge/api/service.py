"""对外 API 服务模块。

提供简化的函数接口供上层应用（设置界面、聊天窗口）调用。
界面层负责持久化 endpoint/凭证/系统提示词等设置，并通过这里的 setter 同步给核心。
"""

from typing import Optional, Sequence

from chat_bridge.config.settings import settings
from chat_bridge.domain.exceptions import ValidationError
from chat_bridge.domain.models import ChatMessage, ChatResult
from chat_bridge.providers.client import ChatClient, ClientConfig
from chat_bridge.providers.decoder import DeltaCallback
from chat_bridge.providers.normalizer import compose_history


_client: Optional[ChatClient] = None


def get_default_client() -> ChatClient:
    """获取默认的 ChatClient 实例（单例）。"""
    global _client
    if _client is None:
        _client = ChatClient(settings)
    return _client


def set_credential(raw: str) -> ClientConfig:
    return get_default_client().set_credential(raw)


def set_base_endpoint(url: str) -> ClientConfig:
    """切换 endpoint。

    凭证格式与新 endpoint 的认证方式不匹配时（例如从 Bearer 切到签名网关）
    会抛 CredentialFormatError，此时应改用 configure() 一次性设置 endpoint 与凭证。
    """
    return get_default_client().set_base_endpoint(url)


def configure(base_endpoint: str, credential: Optional[str]) -> ClientConfig:
    return get_default_client().configure(base_endpoint, credential)


def send_message(
    history: Sequence[ChatMessage],
    model: Optional[str] = None,
    on_delta: Optional[DeltaCallback] = None,
) -> ChatResult:
    """发送完整历史；传入 on_delta 时以流式方式请求。"""

    return get_default_client().send_message(history, model=model, on_delta=on_delta)


def chat(
    user_input: str,
    history: Sequence[ChatMessage] = (),
    model: Optional[str] = None,
    on_delta: Optional[DeltaCallback] = None,
) -> ChatResult:
    """发送一轮用户输入。

    Args:
        user_input: 用户输入内容
        history: 之前的对话消息（不含系统提示词）
        model: 逻辑模型名（可选，默认取配置）
        on_delta: 增量回调（可选）；未提供且配置开启 stream 时，结果仍以流式方式获取

    Returns:
        ChatResult，其中 message 为本轮助手回复

    Raises:
        各种 domain.exceptions 中定义的异常
    """

    if not user_input or not user_input.strip():
        raise ValidationError(code="EMPTY_INPUT", message="user_input is empty")
    messages = compose_history(history, user_input=user_input, system_prompt=settings.system_prompt)
    if on_delta is None and settings.stream:
        on_delta = _discard_delta
    return send_message(messages, model=model or settings.default_model, on_delta=on_delta)


def _discard_delta(content: Optional[str], reasoning_content: Optional[str]) -> None:
    return None
