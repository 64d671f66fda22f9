"""LLM Provider 适配层。

该包下的模块负责：
- 按 endpoint 选择 Provider 规则 (registry)。
- 生成认证请求头 (signer)。
- 规整对话历史 (normalizer)。
- 发送 HTTP 请求 (transport)。
- 解析响应/SSE 文本 (decoder)。
- 串联以上步骤的统一客户端 (client)。
"""

from typing import Optional

from chat_bridge.config.settings import settings
from chat_bridge.providers.client import ChatClient, ClientConfig


def create_client(base_endpoint: Optional[str] = None, credential: Optional[str] = None) -> ChatClient:
    """根据配置创建 ChatClient，参数为空时取 settings 中的值。"""

    return ChatClient(settings, base_endpoint=base_endpoint, credential=credential)


__all__ = ["ChatClient", "ClientConfig", "create_client"]
