"""Chat Bridge 顶层包。

把 OpenAI 风格、Azure 部署与企业签名网关三类对话接口
统一成同一套调用方式：endpoint/模型映射、认证头生成、
推理模型的历史规整，以及 SSE 文本到增量序列的解析。
"""

from chat_bridge.domain.models import ChatMessage, ChatResult, StreamDelta
from chat_bridge.providers.client import ChatClient, ClientConfig

__all__ = ["ChatClient", "ClientConfig", "ChatMessage", "ChatResult", "StreamDelta"]
