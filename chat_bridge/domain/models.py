"""统一的对话与结果数据模型。

本模块定义了在不同 Provider 之间共享的标准数据结构：

- ChatMessage: 一条对话消息（system/user/assistant）。
- StreamDelta: 流式响应中解析出的一条增量。
- ChatResult: 从 Provider 解析后的统一响应结果。

所有 Provider 适配逻辑（registry/decoder 等）只依赖这些模型，
并负责在各自的 API JSON 和这些模型之间做转换。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional


# 消息角色类型（与 OpenAI 风格接口的 role 字段对应）
Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    """一条对话消息，既可用于请求，也可用于响应。

    - role: 消息角色，system/user/assistant。
    - content: 纯文本内容。
    - reasoning_content: 推理模型返回的思考过程，仅用于展示，
      永远不会作为请求输入再发回 Provider。
    - meta: 附加元数据（UI 状态、时间戳等），同样不发给 Provider。
    """

    role: Role
    content: str
    reasoning_content: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class StreamDelta:
    """一条 SSE 事件解析出的增量，两个字段都可能缺失。"""

    content: Optional[str] = None
    reasoning_content: Optional[str] = None


@dataclass
class ChatUsage:
    """Provider 返回的 token 统计信息（统一格式）。"""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class ChatChoice:
    """单个候选回答（目前只使用 index=0 的一条）。"""

    index: int
    message: ChatMessage
    finish_reason: Optional[str] = None


@dataclass
class ChatResult:
    """一次对话调用的最终结果。

    - id: 响应 ID；流式调用固定为 "stream-response"。
    - provider: 命中的 Provider 类型（如 "openai"）。
    - model: 调用方使用的逻辑模型名。
    - choices: 候选回答。
    - usage: 可选的 token 使用统计。
    - raw: 原始响应 JSON，用于调试或日志记录。
    """

    id: str
    provider: str
    model: Optional[str]
    choices: List[ChatChoice]
    usage: Optional[ChatUsage] = None
    raw: Optional[dict] = None

    @property
    def message(self) -> ChatMessage:
        return self.choices[0].message

    @property
    def finish_reason(self) -> Optional[str]:
        return self.choices[0].finish_reason
