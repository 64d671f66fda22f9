"""对话历史规整。

发往 Provider 之前：

1. 只保留 role/content，去掉 reasoning_content 与 meta。
2. 推理模型要求 user/assistant 严格交替：连续两条同角色（非 system）消息之间
   插入一条相反角色的占位消息。system 消息不参与比较，也不会重置上一角色。
"""

from typing import Dict, Iterable, List, Optional

from chat_bridge.domain.models import ChatMessage


FILLER_CONTENT = "继续"

_OPPOSITE_ROLE = {"user": "assistant", "assistant": "user"}


def _to_payload(message: ChatMessage) -> Dict[str, str]:
    return {"role": message.role, "content": message.content}


def normalize(history: Iterable[ChatMessage], reasoning: bool = False) -> List[Dict[str, str]]:
    """把历史消息转换为请求体里的 messages 列表。"""

    cleaned = [_to_payload(m) for m in history]
    if not reasoning:
        return cleaned

    out: List[Dict[str, str]] = []
    last_role: Optional[str] = None
    for msg in cleaned:
        role = msg["role"]
        if role == "system":
            out.append(msg)
            continue
        if role == last_role:
            out.append({"role": _OPPOSITE_ROLE[role], "content": FILLER_CONTENT})
        out.append(msg)
        last_role = role
    return out


def compose_history(
    history: Iterable[ChatMessage],
    user_input: Optional[str] = None,
    system_prompt: Optional[str] = None,
) -> List[ChatMessage]:
    """拼出一次调用的完整历史：可选系统提示词 + 历史 + 新的用户输入。"""

    messages: List[ChatMessage] = []
    if system_prompt:
        messages.append(ChatMessage(role="system", content=system_prompt))
    messages.extend(history)
    if user_input is not None and user_input.strip():
        messages.append(ChatMessage(role="user", content=user_input.strip()))
    return messages
