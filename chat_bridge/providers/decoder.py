"""响应解析：厂商 JSON / SSE 文本 -> 统一的 ChatResult。

非流式：按 profile 的 envelope 解开外层（detail 方案多包一层），
再读取 choices[0].message 与 finish_reason。

流式：整段 SSE 文本逐行解析，所有 Provider 共用同一个循环，
差异只在“从一条事件中取出增量”的提取函数：

- choices 方案：choices[0].delta，缺失时退回顶层 delta。
- detail 方案：detail.choices[0].message（携带的是截至目前的整条消息字段，
  按同样规则累加）。

单行 JSON 解析失败只记日志并跳过，不会中断整个解析。
"""

import json
from typing import Any, Callable, Dict, Iterator, Mapping, Optional

from chat_bridge.domain.exceptions import DecodeError
from chat_bridge.domain.models import ChatChoice, ChatMessage, ChatResult, ChatUsage, StreamDelta
from chat_bridge.infrastructure.logging.logger import logger
from chat_bridge.providers.registry import Envelope, ProviderProfile


STREAM_RESPONSE_ID = "stream-response"
DONE_SENTINEL = "[DONE]"

DeltaCallback = Callable[[Optional[str], Optional[str]], None]


def _first_choice(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        return {}
    choices = payload.get("choices") or []
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return {}
    return choices[0]


def _delta_from(fields: Any) -> StreamDelta:
    if not isinstance(fields, dict):
        return StreamDelta()
    return StreamDelta(
        content=fields.get("content"),
        reasoning_content=fields.get("reasoning_content"),
    )


def extract_choices_delta(event: Mapping[str, Any]) -> StreamDelta:
    delta = _first_choice(event).get("delta")
    if delta is None:
        delta = event.get("delta")
    return _delta_from(delta)


def extract_detail_delta(event: Mapping[str, Any]) -> StreamDelta:
    return _delta_from(_first_choice(event.get("detail")).get("message"))


EXTRACTORS: Dict[Envelope, Callable[[Mapping[str, Any]], StreamDelta]] = {
    Envelope.CHOICES: extract_choices_delta,
    Envelope.DETAIL: extract_detail_delta,
}


def _is_skippable(line: str) -> bool:
    stripped = line.strip()
    # 空行，或 SSE 注释行（例如 ": keep-alive"）
    return not stripped or stripped.startswith(":")


def _strip_data_prefix(line: str) -> str:
    stripped = line.strip()
    if stripped.startswith("data:"):
        return stripped[5:].strip()
    return stripped


def iter_deltas(profile: ProviderProfile, raw_text: str) -> Iterator[StreamDelta]:
    """按源顺序产出每条 SSE 事件的增量。"""

    extract = EXTRACTORS[profile.envelope]
    # 只按 "\n" 切分：JSON 字符串里可能原样出现 U+2028 等字符
    for line in raw_text.split("\n"):
        if _is_skippable(line):
            continue
        data_str = _strip_data_prefix(line)
        if not data_str or data_str == DONE_SENTINEL or data_str.startswith(":"):
            continue
        try:
            event = json.loads(data_str)
        except json.JSONDecodeError as e:
            logger.warning(
                "stream.bad_line",
                extra={"extra": {"line": data_str[:200], "error": str(e)}},
            )
            continue
        if not isinstance(event, dict):
            logger.warning("stream.bad_line", extra={"extra": {"line": data_str[:200]}})
            continue
        yield extract(event)


def decode_stream(
    profile: ProviderProfile,
    raw_text: str,
    on_delta: Optional[DeltaCallback] = None,
    model: Optional[str] = None,
) -> ChatResult:
    """解析整段 SSE 文本，逐条回调增量，并返回累加后的完整结果。"""

    content_parts = []
    reasoning_parts = []
    for delta in iter_deltas(profile, raw_text):
        if delta.content is not None:
            content_parts.append(delta.content)
            if on_delta:
                on_delta(delta.content, None)
        if delta.reasoning_content is not None:
            reasoning_parts.append(delta.reasoning_content)
            if on_delta:
                on_delta(None, delta.reasoning_content)

    message = ChatMessage(
        role="assistant",
        content="".join(content_parts),
        reasoning_content="".join(reasoning_parts),
    )
    return ChatResult(
        id=STREAM_RESPONSE_ID,
        provider=profile.kind.value,
        model=model,
        choices=[ChatChoice(index=0, message=message, finish_reason="stop")],
    )


def unwrap_envelope(profile: ProviderProfile, envelope: Any) -> Dict[str, Any]:
    """去掉 Provider 特有的外层包装，得到 OpenAI 风格的响应体。"""

    if not isinstance(envelope, dict):
        raise DecodeError(code="DECODE_ERROR", message="Response envelope is not an object")
    if profile.envelope == Envelope.DETAIL:
        inner = envelope.get("detail")
        if not isinstance(inner, dict):
            raise DecodeError(code="DECODE_ERROR", message="Response envelope has no 'detail' object")
        return inner
    return envelope


def decode_final(profile: ProviderProfile, envelope: Any, model: Optional[str] = None) -> ChatResult:
    """把非流式响应 JSON 解析为 ChatResult。"""

    body = unwrap_envelope(profile, envelope)
    choice = _first_choice(body)
    if not choice:
        raise DecodeError(code="DECODE_ERROR", message="Response contains no choices")
    msg = choice.get("message") or {}
    if not isinstance(msg, dict):
        raise DecodeError(code="DECODE_ERROR", message="Response choice has no message object")
    message = ChatMessage(
        role="assistant",
        content=msg.get("content") or "",
        reasoning_content=msg.get("reasoning_content"),
    )
    usage_raw = body.get("usage")
    usage = None
    if isinstance(usage_raw, dict) and usage_raw:
        usage = ChatUsage(
            prompt_tokens=usage_raw.get("prompt_tokens", 0),
            completion_tokens=usage_raw.get("completion_tokens", 0),
            total_tokens=usage_raw.get("total_tokens", 0),
        )
    return ChatResult(
        id=str(body.get("id") or envelope.get("id") or ""),
        provider=profile.kind.value,
        model=model,
        choices=[ChatChoice(index=0, message=message, finish_reason=choice.get("finish_reason"))],
        usage=usage,
        raw=envelope,
    )
