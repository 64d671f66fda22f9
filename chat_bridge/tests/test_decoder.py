import json
import logging

import pytest

from chat_bridge.domain.exceptions import DecodeError
from chat_bridge.providers.decoder import decode_final, decode_stream, iter_deltas
from chat_bridge.providers.registry import AZURE_PROFILE, OPENAI_PROFILE, SIGNED_PROFILE


def _collect():
    calls = []

    def on_delta(content, reasoning_content):
        calls.append((content, reasoning_content))

    return calls, on_delta


def test_decode_stream_basic():
    raw = (
        'data: {"choices":[{"delta":{"content":"He"}}]}\n\n'
        'data: {"choices":[{"delta":{"content":"llo"}}]}\n\n'
        "data: [DONE]"
    )
    calls, on_delta = _collect()
    res = decode_stream(OPENAI_PROFILE, raw, on_delta, model="deepseek-chat")
    assert calls == [("He", None), ("llo", None)]
    assert res.message.content == "Hello"
    assert res.message.role == "assistant"
    assert res.id == "stream-response"
    assert res.finish_reason == "stop"
    assert res.model == "deepseek-chat"


def test_decode_stream_skips_keepalive_and_bad_json():
    raw = "\n".join(
        [
            'data: {"choices":[{"delta":{"content":"a"}}]}',
            ": keep-alive",
            "data: not-json",
            "data: ",
            'data: {"choices":[{"delta":{"content":"b"}}]}',
            "data: [DONE]",
        ]
    )
    calls, on_delta = _collect()
    res = decode_stream(OPENAI_PROFILE, raw, on_delta)
    assert calls == [("a", None), ("b", None)]
    assert res.message.content == "ab"


def test_decode_stream_reasoning_and_content_order():
    raw = "\n".join(
        [
            'data: {"choices":[{"delta":{"role":"assistant","content":null,"reasoning_content":"think"}}]}',
            'data: {"choices":[{"delta":{"content":"x","reasoning_content":"more"}}]}',
            'data: {"choices":[{"delta":{"content":"y"},"finish_reason":"stop"}]}',
            "data: [DONE]",
        ]
    )
    calls, on_delta = _collect()
    res = decode_stream(OPENAI_PROFILE, raw, on_delta)
    assert calls == [(None, "think"), ("x", None), (None, "more"), ("y", None)]
    assert res.message.content == "xy"
    assert res.message.reasoning_content == "thinkmore"


def test_decode_stream_top_level_delta_fallback():
    raw = 'data: {"delta":{"content":"z"}}\ndata: [DONE]\n'
    res = decode_stream(AZURE_PROFILE, raw)
    assert res.message.content == "z"


def test_decode_stream_signed_detail_shape():
    raw = "\n".join(
        [
            'data: {"detail":{"choices":[{"message":{"content":"hi"}}]}}',
            'data: {"detail":{"choices":[{"message":{"reasoning_content":"r"}}]}}',
            "data: [DONE]",
        ]
    )
    deltas = list(iter_deltas(SIGNED_PROFILE, raw))
    assert [d.content for d in deltas] == ["hi", None]
    calls, on_delta = _collect()
    res = decode_stream(SIGNED_PROFILE, raw, on_delta)
    assert calls == [("hi", None), (None, "r")]
    assert res.message.content == "hi"
    assert res.provider == "signed"


def test_decode_stream_without_callback():
    res = decode_stream(OPENAI_PROFILE, "")
    assert res.message.content == ""
    assert res.message.reasoning_content == ""


def test_decode_final_default():
    envelope = {
        "id": "cmpl-1",
        "choices": [
            {
                "message": {"role": "assistant", "content": "ok", "reasoning_content": "because"},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 1, "completion_tokens": 1, "total_tokens": 2},
    }
    res = decode_final(OPENAI_PROFILE, envelope, model="deepseek-reasoner")
    assert res.id == "cmpl-1"
    assert res.message.content == "ok"
    assert res.message.reasoning_content == "because"
    assert res.finish_reason == "stop"
    assert res.usage.total_tokens == 2
    assert res.raw is envelope


def test_decode_final_signed_envelope():
    envelope = {"detail": {"choices": [{"message": {"content": "hi"}, "finish_reason": "stop"}]}}
    res = decode_final(SIGNED_PROFILE, envelope)
    assert res.message.content == "hi"
    assert res.finish_reason == "stop"


def test_decode_final_without_choices():
    with pytest.raises(DecodeError):
        decode_final(OPENAI_PROFILE, {"choices": []})
    with pytest.raises(DecodeError):
        decode_final(SIGNED_PROFILE, {"choices": [{"message": {"content": "x"}}]})
    with pytest.raises(DecodeError):
        decode_final(OPENAI_PROFILE, ["not", "an", "object"])


def test_decode_stream_keeps_unicode_line_separators():
    text = "a\u2028b\u2029c\x85d"
    raw = (
        "data: " + json.dumps({"choices": [{"delta": {"content": text}}]}, ensure_ascii=False) + "\r\n\r\n"
        "data: [DONE]"
    )
    calls, on_delta = _collect()
    res = decode_stream(OPENAI_PROFILE, raw, on_delta)
    assert calls == [(text, None)]
    assert res.message.content == text


def test_decode_stream_skips_keepalive_data_quietly(caplog):
    raw = "\n".join(
        [
            "data: : keep-alive",
            'data: {"choices":[{"delta":{"content":"a"}}]}',
            "data: [DONE]",
        ]
    )
    with caplog.at_level(logging.WARNING, logger="chat_bridge"):
        res = decode_stream(OPENAI_PROFILE, raw)
    assert res.message.content == "a"
    assert not [r for r in caplog.records if r.getMessage() == "stream.bad_line"]


def test_decode_final_rejects_non_object_message():
    with pytest.raises(DecodeError):
        decode_final(OPENAI_PROFILE, {"choices": [{"message": ["x"], "finish_reason": "stop"}]})


def test_decode_final_ignores_non_object_usage():
    envelope = {"choices": [{"message": {"content": "ok"}}], "usage": [1, 2, 3]}
    res = decode_final(OPENAI_PROFILE, envelope)
    assert res.message.content == "ok"
    assert res.usage is None
