"""HTTP 传输层。

每次调用只发一个 POST 到 `{endpoint}{profile.chat_path}`：

- 非流式：返回 JSON 响应。
- 流式：请求头带 Accept: text/event-stream，但仍一次性读完整个响应体，
  再交给 decoder 逐行解析。

网络错误与非 2xx 状态都包装为 TransportError 的子类抛出，不做重试。
"""

from typing import Any, Dict, List, Mapping

import httpx

from chat_bridge.domain.exceptions import ApiError, DecodeError, NetworkError, RateLimitError
from chat_bridge.providers.registry import ModelConfig, ProviderProfile


def build_url(profile: ProviderProfile, endpoint: str) -> str:
    return f"{endpoint.rstrip('/')}{profile.chat_path}"


def build_body(
    profile: ProviderProfile,
    model_cfg: ModelConfig,
    messages: List[Dict[str, str]],
    streaming: bool,
) -> Dict[str, Any]:
    """构造请求 JSON；推理模型使用更大的 max_tokens。"""

    return {
        "model": profile.alias(model_cfg.logical_name),
        "messages": messages,
        "stream": streaming,
        "max_tokens": model_cfg.max_tokens,
    }


def build_headers(auth_headers: Mapping[str, str], streaming: bool) -> Dict[str, str]:
    headers = dict(auth_headers)
    headers["Content-Type"] = "application/json"
    if streaming:
        headers["Accept"] = "text/event-stream"
    return headers


def send(
    profile: ProviderProfile,
    endpoint: str,
    headers: Mapping[str, str],
    body: Dict[str, Any],
    streaming: bool,
    *,
    timeout: float,
) -> httpx.Response:
    """发送一次请求，返回已读完响应体的 httpx.Response。"""

    url = build_url(profile, endpoint)
    try:
        with httpx.Client(timeout=timeout, trust_env=False) as client:
            resp = client.post(url, json=body, headers=build_headers(headers, streaming))
    except httpx.RequestError as e:
        # 网络错误：DNS 失败、连接超时等
        raise NetworkError(code="NETWORK_ERROR", message=str(e), url=url)
    if resp.status_code == 429:
        raise RateLimitError(
            code="RATE_LIMIT",
            message=f"{profile.kind.value} rate limit",
            http_status=429,
            url=url,
        )
    if resp.status_code >= 400:
        raise ApiError(code="API_ERROR", message=resp.text, http_status=resp.status_code, url=url)
    return resp


def read_text(resp: httpx.Response) -> str:
    """把响应体按文本解码。

    个别非法字节替换为 U+FFFD，对应的 SSE 行随后按坏行跳过；
    只有字符集本身无法识别时才抛 DecodeError。
    """

    try:
        return resp.content.decode(resp.encoding or "utf-8", errors="replace")
    except LookupError as e:
        raise DecodeError(code="DECODE_ERROR", message=f"Response body is not text: {e}")


def read_json(resp: httpx.Response) -> Any:
    """非流式响应体解析为 JSON；失败时抛 DecodeError。"""

    try:
        return resp.json()
    except ValueError as e:
        raise DecodeError(code="DECODE_ERROR", message=f"Response body is not JSON: {e}")
