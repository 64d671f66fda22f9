"""凭证 -> 认证请求头。

三种认证方式：

- bearer:  Authorization: Bearer <credential>
- api-key: api-key: <credential>
- signed:  凭证形如 "appId:appKey"，每次生成新的 nonce 与秒级时间戳，
  对 "appId=..&nonce=..&timestamp=..&appkey=.." 做摘要并转大写得到 sign。

签名头在每次 endpoint/凭证变化时整体重新生成，不会复用旧值。
"""

import hashlib
import time
from typing import Dict, Optional
from uuid import uuid4

from chat_bridge.domain.exceptions import CredentialFormatError, ValidationError
from chat_bridge.providers.registry import AuthScheme, ProviderProfile


SIGN_VERSION = "v2"


def build_sign(app_id: str, app_key: str, nonce: str, timestamp: int, digest: str = "md5") -> str:
    """计算签名：对规范串做摘要，返回大写十六进制。"""

    canonical = f"appId={app_id}&nonce={nonce}&timestamp={timestamp}&appkey={app_key}"
    try:
        h = hashlib.new(digest)
    except ValueError:
        raise ValidationError(code="UNSUPPORTED_DIGEST", message=f"Unsupported digest: {digest!r}")
    h.update(canonical.encode("utf-8"))
    return h.hexdigest().upper()


def split_credential(raw_credential: str) -> tuple[str, str]:
    """按第一个冒号拆分 appId 与 appKey。"""

    app_id, sep, app_key = (raw_credential or "").partition(":")
    if not sep or not app_id or not app_key:
        raise CredentialFormatError(
            code="CREDENTIAL_FORMAT",
            message="Signed credential must look like 'appId:appKey'",
        )
    return app_id, app_key


def apply_credentials(
    profile: ProviderProfile,
    raw_credential: str,
    *,
    now: Optional[float] = None,
    nonce: Optional[str] = None,
) -> Dict[str, str]:
    """根据 profile 的认证方式生成请求头。

    `now`/`nonce` 仅用于测试时固定签名输入，正常调用留空即可。
    """

    if profile.auth_scheme == AuthScheme.BEARER:
        return {"Authorization": f"Bearer {raw_credential}"}
    if profile.auth_scheme == AuthScheme.API_KEY:
        return {"api-key": raw_credential}

    app_id, app_key = split_credential(raw_credential)
    nonce = nonce or uuid4().hex
    timestamp = int(now if now is not None else time.time())
    sign = build_sign(app_id, app_key, nonce, timestamp, profile.digest)
    return {
        "appId": app_id,
        "nonce": nonce,
        "timestamp": str(timestamp),
        "sign": sign,
        "version": SIGN_VERSION,
    }
