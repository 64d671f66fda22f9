"""统一业务异常模型。

所有跨模块抛出的业务级错误都继承自 BusinessError，
调用方（UI/上层服务）可以统一捕获并给出通用的失败提示，
也可以按子类区分凭证错误、传输错误与解析错误。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "API_ERROR"）。
        message: 可读错误信息。
        http_status: 上游返回的 HTTP 状态码（没有时默认 400）。
        extra: 其他补充字段（例如 provider、endpoint 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class ValidationError(BusinessError):
    """参数或配置校验失败。"""


class CredentialFormatError(ValidationError):
    """签名方案要求 `appId:appKey` 形式的凭证，格式不符时抛出。"""


class TransportError(BusinessError):
    """一次 HTTP 调用失败（网络层或非 2xx 状态），不做内部重试。"""


class NetworkError(TransportError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(TransportError):
    """上游 API 返回非 2xx/429 错误时抛出。"""


class RateLimitError(TransportError):
    """Provider 限流错误，由上层决定是否重试。"""


class DecodeError(BusinessError):
    """整个响应无法被解释时抛出；单行 SSE 解析失败只记录日志并跳过。"""
