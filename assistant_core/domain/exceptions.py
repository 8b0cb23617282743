"""统一业务异常模型。

所有跨模块抛出的业务级错误都继承自 BusinessError，
便于应用层统一捕获，同时保留机器可读的错误码。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "TOOL_NOT_FOUND"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 tool_call_id、provider 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class ValidationError(BusinessError):
    """参数或配置校验失败。"""


class ConfigurationError(BusinessError):
    """Assistant 装配了不合法的协作对象。

    在构造阶段、修改 Thread 之前抛出。
    """


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(BusinessError):
    """第三方 API 返回非 2xx/429 错误或无法解析的响应时抛出。"""


class RateLimitError(BusinessError):
    """Provider 限流错误，由上层负责重试/退避策略。"""


class DispatchError(BusinessError):
    """无法完成某次工具调用。

    Assistant 会把这类错误转换为 tool 消息内容反馈给模型，而不是中止本次运行。
    """


class ToolNotFoundError(DispatchError):
    """工具或操作不存在，或组合名称格式错误。"""


class ToolArgumentsError(DispatchError):
    """参数无法解码，或与操作签名不匹配。"""


class ToolExecutionError(DispatchError):
    """工具操作本身抛出异常。"""


class LoopExceededError(BusinessError):
    """单次运行所需的模型调用轮数超过上限。"""
