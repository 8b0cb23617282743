"""领域层模型与协议。

包含：
- models: 统一的 Message 以及 ChatRequest / ChatResult 模型。
- thread: 对话消息日志 Thread。
- exceptions: 业务异常类型定义。
"""
