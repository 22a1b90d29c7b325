"""
app.core.exceptions
~~~~~~~~~~~~~~~~~~~

聊天中继的异常类型。

这些异常只在服务端内部流转：``ProtocolMisuse`` 在事件分发边界被丢弃，
``ServiceError`` 在 AI 回复桥接层被转换为兜底回复，都不会以原始错误的形式发给客户端。
"""
from __future__ import annotations


class RelayError(Exception):
    """所有中继相关异常的基类。"""


class ProtocolMisuse(RelayError):
    """入站事件格式错误：非法 JSON、未知事件名、payload 字段缺失或类型不对。"""


class ServiceError(RelayError):
    """外部生成式文本服务调用失败（异常、超时或返回内容不可用）。"""
