"""FSBT 异常类型

所有错误均显式抛给调用者，不做静默修正：

- :class:`AllocationError`：构造阶段内存不足（已分配的数组会先释放）
- :class:`InvalidArgument`：角动量越界、缓冲区长度不符、未执行前向阶段即调用后向阶段等
- :class:`NumericOverflow`：指数前因子超出双精度安全范围，或核函数出现非有限值
- :class:`DFTBackendError`：外部 DFT 原语失败（环境配置问题，不重试）

各类同时继承对应的内置异常，便于以 ``ValueError`` / ``OverflowError`` 等方式捕获。
"""

from __future__ import annotations

__all__ = [
    "FSBTError",
    "AllocationError",
    "InvalidArgument",
    "NumericOverflow",
    "DFTBackendError",
]


class FSBTError(Exception):
    """logsbt 所有异常的基类。"""


class AllocationError(FSBTError, MemoryError):
    """构造 FSBT 上下文时无法分配网格或核函数表。"""


class InvalidArgument(FSBTError, ValueError):
    """参数不合法：(l, m) 越界、数组长度不匹配或上下文状态不允许该操作。"""


class NumericOverflow(FSBTError, OverflowError):
    """指数参数的绝对值超过安全上限，继续计算将得到 inf/NaN。"""


class DFTBackendError(FSBTError, RuntimeError):
    """DFT 原语抛出异常或返回了形状不符的结果。"""
