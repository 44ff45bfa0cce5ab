"""logsbt 包
=================

对数网格上的快速球 Bessel 变换（FSBT，Talman 方法），用于在实空间与倒空间之间
变换局域基函数的径向部分：

.. math::
    g(k) = \\int_0^\\infty j_l(kr)\\, f(r)\\, r^2\\,\\mathrm{d}r

本包包括：

- 自互易对数网格（:math:`\\Delta\\rho\\,\\Delta t\\,N = 2\\pi`）
- Gamma 比值卷积核 :math:`M_{lm}(t)` 的预计算表
- 两阶段（前向/后向）与一次性变换，前向结果在上下文中单槽缓存

注：本项目所有文档与注释均使用中文，Docstring 采用 Sphinx + NumPy 风格，公式使用 ``:math:`` 标记。
"""

from logsbt.errors import (
    AllocationError,
    DFTBackendError,
    FSBTError,
    InvalidArgument,
    NumericOverflow,
)
from logsbt.grid import LogMesh, build_log_mesh, phase_mesh
from logsbt.kernel import build_kernel_table, kernel_index, m_kernel
from logsbt.transform import FSBTConfig, FSBTContext, backward_dft, spherical_bessel_transform
from logsbt.utils import deinterleave, interleave, log_mesh_integrate

__all__ = [
    "FSBTError",
    "AllocationError",
    "InvalidArgument",
    "NumericOverflow",
    "DFTBackendError",
    "LogMesh",
    "build_log_mesh",
    "phase_mesh",
    "build_kernel_table",
    "kernel_index",
    "m_kernel",
    "FSBTConfig",
    "FSBTContext",
    "backward_dft",
    "spherical_bessel_transform",
    "interleave",
    "deinterleave",
    "log_mesh_integrate",
]

__version__ = "0.1.0"
