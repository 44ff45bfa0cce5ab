from __future__ import annotations

import numpy as np

from .errors import InvalidArgument, NumericOverflow

__all__ = [
    "EXP_LIMIT",
    "check_exponent",
    "interleave",
    "deinterleave",
    "log_mesh_integrate",
]

# exp(709.78) 已接近 double 上限，留出余量
EXP_LIMIT = 700.0


def check_exponent(arg: np.ndarray | float, what: str = "指数") -> None:
    r"""检查 ``exp(arg)`` 的参数是否处于安全范围 :math:`|arg| \le 700`。

    超出时抛出 :class:`~logsbt.errors.NumericOverflow`，而不是让 ``numpy`` 静默给出
    ``inf`` 或 ``0``。
    """
    a = np.asarray(arg, dtype=float)
    if a.size == 0:
        return
    if not np.all(np.isfinite(a)):
        raise NumericOverflow(f"{what} 参数包含非有限值")
    amax = float(np.max(np.abs(a)))
    if amax > EXP_LIMIT:
        raise NumericOverflow(f"{what} 参数绝对值 {amax:.3f} 超过安全上限 {EXP_LIMIT}")


def interleave(z: np.ndarray) -> np.ndarray:
    """复数数组 → 交错实数缓冲区 ``[re0, im0, re1, im1, ...]``。"""
    z = np.asarray(z, dtype=complex)
    out = np.empty(2 * z.size, dtype=float)
    out[0::2] = z.real
    out[1::2] = z.imag
    return out


def deinterleave(buf: np.ndarray, n: int) -> np.ndarray:
    r"""把长度为 :math:`2N` 的交错实数缓冲区还原为长度 :math:`N` 的复数数组。

    为方便调用，也接受长度为 :math:`N` 的复数数组（直接复制返回）。

    Parameters
    ----------
    buf : numpy.ndarray
        偶数下标为实部、奇数下标为虚部的一维实数数组；或一维复数数组。
    n : int
        期望的网格点数 :math:`N`。

    Returns
    -------
    numpy.ndarray
        长度为 :math:`N` 的 ``complex128`` 数组（新分配，不与输入共享内存）。

    Raises
    ------
    InvalidArgument
        维数或长度与 :math:`N` 不符。
    """
    a = np.asarray(buf)
    if a.ndim != 1:
        raise InvalidArgument(f"样本缓冲区必须是一维数组，当前 ndim={a.ndim}")
    if np.iscomplexobj(a):
        if a.size != n:
            raise InvalidArgument(f"复数样本长度应为 ngrid={n}，实际为 {a.size}")
        return a.astype(complex, copy=True)
    if a.size != 2 * n:
        raise InvalidArgument(f"交错样本长度应为 2*ngrid={2 * n}，实际为 {a.size}")
    a = a.astype(float, copy=False)
    return a[0::2] + 1j * a[1::2]


def log_mesh_integrate(y: np.ndarray, r: np.ndarray, drho: float) -> float:
    r"""在对数等距网格上做一维积分。

    由 :math:`r = e^\rho`，:math:`\mathrm{d}r = r\,\mathrm{d}\rho`，采用矩形规则：

    .. math::
        \int f(r)\,\mathrm{d}r \approx \Delta\rho \sum_i f(r_i)\, r_i

    对两端已衰减到零的光滑函数，该规则具有谱精度（与梯形规则等价）。

    Parameters
    ----------
    y : numpy.ndarray
        被积函数在网格上的取值（实数或复数）。
    r : numpy.ndarray
        对数网格坐标 :math:`r_i`。
    drho : float
        对数步长 :math:`\Delta\rho`。
    """
    y = np.asarray(y)
    r = np.asarray(r)
    if y.shape != r.shape:
        raise InvalidArgument("y 与 r 的形状必须一致")
    s = np.sum(y * r) * drho
    if np.iscomplexobj(s):
        return complex(s)
    return float(s)
