r"""FSBT 卷积核 :math:`M_{lm}(t)`

核函数是 :math:`x^{3/2-m} j_l(x)` 关于 :math:`\ln x` 的 Fourier（Mellin）变换：

.. math::

    M_{lm}(t) = \frac{1}{2\pi}\int_{-\infty}^{\infty}
        e^{(3/2-m)x} j_l(e^x)\, e^{-ixt}\,\mathrm{d}x
      = \frac{\sqrt{\pi}\,2^{s-2}}{2\pi}
        \frac{\Gamma\!\left(\frac{l+s}{2}\right)}{\Gamma\!\left(\frac{l+3-s}{2}\right)},
      \quad s = \tfrac{3}{2} - m - it

实际计算不调用通用 Gamma 函数，而是分解为三部分：

1. 相位 :math:`\varphi_1 = \arg\Gamma(\tfrac12 - it)`：先用递推
   :math:`\Gamma(z) = \Gamma(z+n)/\prod_{j<n}(z+j)` 把宗量移到 :math:`n+\tfrac12`（取 :math:`n=10`），
   再用 Stirling 渐近级数（截断到 :math:`1/z^5` 项）；
2. 相位 :math:`\varphi_2 = \arctan\tanh(\pi t/2)`，来自 :math:`\sin` 因子的辐角；
3. 模与剩余相位：对整数间隔的宗量，用复数乘除递推精确得到
   :math:`\Gamma(3/2+m-it)/\Gamma(3/2+l+it)` 型比值。

截断阶数 :math:`n=10` 与级数长度决定相位精度（首个略去项不超过 :math:`4\times 10^{-11}`，
:math:`|t|` 增大时更小），修改时需同步更新测试中的容差。

References
----------
.. [Talman1978] J. D. Talman, "Numerical Fourier and Bessel Transforms in
   Logarithmic Variables", J. Comp. Phys. 29, 35 (1978), eqs. (8), (9), (17).
.. [Talman2003] J. D. Talman, "Numerical Methods for Multicenter Integrals for
   Numerically Defined Basis Functions Applied in Molecular Calculations",
   Int. J. Quantum Chem. 93, 72 (2003), eqs. (3.12)-(3.14).
"""

from __future__ import annotations

import math

import numpy as np

from .errors import InvalidArgument, NumericOverflow

__all__ = [
    "STIRLING_SHIFT",
    "kernel_index",
    "kernel_rows",
    "m_kernel",
    "build_kernel_table",
]

# Gamma 宗量平移量 n（Stirling 级数在 n+1/2 处展开）
STIRLING_SHIFT = 10


def kernel_index(l: int, m: int, lmax: int | None = None) -> int:
    r"""返回 (l, m) 在展平核函数表中的行号 ``l*(l+1)+m``。

    要求 :math:`0 \le m \le l`；若给出 ``lmax`` 还要求 :math:`l < l_{\max}`。
    """
    if isinstance(l, bool) or isinstance(m, bool) or int(l) != l or int(m) != m:
        raise InvalidArgument(f"l, m 必须为整数: l={l}, m={m}")
    l, m = int(l), int(m)
    if not (0 <= m <= l):
        raise InvalidArgument(f"要求 0 <= m <= l，当前 l={l}, m={m}")
    if lmax is not None and l >= lmax:
        raise InvalidArgument(f"要求 l < lmax={lmax}，当前 l={l}")
    return l * (l + 1) + m


def kernel_rows(lmax: int) -> int:
    """核函数表的行数 ``lmax*(lmax+1)``（含 m > l 的空行）。"""
    return lmax * (lmax + 1)


def _phase_gamma_half(t: np.ndarray) -> np.ndarray:
    r"""Stirling 渐近级数给出的 :math:`\arg\Gamma(\tfrac12 - it)`。"""
    n = STIRLING_SHIFT
    nh = 0.5 + n
    rr = nh * nh + t * t
    r = np.sqrt(rr)
    phi = np.arctan2(2.0 * t, 2.0 * nh)
    p1 = (
        t * (1.0 - np.log(r))
        - phi * n
        + (np.sin(phi) - (np.sin(3.0 * phi) - np.sin(5.0 * phi) / 3.5 / rr) / 30.0 / rr) / 12.0 / r
    )
    for j in range(n):
        p1 = p1 + np.arctan2(2.0 * t, 1.0 + 2.0 * j)
    return p1


def _phase_sine(t: np.ndarray) -> np.ndarray:
    # atan2(e^{πt}-1, e^{πt}+1) 的等价形式，大 |t| 时不溢出
    return np.arctan(np.tanh(0.5 * math.pi * t))


def m_kernel(t: np.ndarray | float, l: int, m: int) -> np.ndarray:
    r"""在相位网格上计算核函数 :math:`M_{lm}(t)`。

    Parameters
    ----------
    t : numpy.ndarray or float
        相位网格点。
    l : int
        角动量 :math:`l \ge 0`。
    m : int
        参数 :math:`0 \le m \le l`。

    Returns
    -------
    numpy.ndarray
        复数数组，与 ``t`` 同形状。

    Raises
    ------
    InvalidArgument
        (l, m) 不满足 :math:`0 \le m \le l`。
    NumericOverflow
        Gamma 比值递推出现非有限值（:math:`|t|` 过大）。

    Notes
    -----
    Gamma 比值以实部/虚部数组显式递推：先乘 :math:`p=l-m` 个因子
    :math:`(j+\tfrac12) - it`，再除 :math:`l` 个因子 :math:`(\tfrac32+2j-p) + it`
    （共轭归一化除法）。:math:`m=l` 时乘法循环为空，核函数退化为
    :math:`\frac{1}{\sqrt{8\pi}}\prod_j (\tfrac32+2j+it)^{-1} e^{i(\varphi_1-\varphi_2)}`。
    """
    kernel_index(l, m)
    t = np.asarray(t, dtype=float)
    if not np.all(np.isfinite(t)):
        raise NumericOverflow("相位网格包含非有限值")
    with np.errstate(over="ignore", invalid="ignore"):
        M = _m_kernel_unchecked(t, int(l), int(m))
    if not np.all(np.isfinite(M)):
        raise NumericOverflow(f"Gamma 比值递推溢出 (l={l}, m={m})，请减小相位网格范围")
    return M


def _m_kernel_unchecked(t: np.ndarray, l: int, m: int) -> np.ndarray:
    p = l - m
    cp = math.cos(math.pi * p / 2.0)
    sp = math.sin(math.pi * p / 2.0)

    p1 = _phase_gamma_half(t)
    p2 = _phase_sine(t)

    prod_re = np.full(t.shape, 1.0 / math.sqrt(8.0 * math.pi))
    prod_im = np.zeros(t.shape)

    ci = -t
    for j in range(p):
        cr = 0.5 + j
        re = prod_re * cr - prod_im * ci
        im = prod_re * ci + prod_im * cr
        prod_re, prod_im = re, im

    ci = t
    for j in range(l):
        cr = 1.5 + 2.0 * j - p
        norm = cr * cr + ci * ci
        re = (prod_re * cr + prod_im * ci) / norm
        im = (prod_im * cr - prod_re * ci) / norm
        prod_re, prod_im = re, im

    cr = cp * np.cos(p1 - p2) + sp * np.cos(p1 + p2)
    ci = cp * np.sin(p1 - p2) + sp * np.sin(p1 + p2)
    return (prod_re * cr - prod_im * ci) + 1j * (prod_re * ci + prod_im * cr)


def build_kernel_table(t: np.ndarray, lmax: int) -> np.ndarray:
    r"""为 :math:`0 \le m \le l < l_{\max}` 构建展平的核函数表。

    Parameters
    ----------
    t : numpy.ndarray
        相位网格（长度 :math:`N`）。
    lmax : int
        角动量上界（不含），要求 :math:`l_{\max} \ge 1`。

    Returns
    -------
    numpy.ndarray
        形状 ``(lmax*(lmax+1), N)`` 的 ``complex128`` 数组；第 ``l*(l+1)+m`` 行为
        :math:`M_{lm}(t)`，m > l 对应的行保持为零。
    """
    if isinstance(lmax, bool) or int(lmax) != lmax or lmax < 1:
        raise InvalidArgument(f"lmax 必须为正整数，当前值: {lmax}")
    lmax = int(lmax)
    t = np.asarray(t, dtype=float)
    table = np.zeros((kernel_rows(lmax), t.size), dtype=complex)
    for l in range(lmax):
        for m in range(l + 1):
            table[kernel_index(l, m)] = m_kernel(t, l, m)
    return table
