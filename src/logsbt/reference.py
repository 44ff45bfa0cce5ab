r"""参考实现：用于校验 FSBT 的独立计算

- :func:`sbt_quadrature`：自适应数值积分 :math:`\int_0^\infty j_l(kr) f(r) r^2\,dr`
- :func:`gaussian_sbt`：高斯型函数 :math:`f(r) = r^l e^{-\alpha r^2}` 的解析变换
- :func:`m_kernel_mellin`：核函数的精确 Gamma 比值表达式

References
----------
.. [GR6.631] Gradshteyn & Ryzhik, Table of Integrals, Series, and Products, 6.631.4 / 6.561.14
"""

from __future__ import annotations

import math
from typing import Callable

import numpy as np
from scipy.integrate import quad
from scipy.special import loggamma, spherical_jn

__all__ = [
    "sbt_quadrature",
    "gaussian_sbt",
    "m_kernel_mellin",
]


def sbt_quadrature(
    f: Callable[[float], float],
    k: np.ndarray | float,
    l: int,
    rmax: float = np.inf,
    epsabs: float = 1e-14,
    epsrel: float = 1e-12,
    limit: int = 400,
) -> np.ndarray:
    r"""用 ``scipy.integrate.quad`` 逐点计算球 Bessel 变换。

    .. math::
        g(k) = \int_0^{r_\max} j_l(kr)\, f(r)\, r^2\,\mathrm{d}r

    Parameters
    ----------
    f : callable
        标量函数 :math:`f(r)`，需在 :math:`r\to\infty` 时足够快地衰减。
    k : numpy.ndarray or float
        倒空间点。
    l : int
        球 Bessel 函数阶数。
    rmax : float, optional
        积分上限，默认 :math:`\infty`。

    Returns
    -------
    numpy.ndarray
        与 ``k`` 同形状的实数数组。
    """
    ks = np.atleast_1d(np.asarray(k, dtype=float))
    out = np.empty_like(ks)
    for i, kk in enumerate(ks):
        val, _ = quad(
            lambda r: spherical_jn(l, kk * r) * f(r) * r * r,
            0.0,
            rmax,
            epsabs=epsabs,
            epsrel=epsrel,
            limit=limit,
        )
        out[i] = val
    return out.reshape(np.shape(k))


def gaussian_sbt(k: np.ndarray | float, l: int, alpha: float = 1.0) -> np.ndarray:
    r""":math:`f(r) = r^l e^{-\alpha r^2}` 的解析球 Bessel 变换。

    .. math::
        \int_0^\infty j_l(kr)\, r^{l+2} e^{-\alpha r^2}\,\mathrm{d}r
        = \frac{\sqrt{\pi}\,k^l}{2^{l+2}\,\alpha^{l+3/2}}\, e^{-k^2/(4\alpha)}
    """
    k = np.asarray(k, dtype=float)
    return math.sqrt(math.pi) * k**l / (2.0 ** (l + 2) * alpha ** (l + 1.5)) * np.exp(-k * k / (4.0 * alpha))


def m_kernel_mellin(t: np.ndarray | float, l: int, m: int) -> np.ndarray:
    r"""核函数的精确表达式（通过 ``scipy.special.loggamma``）。

    .. math::
        M_{lm}(t) = \frac{1}{2\pi}\int_0^\infty x^{s-1} j_l(x)\,\mathrm{d}x
        = \frac{\sqrt{\pi}\,2^{s-2}}{2\pi}
          \frac{\Gamma\!\left(\frac{l+s}{2}\right)}{\Gamma\!\left(\frac{l+3-s}{2}\right)},
        \quad s = \tfrac32 - m - it
    """
    t = np.asarray(t, dtype=float)
    s = 1.5 - m - 1j * t
    logv = loggamma(0.5 * (l + s)) - loggamma(0.5 * (l + 3.0 - s)) + (s - 2.0) * math.log(2.0)
    return math.sqrt(math.pi) / (2.0 * math.pi) * np.exp(logv)
