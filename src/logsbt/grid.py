r"""对数径向网格与相位网格

FSBT 使用三组一维网格：

- 相位网格（线性、关于零对称）：:math:`t_i = t_0 + i\,\Delta t,\ t_0 = -\tfrac{1}{2} N \Delta t`
- 对数径向网格：:math:`\rho_i = \rho_0 + i\,\Delta\rho`
- 径向网格：:math:`r_i = e^{\rho_i}`

两者通过互易关系耦合：

.. math::
    \Delta\rho\,\Delta t\,N = 2\pi

该关系保证离散 Fourier 变换在 :math:`\rho` 与 :math:`t` 之间构成一致的对偶对。
倒空间网格 :math:`k_i = e^{\kappa_i}` 与 :math:`r_i` 取同一组数值（自互易网格）。
"""

from __future__ import annotations

import math
import warnings
from dataclasses import dataclass

import numpy as np

from .errors import InvalidArgument
from .utils import check_exponent

__all__ = [
    "LogMesh",
    "phase_mesh",
    "build_log_mesh",
]

# 互易关系允许的相对舍入误差（单位：机器精度）
RECIPROCITY_ULPS = 8.0


@dataclass(frozen=True)
class LogMesh:
    r"""对数网格容器。

    Attributes
    ----------
    t : numpy.ndarray
        相位网格 :math:`t_i`。
    rho : numpy.ndarray
        对数径向网格 :math:`\rho_i`。
    r : numpy.ndarray
        径向网格 :math:`r_i = e^{\rho_i}`。
    drho : float
        对数步长 :math:`\Delta\rho = 2\pi/(N\Delta t)`。
    dt : float
        相位网格步长 :math:`\Delta t`。
    """

    t: np.ndarray
    rho: np.ndarray
    r: np.ndarray
    drho: float
    dt: float

    @property
    def ngrid(self) -> int:
        return int(self.t.size)

    @property
    def weights(self) -> np.ndarray:
        r"""对数网格上的积分权重 :math:`\mathrm{d}r_i = r_i\,\Delta\rho`。"""
        return self.r * self.drho

    def reciprocity_error(self) -> float:
        r"""返回互易关系的相对偏差 :math:`|\Delta\rho\,\Delta t\,N - 2\pi| / 2\pi`。"""
        two_pi = 2.0 * math.pi
        return abs(self.drho * self.dt * self.ngrid - two_pi) / two_pi

    @classmethod
    def from_radial_range(cls, ngrid: int, rmin: float, rmax: float) -> "LogMesh":
        r"""按径向区间 :math:`[r_\min, r_\max]` 选择 :math:`\rho_0` 与 :math:`\Delta t`。

        取 :math:`\rho_0 = \ln r_\min`，:math:`\Delta\rho = \ln(r_\max/r_\min)/(N-1)`，
        再由互易关系反推 :math:`\Delta t = 2\pi/(N\Delta\rho)`。最终 :math:`\Delta\rho`
        由 :func:`build_log_mesh` 重新计算，末点与 :math:`r_\max` 仅差舍入误差。
        """
        if not (rmin > 0 and rmax > rmin):
            raise InvalidArgument("半径需满足 0 < rmin < rmax")
        if ngrid < 2:
            raise InvalidArgument("ngrid 必须 >= 2")
        drho = math.log(rmax / rmin) / (ngrid - 1)
        dt = 2.0 * math.pi / (ngrid * drho)
        return build_log_mesh(ngrid, math.log(rmin), dt)


def phase_mesh(ngrid: int, dt: float) -> np.ndarray:
    r"""生成关于零对称的线性相位网格 :math:`t_i = -\tfrac{1}{2}N\Delta t + i\,\Delta t`。"""
    t0 = -0.5 * dt * float(ngrid)
    return t0 + dt * np.arange(ngrid, dtype=float)


def build_log_mesh(ngrid: int, rho0: float, dt: float) -> LogMesh:
    r"""生成相位网格与对数径向网格。

    .. math::
        t_i = t_0 + i\,\Delta t,\quad
        \Delta\rho = \frac{2\pi}{N\,\Delta t},\quad
        \rho_i = \rho_0 + i\,\Delta\rho,\quad
        r_i = e^{\rho_i}

    Parameters
    ----------
    ngrid : int
        网格点数 :math:`N\ge 2`。
    rho0 : float
        对数网格下限 :math:`\rho_0 = \ln r_0`。
    dt : float
        相位网格步长 :math:`\Delta t > 0`。

    Returns
    -------
    LogMesh
        含 ``t``、``rho``、``r``、``drho``、``dt`` 的网格对象。

    Raises
    ------
    InvalidArgument
        参数不合法或网格未能严格单调递增。
    NumericOverflow
        :math:`e^{\rho_i}` 超出双精度范围。

    Notes
    -----
    - :math:`\Delta\rho` 严格按 ``2π / N / dt`` 计算，不做任何近似；调用者应选择
      :math:`N,\Delta t` 使该值可以无灾难性舍入地表示。
    - 若 :math:`\Delta\rho\,\Delta t\,N` 与 :math:`2\pi` 的相对偏差超过若干个机器精度，
      发出 ``RuntimeWarning``。
    """
    if isinstance(ngrid, bool) or int(ngrid) != ngrid:
        raise InvalidArgument(f"ngrid 必须为整数，当前值: {ngrid}")
    ngrid = int(ngrid)
    if ngrid < 2:
        raise InvalidArgument("ngrid 必须 >= 2")
    if not (math.isfinite(dt) and dt > 0):
        raise InvalidArgument(f"dt 必须为有限正数，当前值: {dt}")
    if not math.isfinite(rho0):
        raise InvalidArgument(f"rho0 必须为有限值，当前值: {rho0}")

    t = phase_mesh(ngrid, dt)

    drho = 2.0 * math.pi / float(ngrid) / dt
    if not (math.isfinite(drho) and drho > 0):
        raise InvalidArgument(f"由 dt={dt} 得到的 drho={drho} 不可用")
    rho = rho0 + drho * np.arange(ngrid, dtype=float)
    check_exponent(rho, "径向网格 exp(rho)")
    r = np.exp(rho)

    if np.any(np.diff(t) <= 0) or np.any(np.diff(rho) <= 0) or np.any(np.diff(r) <= 0):
        raise InvalidArgument("网格生成失败：未能保证严格单调")
    for a in (t, rho, r):
        a.flags.writeable = False

    mesh = LogMesh(t=t, rho=rho, r=r, drho=drho, dt=float(dt))
    err = mesh.reciprocity_error()
    if err > RECIPROCITY_ULPS * np.finfo(float).eps:
        warnings.warn(
            f"互易关系 drho*dt*N = 2π 的相对偏差为 {err:.3e}，"
            "请调整 ngrid 或 dt 以避免舍入误差。",
            RuntimeWarning,
            stacklevel=2,
        )
    return mesh
