r"""快速球 Bessel 变换（FSBT）上下文与变换引擎

计算

.. math::
    g(k) = \int_0^\infty j_l(kr)\, f(r)\, r^2\,\mathrm{d}r

在对数变量 :math:`\rho=\ln r,\ \kappa=\ln k` 下，上式化为相关积分：

.. math::
    k^{3/2-m} g(k) = \int K_{lm}(\kappa+\rho)\, r^{3/2+m} f(r)\,\mathrm{d}\rho,
    \qquad K_{lm}(x) = e^{(3/2-m)x} j_l(e^x)

两次长度为 :math:`N` 的离散 Fourier 变换完成该相关积分：

1. 前向阶段：:math:`a_i = e^{(3/2+m)\rho_i} f_i e^{i t_0\rho_i}`，经 DFT 得到
   :math:`\phi_j = e^{-i\rho_0(t_j-t_0)} \sum_i r_i^{3/2+m} f_i e^{i\rho_i t_j}`；
2. 后向阶段：乘以核函数 :math:`M_{lm}(t_j)` 与相位 :math:`e^{i[\rho_0(t_j-t_0)+\rho_0 t_j]}`、
   步长 :math:`\Delta\rho`，再做 DFT，最后乘 :math:`e^{i t_0(\kappa_i-\rho_0)}` 与
   :math:`e^{(m-3/2)\kappa_i}\Delta t`。

各相位因子合并后每一项的总相位恰为 :math:`\kappa_i t_j`，所以输出
:math:`g(k_i)` 与 :math:`\rho_0` 的取值无关。

DFT 原语
========

两次变换都使用 "backward" 约定、不做归一化：

.. math::
    X_k = \sum_{n=0}^{N-1} x_n\, e^{+2\pi i kn/N}

默认实现为 ``scipy.fft.ifft(x, norm="forward")``。自定义原语必须满足同一符号约定，
否则上述全部相位修正都需要重新推导。

缓存与线程
==========

每个上下文持有一个单槽缓存（前向阶段结果 ``intermediate`` 与对应的 ``m``），
由一把可重入锁保护；:meth:`FSBTContext.transform` 只读核函数表，不访问缓存，
可在多个线程中并发调用。不同上下文之间完全独立。

References
----------
.. [Siegman1977] A. E. Siegman, "Quasi fast Hankel transform",
   Opt. Lett. 1, 13 (1977).
.. [Talman1978] J. D. Talman, J. Comp. Phys. 29, 35 (1978).
.. [Talman2003] J. D. Talman, Int. J. Quantum Chem. 93, 72 (2003).
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable

import numpy as np
import scipy.fft

from .errors import AllocationError, DFTBackendError, InvalidArgument
from .grid import LogMesh, build_log_mesh
from .kernel import build_kernel_table, kernel_index, kernel_rows
from .utils import check_exponent, deinterleave, interleave

__all__ = [
    "backward_dft",
    "FSBTConfig",
    "FSBTContext",
    "spherical_bessel_transform",
]

# 字节数：float64 与 complex128
_F8 = np.dtype(float).itemsize
_C16 = np.dtype(complex).itemsize


def backward_dft(x: np.ndarray) -> np.ndarray:
    r"""未归一化的 backward DFT：:math:`X_k = \sum_n x_n e^{+2\pi i kn/N}`。"""
    return scipy.fft.ifft(x, norm="forward")


@dataclass
class FSBTConfig:
    r"""FSBT 上下文构造参数。

    Attributes
    ----------
    lmax : int
        核函数表覆盖的角动量上界（不含）：:math:`l = 0,\dots,l_{\max}-1`。
    ngrid : int
        网格点数 :math:`N`。
    rho0 : float
        对数网格下限 :math:`\rho_0 = \ln r_0`。
    dt : float
        相位网格步长 :math:`\Delta t`，决定 :math:`\Delta\rho = 2\pi/(N\Delta t)`。
    verbose : bool
        是否打印构造信息。
    """

    lmax: int
    ngrid: int
    rho0: float
    dt: float
    verbose: bool = False

    @classmethod
    def from_radial_range(
        cls, lmax: int, ngrid: int, rmin: float, rmax: float, verbose: bool = False
    ) -> "FSBTConfig":
        r"""由径向区间 :math:`[r_\min, r_\max]` 推出 ``rho0`` 与 ``dt``。"""
        mesh = LogMesh.from_radial_range(ngrid, rmin, rmax)
        return cls(lmax=lmax, ngrid=ngrid, rho0=float(mesh.rho[0]), dt=mesh.dt, verbose=verbose)


class FSBTContext:
    r"""FSBT 上下文：对数网格、核函数表与前向阶段缓存。

    Parameters
    ----------
    lmax : int
        角动量上界（不含），要求 :math:`l_{\max} \ge 1`。
    ngrid : int
        网格点数 :math:`N \ge 2`。
    rho0 : float
        对数网格下限。
    dt : float
        相位网格步长。
    dft : callable, optional
        DFT 原语，默认 :func:`backward_dft`。
    verbose : bool, optional
        是否打印构造信息。

    Notes
    -----
    - 所有样本缓冲区均为长度 :math:`2N` 的实数数组，偶数下标为实部、奇数下标为虚部；
      输入端也接受长度 :math:`N` 的复数数组。
    - 构造完成后网格与核函数表只读；``intermediate`` 与 ``cached_m`` 只在前向阶段写入。
    - :meth:`free` 释放全部数组，之后任何操作抛出 :class:`InvalidArgument`。

    Examples
    --------
    >>> ctx = FSBTContext(lmax=3, ngrid=1024, rho0=-20.0, dt=2 * np.pi / 32)
    >>> f = np.exp(-ctx.r**2)
    >>> g = ctx.transform_real(f, l=0, m=0)   # ≈ sqrt(pi)/4 * exp(-k^2/4)
    """

    def __init__(
        self,
        lmax: int,
        ngrid: int,
        rho0: float,
        dt: float,
        dft: Callable[[np.ndarray], np.ndarray] | None = None,
        verbose: bool = False,
    ):
        if isinstance(lmax, bool) or int(lmax) != lmax or lmax < 1:
            raise InvalidArgument(f"lmax 必须为正整数，当前值: {lmax}")
        self._lmax = int(lmax)
        self._dft = backward_dft if dft is None else dft
        self._lock = threading.RLock()
        self._freed = False
        self._has_forward = False
        self._cached_m: int | None = None
        self._mesh: LogMesh | None = None
        self._kernel: np.ndarray | None = None
        self._intermediate: np.ndarray | None = None
        self._rot_in: np.ndarray | None = None
        self._rot_mid: np.ndarray | None = None
        self._rot_out: np.ndarray | None = None

        try:
            mesh = build_log_mesh(ngrid, rho0, dt)
            self._mesh = mesh
            self._kernel = build_kernel_table(mesh.t, self._lmax)
            self._kernel.flags.writeable = False

            t0 = float(mesh.t[0])
            rho0 = float(mesh.rho[0])
            self._rot_in = np.exp(1j * (t0 * mesh.rho))
            self._rot_mid = np.exp(1j * (rho0 * (mesh.t - t0) + rho0 * mesh.t))
            self._rot_out = np.exp(1j * (t0 * (mesh.rho - rho0)))
            for a in (self._rot_in, self._rot_mid, self._rot_out):
                a.flags.writeable = False

            self._intermediate = np.zeros(mesh.ngrid, dtype=complex)
        except MemoryError as exc:
            self._release()
            raise AllocationError(
                f"FSBT 上下文分配失败 (lmax={lmax}, ngrid={ngrid}，"
                f"约需 {self.required_size(self._lmax, int(ngrid))} 字节)"
            ) from exc

        if verbose:
            print(
                f"[FSBT] init ngrid={mesh.ngrid} lmax={self._lmax} "
                f"drho={mesh.drho:.6e} dt={mesh.dt:.6e} "
                f"r=[{mesh.r[0]:.3e}, {mesh.r[-1]:.3e}] nbytes={self.nbytes}"
            )

    @classmethod
    def from_config(cls, cfg: FSBTConfig, dft: Callable[[np.ndarray], np.ndarray] | None = None) -> "FSBTContext":
        return cls(cfg.lmax, cfg.ngrid, cfg.rho0, cfg.dt, dft=dft, verbose=cfg.verbose)

    # ------------------------------------------------------------------
    # 生命周期
    # ------------------------------------------------------------------

    def _release(self) -> None:
        self._mesh = None
        self._kernel = None
        self._intermediate = None
        self._rot_in = None
        self._rot_mid = None
        self._rot_out = None
        self._has_forward = False
        self._cached_m = None

    def free(self) -> None:
        """释放网格、核函数表与缓存。重复调用无副作用。"""
        with self._lock:
            self._release()
            self._freed = True

    close = free

    @property
    def freed(self) -> bool:
        return self._freed

    def __enter__(self) -> "FSBTContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.free()

    def __repr__(self) -> str:
        if self._freed:
            return f"FSBTContext(lmax={self._lmax}, freed)"
        m = self._mesh
        return (
            f"FSBTContext(lmax={self._lmax}, ngrid={m.ngrid}, "
            f"rho0={m.rho[0]:.6g}, dt={m.dt:.6g})"
        )

    def _alive_mesh(self) -> LogMesh:
        mesh = self._mesh
        if self._freed or mesh is None:
            raise InvalidArgument("FSBT 上下文已释放")
        return mesh

    # ------------------------------------------------------------------
    # 访问器
    # ------------------------------------------------------------------

    @property
    def lock(self) -> threading.RLock:
        """保护前向缓存的可重入锁；需要原子地执行前向+多次后向时可在外层持有。"""
        return self._lock

    @property
    def lmax(self) -> int:
        return self._lmax

    @property
    def ngrid(self) -> int:
        return self._alive_mesh().ngrid

    @property
    def mesh(self) -> LogMesh:
        return self._alive_mesh()

    @property
    def drho(self) -> float:
        return self._alive_mesh().drho

    @property
    def dt(self) -> float:
        return self._alive_mesh().dt

    @property
    def t(self) -> np.ndarray:
        return self._alive_mesh().t

    @property
    def rho(self) -> np.ndarray:
        return self._alive_mesh().rho

    @property
    def kappa(self) -> np.ndarray:
        r"""倒空间对数网格 :math:`\kappa_i`（自互易网格，与 ``rho`` 数值相同）。"""
        return self._alive_mesh().rho

    @property
    def r(self) -> np.ndarray:
        return self._alive_mesh().r

    @property
    def k(self) -> np.ndarray:
        r"""倒空间网格 :math:`k_i = e^{\kappa_i}`（与 ``r`` 数值相同）。"""
        return self._alive_mesh().r

    @property
    def kernel(self) -> np.ndarray:
        """只读核函数表，形状 ``(lmax*(lmax+1), ngrid)``。"""
        self._alive_mesh()
        return self._kernel

    @property
    def has_forward(self) -> bool:
        """前向缓存是否有效。"""
        return self._has_forward

    @property
    def cached_m(self) -> int | None:
        """最近一次前向阶段的 m；缓存无效时为 ``None``。"""
        return self._cached_m if self._has_forward else None

    @property
    def intermediate(self) -> np.ndarray:
        """前向阶段结果的副本（缓存无效时抛出 :class:`InvalidArgument`）。"""
        with self._lock:
            self._alive_mesh()
            if not self._has_forward:
                raise InvalidArgument("尚未执行前向阶段")
            return self._intermediate.copy()

    def _check_index(self, i: int) -> int:
        n = self.ngrid
        if isinstance(i, bool) or int(i) != i or not (0 <= int(i) < n):
            raise InvalidArgument(f"网格下标越界: i={i}, ngrid={n}")
        return int(i)

    def mesh_r(self, i: int) -> float:
        """第 i 个径向网格点 :math:`r_i`。"""
        return float(self.r[self._check_index(i)])

    def mesh_k(self, i: int) -> float:
        """第 i 个倒空间网格点 :math:`k_i`。"""
        return float(self.k[self._check_index(i)])

    def mesh_dr(self, i: int) -> float:
        r"""径向积分权重 :math:`\mathrm{d}r_i = r_i\,\Delta\rho`。"""
        return float(self.r[self._check_index(i)] * self.drho)

    def mesh_dk(self, i: int) -> float:
        r"""倒空间积分权重 :math:`\mathrm{d}k_i = k_i\,\Delta\kappa`（:math:`\Delta\kappa=\Delta\rho`）。"""
        return float(self.k[self._check_index(i)] * self.drho)

    @staticmethod
    def required_size(lmax: int, ngrid: int) -> int:
        """给定 (lmax, ngrid) 时上下文持有的数组总字节数。

        包括三组实数网格、核函数表、前向缓存与三组相位因子。
        """
        return (
            3 * _F8 * ngrid
            + _C16 * kernel_rows(lmax) * ngrid
            + _C16 * ngrid
            + 3 * _C16 * ngrid
        )

    @property
    def nbytes(self) -> int:
        """当前实际持有的数组字节数（释放后为 0）。"""
        arrays = [self._kernel, self._intermediate, self._rot_in, self._rot_mid, self._rot_out]
        if self._mesh is not None:
            arrays += [self._mesh.t, self._mesh.rho, self._mesh.r]
        return int(sum(a.nbytes for a in arrays if a is not None))

    # ------------------------------------------------------------------
    # 内部计算
    # ------------------------------------------------------------------

    def _call_dft(self, x: np.ndarray) -> np.ndarray:
        try:
            y = self._dft(x)
        except Exception as exc:
            raise DFTBackendError(f"DFT 原语执行失败: {exc}") from exc
        y = np.asarray(y)
        if y.shape != x.shape:
            raise DFTBackendError(f"DFT 原语返回形状 {y.shape}，期望 {x.shape}")
        return y.astype(complex, copy=False)

    def _input_phase(self, f: np.ndarray, m: int) -> np.ndarray:
        mesh = self._alive_mesh()
        rot_in = self._rot_in
        arg = (1.5 + m) * mesh.rho
        check_exponent(arg, "前向前因子 exp((1.5+m)*rho)")
        a = np.exp(arg) * (f * rot_in)
        return self._call_dft(a)

    def _output_phase(self, phi: np.ndarray, l: int, m: int) -> np.ndarray:
        mesh = self._alive_mesh()
        row = self._kernel[kernel_index(l, m, self._lmax)]
        arg = (m - 1.5) * mesh.rho
        check_exponent(arg, "后向前因子 exp((m-1.5)*kappa)")

        b = mesh.drho * ((phi * row) * self._rot_mid)
        c = self._call_dft(b)
        return (np.exp(arg) * mesh.dt) * (c * self._rot_out)

    def _real_input(self, values: np.ndarray) -> np.ndarray:
        n = self.ngrid
        a = np.asarray(values)
        if np.iscomplexobj(a):
            raise InvalidArgument("实数变换要求实数输入")
        if a.ndim != 1 or a.size != n:
            raise InvalidArgument(f"实数样本长度应为 ngrid={n}，实际形状 {a.shape}")
        return a.astype(float) + 0j

    # ------------------------------------------------------------------
    # 两阶段变换
    # ------------------------------------------------------------------

    def forward(self, samples: np.ndarray, m: int) -> None:
        r"""前向阶段：计算并缓存 :math:`\phi(t)`。

        Parameters
        ----------
        samples : numpy.ndarray
            输入函数 :math:`f(r_i)`，长度 :math:`2N` 的交错缓冲区（或长度 :math:`N` 的复数数组）。
        m : int
            变换参数，要求 :math:`0 \le m < l_{\max}`；之后的后向阶段需满足 :math:`m \le l`。
        """
        with self._lock:
            n = self.ngrid
            kernel_index(m, m, self._lmax)
            f = deinterleave(samples, n)
            self._has_forward = False
            phi = self._input_phase(f, int(m))
            self._intermediate[:] = phi
            self._cached_m = int(m)
            self._has_forward = True

    def backward(self, l: int) -> np.ndarray:
        r"""后向阶段：由缓存的 :math:`\phi(t)` 得到 :math:`g(k_i)`。

        可对同一前向结果以不同的 :math:`l \ge m` 重复调用。

        Returns
        -------
        numpy.ndarray
            长度 :math:`2N` 的交错缓冲区。

        Raises
        ------
        InvalidArgument
            尚未执行前向阶段，或 :math:`l` 不满足 :math:`m \le l < l_{\max}`。
        """
        with self._lock:
            self._alive_mesh()
            if not self._has_forward:
                raise InvalidArgument("后向阶段之前必须先执行前向阶段")
            m = self._cached_m
            kernel_index(l, m, self._lmax)
            out = self._output_phase(self._intermediate, int(l), m)
        return interleave(out)

    def forward_real(self, values: np.ndarray, m: int) -> None:
        """实数输入的前向阶段（长度 :math:`N`）。"""
        f = self._real_input(values)
        self.forward(f, m)

    def backward_real(self, l: int) -> np.ndarray:
        """后向阶段，只返回实部（长度 :math:`N`）。"""
        return self.backward(l)[0::2].copy()

    # ------------------------------------------------------------------
    # 一次性变换
    # ------------------------------------------------------------------

    def transform(self, samples: np.ndarray, l: int, m: int = 0) -> np.ndarray:
        r"""一次性完成前向与后向阶段，不读写上下文缓存。

        Parameters
        ----------
        samples : numpy.ndarray
            输入函数，长度 :math:`2N` 的交错缓冲区（或长度 :math:`N` 的复数数组）。
        l : int
            变换阶数。
        m : int, optional
            参数 :math:`0 \le m \le l`，默认 0。

        Returns
        -------
        numpy.ndarray
            :math:`g(k_i)` 的交错缓冲区（长度 :math:`2N`）。
        """
        n = self.ngrid
        kernel_index(l, m, self._lmax)
        f = deinterleave(samples, n)
        phi = self._input_phase(f, int(m))
        out = self._output_phase(phi, int(l), int(m))
        return interleave(out)

    def transform_real(self, values: np.ndarray, l: int, m: int = 0) -> np.ndarray:
        """实数输入的一次性变换，只返回实部（长度 :math:`N`）。"""
        f = self._real_input(values)
        return self.transform(f, l, m)[0::2].copy()


def spherical_bessel_transform(
    f: np.ndarray, l: int, rho0: float, dt: float, m: int = 0
) -> tuple[np.ndarray, np.ndarray]:
    r"""便捷函数：构造临时上下文并返回 ``(k, g)``。

    ``f`` 为长度 :math:`N` 的实数或复数数组，定义在 :math:`r_i = e^{\rho_0 + i\Delta\rho}` 上。
    实数输入返回实数 ``g``。
    """
    f = np.asarray(f)
    with FSBTContext(lmax=int(l) + 1, ngrid=f.size, rho0=rho0, dt=dt) as ctx:
        k = ctx.k.copy()
        if np.iscomplexobj(f):
            g = deinterleave(ctx.transform(f, l, m), ctx.ngrid)
        else:
            g = ctx.transform_real(f, l, m)
    return k, g
