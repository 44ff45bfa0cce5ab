"""FSBT 变换精度与性质测试

精度测试使用较密的网格：N=1024，rho ∈ [-20, 12)，dt = 2π/32（t ∈ [-100.5, 100.3]）。
在 0.3 < k < 3 的内部区间与解析结果/数值积分对比，相对误差 1e-6。
"""

import numpy as np
import pytest

from logsbt.errors import InvalidArgument
from logsbt.reference import gaussian_sbt, sbt_quadrature
from logsbt.transform import FSBTContext, spherical_bessel_transform
from logsbt.utils import deinterleave, interleave, log_mesh_integrate

NGRID = 1024
RHO0 = -20.0
DT = 2 * np.pi / 32


@pytest.fixture(scope="module")
def ctx():
    return FSBTContext(lmax=4, ngrid=NGRID, rho0=RHO0, dt=DT)


def _interior(k: np.ndarray) -> np.ndarray:
    return (k > 0.3) & (k < 3.0)


@pytest.mark.transform
@pytest.mark.parametrize("l", range(4))
def test_gaussian_closed_form(ctx, l):
    """f(r) = r^l exp(-r^2) 的变换与解析结果一致（所有 0 <= m <= l）。"""
    r, k = ctx.r, ctx.k
    f = r**l * np.exp(-r * r)
    ref = gaussian_sbt(k, l)
    mask = _interior(k)
    for m in range(l + 1):
        g = ctx.transform_real(f, l, m)
        err = np.max(np.abs(g[mask] - ref[mask]) / np.abs(ref[mask]))
        assert err < 1e-6, f"l={l}, m={m}: 最大相对误差 {err:.3e}"


@pytest.mark.transform
@pytest.mark.parametrize("l, alpha", [(0, 0.5), (1, 2.0), (2, 1.0)])
def test_against_quadrature(ctx, l, alpha):
    """与 scipy.integrate.quad 的独立实现对比。"""
    idx = [int(np.argmin(np.abs(ctx.k - kk))) for kk in (0.5, 1.0, 2.0)]
    f = ctx.r**l * np.exp(-alpha * ctx.r**2)
    g = ctx.transform_real(f, l, 0)
    ref = sbt_quadrature(lambda x: x**l * np.exp(-alpha * x * x), ctx.k[idx], l)
    assert np.allclose(g[idx], ref, rtol=1e-6, atol=0)


@pytest.mark.transform
@pytest.mark.quick
def test_real_input_gives_real_output(ctx):
    """实数输入的虚部输出只剩舍入误差。

    k -> 0 端的舍入误差被 k^{m-3/2} 放大，故只在内部区间比较。
    """
    f = np.exp(-ctx.r**2)
    g = deinterleave(ctx.transform(interleave(f + 0j), 0, 0), NGRID)[_interior(ctx.k)]
    assert np.max(np.abs(g.imag)) < 1e-10 * np.max(np.abs(g.real))


@pytest.mark.transform
def test_linearity(ctx):
    r = ctx.r
    f = np.exp(-r * r) * (1.0 + 0.5j)
    h = r * np.exp(-0.7 * r) + 1j * r * r * np.exp(-r * r)
    a, b = 2.0 - 1.0j, -0.3 + 0.25j
    mask = _interior(ctx.k)
    lhs = deinterleave(ctx.transform(a * f + b * h, 1, 0), NGRID)[mask]
    rhs = a * deinterleave(ctx.transform(f, 1, 0), NGRID) + b * deinterleave(ctx.transform(h, 1, 0), NGRID)
    rhs = rhs[mask]
    scale = np.max(np.abs(rhs))
    assert np.allclose(lhs, rhs, rtol=1e-10, atol=1e-12 * scale)


@pytest.mark.transform
def test_parseval(ctx):
    """∫ f² r² dr = (2/π) ∫ g² k² dk。"""
    r, k = ctx.r, ctx.k
    f = np.exp(-r * r)
    g = ctx.transform_real(f, 0, 0)
    lhs = log_mesh_integrate(f * f * r * r, r, ctx.drho)
    rhs = 2.0 / np.pi * log_mesh_integrate(g * g * k * k, k, ctx.drho)
    assert np.isclose(lhs, rhs, rtol=1e-7, atol=0)


@pytest.mark.transform
def test_forward_cache_matches_one_shot(ctx):
    """一次前向、多次后向与逐次一次性变换结果相同。"""
    r = ctx.r
    f = interleave(r * np.exp(-r * r) * (1.0 - 0.2j))
    for m in (0, 1):
        with ctx.lock:
            ctx.forward(f, m)
            assert ctx.has_forward and ctx.cached_m == m
            outs = {l: ctx.backward(l) for l in range(m, 4)}
        for l, out in outs.items():
            ref = ctx.transform(f, l, m)
            assert out.shape == (2 * NGRID,)
            assert np.allclose(out, ref, rtol=0, atol=1e-14 * np.max(np.abs(ref))), f"l={l}, m={m}"


@pytest.mark.transform
def test_real_two_phase(ctx):
    f = np.exp(-ctx.r**2)
    ctx.forward_real(f, 0)
    g = ctx.backward_real(0)
    assert g.shape == (NGRID,)
    assert np.allclose(g, ctx.transform_real(f, 0, 0), rtol=0, atol=1e-14)


@pytest.mark.transform
def test_complex_and_interleaved_inputs_agree(ctx):
    z = np.exp(-ctx.r**2) * (0.3 + 1.1j)
    assert np.array_equal(ctx.transform(z, 2, 1), ctx.transform(interleave(z), 2, 1))


@pytest.mark.transform
def test_reciprocal_mesh_is_radial_mesh():
    """倒空间网格与径向网格取同一组数值。

    改变 rho0（网格相对 r=1 不对称）后，输出仍是 g 在 k_i = r_i 处的值。
    """
    for rho0 in (-18.0, -21.5):
        with FSBTContext(lmax=1, ngrid=NGRID, rho0=rho0, dt=DT) as c:
            assert np.array_equal(c.k, c.r)
            assert np.array_equal(c.kappa, c.rho)
            g = c.transform_real(np.exp(-c.r**2), 0, 0)
            mask = _interior(c.k)
            assert np.allclose(g[mask], gaussian_sbt(c.k[mask], 0), rtol=1e-6, atol=0)


@pytest.mark.transform
@pytest.mark.quick
def test_scenario_context():
    """lmax=3, N=256, rho0=-5, dt=0.05 的网格：前向 m=0 + 后向 l=0。

    该网格 drho≈0.49、|t|<=6.4，只用于检查结构与缓存一致性；高精度对比见上方密网格测试。
    """
    with FSBTContext(lmax=3, ngrid=256, rho0=-5.0, dt=0.05) as c:
        assert np.isclose(c.drho * c.dt * c.ngrid, 2 * np.pi, rtol=1e-15)
        f = interleave(np.exp(-((c.r / 0.05) ** 2)) + 0j)
        c.forward(f, 0)
        out = c.backward(0)
        assert out.shape == (512,)
        assert np.all(np.isfinite(out))
        assert np.allclose(out, c.transform(f, 0, 0), rtol=0, atol=1e-14 * np.max(np.abs(out)))
        with pytest.raises(InvalidArgument):
            c.backward(3)


@pytest.mark.transform
def test_convenience_function():
    r = np.exp(RHO0 + 2 * np.pi / NGRID / DT * np.arange(NGRID))
    k, g = spherical_bessel_transform(np.exp(-r * r), 0, RHO0, DT)
    assert np.allclose(k, r, rtol=1e-13, atol=0)
    mask = _interior(k)
    assert np.allclose(g[mask], gaussian_sbt(k[mask], 0), rtol=1e-6, atol=0)
    assert not np.iscomplexobj(g)
