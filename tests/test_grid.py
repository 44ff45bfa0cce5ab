import math

import numpy as np
import pytest

from logsbt.errors import InvalidArgument, NumericOverflow
from logsbt.grid import LogMesh, build_log_mesh, phase_mesh
from logsbt.utils import log_mesh_integrate


@pytest.mark.grid
@pytest.mark.quick
def test_reciprocity_exact():
    """互易关系 drho*dt*N = 2π 在机器精度内成立。"""
    for ngrid, dt in [(256, 0.05), (1024, 2 * np.pi / 32), (500, 0.37), (64, 1.0)]:
        mesh = build_log_mesh(ngrid, -5.0, dt)
        assert math.isclose(mesh.drho * mesh.dt * ngrid, 2 * math.pi, rel_tol=8 * np.finfo(float).eps, abs_tol=0)
        assert mesh.reciprocity_error() <= 8 * np.finfo(float).eps


@pytest.mark.grid
@pytest.mark.quick
def test_scenario_mesh_values():
    mesh = build_log_mesh(256, -5.0, 0.05)
    assert mesh.ngrid == 256
    assert np.isclose(mesh.t[0], -0.5 * 0.05 * 256, rtol=0, atol=1e-15)
    assert np.isclose(mesh.drho, 2 * np.pi / 256 / 0.05, rtol=1e-15)
    assert mesh.rho[0] == -5.0
    assert np.allclose(mesh.r, np.exp(mesh.rho), rtol=1e-15, atol=0)
    # 相位网格关于零对称（偶数点数时缺一个右端点）
    assert np.isclose(mesh.t[0] + mesh.t[-1], -mesh.dt, rtol=0, atol=1e-13)


@pytest.mark.grid
@pytest.mark.quick
def test_meshes_strictly_increasing():
    mesh = build_log_mesh(301, -8.0, 0.2)
    for a in (mesh.t, mesh.rho, mesh.r):
        assert np.all(np.diff(a) > 0)


@pytest.mark.grid
def test_mesh_arrays_are_read_only():
    mesh = build_log_mesh(16, 0.0, 0.5)
    with pytest.raises(ValueError):
        mesh.r[0] = 1.0


@pytest.mark.grid
def test_phase_mesh_matches_definition():
    t = phase_mesh(8, 0.25)
    assert np.allclose(t, -1.0 + 0.25 * np.arange(8), rtol=0, atol=1e-15)


@pytest.mark.grid
def test_from_radial_range_endpoints():
    mesh = LogMesh.from_radial_range(512, 1e-4, 1e3)
    assert np.isclose(mesh.r[0], 1e-4, rtol=1e-12)
    assert np.isclose(mesh.r[-1], 1e3, rtol=1e-10)
    assert mesh.reciprocity_error() <= 8 * np.finfo(float).eps


@pytest.mark.grid
def test_weights_and_log_integral():
    """∫_0^∞ r^2 e^{-r^2} dr = √π/4（对数网格矩形规则具有谱精度）。"""
    mesh = build_log_mesh(1024, -20.0, 2 * np.pi / 32)
    assert np.allclose(mesh.weights, mesh.r * mesh.drho)
    val = log_mesh_integrate(mesh.r**2 * np.exp(-mesh.r**2), mesh.r, mesh.drho)
    assert np.isclose(val, np.sqrt(np.pi) / 4, rtol=1e-12, atol=0)


@pytest.mark.grid
@pytest.mark.quick
@pytest.mark.parametrize(
    "ngrid, rho0, dt",
    [(1, 0.0, 0.1), (2.5, 0.0, 0.1), (16, 0.0, 0.0), (16, 0.0, -0.1), (16, np.nan, 0.1), (16, 0.0, np.inf)],
)
def test_invalid_parameters(ngrid, rho0, dt):
    with pytest.raises(InvalidArgument):
        build_log_mesh(ngrid, rho0, dt)


@pytest.mark.grid
def test_radial_mesh_overflow():
    with pytest.raises(NumericOverflow):
        build_log_mesh(16, 800.0, 1.0)


@pytest.mark.grid
def test_from_radial_range_invalid():
    with pytest.raises(InvalidArgument):
        LogMesh.from_radial_range(64, 0.0, 1.0)
    with pytest.raises(InvalidArgument):
        LogMesh.from_radial_range(64, 2.0, 1.0)
