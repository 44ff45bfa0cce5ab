from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np

from .utils import deinterleave

if TYPE_CHECKING:
    from .transform import FSBTContext

__all__ = [
    "export_mesh_csv",
    "export_transform_csv",
    "export_context_json",
]


def export_mesh_csv(out_path: str | Path, ctx: "FSBTContext") -> None:
    """导出网格为 CSV：列为 `i,t,rho,r,dr`。"""
    p = Path(out_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    idx = np.arange(ctx.ngrid)
    data = np.column_stack([idx, ctx.t, ctx.rho, ctx.r, ctx.r * ctx.drho])
    np.savetxt(p, data, delimiter=",", header="i,t,rho,r,dr", fmt=["%d", "%.17e", "%.17e", "%.17e", "%.17e"])


def export_transform_csv(
    out_path: str | Path,
    ctx: "FSBTContext",
    samples: np.ndarray,
    l: int,
    m: int,
) -> None:
    """导出变换结果为 CSV，列为 `k,re,im`。

    ``samples`` 为 :meth:`FSBTContext.transform` 或 :meth:`FSBTContext.backward`
    返回的交错缓冲区；(l, m) 写入表头注释。
    """
    p = Path(out_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    g = deinterleave(samples, ctx.ngrid)
    data = np.column_stack([ctx.k, g.real, g.imag])
    np.savetxt(p, data, delimiter=",", header=f"l={l},m={m}\nk,re,im", fmt="%.17e")


def export_context_json(out_path: str | Path, ctx: "FSBTContext") -> None:
    """导出上下文参数与互易关系偏差为 JSON。"""
    p = Path(out_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    mesh = ctx.mesh
    info = {
        "lmax": ctx.lmax,
        "ngrid": ctx.ngrid,
        "rho0": float(mesh.rho[0]),
        "dt": mesh.dt,
        "drho": mesh.drho,
        "rmin": float(mesh.r[0]),
        "rmax": float(mesh.r[-1]),
        "tmax": float(-mesh.t[0]),
        "reciprocity_error": mesh.reciprocity_error(),
        "nbytes": ctx.nbytes,
    }
    with p.open("w", encoding="utf-8") as f:
        json.dump(info, f, indent=2, ensure_ascii=False)
