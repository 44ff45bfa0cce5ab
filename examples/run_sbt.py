#!/usr/bin/env python
"""对数网格球 Bessel 变换命令行入口。

对内置的试探函数（高斯、Slater 型）做 FSBT，可选地与数值积分对比并导出结果。
"""

import argparse
import sys
import time
from pathlib import Path

# 添加 src 到路径
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import numpy as np

from logsbt.io import export_context_json, export_mesh_csv, export_transform_csv
from logsbt.reference import sbt_quadrature
from logsbt.transform import FSBTConfig, FSBTContext


def build_function(args):
    """根据参数返回试探函数 f(r)（可作用于数组与标量）。"""
    l, a = args.l, args.alpha
    if args.func == "gauss":
        return lambda r: r**l * np.exp(-a * r * r)
    elif args.func == "slater":
        return lambda r: r**l * np.exp(-a * r)
    else:
        raise ValueError(f"不支持的试探函数: {args.func}")


def build_config(args) -> FSBTConfig:
    if args.rho0 is not None:
        return FSBTConfig(lmax=args.l + 1, ngrid=args.n, rho0=args.rho0, dt=args.dt, verbose=args.verbose)
    return FSBTConfig.from_radial_range(
        lmax=args.l + 1, ngrid=args.n, rmin=args.rmin, rmax=args.rmax, verbose=args.verbose
    )


def compare_with_quad(ctx, func, g, args):
    """在若干 k 点上与 scipy.integrate.quad 对比。"""
    print("\n与数值积分对比:")
    print(f"{'k':>12s} {'FSBT':>22s} {'quad':>22s} {'相对误差':>10s}")
    for kk in args.k_check:
        i = int(np.argmin(np.abs(ctx.k - kk)))
        ref = float(sbt_quadrature(func, ctx.k[i], args.l))
        rel = abs(g[i] - ref) / max(abs(ref), 1e-300)
        print(f"{ctx.k[i]:12.6f} {g[i]:22.14e} {ref:22.14e} {rel:10.2e}")


def plot_result(ctx, g, path):
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(figsize=(6, 4))
    ax.semilogx(ctx.k, g, "-", lw=1.5)
    ax.set_xlabel("k")
    ax.set_ylabel("g(k)")
    ax.grid(alpha=0.3)
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)
    print(f"已保存图像: {path}")


def main():
    parser = argparse.ArgumentParser(
        description="对数网格快速球 Bessel 变换",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # 变换参数
    parser.add_argument("--l", type=int, default=0, help="变换阶数")
    parser.add_argument("--m", type=int, default=0, help="参数 m（0 <= m <= l）")
    parser.add_argument(
        "--func", type=str, default="gauss", choices=["gauss", "slater"], help="试探函数"
    )
    parser.add_argument("--alpha", type=float, default=1.0, help="试探函数指数")

    # 网格参数
    parser.add_argument("--n", type=int, default=1024, help="网格点数")
    parser.add_argument("--rmin", type=float, default=2e-9, help="最小半径")
    parser.add_argument("--rmax", type=float, default=1.6e5, help="最大半径")
    parser.add_argument(
        "--rho0", type=float, default=None, help="直接指定 rho0（与 --dt 一起使用，覆盖 rmin/rmax）"
    )
    parser.add_argument("--dt", type=float, default=2 * np.pi / 32, help="相位网格步长（仅与 --rho0 一起使用）")

    # 功能参数
    parser.add_argument(
        "--k-check", type=float, nargs="*", default=[0.5, 1.0, 2.0], help="与数值积分对比的 k 点"
    )
    parser.add_argument("--export-dir", type=str, default=None, help="导出网格/结果/参数的目录")
    parser.add_argument("--plot", type=str, default=None, help="保存 g(k) 图像（需要 matplotlib）")
    parser.add_argument("--verbose", action="store_true", help="打印上下文信息")

    args = parser.parse_args()

    cfg = build_config(args)
    func = build_function(args)

    t_start = time.time()
    with FSBTContext.from_config(cfg) as ctx:
        f = func(ctx.r)
        g = ctx.transform_real(f, args.l, args.m)
        t_elapsed = time.time() - t_start
        print(f"{ctx!r}")
        print(f"变换用时: {t_elapsed * 1e3:.2f} ms")

        if args.k_check:
            compare_with_quad(ctx, func, g, args)

        if args.export_dir:
            out = Path(args.export_dir)
            export_mesh_csv(out / "mesh.csv", ctx)
            export_transform_csv(out / "transform.csv", ctx, ctx.transform(f + 0j, args.l, args.m), args.l, args.m)
            export_context_json(out / "context.json", ctx)
            print(f"\n结果已导出到: {out}")

        if args.plot:
            plot_result(ctx, g, args.plot)


if __name__ == "__main__":
    main()
