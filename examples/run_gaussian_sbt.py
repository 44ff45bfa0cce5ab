"""高斯函数的球 Bessel 变换（与解析结果对比）

运行示例：

    python -m examples.run_gaussian_sbt

对 f(r) = r^l exp(-r^2) 做 l=0..2 的变换，打印若干 k 点的数值与解析值，并把 l=0 的结果保存到 CSV。
"""
from __future__ import annotations

import numpy as np

from logsbt.io import export_transform_csv
from logsbt.reference import gaussian_sbt
from logsbt.transform import FSBTContext
from logsbt.utils import interleave


def main() -> None:
    ngrid, rho0, dt = 1024, -20.0, 2 * np.pi / 32
    with FSBTContext(lmax=3, ngrid=ngrid, rho0=rho0, dt=dt, verbose=True) as ctx:
        r, k = ctx.r, ctx.k
        idx = [int(np.argmin(np.abs(k - kk))) for kk in (0.5, 1.0, 2.0)]
        for l in range(3):
            g = ctx.transform_real(r**l * np.exp(-r * r), l)
            ref = gaussian_sbt(k[idx], l)
            print(f"l={l}")
            for i, gr in zip(idx, ref):
                print(f"  k={k[i]:.6f}  g={g[i]: .12e}  解析={gr: .12e}  相对误差={abs(g[i] / gr - 1):.2e}")

        out = ctx.transform(interleave(np.exp(-r * r) + 0j), 0, 0)
        export_transform_csv("sbt_gauss_l0.csv", ctx, out, 0, 0)
        print("已保存: sbt_gauss_l0.csv")


if __name__ == "__main__":
    main()
