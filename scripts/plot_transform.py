#!/usr/bin/env python3
"""
变换结果可视化脚本
- 读取 examples/run_sbt.py --export-dir 导出的 transform.csv
- 上图：g(k) 实部与虚部
- 下图：与高斯解析结果的相对误差（--gauss-alpha 给定时）
"""

import argparse
import numpy as np
import matplotlib.pyplot as plt
from pathlib import Path

from logsbt.reference import gaussian_sbt

# 中文字体设置
plt.rcParams['font.sans-serif'] = ['PingFang SC', 'Arial Unicode MS', 'SimHei']
plt.rcParams['axes.unicode_minus'] = False


def load_transform(filepath):
    """读取 CSV，返回 (l, m, k, g)"""
    with open(filepath, 'r', encoding='utf-8') as f:
        head = f.readline().lstrip('#').strip()
    lm = dict(item.split('=') for item in head.split(','))
    data = np.loadtxt(filepath, delimiter=',')
    return int(lm['l']), int(lm['m']), data[:, 0], data[:, 1] + 1j * data[:, 2]


def main():
    parser = argparse.ArgumentParser(description="绘制 FSBT 变换结果")
    parser.add_argument("csv", type=str, help="transform.csv 路径")
    parser.add_argument("--gauss-alpha", type=float, default=None, help="高斯试探函数指数（绘制误差）")
    parser.add_argument("--out", type=str, default=None, help="输出图像路径")
    args = parser.parse_args()

    l, m, k, g = load_transform(args.csv)
    nrows = 2 if args.gauss_alpha is not None else 1
    fig, axes = plt.subplots(nrows, 1, figsize=(7, 3.5 * nrows), squeeze=False)

    ax = axes[0, 0]
    ax.semilogx(k, g.real, '-', color='#1f77b4', label='Re g(k)')
    ax.semilogx(k, g.imag, '--', color='#ff7f0e', label='Im g(k)')
    ax.set_title(f'l={l}, m={m}')
    ax.set_xlabel('k')
    ax.legend()
    ax.grid(alpha=0.3)

    if args.gauss_alpha is not None:
        ref = gaussian_sbt(k, l, args.gauss_alpha)
        mask = np.abs(ref) > 1e-12 * np.max(np.abs(ref))
        ax = axes[1, 0]
        ax.loglog(k[mask], np.abs(g.real[mask] / ref[mask] - 1.0), '-', color='#2ca02c')
        ax.set_xlabel('k')
        ax.set_ylabel('相对误差')
        ax.grid(alpha=0.3)

    fig.tight_layout()
    out = Path(args.out) if args.out else Path(args.csv).with_suffix('.png')
    fig.savefig(out, dpi=150)
    print(f"已保存: {out}")


if __name__ == "__main__":
    main()
