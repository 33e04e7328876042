"""
scripts/bench_matmul_block_vs_numpy.py

Block-kernel vs NumPy matmul microbenchmark (NOT a unit test) for ndgrad.

Benchmarks forward-only matrix multiplication through `Tensor.__matmul__`
with each `matmul_backend`:

- block: the recursive block kernel (pure Python base case)
- numpy: `np.matmul`

Timing policy
-------------
- Input tensors are built once per case, outside the timed region.
- Gradient recording is disabled while timing.
- The large-operand warning is silenced for the block backend.

Usage
-----
python scripts/bench_matmul_block_vs_numpy.py --presets
python scripts/bench_matmul_block_vs_numpy.py --M 64 --K 64 --N 64 --block-size 16
"""

from __future__ import annotations

import argparse
import os
import statistics
import sys
import time
import warnings
from dataclasses import dataclass
from typing import Callable

import numpy as np

# -------------------------
# Make repo_root/src importable
# -------------------------
THIS_DIR = os.path.dirname(os.path.abspath(__file__))
ROOT_DIR = os.path.abspath(os.path.join(THIS_DIR, ".."))
SRC_DIR = os.path.join(ROOT_DIR, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from ndgrad import Tensor, config_override, no_grad


def _time_one(fn: Callable[[], None], *, warmup: int, repeats: int) -> list[float]:
    for _ in range(warmup):
        fn()
    ts: list[float] = []
    for _ in range(repeats):
        t0 = time.perf_counter()
        fn()
        t1 = time.perf_counter()
        ts.append(t1 - t0)
    return ts


def _fmt_seconds(x: float) -> str:
    if x < 1e-6:
        return f"{x*1e9:.2f} ns"
    if x < 1e-3:
        return f"{x*1e6:.2f} µs"
    if x < 1:
        return f"{x*1e3:.2f} ms"
    return f"{x:.3f} s"


def _speedup(a: float, b: float) -> float:
    return (a / b) if b > 0 else float("inf")


@dataclass(frozen=True)
class Case:
    name: str
    M: int
    K: int
    N: int


def _bench_case(
    case: Case,
    *,
    dtype: str,
    block_size: int,
    warmup: int,
    repeats: int,
    sanity: bool,
    rng_seed: int,
) -> None:
    rng = np.random.default_rng(rng_seed)
    M, K, N = int(case.M), int(case.K), int(case.N)

    A_np = rng.standard_normal((M, K))
    B_np = rng.standard_normal((K, N))
    A = Tensor.from_numpy(A_np, dtype=dtype, requires_grad=False)
    B = Tensor.from_numpy(B_np, dtype=dtype, requires_grad=False)

    def run(backend: str) -> Callable[[], None]:
        def fwd() -> None:
            with config_override(matmul_backend=backend, matmul_block_size=block_size):
                with no_grad():
                    _ = A @ B

        return fwd

    if sanity:
        with config_override(matmul_backend="block", matmul_block_size=block_size):
            out = (A @ B).to_numpy()
        np.testing.assert_allclose(out, A_np @ B_np, rtol=1e-4, atol=1e-4)

    with warnings.catch_warnings():
        warnings.simplefilter("ignore", RuntimeWarning)
        t_block = statistics.median(
            _time_one(run("block"), warmup=warmup, repeats=repeats)
        )
    t_numpy = statistics.median(_time_one(run("numpy"), warmup=warmup, repeats=repeats))

    print(
        f"{case.name:<14} (M={M} K={K} N={N})  "
        f"block={_fmt_seconds(t_block):>10}  "
        f"numpy={_fmt_seconds(t_numpy):>10}  "
        f"speedup={_speedup(t_block, t_numpy):>9.2f}x"
    )


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--M", type=int, default=32)
    ap.add_argument("--K", type=int, default=32)
    ap.add_argument("--N", type=int, default=32)
    ap.add_argument("--dtype", choices=["float32", "float64"], default="float64")
    ap.add_argument("--block-size", type=int, default=32)
    ap.add_argument("--warmup", type=int, default=1)
    ap.add_argument("--repeats", type=int, default=5)
    ap.add_argument("--presets", action="store_true", help="Run a preset suite.")
    ap.add_argument(
        "--sanity",
        action="store_true",
        help="Sanity-check the block kernel vs NumPy (not timed).",
    )
    ap.add_argument("--seed", type=int, default=0, help="RNG seed.")
    args = ap.parse_args()

    print("\n" + "=" * 90)
    print(
        f"ndgrad matmul block vs numpy benchmark  dtype={args.dtype}  "
        f"block_size={args.block_size} (warmup={args.warmup}, repeats={args.repeats})"
    )
    print("=" * 90)

    if args.presets:
        cases = [
            Case("tiny-8", 8, 8, 8),
            Case("small-32", 32, 32, 32),
            Case("mid-64", 64, 64, 64),
            Case("rect-64x16x48", 64, 16, 48),
        ]
    else:
        cases = [Case("single", args.M, args.K, args.N)]

    for c in cases:
        _bench_case(
            c,
            dtype=args.dtype,
            block_size=args.block_size,
            warmup=args.warmup,
            repeats=args.repeats,
            sanity=args.sanity,
            rng_seed=args.seed,
        )


if __name__ == "__main__":
    main()
