"""Benchmark: Checkout/return churn vs allocating fresh objects.

Run with:
  python -m benchmarks.bench_churn                  # small CPU buffers
  python -m benchmarks.bench_churn --shape 256 256 --rounds 500
  DEVICE=METAL python -m benchmarks.bench_churn --async-populate
"""

import os
import time
import argparse
from dataclasses import dataclass
from typing import List

from tinygrad import Tensor, Device

if "DEVICE" in os.environ:
    Device.DEFAULT = os.environ["DEVICE"]

from tinypool.core.config import PoolConfig
from tinypool.core.cloners import tensor_clone
from tinypool.core.pool import Pool


@dataclass
class ChurnResult:
    name: str
    rounds: int
    total_ms: float

    @property
    def us_per_round(self) -> float:
        return self.total_ms * 1000 / self.rounds


def bench_fresh(shape: List[int], rounds: int) -> ChurnResult:
    """Allocate and realize a new buffer every round."""
    start = time.perf_counter()
    for _ in range(rounds):
        Tensor.zeros(*shape).contiguous().realize()
    return ChurnResult("fresh alloc", rounds, (time.perf_counter() - start) * 1000)


def bench_pooled(shape: List[int], rounds: int, pool_size: int, async_populate: bool) -> ChurnResult:
    """Check out and return pre-allocated buffers every round."""
    pool = Pool(PoolConfig(async_populate=async_populate), cloner=tensor_clone)
    pool.create_category("scratch")
    pool.populate(Tensor.zeros(*shape).contiguous().realize(), "scratch", count=pool_size)
    pool.drain(timeout=60.0)

    start = time.perf_counter()
    for i in range(rounds):
        buf = pool.checkout("scratch", f"round-{i}")
        pool.return_to_pool(buf)
    elapsed = (time.perf_counter() - start) * 1000

    pool.shutdown()
    return ChurnResult(f"pooled ({pool_size})", rounds, elapsed)


def main():
    parser = argparse.ArgumentParser(description="Pool churn benchmark")
    parser.add_argument("--shape", type=int, nargs="+", default=[64, 64])
    parser.add_argument("--rounds", type=int, default=200)
    parser.add_argument("--pool-size", type=int, default=4)
    parser.add_argument("--async-populate", action="store_true")
    args = parser.parse_args()

    print(f"Device: {Device.DEFAULT}, shape: {args.shape}, rounds: {args.rounds}")
    print(f"{'Mode':<20} {'Total ms':>10} {'us/round':>10}")
    print("-" * 42)

    for result in (bench_fresh(args.shape, args.rounds),
                   bench_pooled(args.shape, args.rounds, args.pool_size, args.async_populate)):
        print(f"{result.name:<20} {result.total_ms:>10.1f} {result.us_per_round:>10.1f}")


if __name__ == "__main__":
    main()
