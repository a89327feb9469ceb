"""TinyPool CLI - churn a pool of pre-allocated tensor buffers."""

import argparse
import logging
import sys
import time

from tinygrad import Device, Tensor

from tinypool.core.config import PoolConfig
from tinypool.core.cloners import tensor_clone
from tinypool.core.errors import PoolError
from tinypool.core.pool import Pool


def main() -> None:
    parser = argparse.ArgumentParser(description="TinyPool - categorised object pool")
    parser.add_argument("--category", type=str, default="scratch", help="Category to create and fill")
    parser.add_argument("--count", type=int, default=8, help="Number of buffers to pre-allocate")
    parser.add_argument("--rounds", type=int, default=100, help="Checkout/return rounds to run")
    parser.add_argument("--batch", type=int, default=1, help="Items checked out per round")
    parser.add_argument("--shape", type=int, nargs="+", default=[16, 16], help="Template tensor shape")
    parser.add_argument("--device", type=str, help="Device to place buffers on (CPU, CUDA, METAL)")
    parser.add_argument("--async-populate", action="store_true", help="Clone on a background thread")
    parser.add_argument("--lenient", action="store_true", help="Log precondition failures instead of raising")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    if args.device:
        Device.DEFAULT = args.device.upper()

    print(f"Using device: {Device.DEFAULT}", file=sys.stderr)

    pool = Pool(
        PoolConfig(strict=not args.lenient, async_populate=args.async_populate, default_parent=Device.DEFAULT),
        cloner=tensor_clone,
    )
    template = Tensor.zeros(*args.shape).contiguous().realize()

    try:
        pool.create_category(args.category)
        start = time.perf_counter()
        job = pool.populate(template, args.category, count=args.count)
        job.result(timeout=60.0)
        pool.drain()
        print(f"Populated {args.count} buffers in {(time.perf_counter() - start) * 1000:.1f} ms")

        start = time.perf_counter()
        misses = 0
        for i in range(args.rounds):
            items = pool.checkout(args.category, f"round-{i}", count=args.batch)
            misses += args.batch - len(items)
            for item in items:
                pool.return_to_pool(item)
        elapsed = time.perf_counter() - start
    except PoolError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        pool.shutdown()

    stats = pool.stats()
    print(f"{args.rounds} rounds in {elapsed * 1000:.1f} ms ({misses} misses)")
    for name in pool.categories():
        print(f"{name}: {stats.available[name]} available, {stats.in_use[name]} in use")


if __name__ == "__main__":
    main()
