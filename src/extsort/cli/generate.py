# Generate random test input: one unsigned 64-bit integer per line.
from __future__ import annotations

import argparse
import random
import sys
from pathlib import Path

from extsort.core.types import U64_MAX


def generate(path: Path, count: int, seed: int | None = None, max_value: int = U64_MAX) -> None:
    """Write count random values in [0, max_value] to path."""
    rng = random.Random(seed)
    with open(path, "w", encoding="ascii", newline="\n") as f:
        for _ in range(count):
            f.write(f"{rng.randint(0, max_value)}\n")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="extsort-gen", description="Generate random u64 input for extsort")
    p.add_argument("-o", "--output", type=Path, required=True, help="File to write")
    p.add_argument("-n", "--count", type=int, required=True, help="Number of values")
    p.add_argument("--seed", type=int, help="Random seed for reproducible output")
    p.add_argument("--max-value", type=int, default=U64_MAX, help="Largest value to generate")
    return p


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.count < 0:
        parser.error("--count must not be negative")
    if not 0 <= args.max_value <= U64_MAX:
        parser.error(f"--max-value must be between 0 and {U64_MAX}")

    try:
        generate(args.output, args.count, args.seed, args.max_value)
    except OSError as e:
        print(f"error: cannot write {args.output}: {e}", file=sys.stderr)
        return 1

    print(f"Wrote {args.count} values to {args.output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
