# Command line front end: sort a file of u64 values that is bigger than RAM.
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from extsort.core.config import DEFAULT_BATCH_SIZE, SortConfig
from extsort.core.errors import ConfigError, ExtSortError
from extsort.core.sorter import ExternalSorter


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="extsort", description="Sort a file of unsigned 64-bit integers that is bigger than RAM"
    )
    p.add_argument("-i", "--input", required=True, help="Input file, one integer per line ('-' for stdin)")
    p.add_argument("-o", "--output", type=Path, required=True, help="Output file path")
    p.add_argument(
        "-b",
        "--batch",
        type=int,
        help=f"Values sorted in memory per run (default: {DEFAULT_BATCH_SIZE})",
    )
    p.add_argument(
        "--max-open-runs", type=int, help="Merge at most this many runs at once (default: 256)"
    )
    p.add_argument(
        "--keep-tail-in-memory",
        action="store_true",
        default=None,
        help="Merge the last batch from memory instead of spilling it",
    )
    p.add_argument("--run-dir", type=Path, help="Directory for run files (default: output directory)")
    p.add_argument("--config", type=Path, help="TOML file with an [extsort] table")
    verbosity = p.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-vv for debug)")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only report errors")
    return p


def configure_logging(verbose: int, quiet: bool) -> None:
    if quiet:
        level = logging.ERROR
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def load_config(args: argparse.Namespace) -> SortConfig:
    overrides = {
        "batch_size": args.batch,
        "max_open_runs": args.max_open_runs,
        "keep_tail_in_memory": args.keep_tail_in_memory,
        "run_dir": args.run_dir,
    }
    if args.config is not None:
        return SortConfig.from_toml(args.config, **overrides)
    return SortConfig.from_dict({k: v for k, v in overrides.items() if v is not None})


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose, args.quiet)

    try:
        config = load_config(args)
    except ConfigError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    try:
        stats = ExternalSorter(config).sort_file(args.input, args.output)
    except ExtSortError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if not args.quiet:
        print(
            f"Sorted {stats.values} values into {stats.output_path} "
            f"using {stats.runs_created} runs in {stats.elapsed_seconds:.2f}s"
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
