import argparse
import importlib
import itertools
import os
import sys
from collections import Counter

from forma.codec import read_records, write_records
from forma.config import FormaConfig
from forma.engine import LocalEngine
from forma.errors import FormaError
from forma.logging import configure_logging, get_logger

logger = get_logger("cli")


def _load_config(path: str | None) -> FormaConfig:
    if path is None:
        return FormaConfig()
    return FormaConfig.from_file(path)


def _read_all(paths: list[str]):
    """Chain the records of several record files."""
    return itertools.chain.from_iterable(read_records(p) for p in paths)


def _load_detector(spec: str):
    """Resolve ``module:attr`` to a trend detector instance or function."""
    from forma.ops.trends import as_detector

    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"trend detector must be given as module:attr, got {spec!r}")
    obj = importlib.import_module(module_name)
    for part in attr.split("."):
        obj = getattr(obj, part)
    if isinstance(obj, type):
        obj = obj()
    return as_detector(obj)


def _missing_inputs(paths: list[str]) -> list[str]:
    return [p for p in paths if not os.path.exists(p)]


def _report(engine: LocalEngine) -> None:
    if not engine.progress.success:
        print(engine.progress.summary(), file=sys.stderr)


def cmd_series(args: argparse.Namespace) -> int:
    """Reconstruct per-pixel series from chunk record files."""
    from forma.jobs.timeseries import extract_tseries

    missing = _missing_inputs(args.chunks)
    if missing:
        print(f"Input not found: {', '.join(missing)}")
        return 1

    config = _load_config(args.config)
    engine = LocalEngine(fail_fast=args.fail_fast)
    n = write_records(
        args.out, extract_tseries(_read_all(args.chunks), config.missing_value, engine)
    )
    logger.info("series_written", path=args.out, records=n)
    _report(engine)
    print(f"Wrote {n} series to {args.out}")
    return 0


def cmd_fires(args: argparse.Namespace) -> int:
    """Build cumulative fire series from fire observation record files."""
    from forma.jobs.timeseries import fire_query

    missing = _missing_inputs(args.observations)
    if missing:
        print(f"Input not found: {', '.join(missing)}")
        return 1

    config = _load_config(args.config)
    start = args.start or config.est_start
    end = args.end or config.est_end
    engine = LocalEngine(fail_fast=args.fail_fast)
    n = write_records(
        args.out,
        fire_query(_read_all(args.observations), config.t_res, start, end, engine),
    )
    logger.info("fire_series_written", path=args.out, records=n, start=start, end=end)
    _report(engine)
    print(f"Wrote {n} fire series to {args.out}")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """Run the FORMA query and write one output line per row."""
    from forma.jobs.run_forma import forma_query

    inputs = [args.config] + args.ndvi + args.rain + args.vcf + args.country + args.fire
    missing = _missing_inputs(inputs)
    if missing:
        print(f"Input not found: {', '.join(missing)}")
        return 1

    config = _load_config(args.config)
    try:
        detector = _load_detector(args.trend)
    except (ImportError, AttributeError, ValueError, TypeError) as exc:
        print(f"Could not load trend detector: {exc}")
        return 2

    engine = LocalEngine(fail_fast=args.fail_fast)
    rows = forma_query(
        config,
        _read_all(args.ndvi),
        _read_all(args.rain),
        _read_all(args.vcf),
        _read_all(args.country),
        _read_all(args.fire),
        detector,
        engine,
    )
    n = 0
    with open(args.out, "w") as f:
        for row in rows:
            f.write(f"{row.s_res}\t{row.t_res}\t{row.country}\t{row.datestring}\t{row.text}\n")
            n += 1

    logger.info("forma_written", path=args.out, rows=n)
    _report(engine)
    print(f"Wrote {n} rows to {args.out}")
    return 0 if engine.progress.success else 3


def cmd_inspect(args: argparse.Namespace) -> int:
    """Summarize the contents of a record file."""
    if not os.path.exists(args.path):
        print(f"Record file not found: {args.path}")
        return 1

    counts: Counter = Counter()
    shown = 0
    for record in read_records(args.path):
        counts[type(record).__name__] += 1
        if shown < args.head:
            print(record)
            shown += 1

    print(f"{sum(counts.values())} records in {args.path}")
    for name, count in sorted(counts.items()):
        print(f"  {name}: {count}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="forma",
        description="FORMA deforestation detection CLI: series -> fires -> run",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument("--log-level", default="WARNING", help="Log level")
    p.add_argument(
        "--log-format", default="console", choices=["console", "json"], help="Log output format"
    )
    sub = p.add_subparsers(dest="command")

    def add_common(sp):
        sp.add_argument("--out", required=True, help="Output file path")
        sp.add_argument(
            "--fail-fast",
            action="store_true",
            help="Stop at the first failing key instead of skipping it",
        )

    # series
    ps = sub.add_parser(
        "series",
        help="Build per-pixel time series from chunk record files",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    ps.add_argument("chunks", nargs="+", help="DataChunk record files")
    ps.add_argument("--config", default=None, help="Job TOML/YAML; defaults apply if omitted")
    add_common(ps)
    ps.set_defaults(func=cmd_series)

    # fires
    pf = sub.add_parser(
        "fires",
        help="Build cumulative fire series from fire observation record files",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    pf.add_argument("observations", nargs="+", help="FireObservation record files")
    pf.add_argument("--config", default=None, help="Job TOML/YAML; defaults apply if omitted")
    pf.add_argument("--start", default=None, help="First date; defaults to est_start")
    pf.add_argument("--end", default=None, help="Last date; defaults to est_end")
    add_common(pf)
    pf.set_defaults(func=cmd_fires)

    # run
    pr = sub.add_parser(
        "run",
        help="Run the FORMA query",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        description="Joins NDVI, rain, VCF, country and fire records and writes FORMA output lines.",
    )
    pr.add_argument("config", help="Job TOML/YAML")
    for name, kind in (
        ("ndvi", "NDVI SeriesRecord"),
        ("rain", "rain SeriesRecord"),
        ("vcf", "VCF StaticChunk"),
        ("country", "country StaticChunk"),
        ("fire", "fire SeriesRecord"),
    ):
        pr.add_argument(f"--{name}", nargs="+", required=True, help=f"{kind} files")
    pr.add_argument(
        "--trend", required=True, help="Trend detector as module:attr (function, class or instance)"
    )
    add_common(pr)
    pr.set_defaults(func=cmd_run)

    # inspect
    pi = sub.add_parser(
        "inspect",
        help="Summarize a record file",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    pi.add_argument("path", help="Record file")
    pi.add_argument("--head", type=int, default=5, help="Number of records to print")
    pi.set_defaults(func=cmd_inspect)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.version:
        from forma import __version__

        print(__version__)
        return 0
    if args.command is None:
        parser.print_help()
        return 1
    configure_logging(level=args.log_level, format=args.log_format)
    try:
        return int(args.func(args))
    except FormaError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
