"""
Command line entry point.

Usage:
    tissue-deg run --config config.json --output-dir results/
    tissue-deg install-r-deps
"""

from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .config import ENGINES, PipelineConfig

logger = logging.getLogger("tissue_deg")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO", log_file: Optional[Path] = None) -> logging.Logger:
    """Attach console (and optional file) handlers to the package logger."""
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)

    ch = logging.StreamHandler()
    ch.setLevel(getattr(logging, level.upper()))
    ch.setFormatter(formatter)
    logger.addHandler(ch)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(formatter)
        logger.addHandler(fh)

    return logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tissue-deg",
        description="DESeq2 differential expression between tissues",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run the full pipeline")
    run.add_argument("--config", required=True, type=Path, help="JSON configuration file")
    run.add_argument("--output-dir", type=Path, default=None,
                     help="Output directory (overrides the config)")
    run.add_argument("--engine", choices=ENGINES, default=None,
                     help="DESeq2 engine (overrides the config)")
    run.add_argument("--n-cpus", type=int, default=None, help="Workers for pydeseq2")
    run.add_argument("--symbols", default=None,
                     help="'mygene' or a gene id/symbol table (overrides the config)")
    run.add_argument("--no-figures", action="store_true", help="Skip plotting")
    run.add_argument("--log-level", default="INFO",
                     choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    sub.add_parser("install-r-deps", help="Install DESeq2 into R via BiocManager")
    return parser


def _run(args: argparse.Namespace) -> int:
    from .pipeline import run_pipeline, save_results

    config = PipelineConfig.from_json(args.config).with_overrides(
        output_dir=args.output_dir,
        engine=args.engine,
        n_cpus=args.n_cpus,
        symbol_source=args.symbols,
    )
    output_dir = Path(config.output_dir) if config.output_dir is not None else Path("results")

    configure_logging(args.log_level, log_file=output_dir / "tissue_deg.log")
    result = run_pipeline(config, make_figures=not args.no_figures)
    save_results(result, output_dir)

    for tissue, genes in result.regulation.items():
        logger.info(f"{tissue}: {len(genes.up)} up-regulated, {len(genes.down)} down-regulated")
    return 0


def _install_r_deps(args: argparse.Namespace) -> int:
    from .r_utils import ensure_r_dependencies, R_ENGINE_PACKAGES

    configure_logging()
    ensure_r_dependencies(R_ENGINE_PACKAGES)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "run":
        return _run(args)
    return _install_r_deps(args)


if __name__ == "__main__":
    sys.exit(main())
