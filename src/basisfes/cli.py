"""Command line interface for post-processing and the double-well demo."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from basisfes import constants as const
from basisfes.api import double_well_config, reconstruct_to_file, run_double_well_demo
from basisfes.config import load_config
from basisfes.reporting.basis_output import read_basis_output, read_coefficients
from basisfes.utils.errors import BasisFunctionError

logger = logging.getLogger("basisfes")


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="basisfes",
        description="Basis-function free energy sampling utilities.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    rec = sub.add_parser(
        "reconstruct", help="Rebuild the basis/PMF file from a coefficient file"
    )
    rec.add_argument("--config", type=Path, required=True, help="Method configuration (JSON)")
    rec.add_argument("--coefficients", type=Path, required=True, help="Coefficient file")
    rec.add_argument("--output", type=Path, default=Path("basis_reconstructed.out"))
    rec.add_argument("--beta", type=float, default=1.0, help="Inverse thermal energy")
    rec.add_argument("--plot", type=Path, default=None, help="Optional PNG output path")

    demo = sub.add_parser("demo", help="Run the 1D double-well demo")
    demo.add_argument("--steps", type=int, default=20000)
    demo.add_argument("--walkers", type=int, default=1)
    demo.add_argument("--seed", type=int, default=None)
    demo.add_argument("--update-period", type=int, default=500)
    demo.add_argument("--order", type=int, default=8)
    demo.add_argument("--output-dir", type=Path, default=Path("basisfes_demo"))
    demo.add_argument("--plot", action="store_true", help="Also save a PNG of the surface")
    return parser.parse_args(argv)


def _save_plot(basis_file: Path, plot_path: Path) -> None:
    from basisfes.reporting.plots import save_surface_plot

    surface = read_basis_output(basis_file)
    save_surface_plot(surface, plot_path.parent, plot_path.name)


def _reconstruct(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    iteration, coefficients = read_coefficients(args.coefficients)
    out = reconstruct_to_file(
        config, coefficients, args.output, iteration=iteration, beta=args.beta
    )
    print(f"Wrote {out}")
    if args.plot is not None:
        _save_plot(out, args.plot)
    return 0


def _demo(args: argparse.Namespace) -> int:
    config = double_well_config(
        args.output_dir, update_period=args.update_period, order=args.order
    )
    results = run_double_well_demo(
        args.output_dir,
        n_steps=args.steps,
        n_walkers=args.walkers,
        seed=args.seed,
        config=config,
    )
    for rank, result in enumerate(results):
        print(f"Walker {rank}: {result.steps} steps, stopped early: {result.stopped_early}")
    basis_file = Path(args.output_dir) / config.basis_filename
    print(f"Output written to {basis_file}")
    print(f"Restart state written to {Path(args.output_dir) / const.STATE_FILE_NAME}")
    if args.plot and basis_file.exists():
        _save_plot(basis_file, Path(args.output_dir) / "basis_surface.png")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point used by the ``basisfes`` console script."""

    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        if args.command == "reconstruct":
            return _reconstruct(args)
        return _demo(args)
    except (BasisFunctionError, OSError, ValueError) as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":  # pragma: no cover - manual invocation only
    raise SystemExit(main())
