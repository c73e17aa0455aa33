"""Command-line interface."""
import argparse
import logging

from pdeinputs.analysis.entities import PolyhedronCell
from pdeinputs.analysis.quadrature import integrate, mean_value
from pdeinputs.cases.advdiff import EQUATION_NAME, SOURCE_TERM_LABEL, build_advdiff_domain
from pdeinputs.logging_config import setup_logging
from pdeinputs.options import QuadratureType

logger = logging.getLogger("pdeinputs.cli")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="pdeinputs",
        description="Set up the advection-diffusion case and integrate its inputs on the unit cube.",
    )
    parser.add_argument("--level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", default=None, help="Also write the log to this file.")
    parser.add_argument(
        "--quadrature",
        choices=[q.value for q in QuadratureType],
        default=None,
        help="Quadrature policy to report (default: all of them).",
    )
    args = parser.parse_args(argv)

    setup_logging(level=args.level, log_file=args.log_file)

    domain = build_advdiff_domain()
    domain.seal()

    equation = domain.get_equation(EQUATION_NAME)
    source = equation.get_source_term(SOURCE_TERM_LABEL)
    dirichlet = equation.boundary_conditions[0]

    cube = PolyhedronCell.box(index=0)
    bottom = cube.faces[0]

    policies = [QuadratureType(args.quadrature)] if args.quadrature else list(QuadratureType)
    for policy in policies:
        logger.info(
            f"{policy:<8} source integral = {integrate(cube, source.evaluator, 0.0, policy):+.12e}   "
            f"bottom-face Dirichlet mean = {mean_value(bottom, dirichlet.evaluator, 0.0, policy):+.12e}"
        )
    logger.info(f"Configured policy of '{SOURCE_TERM_LABEL}': {source.quadrature} -> {source.integrate(cube):+.12e}")


if __name__ == "__main__":
    main()
