"""
Option Keywords & Parsing
=========================
Closed keyword sets for every option recognised by terms and equations.

The setup API historically took free-form ``key -> value`` strings. Here every
key and every keyword value belongs to a ``StrEnum``; anything outside those
sets, or a number outside its allowed range, is rejected with
:class:`~pdeinputs.errors.InvalidOption` instead of being silently ignored.

Parsers accept the enum member itself, its keyword string (case-insensitive,
blanks stripped), or a native Python value (``bool``, ``int``, ``float``).
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import StrEnum
import logging
import math
from typing import Any, Callable, TypeVar

from pdeinputs.errors import EquationSealed, InvalidOption

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=StrEnum)


class QuadratureType(StrEnum):
    BARY = "bary"
    SUBDIV = "subdiv"
    HIGHER = "higher"
    HIGHEST = "highest"


class HodgeAlgo(StrEnum):
    VORONOI = "voronoi"
    COST = "cost"
    WBS = "wbs"


class SpaceScheme(StrEnum):
    CDO_VB = "cdo_vb"
    CDO_FB = "cdo_fb"


class SolverFamily(StrEnum):
    CS = "cs"
    PETSC = "petsc"
    NEWTON = "newton"


class IterativeSolver(StrEnum):
    CG = "cg"
    BICG = "bicg"
    GMRES = "gmres"
    AMG = "amg"


class Preconditioner(StrEnum):
    JACOBI = "jacobi"
    POLY1 = "poly1"
    SSOR = "ssor"
    ILU0 = "ilu0"
    ICC0 = "icc0"
    AMG = "amg"
    AS = "as"


class BCEnforcement(StrEnum):
    STRONG = "strong"
    PENALIZATION = "penalization"
    WEAK = "weak"
    WEAK_SYM = "weak_sym"


class TimeScheme(StrEnum):
    IMPLICIT = "implicit"
    EXPLICIT = "explicit"
    CRANK_NICOLSON = "crank_nicolson"
    THETA_SCHEME = "theta_scheme"


class AdvectionWeight(StrEnum):
    UPWIND = "upwind"
    CENTERED = "centered"
    SAMARSKII = "samarskii"
    SG = "sg"
    D10G5 = "d10g5"


class AdvectionWeightCriterion(StrEnum):
    XEXC = "xexc"
    FLUX = "flux"


class ExtraPost(StrEnum):
    PECLET = "peclet"
    UPWIND_COEF = "upwind_coef"


class SourceTermKey(StrEnum):
    QUADRATURE = "quadrature"
    POST = "post"


class ReactionKey(StrEnum):
    HODGE_ALGO = "hodge_algo"
    HODGE_COEF = "hodge_coef"
    LUMPING = "lumping"
    INV_PTY = "inv_pty"


class EquationKey(StrEnum):
    SPACE_SCHEME = "space_scheme"
    VERBOSITY = "verbosity"
    HODGE_DIFF_ALGO = "hodge_diff_algo"
    HODGE_TIME_ALGO = "hodge_time_algo"
    HODGE_DIFF_COEF = "hodge_diff_coef"
    HODGE_TIME_COEF = "hodge_time_coef"
    SOLVER_FAMILY = "solver_family"
    ITSOL = "itsol"
    PRECOND = "precond"
    ITSOL_MAX_ITER = "itsol_max_iter"
    ITSOL_EPS = "itsol_eps"
    ITSOL_RESNORM = "itsol_resnorm"
    BC_ENFORCEMENT = "bc_enforcement"
    BC_QUADRATURE = "bc_quadrature"
    TIME_SCHEME = "time_scheme"
    TIME_THETA = "time_theta"
    POST_FREQ = "post_freq"
    POST = "post"
    ADV_WEIGHT = "adv_weight"
    ADV_WEIGHT_CRITERION = "adv_weight_criterion"


# Named values accepted for the coefficient of the "cost" discrete Hodge operator
HODGE_COEF_NAMES: dict[str, float] = {
    "dga": 1.0 / 3.0,
    "sushi": 1.0 / math.sqrt(3.0),
    "gcr": 1.0,
}

# Theta implied by each named time scheme (None keeps the current theta)
TIME_SCHEME_THETA: dict[TimeScheme, float | None] = {
    TimeScheme.IMPLICIT: 1.0,
    TimeScheme.EXPLICIT: 0.0,
    TimeScheme.CRANK_NICOLSON: 0.5,
    TimeScheme.THETA_SCHEME: None,
}

POST_NEVER = -1
POST_AT_START = 0


def _normalise(value: Any) -> str:
    return str(value).strip().lower()


def parse_enum(enum_cls: type[E], value: Any, key: str) -> E:
    """
    Convert a keyword (or an enum member) into a member of ``enum_cls``.

    Raises:
        InvalidOption: If the value is not one of the enum's keywords.
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(_normalise(value))
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidOption(
            f"Invalid value {value!r} for option '{key}'. Expected one of: {allowed}."
        ) from None


def parse_key(enum_cls: type[E], key: Any) -> E:
    """Same as :func:`parse_enum`, with a message about the key itself."""
    if isinstance(key, enum_cls):
        return key
    try:
        return enum_cls(_normalise(key))
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidOption(f"Unknown option key {key!r}. Recognised keys: {allowed}.") from None


def parse_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    text = _normalise(value)
    if text == "true":
        return True
    if text == "false":
        return False
    raise InvalidOption(f"Invalid value {value!r} for option '{key}'. Expected 'true' or 'false'.")


def parse_int(value: Any, key: str, minimum: int | None = None) -> int:
    if isinstance(value, bool):
        raise InvalidOption(f"Invalid value {value!r} for option '{key}'. Expected an integer.")
    if isinstance(value, int):
        number = value
    else:
        try:
            number = int(_normalise(value))
        except ValueError:
            raise InvalidOption(
                f"Invalid value {value!r} for option '{key}'. Expected an integer."
            ) from None
    if minimum is not None and number < minimum:
        raise InvalidOption(f"Option '{key}' must be >= {minimum}, got {number}.")
    return number


def parse_float(
    value: Any,
    key: str,
    minimum: float | None = None,
    maximum: float | None = None,
    strictly_positive: bool = False,
) -> float:
    if isinstance(value, bool):
        raise InvalidOption(f"Invalid value {value!r} for option '{key}'. Expected a number.")
    try:
        number = float(value) if isinstance(value, (int, float)) else float(_normalise(value))
    except ValueError:
        raise InvalidOption(f"Invalid value {value!r} for option '{key}'. Expected a number.") from None

    if not math.isfinite(number):
        raise InvalidOption(f"Option '{key}' must be finite, got {number}.")
    if strictly_positive and number <= 0.0:
        raise InvalidOption(f"Option '{key}' must be strictly positive, got {number}.")
    if minimum is not None and number < minimum:
        raise InvalidOption(f"Option '{key}' must be >= {minimum}, got {number}.")
    if maximum is not None and number > maximum:
        raise InvalidOption(f"Option '{key}' must be <= {maximum}, got {number}.")
    return number


def parse_hodge_coef(value: Any, key: str) -> float:
    """Accept 'dga', 'sushi', 'gcr' or any strictly positive number."""
    if isinstance(value, str) and _normalise(value) in HODGE_COEF_NAMES:
        return HODGE_COEF_NAMES[_normalise(value)]
    return parse_float(value, key, strictly_positive=True)


def parse_post(value: Any, key: str) -> int:
    """-1 never, 0 at the beginning only, n every n iterations."""
    return parse_int(value, key, minimum=POST_NEVER)


def parse_quadrature(value: Any, key: str) -> QuadratureType:
    return parse_enum(QuadratureType, value, key)


SOURCE_TERM_PARSERS: dict[SourceTermKey, Callable[[Any, str], Any]] = {
    SourceTermKey.QUADRATURE: parse_quadrature,
    SourceTermKey.POST: parse_post,
}

REACTION_PARSERS: dict[ReactionKey, Callable[[Any, str], Any]] = {
    ReactionKey.HODGE_ALGO: lambda v, k: parse_enum(HodgeAlgo, v, k),
    ReactionKey.HODGE_COEF: parse_hodge_coef,
    ReactionKey.LUMPING: parse_bool,
    ReactionKey.INV_PTY: parse_bool,
}

EQUATION_PARSERS: dict[EquationKey, Callable[[Any, str], Any]] = {
    EquationKey.SPACE_SCHEME: lambda v, k: parse_enum(SpaceScheme, v, k),
    EquationKey.VERBOSITY: lambda v, k: parse_int(v, k, minimum=0),
    EquationKey.HODGE_DIFF_ALGO: lambda v, k: parse_enum(HodgeAlgo, v, k),
    EquationKey.HODGE_TIME_ALGO: lambda v, k: parse_enum(HodgeAlgo, v, k),
    EquationKey.HODGE_DIFF_COEF: parse_hodge_coef,
    EquationKey.HODGE_TIME_COEF: parse_hodge_coef,
    EquationKey.SOLVER_FAMILY: lambda v, k: parse_enum(SolverFamily, v, k),
    EquationKey.ITSOL: lambda v, k: parse_enum(IterativeSolver, v, k),
    EquationKey.PRECOND: lambda v, k: parse_enum(Preconditioner, v, k),
    EquationKey.ITSOL_MAX_ITER: lambda v, k: parse_int(v, k, minimum=1),
    EquationKey.ITSOL_EPS: lambda v, k: parse_float(v, k, strictly_positive=True),
    EquationKey.ITSOL_RESNORM: parse_bool,
    EquationKey.BC_ENFORCEMENT: lambda v, k: parse_enum(BCEnforcement, v, k),
    EquationKey.BC_QUADRATURE: parse_quadrature,
    EquationKey.TIME_SCHEME: lambda v, k: parse_enum(TimeScheme, v, k),
    EquationKey.TIME_THETA: lambda v, k: parse_float(v, k, minimum=0.0, maximum=1.0),
    EquationKey.POST_FREQ: lambda v, k: parse_int(v, k, minimum=0),
    EquationKey.POST: lambda v, k: parse_enum(ExtraPost, v, k),
    EquationKey.ADV_WEIGHT: lambda v, k: parse_enum(AdvectionWeight, v, k),
    EquationKey.ADV_WEIGHT_CRITERION: lambda v, k: parse_enum(AdvectionWeightCriterion, v, k),
}


@dataclass
class EquationParams:
    """
    Numerical settings of one equation.

    Most of them are handed untouched to the assembly collaborator; only
    ``bc_quadrature`` is consumed here, when boundary conditions are integrated.
    """
    space_scheme: SpaceScheme = SpaceScheme.CDO_VB
    verbosity: int = 0
    hodge_diff_algo: HodgeAlgo = HodgeAlgo.COST
    hodge_time_algo: HodgeAlgo = HodgeAlgo.VORONOI
    hodge_diff_coef: float = HODGE_COEF_NAMES["dga"]
    hodge_time_coef: float = HODGE_COEF_NAMES["dga"]
    solver_family: SolverFamily = SolverFamily.CS
    itsol: IterativeSolver = IterativeSolver.CG
    precond: Preconditioner = Preconditioner.JACOBI
    itsol_max_iter: int = 2500
    itsol_eps: float = 1e-12
    itsol_resnorm: bool = True
    bc_enforcement: BCEnforcement = BCEnforcement.STRONG
    bc_quadrature: QuadratureType = QuadratureType.BARY
    time_scheme: TimeScheme = TimeScheme.IMPLICIT
    time_theta: float = 1.0
    post_freq: int = 10
    post: tuple[ExtraPost, ...] = ()
    adv_weight: AdvectionWeight = AdvectionWeight.UPWIND
    adv_weight_criterion: AdvectionWeightCriterion = AdvectionWeightCriterion.XEXC
    _sealed: bool = field(default=False, init=False, repr=False, compare=False)

    def __setattr__(self, name: str, value: Any) -> None:
        if self._sealed:
            raise EquationSealed(f"Equation parameters are sealed; '{name}' cannot be changed.")
        super().__setattr__(name, value)

    @property
    def is_sealed(self) -> bool:
        return self._sealed

    def seal(self) -> None:
        object.__setattr__(self, "_sealed", True)

    def set(self, key: Any, value: Any) -> None:
        """
        Parse and store one option.

        ``time_scheme`` also sets the matching theta; an explicit ``time_theta``
        switches the scheme to ``theta_scheme``. ``post`` accumulates.

        Raises:
            EquationSealed: The parameters were sealed with their equation.
            InvalidOption: Unknown key, or value outside its set or range.
        """
        option = parse_key(EquationKey, key)
        parsed = EQUATION_PARSERS[option](value, option.value)

        if option is EquationKey.TIME_SCHEME:
            self.time_scheme = parsed
            theta = TIME_SCHEME_THETA[parsed]
            if theta is not None:
                self.time_theta = theta
        elif option is EquationKey.TIME_THETA:
            self.time_scheme = TimeScheme.THETA_SCHEME
            self.time_theta = parsed
        elif option is EquationKey.POST:
            if parsed not in self.post:
                self.post = (*self.post, parsed)
        else:
            setattr(self, option.value, parsed)
        logger.debug(f"Equation option '{option}' set to {parsed!r}.")

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if f.init}
