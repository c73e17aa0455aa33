"""
Evaluators
==========
Pure value producers backing every term: a constant, a closed-form function of
``(point, time)``, or a law of ``(point, time, context)``.

The output arity (scalar, 3-vector, 3x3 tensor) is fixed at creation; every
produced value is checked against it. Evaluators hold no mutable state, so the
same instance may be evaluated concurrently by several quadrature calls.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Mapping, Optional, Sequence

import numpy as np

from pdeinputs.errors import ShapeMismatch, UnknownName

if TYPE_CHECKING:
    import numpy.typing as npt

Value = float | np.ndarray
AnalyticFunction = Callable[[np.ndarray, float], Any]
LawFunction = Callable[[np.ndarray, float, Mapping[str, Any]], Any]

SYMMETRY_TOLERANCE = 1e-12


class Arity(StrEnum):
    SCALAR = "scalar"
    VECTOR = "vector"
    TENSOR = "tensor"

    @property
    def shape(self) -> tuple[int, ...]:
        return ARITY_SHAPES[self]


ARITY_SHAPES: dict[Arity, tuple[int, ...]] = {
    Arity.SCALAR: (),
    Arity.VECTOR: (3,),
    Arity.TENSOR: (3, 3),
}


class DefinitionKind(StrEnum):
    VALUE = "value"
    ANALYTIC = "analytic"
    LAW = "law"


def as_point(point: Sequence[float] | npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """Return ``point`` as a float64 array of shape (3,)."""
    xyz = np.asarray(point, dtype=np.float64)
    if xyz.shape != (3,):
        raise ShapeMismatch(f"A point must have 3 coordinates, got shape {xyz.shape}.")
    return xyz


def parse_value(value: Any, arity: Arity) -> npt.NDArray[np.float64]:
    """
    Convert a user value into an array with the shape of ``arity``.

    Strings are read as blank or newline separated numbers, so that
    ``"1.0 0.5 0.0\\n0.5 1.0 0.5\\n0.0 0.5 1.0"`` gives a 3x3 tensor.
    A flat sequence with the right number of entries is reshaped.
    """
    try:
        if isinstance(value, str):
            array = np.array(value.split(), dtype=np.float64)
        else:
            array = np.array(value, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ShapeMismatch(f"Cannot read {value!r} as a {arity} value: {exc}") from None

    shape = arity.shape
    if array.shape != shape and array.size == int(np.prod(shape)):
        array = array.reshape(shape)
    if array.shape != shape:
        raise ShapeMismatch(f"Expected a {arity} value of shape {shape}, got shape {array.shape}.")
    return array


def check_value(value: Any, arity: Arity, symmetric: bool = False) -> Value:
    """
    Validate a produced value against the declared arity.

    Returns a ``float`` for scalars and a fresh float64 array otherwise.

    Raises:
        ShapeMismatch: Wrong shape, non-numeric content, or a tensor that is
            required to be symmetric but is not.
    """
    try:
        array = np.array(value, dtype=np.float64)
    except (TypeError, ValueError):
        raise ShapeMismatch(f"Evaluator returned a non-numeric value: {value!r}") from None

    if array.shape != arity.shape:
        raise ShapeMismatch(
            f"Evaluator declared as {arity} (shape {arity.shape}) returned shape {array.shape}."
        )
    if arity is Arity.SCALAR:
        return float(array)
    if symmetric and not np.allclose(array, array.T, rtol=0.0, atol=SYMMETRY_TOLERANCE):
        raise ShapeMismatch(f"Evaluator returned a non-symmetric tensor:\n{array}")
    return array


class Evaluator(ABC):
    """
    Abstract base class for evaluators.

    Subclasses implement :meth:`_compute`; :meth:`evaluate` takes care of the
    point conversion and of the arity check.
    """
    kind: ClassVar[DefinitionKind]
    arity: Arity
    symmetric: bool

    @abstractmethod
    def _compute(self, point: npt.NDArray[np.float64], time: float) -> Any:
        pass

    def evaluate(self, point: Sequence[float] | npt.NDArray[np.float64], time: float = 0.0) -> Value:
        """
        Evaluate at a point and time.

        Args:
            point: Coordinates [x, y, z].
            time: Physical time.

        Returns:
            A float for scalar evaluators, otherwise an array of shape
            ``arity.shape``.
        """
        return check_value(self._compute(as_point(point), float(time)), self.arity, self.symmetric)

    def evaluate_many(
        self,
        points: npt.NDArray[np.float64],
        time: float = 0.0,
    ) -> npt.NDArray[np.float64]:
        """Evaluate at every row of ``points``; results are stacked along axis 0."""
        values = [self.evaluate(point, time) for point in np.asarray(points, dtype=np.float64)]
        return np.array(values, dtype=np.float64).reshape((len(values), *self.arity.shape))


@dataclass(frozen=True, eq=False)
class ConstantEvaluator(Evaluator):
    """Evaluator returning the same value everywhere and at all times."""
    kind: ClassVar[DefinitionKind] = DefinitionKind.VALUE

    value: Any
    arity: Arity = Arity.SCALAR
    symmetric: bool = False

    def __post_init__(self) -> None:
        array = parse_value(self.value, self.arity)
        if self.symmetric and not np.allclose(array, array.T, rtol=0.0, atol=SYMMETRY_TOLERANCE):
            raise ShapeMismatch(f"Value must be a symmetric tensor, got:\n{array}")
        array.flags.writeable = False
        object.__setattr__(self, "value", array)

    def _compute(self, point: npt.NDArray[np.float64], time: float) -> Any:
        return self.value

    def evaluate(self, point: Any = None, time: float = 0.0) -> Value:
        # Point and time are ignored, so they are not validated either.
        if self.arity is Arity.SCALAR:
            return float(self.value)
        return self.value.copy()


@dataclass(frozen=True, eq=False)
class AnalyticEvaluator(Evaluator):
    """Evaluator backed by a closed-form function ``f(point, time)``."""
    kind: ClassVar[DefinitionKind] = DefinitionKind.ANALYTIC

    function: AnalyticFunction
    arity: Arity = Arity.SCALAR
    symmetric: bool = False

    def __post_init__(self) -> None:
        if not callable(self.function):
            raise TypeError(f"Analytic definition must be callable, got {self.function!r}.")

    def _compute(self, point: npt.NDArray[np.float64], time: float) -> Any:
        return self.function(point, time)


@dataclass(frozen=True, eq=False)
class LawEvaluator(Evaluator):
    """
    Evaluator backed by a law ``f(point, time, context)``.

    The context given at creation is stored read-only; a context passed to
    :meth:`evaluate` takes precedence over it for that call only.
    """
    kind: ClassVar[DefinitionKind] = DefinitionKind.LAW

    function: LawFunction
    arity: Arity = Arity.SCALAR
    context: Mapping[str, Any] = field(default_factory=dict)
    symmetric: bool = False

    def __post_init__(self) -> None:
        if not callable(self.function):
            raise TypeError(f"Law definition must be callable, got {self.function!r}.")
        object.__setattr__(self, "context", MappingProxyType(dict(self.context)))

    def _compute(self, point: npt.NDArray[np.float64], time: float) -> Any:
        return self.function(point, time, self.context)

    def evaluate(
        self,
        point: Sequence[float] | npt.NDArray[np.float64],
        time: float = 0.0,
        context: Optional[Mapping[str, Any]] = None,
    ) -> Value:
        if context is None:
            return super().evaluate(point, time)
        merged = MappingProxyType({**self.context, **context})
        return check_value(self.function(as_point(point), float(time), merged), self.arity, self.symmetric)


@dataclass(frozen=True, eq=False)
class TabulatedLaw:
    """
    Law function interpolating a tabulated curve of one context variable.

    Usable as the ``function`` of a :class:`LawEvaluator`; outside the table
    the first/last value is kept.

    Example:
        >>> law = TabulatedLaw("temperature", (20.0, 1200.0), (1.6, 0.6))
        >>> law(np.zeros(3), 0.0, {"temperature": 610.0})
        1.1
    """
    variable: str
    abscissae: tuple[float, ...]
    values: tuple[float, ...]

    def __post_init__(self) -> None:
        if not self.abscissae or len(self.abscissae) != len(self.values):
            raise ShapeMismatch(
                f"Tabulated law needs as many values as abscissae, "
                f"got {len(self.abscissae)} and {len(self.values)}."
            )
        combined = sorted(zip(self.abscissae, self.values), key=lambda x: x[0])
        xs, ys = zip(*combined)
        object.__setattr__(self, "abscissae", tuple(float(x) for x in xs))
        object.__setattr__(self, "values", tuple(float(y) for y in ys))

    def __call__(self, point: npt.NDArray[np.float64], time: float, context: Mapping[str, Any]) -> float:
        try:
            variable = context[self.variable]
        except KeyError:
            raise UnknownName(f"Law variable '{self.variable}' is missing from the context.") from None
        return float(
            np.interp(
                variable,
                self.abscissae,
                self.values,
                left=self.values[0],
                right=self.values[-1],
            )
        )
