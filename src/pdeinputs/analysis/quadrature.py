"""
Quadrature Engine
=================
Approximates the integral of an evaluator over a mesh entity.

Policies (see :class:`~pdeinputs.options.QuadratureType`):

- ``bary``: one evaluation at the barycenter times the entity measure.
- ``subdiv``: split into simplices, barycenter rule on each of them.
- ``higher`` / ``highest``: split into simplices, then a fixed Gauss rule on
  each of them (4/5 points on tetrahedra, 3/4 points on triangles). Gauss
  points are never placed on the original, possibly non-simplicial, entity.

Sub-simplices are weighted by their signed measure (see
:meth:`~pdeinputs.analysis.entities.MeshEntity.sub_measures`), so folded
simplices of non-convex entities are subtracted.

Vertices (dimension 0) have no sub-structure: every policy reduces to the
value at the vertex times its dual measure.

All functions are pure; they may be called concurrently on different entities.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Iterable

import numpy as np

from pdeinputs.analysis.gauss import simplex_rule
from pdeinputs.errors import DegenerateEntity
from pdeinputs.options import QuadratureType, parse_quadrature

if TYPE_CHECKING:
    import numpy.typing as npt
    from pdeinputs.analysis.entities import MeshEntity
    from pdeinputs.analysis.evaluators import Evaluator, Value

DEFAULT_QUADRATURE = QuadratureType.BARY

# Number of Gauss points per sub-simplex, keyed by policy then by dimension
GAUSS_POINTS: dict[QuadratureType, dict[int, int]] = {
    QuadratureType.HIGHER: {2: 3, 3: 4},
    QuadratureType.HIGHEST: {2: 4, 3: 5},
}


def check_entity(entity: MeshEntity) -> float:
    """
    Return the measure of ``entity``.

    Raises:
        DegenerateEntity: If the measure is zero, negative or not finite.
    """
    measure = entity.measure
    if not np.isfinite(measure) or measure <= 0.0:
        raise DegenerateEntity(f"{entity.__class__.__name__} (index={entity.index}) has measure {measure}.")
    return measure


def _zero(evaluator: Evaluator) -> Value:
    if evaluator.arity.shape:
        return np.zeros(evaluator.arity.shape, dtype=np.float64)
    return 0.0


def barycenter(entity: MeshEntity, evaluator: Evaluator, time: float = 0.0) -> Value:
    """Barycenter rule: f(x_E) |E|."""
    measure = check_entity(entity)
    return measure * evaluator.evaluate(entity.centroid, time)


def subdivision(entity: MeshEntity, evaluator: Evaluator, time: float = 0.0) -> Value:
    """Barycenter rule applied to every sub-simplex of the entity."""
    check_entity(entity)
    if entity.dimension == 0:
        return barycenter(entity, evaluator, time)

    total = _zero(evaluator)
    for simplex, measure in zip(entity.simplices(), entity.sub_measures()):
        if measure == 0.0:
            continue
        total = total + measure * evaluator.evaluate(simplex.mean(axis=0), time)
    return total


def gauss(
    entity: MeshEntity,
    evaluator: Evaluator,
    time: float = 0.0,
    quadrature: QuadratureType = QuadratureType.HIGHER,
) -> Value:
    """Gauss rule of the given policy applied to every sub-simplex of the entity."""
    check_entity(entity)
    if entity.dimension == 0:
        return barycenter(entity, evaluator, time)

    points, weights = simplex_rule(entity.dimension, GAUSS_POINTS[quadrature][entity.dimension])

    total = _zero(evaluator)
    for simplex, measure in zip(entity.simplices(), entity.sub_measures()):
        if measure == 0.0:
            continue
        # Barycentric coordinates -> physical points
        physical_points = points @ simplex
        contribution = _zero(evaluator)
        for weight, point in zip(weights, physical_points):
            contribution = contribution + weight * evaluator.evaluate(point, time)
        total = total + measure * contribution
    return total


def _higher(entity: MeshEntity, evaluator: Evaluator, time: float) -> Value:
    return gauss(entity, evaluator, time, QuadratureType.HIGHER)


def _highest(entity: MeshEntity, evaluator: Evaluator, time: float) -> Value:
    return gauss(entity, evaluator, time, QuadratureType.HIGHEST)


QUADRATURE_FUNCTIONS: dict[QuadratureType, Callable[[Any, Any, float], Any]] = {
    QuadratureType.BARY: barycenter,
    QuadratureType.SUBDIV: subdivision,
    QuadratureType.HIGHER: _higher,
    QuadratureType.HIGHEST: _highest,
}


def integrate(
    entity: MeshEntity,
    evaluator: Evaluator,
    time: float = 0.0,
    quadrature: QuadratureType | str = DEFAULT_QUADRATURE,
) -> Value:
    """
    Approximate the integral of ``evaluator`` over ``entity``.

    Args:
        entity: Cell, face or vertex to integrate over.
        evaluator: Integrand.
        time: Physical time passed to the evaluator.
        quadrature: Policy, ``bary`` by default.

    Returns:
        A float for scalar evaluators, otherwise an array of the evaluator's shape.

    Raises:
        DegenerateEntity: If the entity has a non-positive measure.
        InvalidOption: If ``quadrature`` is not a known policy.
    """
    policy = parse_quadrature(quadrature, "quadrature")
    return QUADRATURE_FUNCTIONS[policy](entity, evaluator, float(time))


def integrate_all(
    entities: Iterable[MeshEntity],
    evaluator: Evaluator,
    time: float = 0.0,
    quadrature: QuadratureType | str = DEFAULT_QUADRATURE,
) -> npt.NDArray[np.float64]:
    """Integrate over every entity; results are stacked along axis 0."""
    policy = parse_quadrature(quadrature, "quadrature")
    function = QUADRATURE_FUNCTIONS[policy]
    values = [function(entity, evaluator, float(time)) for entity in entities]
    return np.array(values, dtype=np.float64).reshape((len(values), *evaluator.arity.shape))


def mean_value(
    entity: MeshEntity,
    evaluator: Evaluator,
    time: float = 0.0,
    quadrature: QuadratureType | str = DEFAULT_QUADRATURE,
) -> Value:
    """Integral divided by the measure of the entity."""
    return integrate(entity, evaluator, time, quadrature) / check_entity(entity)
