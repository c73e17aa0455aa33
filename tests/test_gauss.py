"""Tests for the reference Gauss rules on triangles and tetrahedra."""

from itertools import product
from math import factorial

import numpy as np
import pytest

from pdeinputs.analysis.gauss import (
    TETRAHEDRON_RULE_DEGREE,
    TRIANGLE_RULE_DEGREE,
    gauss_points_weights_tetrahedron,
    gauss_points_weights_triangle,
    simplex_rule,
)

REFERENCE_TRIANGLE = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])
REFERENCE_TETRAHEDRON = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]])


def monomial_exponents(dimension, max_degree):
    return [e for e in product(range(max_degree + 1), repeat=dimension) if sum(e) <= max_degree]


def exact_reference_integral(exponents):
    """Integral of prod x_i^a_i over the reference simplex."""
    numerator = np.prod([factorial(a) for a in exponents])
    return numerator / factorial(sum(exponents) + len(exponents))


@pytest.mark.parametrize("n_points", sorted(TRIANGLE_RULE_DEGREE))
def test_triangle_weights_and_points(n_points):
    points, weights = gauss_points_weights_triangle(n_points)
    assert points.shape == (n_points, 3)
    assert np.isclose(weights.sum(), 1.0, atol=1e-15)
    assert np.allclose(points.sum(axis=1), 1.0, atol=1e-15)


@pytest.mark.parametrize("n_points", sorted(TETRAHEDRON_RULE_DEGREE))
def test_tetrahedron_weights_and_points(n_points):
    points, weights = gauss_points_weights_tetrahedron(n_points)
    assert points.shape == (n_points, 4)
    assert np.isclose(weights.sum(), 1.0, atol=1e-15)
    assert np.allclose(points.sum(axis=1), 1.0, atol=1e-15)


@pytest.mark.parametrize("n_points, degree", sorted(TRIANGLE_RULE_DEGREE.items()))
def test_triangle_rule_exactness(n_points, degree):
    """Every monomial up to the rule degree is integrated exactly."""
    points, weights = gauss_points_weights_triangle(n_points)
    xy = points @ REFERENCE_TRIANGLE
    for exponents in monomial_exponents(2, degree):
        values = np.prod(xy ** np.array(exponents), axis=1)
        approx = 0.5 * np.dot(weights, values)
        assert approx == pytest.approx(exact_reference_integral(exponents), rel=1e-12), exponents


@pytest.mark.parametrize("n_points, degree", sorted(TETRAHEDRON_RULE_DEGREE.items()))
def test_tetrahedron_rule_exactness(n_points, degree):
    points, weights = gauss_points_weights_tetrahedron(n_points)
    xyz = points @ REFERENCE_TETRAHEDRON
    for exponents in monomial_exponents(3, degree):
        values = np.prod(xyz ** np.array(exponents), axis=1)
        approx = np.dot(weights, values) / 6.0
        assert approx == pytest.approx(exact_reference_integral(exponents), rel=1e-12), exponents


def test_four_point_tetrahedron_rule_is_not_cubic():
    """The 4-point rule stops at degree 2."""
    points, weights = gauss_points_weights_tetrahedron(4)
    x = (points @ REFERENCE_TETRAHEDRON)[:, 0]
    approx = np.dot(weights, x ** 3) / 6.0
    assert not np.isclose(approx, exact_reference_integral((3, 0, 0)), rtol=1e-6)


@pytest.mark.parametrize("n_points", [2, 6])
def test_unsupported_rules(n_points):
    with pytest.raises(ValueError):
        gauss_points_weights_triangle(n_points)
    with pytest.raises(ValueError):
        gauss_points_weights_tetrahedron(n_points)


def test_simplex_rule_dispatch():
    assert simplex_rule(2, 4)[0].shape == (4, 3)
    assert simplex_rule(3, 5)[0].shape == (5, 4)
    with pytest.raises(ValueError):
        simplex_rule(1, 2)
