from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt

# Polynomial degree integrated exactly by each rule, keyed by number of points
TRIANGLE_RULE_DEGREE: dict[int, int] = {1: 1, 3: 2, 4: 3}
TETRAHEDRON_RULE_DEGREE: dict[int, int] = {1: 1, 4: 2, 5: 3}


def gauss_points_weights_triangle(n_points: int) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """
    Generate Gauss points and weights for a triangular Gaussian integration.

    Points are barycentric coordinates [1 - r - s, r, s]; weights sum to 1
    (the measure of the reference element after normalisation).

    Args:
        n_points: Number of integration points.

    Raises:
        ValueError: If `n_points` is not 1, 3 or 4.

    Returns:
        A tuple containing the Gauss points and weights.
    """
    if n_points == 1:
        return np.array([[1.0/3.0, 1.0/3.0, 1.0/3.0]]), np.array([1.0])
    elif n_points == 3:
        return np.array([
            [2.0/3.0, 1.0/6.0, 1.0/6.0],
            [1.0/6.0, 2.0/3.0, 1.0/6.0],
            [1.0/6.0, 1.0/6.0, 2.0/3.0]]
        ), np.array([1.0/3.0, 1.0/3.0, 1.0/3.0])
    elif n_points == 4:
        # Centroid carries a negative weight
        return np.array([
            [1.0/3.0, 1.0/3.0, 1.0/3.0],
            [0.6, 0.2, 0.2],
            [0.2, 0.6, 0.2],
            [0.2, 0.2, 0.6]]
        ), np.array([-27.0/48.0, 25.0/48.0, 25.0/48.0, 25.0/48.0])
    else:
        raise ValueError(f"Unsupported number of Gauss points: {n_points}. "
                         f"'n_points' must be 1, 3 or 4.")


def gauss_points_weights_tetrahedron(n_points: int) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """
    Generate Gauss points and weights for a tetrahedral Gaussian integration.

    Points are barycentric coordinates [1 - r - s - t, r, s, t]; weights sum to 1.

    Args:
        n_points: Number of integration points.

    Raises:
        ValueError: If `n_points` is not 1, 4 or 5.

    Returns:
        A tuple containing the Gauss points and weights.
    """
    if n_points == 1:
        return np.array([[0.25, 0.25, 0.25, 0.25]]), np.array([1.0])
    elif n_points == 4:
        a = (5.0 - np.sqrt(5.0)) / 20.0
        b = (5.0 + 3.0 * np.sqrt(5.0)) / 20.0
        return np.array([
            [b, a, a, a],
            [a, b, a, a],
            [a, a, b, a],
            [a, a, a, b]]
        ), np.array([0.25, 0.25, 0.25, 0.25])
    elif n_points == 5:
        # Centroid carries a negative weight
        return np.array([
            [0.25, 0.25, 0.25, 0.25],
            [0.5, 1.0/6.0, 1.0/6.0, 1.0/6.0],
            [1.0/6.0, 0.5, 1.0/6.0, 1.0/6.0],
            [1.0/6.0, 1.0/6.0, 0.5, 1.0/6.0],
            [1.0/6.0, 1.0/6.0, 1.0/6.0, 0.5]]
        ), np.array([-0.8, 0.45, 0.45, 0.45, 0.45])
    else:
        raise ValueError(f"Unsupported number of Gauss points: {n_points}. "
                         f"'n_points' must be 1, 4 or 5.")


def simplex_rule(dimension: int, n_points: int) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """Dispatch to the triangle (dimension 2) or tetrahedron (dimension 3) rule."""
    if dimension == 2:
        return gauss_points_weights_triangle(n_points)
    if dimension == 3:
        return gauss_points_weights_tetrahedron(n_points)
    raise ValueError(f"No simplex rule for dimension {dimension}.")
