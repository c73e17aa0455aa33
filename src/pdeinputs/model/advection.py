"""
Advection Fields
================
Named velocity fields linked to the advection term of equations.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from pdeinputs.analysis.evaluators import Arity
from pdeinputs.model.terms import DefinableTerm

if TYPE_CHECKING:
    import numpy.typing as npt
    from pdeinputs.analysis.entities import PolygonFace, Triangle


class AdvectionField(DefinableTerm):
    """Vector-valued advection field."""
    CATEGORY = "advection field"

    @property
    def arity(self) -> Arity:
        return Arity.VECTOR

    def flux(
        self,
        face: PolygonFace | Triangle,
        normal: npt.NDArray[np.float64],
        time: float = 0.0,
        quadrature_type: str = "bary",
    ) -> float:
        """
        Flux of the field across a face: the integral of ``u . n``.

        Args:
            face: Face to integrate over.
            normal: Unit normal of the face (orientation given by the mesh).
            time: Physical time.
            quadrature_type: Quadrature policy.
        """
        normal = np.asarray(normal, dtype=np.float64)
        return float(np.dot(self.integrate(face, time, quadrature_type), normal))
