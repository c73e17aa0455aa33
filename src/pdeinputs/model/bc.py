"""
Boundary Conditions
===================
Boundary conditions attached to an equation on a named mesh location.
"""
from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from pdeinputs.analysis.evaluators import DefinitionKind
from pdeinputs.analysis.quadrature import DEFAULT_QUADRATURE, integrate, mean_value
from pdeinputs.model.terms import SealableMixin

if TYPE_CHECKING:
    from pdeinputs.analysis.entities import MeshEntity
    from pdeinputs.analysis.evaluators import Evaluator, Value
    from pdeinputs.options import QuadratureType


class BCType(StrEnum):
    DIRICHLET = "dirichlet"
    NEUMANN = "neumann"
    ROBIN = "robin"


class DefaultBC(StrEnum):
    ZERO_VALUE = "zero_value"
    ZERO_FLUX = "zero_flux"


# Definitions a boundary condition may be given by
BC_DEFINITIONS: frozenset[DefinitionKind] = frozenset({DefinitionKind.VALUE, DefinitionKind.ANALYTIC})

# Robin conditions alpha*u + beta*du/dn = g carry (alpha, beta, g)
ROBIN_COEFFICIENTS = ("alpha", "beta", "g")


class BoundaryCondition(SealableMixin):
    """
    Boundary condition of an equation.

    Attributes:
        location: Name of the boundary mesh location (e.g. "boundary_faces").
        bc_type: Dirichlet, Neumann or Robin.
        evaluator: Prescribed value, normal flux, or Robin coefficients.
    """

    def __init__(self, location: str, bc_type: BCType, evaluator: Evaluator) -> None:
        self.location = location
        self.bc_type = bc_type
        self.evaluator = evaluator

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(location='{self.location}', type={self.bc_type}, "
            f"definition={self.definition})"
        )

    @property
    def definition(self) -> DefinitionKind:
        return self.evaluator.kind

    def evaluate(self, point, time: float = 0.0) -> Value:
        return self.evaluator.evaluate(point, time)

    def integrate(
        self,
        face: MeshEntity,
        time: float = 0.0,
        quadrature_type: QuadratureType | str = DEFAULT_QUADRATURE,
    ) -> Value:
        """Integral of the prescribed quantity over a boundary face (or vertex)."""
        return integrate(face, self.evaluator, time, quadrature_type)

    def mean_value(
        self,
        face: MeshEntity,
        time: float = 0.0,
        quadrature_type: QuadratureType | str = DEFAULT_QUADRATURE,
    ) -> Value:
        """Face-averaged prescribed quantity, e.g. the Dirichlet value of a face."""
        return mean_value(face, self.evaluator, time, quadrature_type)
