"""
Source Terms
============
Volumetric (or surfacic) source terms attached to an equation, integrated
per mesh entity with their own quadrature policy.
"""
from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Iterable, Optional

from pdeinputs.analysis.quadrature import DEFAULT_QUADRATURE, integrate, integrate_all
from pdeinputs.model.terms import OptionsMixin
from pdeinputs.options import POST_AT_START, POST_NEVER, QuadratureType

if TYPE_CHECKING:
    import numpy as np
    import numpy.typing as npt
    from pdeinputs.analysis.entities import MeshEntity
    from pdeinputs.analysis.evaluators import DefinitionKind, Evaluator, Value


class MeshLocation(StrEnum):
    CELLS = "cells"
    INTERIOR_FACES = "interior_faces"
    BOUNDARY_FACES = "boundary_faces"
    VERTICES = "vertices"


class SourceTerm(OptionsMixin):
    """
    Source term of an equation.

    Attributes:
        label: Optional label, unique within its equation.
        location: Class of mesh entities the source term lives on.
        evaluator: Integrand, with the arity of the equation's variable.
        quadrature: Quadrature policy used by :meth:`integrate`.
        post: Post-processing cadence (-1 never, 0 initial state only,
            n every n iterations).
    """

    def __init__(
        self,
        label: Optional[str],
        location: MeshLocation,
        evaluator: Evaluator,
        quadrature: QuadratureType = DEFAULT_QUADRATURE,
        post: int = POST_NEVER,
    ) -> None:
        self.label = label
        self.location = location
        self.evaluator = evaluator
        self.quadrature = quadrature
        self.post = post
        self._init_options()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(label={self.label!r}, location={self.location}, "
            f"definition={self.definition}, quadrature={self.quadrature}, post={self.post})"
        )

    @property
    def definition(self) -> DefinitionKind:
        return self.evaluator.kind

    def integrate(self, entity: MeshEntity, time: float = 0.0) -> Value:
        """Integral of the source term over one entity."""
        return integrate(entity, self.evaluator, time, self.quadrature)

    def integrate_all(self, entities: Iterable[MeshEntity], time: float = 0.0) -> npt.NDArray[np.float64]:
        """Integrals over several entities, stacked along axis 0."""
        return integrate_all(entities, self.evaluator, time, self.quadrature)

    def needs_post(self, iteration: int) -> bool:
        """Whether the source term is post-processed at ``iteration`` (0 is the initial state)."""
        if self.post == POST_NEVER:
            return False
        if self.post == POST_AT_START:
            return iteration == 0
        return iteration % self.post == 0
