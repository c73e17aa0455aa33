"""
Reaction Terms
==============
Reaction (zeroth-order) terms of an equation, each backed by an isotropic
property and carrying the options of its discrete Hodge operator.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from pdeinputs.analysis import quadrature
from pdeinputs.analysis.evaluators import AnalyticEvaluator, Arity
from pdeinputs.errors import SingularProperty
from pdeinputs.model.terms import OptionsMixin
from pdeinputs.options import HODGE_COEF_NAMES, HodgeAlgo, QuadratureType

if TYPE_CHECKING:
    from pdeinputs.analysis.entities import MeshEntity
    from pdeinputs.model.properties import Property


class ReactionTerm(OptionsMixin):
    """
    Attributes:
        label: Optional label, unique within its equation.
        property: Isotropic property giving the reaction coefficient.
        hodge_algo: Discrete Hodge operator used by the assembly.
        hodge_coef: Stabilisation coefficient of the "cost" operator.
        lumping: Lump the reaction matrix.
        inv_pty: Use the inverse of the property value.
    """

    def __init__(
        self,
        label: Optional[str],
        property: Property,
        hodge_algo: HodgeAlgo = HodgeAlgo.VORONOI,
        hodge_coef: float = HODGE_COEF_NAMES["dga"],
        lumping: bool = False,
        inv_pty: bool = False,
    ) -> None:
        self.label = label
        self.property = property
        self.hodge_algo = hodge_algo
        self.hodge_coef = hodge_coef
        self.lumping = lumping
        self.inv_pty = inv_pty
        self._init_options()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(label={self.label!r}, property='{self.property.name}', "
            f"hodge_algo={self.hodge_algo}, lumping={self.lumping}, inv_pty={self.inv_pty})"
        )

    def value(self, point: Any, time: float = 0.0) -> float:
        """
        Reaction coefficient at a point, inverted when ``inv_pty`` is set.

        Raises:
            SingularProperty: ``inv_pty`` is set and the property is zero at ``point``.
        """
        coefficient = self.property.evaluate(point, time)
        if self.inv_pty:
            if coefficient == 0.0:
                raise SingularProperty(
                    f"Reaction term {self.label!r}: property '{self.property.name}' is zero at {point!r} "
                    f"(time {time}) and cannot be inverted."
                )
            return 1.0 / coefficient
        return coefficient

    def integrate(
        self,
        entity: MeshEntity,
        time: float = 0.0,
        quadrature_type: QuadratureType | str = quadrature.DEFAULT_QUADRATURE,
    ) -> float:
        evaluator = AnalyticEvaluator(self.value, Arity.SCALAR)
        return quadrature.integrate(entity, evaluator, time, quadrature_type)
