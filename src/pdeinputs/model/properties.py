"""
Material Properties
===================
Named material properties (conductivity, rho.cp, ...) linked to the time,
diffusion or reaction terms of equations.
"""
from __future__ import annotations

from enum import StrEnum
import logging
from typing import TYPE_CHECKING, Any, Optional

import numpy as np

from pdeinputs.analysis.evaluators import Arity
from pdeinputs.model.terms import DefinableTerm, WarningHook
from pdeinputs.options import parse_enum

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

UNITY = "unity"


class PropertyType(StrEnum):
    ISOTROPIC = "isotropic"
    ORTHOTROPIC = "orthotropic"
    ANISOTROPIC = "anisotropic"


PROPERTY_ARITY: dict[PropertyType, Arity] = {
    PropertyType.ISOTROPIC: Arity.SCALAR,
    PropertyType.ORTHOTROPIC: Arity.VECTOR,
    PropertyType.ANISOTROPIC: Arity.TENSOR,
}


class Property(DefinableTerm):
    """
    Material property.

    Attributes:
        property_type: Isotropic (scalar), orthotropic (diagonal given as a
            3-vector) or anisotropic (symmetric 3x3 tensor).
    """
    CATEGORY = "property"

    def __init__(
        self,
        name: str,
        property_type: PropertyType = PropertyType.ISOTROPIC,
        warning_hook: Optional[WarningHook] = None,
    ) -> None:
        super().__init__(name, warning_hook)
        self.property_type = parse_enum(PropertyType, property_type, "property_type")

    @property
    def arity(self) -> Arity:
        return PROPERTY_ARITY[self.property_type]

    @property
    def symmetric(self) -> bool:
        return self.property_type is PropertyType.ANISOTROPIC

    def tensor(self, point: Any, time: float = 0.0) -> npt.NDArray[np.float64]:
        """Full 3x3 tensor of the property, whatever its type."""
        value = self.evaluate(point, time)
        if self.property_type is PropertyType.ISOTROPIC:
            return value * np.eye(3)
        if self.property_type is PropertyType.ORTHOTROPIC:
            return np.diag(value)
        return value
